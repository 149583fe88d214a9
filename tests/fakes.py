"""Fake transports and helpers shared by the test modules."""

import asyncio
from unittest.mock import AsyncMock

from src.transport.errors import TransportError
from src.transport.http_transport import TransportResponse


def fails_with_err_prefix(arg) -> bool:
    """Inputs starting with 'err' fail."""
    return str(arg).startswith("err")


def make_transport(should_fail=fails_with_err_prefix, gates: dict | None = None) -> AsyncMock:
    """Create a fake transport keyed on the descriptor's ``arg`` field.

    Args:
        should_fail: Predicate deciding which inputs fail
        gates: Optional mapping of input to asyncio.Event the request waits on

    Returns:
        AsyncMock recording every descriptor it was called with
    """

    async def send(descriptor):
        arg = descriptor.get("arg")
        if gates and arg in gates:
            await gates[arg].wait()
        else:
            await asyncio.sleep(0)
        if should_fail(arg):
            msg = f"error-{arg}"
            raise TransportError(msg, descriptor=descriptor)
        return TransportResponse(status_code=200, body=f"success-{arg}", request=descriptor)

    return AsyncMock(side_effect=send)


def request_factory(arg) -> dict:
    """Descriptor factory carrying the input through to the fake transport."""
    return {"url": f"/items/{arg}", "arg": arg}


def called_args(transport: AsyncMock) -> list:
    """Inputs of every request sent through a fake transport, in call order."""
    return [call.args[0]["arg"] for call in transport.call_args_list]


async def drain(rounds: int = 10) -> None:
    """Let pending callbacks on the event loop run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FalsyTransport:
    """Working transport that is falsy in a boolean context."""

    def __init__(self):
        self.calls = []

    def __len__(self) -> int:
        return 0

    async def __call__(self, descriptor):
        self.calls.append(descriptor)
        await asyncio.sleep(0)
        return TransportResponse(status_code=200, body=f"success-{descriptor.get('arg')}", request=descriptor)
