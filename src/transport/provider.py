"""Process-wide default transport.

Orchestrators constructed without an explicit transport resolve the default
here on every execution, so tests can swap it with :func:`provide_transport`
without touching the code under test.
"""

import asyncio
import inspect
import threading
from collections.abc import Awaitable, Callable
from typing import Any

from src.config import ConfigManager
from src.log_config import get_logger
from src.transport.descriptor import RequestDescriptor
from src.transport.http_transport import HttpTransport

# Initialize logger
logger = get_logger(__name__)

Transport = Callable[[RequestDescriptor], Awaitable[Any]]

_transport: Transport | None = None
_lock = threading.Lock()


def provide_transport(transport: Transport) -> None:
    """Replace the process-wide default transport.

    Args:
        transport: Callable taking a descriptor and returning an awaitable response
    """
    global _transport
    with _lock:
        _transport = transport
    logger.debug("default_transport_provided", transport=type(transport).__name__)


def get_transport() -> Transport:
    """Return the process-wide default transport.

    Lazily creates an :class:`HttpTransport` from the loaded configuration
    (or default settings when no configuration has been loaded).

    Returns:
        The default transport
    """
    global _transport
    if _transport is not None:
        return _transport

    with _lock:
        if _transport is None:
            config = ConfigManager.peek_config()
            _transport = HttpTransport(config.transport if config else None)
            logger.info("default_transport_created", configured=config is not None)
        return _transport


def reset_transport() -> None:
    """Forget the default transport so the next lookup builds a fresh one."""
    global _transport
    with _lock:
        _transport = None


def issue_request(
    loop: asyncio.AbstractEventLoop,
    transport: Transport,
    descriptor: RequestDescriptor,
) -> Awaitable[Any]:
    """Send one request immediately and return an awaitable of its outcome.

    Synchronous transport failures and plain (non-awaitable) return values
    are wrapped in already-settled futures, so callers only ever await.

    Args:
        loop: Running event loop
        transport: Transport to send with
        descriptor: Request descriptor

    Returns:
        Awaitable resolving to the response or raising the transport error
    """
    try:
        result = transport(descriptor)
    except Exception as e:  # noqa: BLE001
        future = loop.create_future()
        future.set_exception(e)
        return future

    if inspect.isawaitable(result):
        return result

    future = loop.create_future()
    future.set_result(result)
    return future
