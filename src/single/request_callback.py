"""On-demand single request.

RequestCallback issues exactly one request per :meth:`RequestCallback.exec`
call and keeps the outcome of the latest call.
"""

import asyncio
from collections.abc import Mapping
from typing import Any

from src.log_config import get_logger
from src.orchestrator.methods import HttpMethod
from src.orchestrator.state import extract_body
from src.transport.descriptor import (
    DescriptorFactory,
    DescriptorSource,
    apply_input,
    merge_descriptor,
)
from src.transport.provider import Transport, get_transport, issue_request

# Initialize logger
logger = get_logger(__name__)


class RequestCallback:
    """Single request executed on demand.

    Example:
        >>> save_user = RequestCallback(lambda user: {"url": f"/users/{user['id']}", "json": user},
        ...                             {"method": "PUT"})
        >>> await save_user.exec({"id": 1, "name": "Ada"})
        >>> save_user.error is None
        True

    Attributes:
        config_or_factory: Static descriptor, URL, or factory called with the input
        overrides: Keys forced onto the descriptor
        execution_sequence: Number of executions started so far
        input: Input of the latest execution
        in_flight: Whether the latest execution is still running
        error: Exception raised by the latest execution, if any
        response: Response of the latest successful execution
        data: Payload of the latest successful execution
    """

    def __init__(
        self,
        config_or_factory: DescriptorFactory | DescriptorSource,
        overrides: Mapping[str, Any] | None = None,
        transport: Transport | None = None,
    ):
        self.config_or_factory = config_or_factory
        self.overrides = dict(overrides or {})
        self._transport = transport

        self.execution_sequence = 0
        self.input: Any = None
        self.in_flight = False
        self.error: Exception | None = None
        self.response: Any = None
        self.data: Any = None

    def exec(self, arg: Any = None) -> asyncio.Task:
        """Issue the request for ``arg``.

        Returns:
            Task resolving once the request settled; awaiting it is optional

        Raises:
            DescriptorError: If the descriptor cannot be built
        """
        loop = asyncio.get_running_loop()
        descriptor = merge_descriptor(apply_input(arg, self.config_or_factory), self.overrides)
        transport = self._transport if self._transport is not None else get_transport()

        self.error = None
        self.in_flight = True
        self.input = arg
        self.execution_sequence += 1
        sequence = self.execution_sequence

        logger.info("request_callback_started", sequence=sequence, method=descriptor.get("method"))

        request = issue_request(loop, transport, descriptor)
        return loop.create_task(self._settle(sequence, request))

    async def _settle(self, sequence: int, request: Any) -> None:
        try:
            response = await request
        except Exception as e:  # noqa: BLE001
            if sequence != self.execution_sequence:
                return
            logger.warning("request_callback_failed", sequence=sequence, error=str(e))
            self.error = e
        else:
            if sequence != self.execution_sequence:
                return
            self.response = response
            self.data = extract_body(response)
        finally:
            if sequence == self.execution_sequence:
                self.in_flight = False

    def retry(self) -> asyncio.Task:
        """Re-execute the request with the latest input."""
        return self.exec(self.input)


def request_callback(
    method: HttpMethod | str,
    config_or_factory: DescriptorFactory | DescriptorSource,
    transport: Transport | None = None,
) -> RequestCallback:
    """Create a RequestCallback pinned to ``method``."""
    return RequestCallback(
        config_or_factory,
        overrides={"method": HttpMethod.parse(method).value},
        transport=transport,
    )


def get_callback(config_or_factory: DescriptorFactory | DescriptorSource, transport: Transport | None = None) -> RequestCallback:
    return request_callback(HttpMethod.GET, config_or_factory, transport)


def post_callback(config_or_factory: DescriptorFactory | DescriptorSource, transport: Transport | None = None) -> RequestCallback:
    return request_callback(HttpMethod.POST, config_or_factory, transport)


def put_callback(config_or_factory: DescriptorFactory | DescriptorSource, transport: Transport | None = None) -> RequestCallback:
    return request_callback(HttpMethod.PUT, config_or_factory, transport)


def patch_callback(config_or_factory: DescriptorFactory | DescriptorSource, transport: Transport | None = None) -> RequestCallback:
    return request_callback(HttpMethod.PATCH, config_or_factory, transport)


def delete_callback(config_or_factory: DescriptorFactory | DescriptorSource, transport: Transport | None = None) -> RequestCallback:
    return request_callback(HttpMethod.DELETE, config_or_factory, transport)
