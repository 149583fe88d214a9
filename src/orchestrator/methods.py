"""Per-method batch orchestrator constructors.

Each helper pins the ``method`` key of every descriptor; the factory still
supplies URL, parameters and payload.
"""

from enum import Enum

from src.orchestrator.batch import BatchOrchestrator
from src.transport.descriptor import DescriptorFactory, DescriptorSource
from src.transport.provider import Transport


class HttpMethod(Enum):
    """HTTP methods supported by the convenience wrappers."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, method: "HttpMethod | str") -> "HttpMethod":
        """Parse a method name case-insensitively.

        Raises:
            ValueError: If the method is not supported
        """
        if isinstance(method, cls):
            return method
        return cls(str(method).upper())


def parallel_request(
    method: HttpMethod | str,
    request_factory: DescriptorFactory | DescriptorSource,
    transport: Transport | None = None,
) -> BatchOrchestrator:
    """Create a batch orchestrator whose requests all use ``method``."""
    return BatchOrchestrator(
        request_factory,
        overrides={"method": HttpMethod.parse(method).value},
        transport=transport,
    )


def parallel_get(
    request_factory: DescriptorFactory | DescriptorSource,
    transport: Transport | None = None,
) -> BatchOrchestrator:
    return parallel_request(HttpMethod.GET, request_factory, transport)


def parallel_post(
    request_factory: DescriptorFactory | DescriptorSource,
    transport: Transport | None = None,
) -> BatchOrchestrator:
    return parallel_request(HttpMethod.POST, request_factory, transport)


def parallel_put(
    request_factory: DescriptorFactory | DescriptorSource,
    transport: Transport | None = None,
) -> BatchOrchestrator:
    return parallel_request(HttpMethod.PUT, request_factory, transport)


def parallel_patch(
    request_factory: DescriptorFactory | DescriptorSource,
    transport: Transport | None = None,
) -> BatchOrchestrator:
    return parallel_request(HttpMethod.PATCH, request_factory, transport)


def parallel_delete(
    request_factory: DescriptorFactory | DescriptorSource,
    transport: Transport | None = None,
) -> BatchOrchestrator:
    return parallel_request(HttpMethod.DELETE, request_factory, transport)
