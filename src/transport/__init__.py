"""Request descriptors and the injectable HTTP transport."""

from .descriptor import (
    RequestDescriptor,
    apply_input,
    dependency_key,
    merge_descriptor,
    normalize_descriptor,
)
from .errors import DescriptorError, RequestError, TransportError
from .http_transport import HttpTransport, TransportResponse
from .provider import (
    Transport,
    get_transport,
    issue_request,
    provide_transport,
    reset_transport,
)

__all__ = [
    "DescriptorError",
    "HttpTransport",
    "RequestDescriptor",
    "RequestError",
    "Transport",
    "TransportError",
    "TransportResponse",
    "apply_input",
    "dependency_key",
    "get_transport",
    "issue_request",
    "merge_descriptor",
    "normalize_descriptor",
    "provide_transport",
    "reset_transport",
]
