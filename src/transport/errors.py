"""Exception hierarchy for request construction and transport failures."""

from typing import Any


class RequestError(Exception):
    """Base exception for all request orchestration errors."""


class DescriptorError(RequestError, ValueError):
    """Exception raised when a request descriptor is malformed.

    Raised synchronously while descriptors are built, before any request
    of the batch is issued.
    """


class TransportError(RequestError):
    """Exception raised when the transport fails to deliver a response.

    Attributes:
        message: Description of the failure
        status_code: HTTP status code, if a response was received
        response: The raw response object, if any
        descriptor: The request descriptor that failed
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: Any = None,
        descriptor: dict[str, Any] | None = None,
    ):
        """Initialize the exception.

        Args:
            message: Description of the failure
            status_code: HTTP status code, if a response was received
            response: The raw response object, if any
            descriptor: The request descriptor that failed
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response
        self.descriptor = descriptor
