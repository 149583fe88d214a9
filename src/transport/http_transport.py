"""HTTP transport using httpx.

Provides the default ``send(descriptor)`` implementation used by the
orchestrators. Any other awaitable callable with the same contract can be
injected instead.
"""

import types
from dataclasses import dataclass, field
from typing import Any

import httpx

from src.config import TransportConfig
from src.log_config import get_logger
from src.transport.descriptor import RequestDescriptor
from src.transport.errors import DescriptorError, TransportError

# Initialize logger
logger = get_logger(__name__)

# Descriptor keys forwarded to httpx.AsyncClient.request
REQUEST_KEYS = ("params", "data", "json", "headers", "timeout", "content", "files", "cookies")


@dataclass
class TransportResponse:
    """Settled response of a single request.

    Attributes:
        status_code: HTTP status code
        body: Decoded payload (JSON when the response is JSON, text otherwise)
        headers: Response headers
        request: The descriptor that produced this response
    """

    status_code: int
    body: Any
    headers: dict[str, str] = field(default_factory=dict)
    request: RequestDescriptor = field(default_factory=dict)


def decode_body(response: httpx.Response) -> Any:
    """Decode a response payload.

    Args:
        response: The httpx response

    Returns:
        Parsed JSON for JSON responses, text otherwise, None for empty bodies
    """
    if not response.content:
        return None
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        return response.json()
    return response.text


class HttpTransport:
    """Awaitable HTTP transport backed by ``httpx.AsyncClient``.

    Example:
        >>> transport = HttpTransport(TransportConfig(base_url="https://api.example.com"))
        >>> response = await transport({"method": "GET", "url": "/users/1"})
        >>> response.body
        {'id': 1}

    Attributes:
        config: Transport configuration
        client: The underlying httpx client
    """

    def __init__(
        self,
        config: TransportConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the transport.

        Args:
            config: Transport configuration (default: TransportConfig())
            client: Pre-built client; when omitted one is created from config
                and owned (closed by aclose()) by this transport
        """
        self.config = config or TransportConfig()
        self._owns_client = client is None

        if client is None:
            client_kwargs: dict[str, Any] = {
                "headers": self.config.headers,
                "timeout": self.config.timeout_seconds,
                "verify": self.config.verify_ssl,
                "follow_redirects": self.config.follow_redirects,
            }
            if self.config.base_url:
                client_kwargs["base_url"] = self.config.base_url
            client = httpx.AsyncClient(**client_kwargs)

        self.client = client
        logger.debug(
            "http_transport_initialized",
            base_url=self.config.base_url,
            timeout_seconds=self.config.timeout_seconds,
        )

    async def __call__(self, descriptor: RequestDescriptor) -> TransportResponse:
        """Send one request described by ``descriptor``.

        Args:
            descriptor: Request descriptor with at least a ``url``

        Returns:
            TransportResponse for 2xx responses

        Raises:
            DescriptorError: If the descriptor has no url
            TransportError: On network errors or non-2xx status codes
        """
        url = descriptor.get("url")
        if not url:
            msg = "Request descriptor is missing 'url'"
            raise DescriptorError(msg)

        method = str(descriptor.get("method") or "GET").upper()
        kwargs = {key: descriptor[key] for key in REQUEST_KEYS if key in descriptor}

        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("http_request_error", method=method, url=url, error=str(e))
            msg = f"{method} {url} failed: {e}"
            raise TransportError(msg, descriptor=descriptor) from e

        if response.is_error:
            logger.warning(
                "http_request_failed_status",
                method=method,
                url=url,
                status_code=response.status_code,
            )
            msg = f"{method} {url} returned HTTP {response.status_code}"
            raise TransportError(
                msg,
                status_code=response.status_code,
                response=response,
                descriptor=descriptor,
            )

        logger.debug("http_request_succeeded", method=method, url=url, status_code=response.status_code)

        return TransportResponse(
            status_code=response.status_code,
            body=decode_body(response),
            headers=dict(response.headers),
            request=descriptor,
        )

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        await self.aclose()
