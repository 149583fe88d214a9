"""Auto-running single request with change detection and cancellation.

RequestData fetches a descriptor as soon as it is started and fetches again
whenever its dependency key changes: the descriptor's url, method, params and
data, the ``will_run`` flag, or the retry counter. With ``cancelable=True``
a superseded fetch is cancelled; cancellation never counts as an error.
"""

import asyncio
from collections.abc import Sequence
from typing import Any

from src.log_config import get_logger
from src.orchestrator.state import extract_body
from src.transport.descriptor import DescriptorSource, dependency_key, normalize_descriptor
from src.transport.provider import Transport, get_transport, issue_request

# Initialize logger
logger = get_logger(__name__)


class RequestData:
    """Request whose data is fetched automatically.

    Example:
        >>> user = RequestData({"url": "/users/1", "method": "GET"}, cancelable=True)
        >>> await user.start()
        >>> user.data
        {'id': 1}
        >>> await user.update(descriptor={"url": "/users/2", "method": "GET"})

    Attributes:
        descriptor: Normalized request descriptor
        will_run: Whether fetching is enabled
        cancelable: Whether a superseded fetch is cancelled
        depends: Explicit dependency values replacing the descriptor-derived key
        retries_count: Number of retry() calls so far
        in_flight: Whether a fetch is running (starts equal to will_run)
        error: Exception raised by the latest fetch, if any
        response: Response of the latest successful fetch
        data: Payload of the latest successful fetch (or set_data value)
    """

    def __init__(
        self,
        descriptor: DescriptorSource,
        will_run: bool = True,
        cancelable: bool = False,
        depends: Sequence[Any] | None = None,
        transport: Transport | None = None,
    ):
        self.descriptor = normalize_descriptor(descriptor)
        self.will_run = will_run
        self.cancelable = cancelable
        self.depends = depends
        self._transport = transport

        self.retries_count = 0
        self.in_flight = will_run
        self.error: Exception | None = None
        self.response: Any = None
        self.data: Any = None

        self._key: tuple | None = None
        self._sequence = 0
        self._task: asyncio.Task | None = None

    def _dependency_key(self) -> tuple:
        if self.depends is not None:
            base = tuple(self.depends)
        else:
            base = dependency_key(self.descriptor, self.will_run)
        return (*base, self.retries_count)

    def start(self) -> asyncio.Future:
        """Fetch if the dependency key changed since the last fetch.

        Returns:
            Awaitable completing when the current fetch (if any) settles
        """
        key = self._dependency_key()
        if key != self._key:
            self._key = key
            self._run()
        return self._completion()

    def update(
        self,
        descriptor: DescriptorSource | None = None,
        will_run: bool | None = None,
        depends: Sequence[Any] | None = None,
    ) -> asyncio.Future:
        """Change the request inputs and re-fetch if that changes the key."""
        if descriptor is not None:
            self.descriptor = normalize_descriptor(descriptor)
        if will_run is not None:
            self.will_run = will_run
        if depends is not None:
            self.depends = depends
        return self.start()

    def retry(self) -> asyncio.Future:
        """Fetch again regardless of the other dependencies."""
        self.retries_count += 1
        return self.start()

    def set_data(self, value: Any) -> None:
        """Replace the fetched data locally."""
        self.data = value

    def cancel(self) -> bool:
        """Cancel the running fetch.

        Returns:
            True if a running fetch was cancelled
        """
        if self._task is None or self._task.done():
            return False

        self._task.cancel()
        self._sequence += 1
        self.in_flight = False
        logger.debug("request_data_cancel_requested", url=self.descriptor.get("url"))
        return True

    def _run(self) -> None:
        loop = asyncio.get_running_loop()

        if self.cancelable and self._task is not None and not self._task.done():
            self._task.cancel()
            logger.debug("request_data_superseded_cancelled", url=self.descriptor.get("url"))

        if not self.will_run:
            return

        self._sequence += 1
        sequence = self._sequence
        self.in_flight = True
        self.error = None

        transport = self._transport if self._transport is not None else get_transport()
        self._task = loop.create_task(self._fetch(sequence, transport, dict(self.descriptor)))

    async def _fetch(self, sequence: int, transport: Transport, descriptor: dict[str, Any]) -> None:
        loop = asyncio.get_running_loop()
        try:
            response = await issue_request(loop, transport, descriptor)
        except asyncio.CancelledError:
            logger.debug("request_data_cancelled", sequence=sequence)
            raise
        except Exception as e:  # noqa: BLE001
            if sequence != self._sequence:
                return
            logger.warning("request_data_failed", sequence=sequence, error=str(e))
            self.error = e
            self.in_flight = False
            return

        if sequence != self._sequence:
            return
        self.response = response
        self.data = extract_body(response)
        self.in_flight = False

    def _completion(self) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        if self._task is None:
            future = loop.create_future()
            future.set_result(None)
            return future
        return asyncio.ensure_future(_wait_quietly(self._task))


async def _wait_quietly(task: asyncio.Task) -> None:
    """Wait for ``task`` without propagating its cancellation."""
    await asyncio.wait([task])


def get_data(config: DescriptorSource, **kwargs: Any) -> RequestData:
    """Create a GET RequestData; a bare URL string is accepted."""
    return RequestData({**normalize_descriptor(config), "method": "GET"}, **kwargs)
