"""Batch Orchestrator for Concurrent Requests.

This module implements the BatchOrchestrator class that issues one request
per input concurrently, partitions the settled outcomes into succeeded and
failed inputs (in input order), and derives a retry capability scoped to the
failed inputs.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

from src.log_config import bind_generation, get_logger
from src.orchestrator.retry import RetryCapability, derive_retry
from src.orchestrator.state import BatchSnapshot, BatchState
from src.transport.descriptor import (
    DescriptorFactory,
    DescriptorSource,
    RequestDescriptor,
    apply_input,
    merge_descriptor,
)
from src.transport.provider import Transport, get_transport, issue_request

# Initialize logger
logger = get_logger(__name__)

Listener = Callable[[BatchSnapshot], Any]


class BatchOrchestrator:
    """Concurrent request batch with per-item outcome tracking.

    Every call to :meth:`exec` starts a new generation: the inputs are frozen,
    previous results are cleared and one request per input is issued at once,
    without any concurrency limit. A failing request never aborts its
    siblings. Once every request of the generation has settled the partitioned
    result is published to the registered listeners. Results of a generation
    superseded by a newer ``exec`` are discarded.

    Example:
        >>> batch = BatchOrchestrator(lambda user_id: f"/users/{user_id}", {"method": "GET"})
        >>> snapshot = await batch.exec([1, 2, 3])
        >>> snapshot.succeeded, snapshot.failed
        ((1, 3), (2,))
        >>> if batch.retry:
        ...     await batch.retry()

    Attributes:
        request_factory: Builds a descriptor (or URL string) for an input
        overrides: Keys forced onto every descriptor (e.g. the HTTP method)
    """

    def __init__(
        self,
        request_factory: DescriptorFactory | DescriptorSource,
        overrides: Mapping[str, Any] | None = None,
        transport: Transport | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            request_factory: Callable mapping an input to a descriptor, or a
                static descriptor shared by every input
            overrides: Descriptor keys that take precedence over the factory
            transport: Transport used to send requests; when omitted the
                process-wide default is looked up on every execution
        """
        self.request_factory = request_factory
        self.overrides = dict(overrides or {})
        self._transport = transport
        self._state = BatchState()
        self._listeners: list[Listener] = []
        self._published = self._state.snapshot()
        self._current: asyncio.Future | None = None
        self._tasks: set[asyncio.Future] = set()

    def build_descriptors(self, inputs: Iterable[Any]) -> list[RequestDescriptor]:
        """Build the request descriptor of every input.

        Args:
            inputs: Batch inputs

        Returns:
            One descriptor per input, overrides applied

        Raises:
            DescriptorError: If the factory produces a malformed descriptor
        """
        return [merge_descriptor(apply_input(arg, self.request_factory), self.overrides) for arg in inputs]

    def exec(self, inputs: Iterable[Any]) -> asyncio.Future:
        """Start a new generation for ``inputs``.

        Descriptors are built and all requests are issued before this method
        returns; outcomes are collected on the running event loop.

        Args:
            inputs: Batch inputs; may be empty

        Returns:
            Future resolving to the published BatchSnapshot, or to None if
            the generation was superseded before it settled. Awaiting it is
            optional.

        Raises:
            RuntimeError: If called without a running event loop
            DescriptorError: If a descriptor cannot be built; no state
                change happens and no request is issued in that case
        """
        loop = asyncio.get_running_loop()
        batch = tuple(inputs)
        descriptors = self.build_descriptors(batch)
        transport = self._transport if self._transport is not None else get_transport()

        generation = self._state.start_execution(batch)
        logger.info(
            "batch_execution_started",
            generation=generation,
            batch_size=len(batch),
            method=self.overrides.get("method"),
        )

        if not batch:
            future = loop.create_future()
            self._current = future
            future.set_result(self._publish(generation))
            return future

        pending = [issue_request(loop, transport, descriptor) for descriptor in descriptors]
        task = loop.create_task(self._run_generation(generation, pending))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._current = task
        return task

    async def run(self, inputs: Iterable[Any]) -> BatchSnapshot | None:
        """Execute ``inputs`` and wait for the generation to settle."""
        return await self.exec(inputs)

    async def wait(self) -> BatchSnapshot | None:
        """Wait for the most recently started generation.

        Returns:
            The published snapshot, or None if nothing was executed yet
        """
        if self._current is None:
            return None
        return await self._current

    async def _run_generation(self, generation: int, pending: list[Awaitable[Any]]) -> BatchSnapshot | None:
        bind_generation(generation)

        settled = await asyncio.gather(
            *(self._settle(generation, index, request) for index, request in enumerate(pending)),
        )

        # Exactly one settlement publishes, unless the generation was superseded first
        published = next((snapshot for snapshot in settled if snapshot is not None), None)
        if published is None:
            logger.info(
                "stale_generation_discarded",
                generation=generation,
                current_generation=self._state.execution_sequence,
            )

        return published

    async def _settle(self, generation: int, index: int, request: Awaitable[Any]) -> BatchSnapshot | None:
        try:
            response = await request
        except asyncio.CancelledError as e:
            # A cancelled request fails its index; cancelling this task propagates
            if asyncio.current_task().cancelling():
                raise
            logger.warning("batch_request_cancelled", index=index)
            completed = self._state.record_failure(generation, index, e)
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "batch_request_failed",
                index=index,
                error=str(e),
                error_type=type(e).__name__,
            )
            completed = self._state.record_failure(generation, index, e)
        else:
            logger.debug("batch_request_succeeded", index=index)
            completed = self._state.record_success(generation, index, response)

        if not completed:
            return None
        return self._publish(generation)

    def _publish(self, generation: int) -> BatchSnapshot | None:
        if not self._state.finalize(generation):
            return None

        failed = self._state.failed
        published = self._state.snapshot(retry=derive_retry(failed, self.exec))
        self._published = published

        logger.info(
            "batch_generation_published",
            generation=generation,
            succeeded=len(published.succeeded),
            failed=len(failed),
        )

        # Listeners may start the next generation; the snapshot above stays this generation's result
        for listener in list(self._listeners):
            try:
                listener(published)
            except Exception as e:  # noqa: BLE001
                logger.exception("batch_listener_failed", generation=generation, error=str(e))

        return published

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called once per published generation.

        Args:
            listener: Callable receiving the published BatchSnapshot

        Returns:
            Zero-argument callable removing the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> BatchSnapshot:
        """Return the current observation of the orchestrator.

        While a generation is in flight the result collections are empty;
        they only ever hold the outcome of a fully settled generation.
        """
        return self._state.snapshot(retry=self.retry)

    @property
    def retry(self) -> RetryCapability | None:
        """Retry capability for the currently failed inputs, or None."""
        return derive_retry(self._state.failed, self.exec)

    @property
    def in_flight(self) -> bool:
        return self._state.in_flight

    @property
    def execution_sequence(self) -> int:
        return self._state.execution_sequence

    @property
    def inputs(self) -> tuple:
        return self._state.current_inputs

    @property
    def succeeded(self) -> tuple:
        return self._state.succeeded

    @property
    def failed(self) -> tuple:
        return self._state.failed

    @property
    def responses(self) -> tuple:
        return self._state.responses

    @property
    def data(self) -> tuple:
        return self._state.data

    @property
    def errors(self) -> tuple:
        return self._state.errors
