"""Batch execution state and its transition functions.

The state is the single mutable aggregate of a batch orchestrator. Every
generation goes through ``start_execution`` -> ``record_success`` /
``record_failure`` (once per input, in any order) -> ``finalize``. Outcomes
are buffered per input index and only published, in positional order, once
the whole generation has settled.
"""

import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any


def extract_body(response: Any) -> Any:
    """Extract the payload from a settled response.

    Accepts objects exposing ``body`` (or ``data``) and mappings holding a
    ``"body"`` (or ``"data"``) key.

    Args:
        response: Response returned by the transport

    Returns:
        The response payload, or None if none can be found
    """
    if isinstance(response, Mapping):
        if "body" in response:
            return response["body"]
        return response.get("data")
    if hasattr(response, "body"):
        return response.body
    return getattr(response, "data", None)


@dataclass(frozen=True)
class BatchSnapshot:
    """Immutable observation of a batch orchestrator.

    Attributes:
        in_flight: Whether the latest generation is still running
        execution_sequence: Number of executions started so far
        inputs: Inputs of the latest generation
        succeeded: Inputs whose request succeeded, in input order
        failed: Inputs whose request failed, in input order
        responses: Raw responses, aligned with ``succeeded``
        data: Response payloads, aligned with ``succeeded``
        errors: Exceptions, aligned with ``failed``
        retry: Zero-argument callable re-executing ``failed``, or None
    """

    in_flight: bool = False
    execution_sequence: int = 0
    inputs: tuple = ()
    succeeded: tuple = ()
    failed: tuple = ()
    responses: tuple = ()
    data: tuple = ()
    errors: tuple = ()
    retry: Callable[[], Any] | None = None


@dataclass
class _Outcome:
    """Settled outcome of one request, buffered at its input index."""

    ok: bool
    value: Any


class BatchState:
    """Mutable batch execution state guarded by a single lock.

    Results of a generation are buffered per index while it is in flight;
    the public collections only change in :meth:`start_execution` (cleared)
    and :meth:`finalize` (published). Settlements belonging to an older
    generation are ignored.

    Attributes:
        in_flight: True between start_execution and finalize
        execution_sequence: Strictly increasing generation counter
        current_inputs: Inputs of the latest generation
        succeeded: Published successful inputs
        failed: Published failed inputs
        responses: Published raw responses
        data: Published payloads
        errors: Published exceptions
    """

    def __init__(self) -> None:
        """Initialize an empty, idle state."""
        self.in_flight = False
        self.execution_sequence = 0
        self.current_inputs: tuple = ()
        self.succeeded: tuple = ()
        self.failed: tuple = ()
        self.responses: tuple = ()
        self.data: tuple = ()
        self.errors: tuple = ()

        self._outcomes: list[_Outcome | None] = []
        self._settled_count = 0
        self._lock = threading.Lock()

    def start_execution(self, inputs: Iterable[Any]) -> int:
        """Begin a new generation.

        Args:
            inputs: Inputs of the new batch

        Returns:
            The execution sequence number of the new generation
        """
        with self._lock:
            self.execution_sequence += 1
            self.in_flight = True
            self.current_inputs = tuple(inputs)
            self.succeeded = ()
            self.failed = ()
            self.responses = ()
            self.data = ()
            self.errors = ()
            self._outcomes = [None] * len(self.current_inputs)
            self._settled_count = 0
            return self.execution_sequence

    def record_success(self, generation: int, index: int, response: Any) -> bool:
        """Record a successful request.

        Args:
            generation: Generation the request belongs to
            index: Position of the input in the batch
            response: Response returned by the transport

        Returns:
            True if this settlement completed the current generation
        """
        return self._record(generation, index, _Outcome(ok=True, value=response))

    def record_failure(self, generation: int, index: int, error: BaseException) -> bool:
        """Record a failed request.

        Args:
            generation: Generation the request belongs to
            index: Position of the input in the batch
            error: Exception raised by the transport, or CancelledError

        Returns:
            True if this settlement completed the current generation
        """
        return self._record(generation, index, _Outcome(ok=False, value=error))

    def _record(self, generation: int, index: int, outcome: _Outcome) -> bool:
        with self._lock:
            if generation != self.execution_sequence:
                return False
            if self._outcomes[index] is not None:
                msg = f"Request {index} of generation {generation} settled twice"
                raise RuntimeError(msg)

            self._outcomes[index] = outcome
            self._settled_count += 1
            return self._settled_count == len(self._outcomes)

    def is_current(self, generation: int) -> bool:
        """Check whether ``generation`` is the latest one."""
        with self._lock:
            return generation == self.execution_sequence

    def finalize(self, generation: int) -> bool:
        """Publish the buffered outcomes of a generation in input order.

        Args:
            generation: Generation to publish

        Returns:
            False if the generation was superseded (nothing is published)

        Raises:
            RuntimeError: If some request of the generation has not settled
        """
        with self._lock:
            if generation != self.execution_sequence:
                return False
            if self._settled_count != len(self._outcomes):
                msg = (
                    f"Generation {generation} finalized with "
                    f"{self._settled_count}/{len(self._outcomes)} settled requests"
                )
                raise RuntimeError(msg)

            succeeded, failed, responses, errors = [], [], [], []
            for arg, outcome in zip(self.current_inputs, self._outcomes, strict=True):
                if outcome.ok:
                    succeeded.append(arg)
                    responses.append(outcome.value)
                else:
                    failed.append(arg)
                    errors.append(outcome.value)

            self.succeeded = tuple(succeeded)
            self.failed = tuple(failed)
            self.responses = tuple(responses)
            self.data = tuple(extract_body(r) for r in responses)
            self.errors = tuple(errors)
            self.in_flight = False
            self._outcomes = []
            self._settled_count = 0
            return True

    def snapshot(self, retry: Callable[[], Any] | None = None) -> BatchSnapshot:
        """Take a consistent snapshot of the published state.

        Args:
            retry: Retry capability to attach to the snapshot

        Returns:
            BatchSnapshot of the current values
        """
        with self._lock:
            return BatchSnapshot(
                in_flight=self.in_flight,
                execution_sequence=self.execution_sequence,
                inputs=self.current_inputs,
                succeeded=self.succeeded,
                failed=self.failed,
                responses=self.responses,
                data=self.data,
                errors=self.errors,
                retry=retry,
            )
