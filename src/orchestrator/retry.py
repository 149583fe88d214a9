"""Selective retry of failed batch inputs.

The retry capability is derived from the failed inputs of the latest
published generation. It re-runs the same orchestrator (and so the same
request factory and overrides) on exactly those inputs, and disappears once
a generation has no failures.
"""

from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from src.log_config import get_logger

# Initialize logger
logger = get_logger(__name__)

T = TypeVar("T")

RetryCapability = Callable[[], Any]


def derive_retry(
    failed: Iterable[T],
    execute: Callable[[tuple[T, ...]], Any],
) -> RetryCapability | None:
    """Derive the retry capability for a set of failed inputs.

    Args:
        failed: Failed inputs in their original relative order
        execute: Callable starting a new batch (usually a bound ``exec``)

    Returns:
        None when nothing failed, otherwise a zero-argument callable
        returning whatever ``execute`` returns

    Example:
        >>> retry = derive_retry(["err1", "err2"], orchestrator.exec)
        >>> retry()  # same as orchestrator.exec(("err1", "err2"))
    """
    batch = tuple(failed)
    if not batch:
        return None

    def retry() -> Any:
        logger.info("retry_failed_inputs", retry_count=len(batch))
        return execute(batch)

    return retry
