"""Orchestrator module for concurrent request batches.

This module contains the BatchOrchestrator, which issues one request per
input and partitions the outcomes, the batch execution state it owns, and
the retry coordinator deriving a retry of exactly the failed inputs.
"""

from src.orchestrator.batch import BatchOrchestrator
from src.orchestrator.methods import (
    HttpMethod,
    parallel_delete,
    parallel_get,
    parallel_patch,
    parallel_post,
    parallel_put,
    parallel_request,
)
from src.orchestrator.retry import derive_retry
from src.orchestrator.state import BatchSnapshot, BatchState, extract_body

__all__ = [
    "BatchOrchestrator",
    "BatchSnapshot",
    "BatchState",
    "HttpMethod",
    "derive_retry",
    "extract_body",
    "parallel_delete",
    "parallel_get",
    "parallel_patch",
    "parallel_post",
    "parallel_put",
    "parallel_request",
]
