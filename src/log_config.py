"""Centralized structured logging configuration using structlog.

Every module of the request orchestrator obtains its logger through
:func:`get_logger` and emits snake_case events with keyword context. The
execution sequence of the generation being processed can be bound into the
context so that all events of one batch share a ``generation`` field.

Events below the stdlib level are dropped before any processing, so the
per-request debug events of large batches cost little. Loggers are not cached
on first use: configuring again (see ``src.client``) applies to loggers that
modules created at import time.

Example:
    >>> from src.log_config import configure_logging, get_logger
    >>> configure_logging(level="INFO")
    >>> logger = get_logger(__name__)
    >>> logger.info("batch_execution_started", batch_size=3)
"""

import logging
import sys
from typing import Any

import structlog


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """Configure structlog and the standard library logging bridge.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, use JSONRenderer; if False, use ConsoleRenderer

    Raises:
        ValueError: If an invalid log level is provided
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        msg = f"Invalid log level: {level}"
        raise ValueError(msg)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
        structlog.processors.StackInfoRenderer(),
    ]

    # Per-request failures are logged with tracebacks; JSON keeps them structured
    if json_logs:
        processors.extend([structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()])
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured structlog logger.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        A structlog BoundLogger instance
    """
    return structlog.get_logger(name)


def bind_generation(sequence: int) -> None:
    """Bind the execution sequence of the current generation to the context.

    Args:
        sequence: Execution sequence number of the generation

    Example:
        >>> bind_generation(3)
        >>> logger.info("batch_request_failed")  # Will include generation=3
    """
    structlog.contextvars.bind_contextvars(generation=sequence)


def unbind_generation() -> None:
    """Remove the generation number from the logging context."""
    structlog.contextvars.unbind_contextvars("generation")


def bind_context(**kwargs: Any) -> None:
    """Bind arbitrary context variables to the logging context.

    Args:
        **kwargs: Key-value pairs to add to the logging context
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific context variables from the logging context.

    Args:
        *keys: Names of context variables to remove
    """
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all context variables from the logging context."""
    structlog.contextvars.clear_contextvars()
