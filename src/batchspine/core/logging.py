"""
batchspine logging - structured logging for jobs and steps.

Manifesto:
    Batch runs are long, nested and restartable. A log line that does not
    say which job execution and which step attempt it belongs to is noise.
    Every component logs through structlog with the job/step identity bound
    into ``structlog.contextvars`` by :class:`LogContext`, and failures are
    logged as the exception object so the renderer can expand a
    :class:`~batchspine.core.errors.BatchError` into its structured form.

Architecture:
    ::

        configure_logging(level="INFO", json_format=True, service="batchspine")
            │
            ▼
        structlog processor chain:
          1. TimeStamper (iso)                         (optional)
          2. merge_contextvars   (job, job_execution_id, step, step_execution_id)
          3. add_log_level / add_logger_name
          4. ServiceStamp        ("service")
          5. expand_errors       (error=<exc>  →  error_type / error / category / retryable)
          6. JSONRenderer (or ConsoleRenderer for a tty)

        with LogContext(job="outer.job", job_execution_id="..."):
            with LogContext(step="delegate", step_execution_id="..."):
                logger.error("step_failed", error=exc)

Examples:
    >>> from batchspine.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.info("job_launched", job="nightly.load", parameters={"run_id": "42"})

Tags:
    logging, structlog, observability, batchspine

Doc-Types:
    - API Reference
    - Observability Guide
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from .errors import BatchError


class ServiceStamp:
    """Processor that stamps every event with the configured service name."""

    def __init__(self, service: str) -> None:
        self.service = service

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", self.service)
        return event_dict


def expand_errors(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Flatten an ``error=<exception>`` entry into loggable fields.

    A BatchError contributes its category, retry flag and job/step context;
    any other exception contributes its type and message.
    """
    error = event_dict.get("error")
    if not isinstance(error, BaseException):
        return event_dict

    event_dict["error_type"] = type(error).__name__
    event_dict["error"] = str(error)
    if isinstance(error, BatchError):
        event_dict["error_category"] = error.category.value
        event_dict["retryable"] = error.retryable
        for key, value in error.context.to_dict().items():
            event_dict.setdefault(key, value)
    return event_dict


def _processors(service: str, json_format: bool, add_timestamp: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        ServiceStamp(service),
        expand_errors,
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer(default=str))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return processors


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "batchspine",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for batch runs.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Value of the ``service`` field on every event
        add_timestamp: Include ISO timestamp in logs
    """
    if json_format is None:
        json_format = not sys.stdout.isatty()
    numeric_level = getattr(logging, level.upper())

    structlog.configure(
        processors=_processors(service, json_format, add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)


def configure_from_settings(settings: Any = None) -> None:
    """Configure logging from :class:`~batchspine.core.settings.BatchSettings`."""
    from batchspine.core.settings import get_settings

    settings = settings or get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        service=settings.service_name,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


class LogContext:
    """Bind job/step identity for the duration of a block.

    On exit every key goes back to the value it had on entry, so a step's
    context nested inside its job's context (or a nested job inside a
    JobStep) leaves the outer identity intact.

    Example:
        with LogContext(step="extract", step_execution_id="abc123"):
            logger.info("step_started")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs
        self._tokens: Any = None

    def __enter__(self) -> LogContext:
        self._tokens = structlog.contextvars.bind_contextvars(**self._context)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)


__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "expand_errors",
    "ServiceStamp",
    "LogContext",
]
