"""
Structured error types for batchspine.

Every error raised by the batch building blocks derives from ``BatchError``
and carries a category, an explicit retry flag, a structured context and an
optional chained cause, so the step engine that owns retry/skip policy can
make its decision without string matching.

Manifesto:
    - **Typed Error Hierarchy:** Launch, configuration and delegate failures
      are different types, not different messages
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry job/step identity for logging
    - **Nothing swallowed:** The building blocks raise, the engine decides

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                         BatchError                           │
        │          (category, retryable, context, cause)               │
        ├──────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ConfigurationError     ExtractionError    RepositoryError   │
        │  (CONFIG)               (EXTRACTION)       (REPOSITORY)      │
        │                                                 │            │
        │                                      NoSuchJobExecutionError │
        │                                                              │
        │  JobLaunchError                    UnexpectedJobExecutionError│
        │  (LAUNCH)                          (EXECUTION)               │
        │     ├── JobExecutionAlreadyRunningError                      │
        │     ├── JobInstanceAlreadyCompleteError                      │
        │     ├── JobRestartError                                      │
        │     │      └── StartLimitExceededError                       │
        │     └── JobExecutionTimeoutError                             │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = UnexpectedJobExecutionError("Step failure: the delegate Job failed in JobStep.")
    >>> error.category
    <ErrorCategory.EXECUTION: 'EXECUTION'>
    >>> error.with_context(step="load.partition.1").context.step
    'load.partition.1'

Tags:
    error-handling, exception-hierarchy, batchspine, job-step, launcher

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from batchspine.core.models import JobExecution


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        CONFIG: Missing or invalid collaborator wiring
        EXTRACTION: Job parameters could not be derived
        LAUNCH: Launcher refused or could not start a job
        EXECUTION: A delegate job ran but did not complete
        REPOSITORY: Execution records missing or inconsistent
        INTERNAL: Bugs, unexpected state
    """

    CONFIG = "CONFIG"
    EXTRACTION = "EXTRACTION"
    LAUNCH = "LAUNCH"
    EXECUTION = "EXECUTION"
    REPOSITORY = "REPOSITORY"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only non-None fields are emitted by ``to_dict()`` so log lines stay
    compact. Anything that does not fit a named field goes in ``metadata``.
    """

    job: str | None = None
    step: str | None = None
    job_execution_id: str | None = None
    step_execution_id: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["job", "step", "job_execution_id", "step_execution_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class BatchError(Exception):
    """
    Base exception for all batchspine errors.

    Subclasses set ``default_category`` and ``default_retryable``; callers
    may override either per instance.

    Examples:
        >>> error = BatchError("Something went wrong")
        >>> error.retryable
        False
        >>> error.to_dict()["category"]
        'INTERNAL'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> BatchError:
        """
        Add context to this error (fluent API).

        Usage:
            raise JobRestartError("Job is not restartable").with_context(job="nightly.load")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize error for logging/API responses."""
        result = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context = self.context.to_dict()
        if context:
            result["context"] = context
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION / EXTRACTION
# =============================================================================


class ConfigurationError(BatchError):
    """A required collaborator is missing or invalid. Raised before any execution."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class ExtractionError(BatchError):
    """Job parameters could not be derived from a step execution."""

    default_category = ErrorCategory.EXTRACTION
    default_retryable = False


# =============================================================================
# LAUNCH ERRORS
# =============================================================================


class JobLaunchError(BatchError):
    """Base class for failures of the launching machinery itself."""

    default_category = ErrorCategory.LAUNCH
    default_retryable = False


class JobExecutionAlreadyRunningError(JobLaunchError):
    """The job instance already has a live execution."""

    def __init__(self, job_name: str, execution_id: str, **kwargs: Any):
        self.job_name = job_name
        self.execution_id = execution_id
        super().__init__(
            f"A job execution for this job is already running: {job_name} (execution {execution_id})",
            **kwargs,
        )


class JobInstanceAlreadyCompleteError(JobLaunchError):
    """The job instance already completed; launching it again is refused."""

    def __init__(self, job_name: str, **kwargs: Any):
        self.job_name = job_name
        super().__init__(
            f"A job instance already exists and is complete for job={job_name}. "
            "Change the identifying parameters to run it again.",
            **kwargs,
        )


class JobRestartError(JobLaunchError):
    """The job (or one of its steps) cannot be restarted."""


class StartLimitExceededError(JobRestartError):
    """A step has been started more often than its start limit allows."""

    def __init__(self, step_name: str, start_limit: int, **kwargs: Any):
        self.step_name = step_name
        self.start_limit = start_limit
        super().__init__(
            f"Maximum start limit exceeded for step: {step_name} (start_limit={start_limit})",
            **kwargs,
        )


class JobExecutionTimeoutError(JobLaunchError):
    """A blocking launcher gave up waiting for a terminal status."""

    default_retryable = True

    def __init__(self, execution_id: str, timeout: float, **kwargs: Any):
        self.execution_id = execution_id
        self.timeout = timeout
        super().__init__(
            f"Job execution {execution_id} did not reach a terminal status within {timeout:.1f}s",
            **kwargs,
        )


# =============================================================================
# EXECUTION / REPOSITORY ERRORS
# =============================================================================


class UnexpectedJobExecutionError(BatchError):
    """
    A delegate job ran without raising but finished unsuccessfully.

    Distinguishes "the delegate ran but failed" from "the delegation
    machinery itself failed" (which surfaces as the original exception).
    """

    default_category = ErrorCategory.EXECUTION
    default_retryable = False

    def __init__(self, message: str, job_execution: JobExecution | None = None, **kwargs: Any):
        self.job_execution = job_execution
        super().__init__(message, **kwargs)


class RepositoryError(BatchError):
    """Base class for execution-record lookup failures."""

    default_category = ErrorCategory.REPOSITORY
    default_retryable = False


class NoSuchJobExecutionError(RepositoryError):
    """No job execution is stored under the requested id."""

    def __init__(self, execution_id: str, **kwargs: Any):
        self.execution_id = execution_id
        super().__init__(f"No job execution found for id={execution_id}", **kwargs)


# =============================================================================
# UTILITIES
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """
    Check if an error is retryable.

    Works with both BatchError and standard exceptions. Anything that is not
    a BatchError is treated as not retryable; the engine decides otherwise.
    """
    if isinstance(error, BatchError):
        return error.retryable
    return False


def categorize_error(error: Exception) -> ErrorCategory:
    """Return the category of a BatchError, or INTERNAL for anything else."""
    if isinstance(error, BatchError):
        return error.category
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "BatchError",
    "ConfigurationError",
    "ExtractionError",
    "JobLaunchError",
    "JobExecutionAlreadyRunningError",
    "JobInstanceAlreadyCompleteError",
    "JobRestartError",
    "StartLimitExceededError",
    "JobExecutionTimeoutError",
    "UnexpectedJobExecutionError",
    "RepositoryError",
    "NoSuchJobExecutionError",
    "is_retryable",
    "categorize_error",
]
