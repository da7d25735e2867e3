"""
batchspine.core - data model, contracts and ambient stack.

Records:
- models: JobInstance, JobExecution, StepExecution, StepContribution
- enums: BatchStatus, ExitStatus
- parameters: JobParameter, JobParameters, JobParametersBuilder
- execution_context: ExecutionContext (restart-durable key/value state)
- attributes: AttributeAccessor (call-spanning handler state)

Contracts:
- protocols: Job, Step, JobLauncher, JobParametersExtractor, StepHandler,
  ItemReader, ItemProcessor, ItemWriter, JobRepository

Infrastructure:
- repository: InMemoryJobRepository
- errors: BatchError hierarchy
- logging: structlog configuration
- settings: BatchSettings (pydantic-settings)
"""

from .attributes import AttributeAccessor
from .enums import BatchStatus, ExitStatus
from .errors import (
    BatchError,
    ConfigurationError,
    ErrorCategory,
    ErrorContext,
    ExtractionError,
    JobExecutionAlreadyRunningError,
    JobExecutionTimeoutError,
    JobInstanceAlreadyCompleteError,
    JobLaunchError,
    JobRestartError,
    NoSuchJobExecutionError,
    RepositoryError,
    StartLimitExceededError,
    UnexpectedJobExecutionError,
    categorize_error,
    is_retryable,
)
from .execution_context import ExecutionContext
from .models import JobExecution, JobInstance, StepContribution, StepExecution
from .parameters import JobParameter, JobParameters, JobParametersBuilder, ParameterType
from .protocols import (
    ItemProcessor,
    ItemReader,
    ItemWriter,
    Job,
    JobLauncher,
    JobParametersExtractor,
    JobRepository,
    Step,
    StepHandler,
)
from .repository import InMemoryJobRepository

__all__ = [
    # records
    "AttributeAccessor",
    "BatchStatus",
    "ExitStatus",
    "ExecutionContext",
    "JobExecution",
    "JobInstance",
    "StepContribution",
    "StepExecution",
    "JobParameter",
    "JobParameters",
    "JobParametersBuilder",
    "ParameterType",
    # contracts
    "ItemProcessor",
    "ItemReader",
    "ItemWriter",
    "Job",
    "JobLauncher",
    "JobParametersExtractor",
    "JobRepository",
    "Step",
    "StepHandler",
    # infrastructure
    "InMemoryJobRepository",
    # errors
    "BatchError",
    "ConfigurationError",
    "ErrorCategory",
    "ErrorContext",
    "ExtractionError",
    "JobExecutionAlreadyRunningError",
    "JobExecutionTimeoutError",
    "JobInstanceAlreadyCompleteError",
    "JobLaunchError",
    "JobRestartError",
    "NoSuchJobExecutionError",
    "RepositoryError",
    "StartLimitExceededError",
    "UnexpectedJobExecutionError",
    "categorize_error",
    "is_retryable",
]
