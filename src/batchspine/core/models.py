"""Execution records for jobs and steps.

Defines the data structures the launcher, the job and the steps hand to
each other:

- JobInstance: the (job name, identifying parameters) identity
- JobExecution: one run of a job instance
- StepExecution: one run attempt of a step inside a job execution
- StepContribution: per-call accumulator applied to a StepExecution

Records are identity-compared (``eq=False``): two executions are the same
only if they are the same record.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .enums import BatchStatus, ExitStatus
from .execution_context import ExecutionContext
from .parameters import JobParameters


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(eq=False)
class JobInstance:
    """Logical job run identified by job name and identifying parameters."""

    job_name: str
    job_parameters: JobParameters = field(default_factory=JobParameters)
    id: str = field(default_factory=_new_id)

    @property
    def identity_key(self) -> tuple[str, frozenset]:
        return (self.job_name, self.job_parameters.identity_key())


@dataclass(eq=False)
class JobExecution:
    """One run of a :class:`JobInstance`.

    Example:
        >>> execution = JobExecution(job_instance=JobInstance("nightly.load"))
        >>> execution.status
        <BatchStatus.STARTING: 'STARTING'>
    """

    job_instance: JobInstance
    job_parameters: JobParameters = field(default_factory=JobParameters)
    id: str = field(default_factory=_new_id)
    status: BatchStatus = BatchStatus.STARTING
    exit_status: ExitStatus = ExitStatus.UNKNOWN
    create_time: datetime = field(default_factory=utcnow)
    start_time: datetime | None = None
    end_time: datetime | None = None
    last_updated: datetime | None = None
    execution_context: ExecutionContext = field(default_factory=ExecutionContext)
    step_executions: list[StepExecution] = field(default_factory=list, repr=False)
    failure_exceptions: list[BaseException] = field(default_factory=list, repr=False)

    @property
    def job_name(self) -> str:
        return self.job_instance.job_name

    @property
    def is_running(self) -> bool:
        return self.status.is_running

    def create_step_execution(self, step_name: str) -> StepExecution:
        """Create a step execution attached to this job execution."""
        step_execution = StepExecution(step_name=step_name, job_execution=self)
        self.step_executions.append(step_execution)
        return step_execution

    def upgrade_status(self, status: BatchStatus) -> None:
        self.status = self.status.upgrade_to(status)

    def add_failure_exception(self, exc: BaseException) -> None:
        self.failure_exceptions.append(exc)

    def all_failure_exceptions(self) -> list[BaseException]:
        """Failures of the job itself plus those of all its steps."""
        failures = list(self.failure_exceptions)
        for step_execution in self.step_executions:
            failures.extend(step_execution.failure_exceptions)
        return failures

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "job_name": self.job_name,
            "job_instance_id": self.job_instance.id,
            "job_parameters": self.job_parameters.to_dict(),
            "status": self.status.value,
            "exit_code": self.exit_status.exit_code,
            "exit_description": self.exit_status.exit_description,
            "create_time": self.create_time.isoformat() if self.create_time else None,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "step_executions": [s.to_dict() for s in self.step_executions],
        }


@dataclass(eq=False)
class StepContribution:
    """Mutable accumulator for one handler call.

    ``read_count`` is derived: every item taken from the source ends up
    either written or filtered.
    """

    write_count: int = 0
    filter_count: int = 0
    exit_status: ExitStatus = ExitStatus.CONTINUABLE

    @property
    def read_count(self) -> int:
        return self.write_count + self.filter_count

    def increment_write_count(self, count: int = 1) -> None:
        self.write_count += count

    def increment_filter_count(self, count: int = 1) -> None:
        self.filter_count += count

    def set_exit_status(self, exit_status: ExitStatus) -> None:
        self.exit_status = exit_status


@dataclass(eq=False)
class StepExecution:
    """One run attempt of a step."""

    step_name: str
    job_execution: JobExecution = field(repr=False)
    id: str = field(default_factory=_new_id)
    status: BatchStatus = BatchStatus.STARTING
    exit_status: ExitStatus = ExitStatus.UNKNOWN
    read_count: int = 0
    write_count: int = 0
    filter_count: int = 0
    commit_count: int = 0
    start_time: datetime | None = None
    end_time: datetime | None = None
    last_updated: datetime | None = None
    execution_context: ExecutionContext = field(default_factory=ExecutionContext)
    failure_exceptions: list[BaseException] = field(default_factory=list, repr=False)

    @property
    def job_parameters(self) -> JobParameters:
        return self.job_execution.job_parameters

    @property
    def job_execution_id(self) -> str:
        return self.job_execution.id

    def create_step_contribution(self) -> StepContribution:
        return StepContribution()

    def apply(self, contribution: StepContribution) -> None:
        """Fold a contribution's counts and exit status into this execution."""
        self.read_count += contribution.read_count
        self.write_count += contribution.write_count
        self.filter_count += contribution.filter_count
        self.exit_status = contribution.exit_status

    def add_failure_exception(self, exc: BaseException) -> None:
        self.failure_exceptions.append(exc)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "step_name": self.step_name,
            "job_execution_id": self.job_execution.id,
            "status": self.status.value,
            "exit_code": self.exit_status.exit_code,
            "exit_description": self.exit_status.exit_description,
            "read_count": self.read_count,
            "write_count": self.write_count,
            "filter_count": self.filter_count,
            "commit_count": self.commit_count,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
        }
