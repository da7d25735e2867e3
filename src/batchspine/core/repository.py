"""In-memory job repository.

Reference implementation of :class:`~batchspine.core.protocols.JobRepository`
for tests, demos and single-process use.

Architecture::

    ┌────────────────────────────────────────────────────────────────────┐
    │                      InMemoryJobRepository                         │
    │                                                                    │
    │   instances        (job_name, identifying params) → JobInstance    │
    │   job executions   instance id → [JobExecution, ...]               │
    │   step executions  instance id → [StepExecution, ...]              │
    │   contexts         step execution id → deep-copied snapshot        │
    │                                                                    │
    │   create_job_execution()  refuses running / complete / abandoned   │
    │   update_execution_context() snapshots, get_execution_context()    │
    │   returns a fresh copy (what a reload from storage would return)   │
    └────────────────────────────────────────────────────────────────────┘

Execution records are held by reference so a poller sees status changes
made by a worker thread.  Execution contexts are held as snapshots so a
restart never observes writes that were not persisted.

Tags:
    repository, in-memory, job-execution, restart, batchspine
"""

from __future__ import annotations

import copy
import threading
from typing import Any

from .enums import BatchStatus
from .errors import (
    JobExecutionAlreadyRunningError,
    JobInstanceAlreadyCompleteError,
    JobRestartError,
    NoSuchJobExecutionError,
)
from .execution_context import ExecutionContext
from .logging import get_logger
from .models import JobExecution, JobInstance, StepExecution, utcnow
from .parameters import JobParameters

logger = get_logger(__name__)


class InMemoryJobRepository:
    """Thread-safe, process-local store of execution records."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._instances: dict[tuple[str, frozenset], JobInstance] = {}
        self._job_executions: dict[str, list[JobExecution]] = {}
        self._executions_by_id: dict[str, JobExecution] = {}
        self._step_executions: dict[str, list[StepExecution]] = {}
        self._contexts: dict[str, dict[str, Any]] = {}

    # ------------------------------------------------------------------
    # Job instances / executions
    # ------------------------------------------------------------------

    def get_job_instance(self, job_name: str, job_parameters: JobParameters) -> JobInstance | None:
        with self._lock:
            return self._instances.get((job_name, job_parameters.identity_key()))

    def create_job_execution(self, job_name: str, job_parameters: JobParameters) -> JobExecution:
        """Create a new execution, creating the job instance if needed.

        Raises:
            JobExecutionAlreadyRunningError: an execution of the instance is live.
            JobInstanceAlreadyCompleteError: the instance already completed.
            JobRestartError: the last execution was abandoned or is in an unknown state.
        """
        with self._lock:
            instance = self.get_job_instance(job_name, job_parameters)
            if instance is None:
                instance = JobInstance(job_name=job_name, job_parameters=job_parameters)
                self._instances[instance.identity_key] = instance
                self._job_executions[instance.id] = []
                self._step_executions[instance.id] = []
            else:
                for previous in self._job_executions[instance.id]:
                    if previous.status.is_running:
                        raise JobExecutionAlreadyRunningError(job_name, previous.id)
                    if previous.status is BatchStatus.COMPLETED:
                        raise JobInstanceAlreadyCompleteError(job_name)
                    if previous.status in (BatchStatus.ABANDONED, BatchStatus.UNKNOWN):
                        raise JobRestartError(
                            f"Cannot restart job={job_name}: last execution {previous.id} "
                            f"is {previous.status.value}"
                        ).with_context(job=job_name, job_execution_id=previous.id)

            job_execution = JobExecution(job_instance=instance, job_parameters=job_parameters)
            job_execution.last_updated = utcnow()
            self._job_executions[instance.id].append(job_execution)
            self._executions_by_id[job_execution.id] = job_execution

        logger.debug(
            "job_execution_created",
            job=job_name,
            job_instance_id=instance.id,
            job_execution_id=job_execution.id,
        )
        return job_execution

    def get_last_job_execution(self, job_name: str, job_parameters: JobParameters) -> JobExecution | None:
        with self._lock:
            instance = self.get_job_instance(job_name, job_parameters)
            if instance is None:
                return None
            executions = self._job_executions[instance.id]
            return executions[-1] if executions else None

    def get_job_executions(self, job_instance: JobInstance) -> list[JobExecution]:
        with self._lock:
            return list(self._job_executions.get(job_instance.id, []))

    def get_job_execution(self, execution_id: str) -> JobExecution:
        with self._lock:
            try:
                return self._executions_by_id[execution_id]
            except KeyError:
                raise NoSuchJobExecutionError(execution_id) from None

    def update(self, job_execution: JobExecution) -> None:
        with self._lock:
            if job_execution.id not in self._executions_by_id:
                raise NoSuchJobExecutionError(job_execution.id)
            job_execution.last_updated = utcnow()

    # ------------------------------------------------------------------
    # Step executions
    # ------------------------------------------------------------------

    def add(self, step_execution: StepExecution) -> None:
        job_execution = step_execution.job_execution
        with self._lock:
            if job_execution.id not in self._executions_by_id:
                raise NoSuchJobExecutionError(job_execution.id)
            step_execution.last_updated = utcnow()
            self._step_executions[job_execution.job_instance.id].append(step_execution)
            self._snapshot(step_execution)

    def update_step_execution(self, step_execution: StepExecution) -> None:
        with self._lock:
            step_execution.last_updated = utcnow()

    def update_execution_context(self, step_execution: StepExecution) -> None:
        """Persist a snapshot of the step's execution context."""
        with self._lock:
            self._snapshot(step_execution)

    def _snapshot(self, step_execution: StepExecution) -> None:
        self._contexts[step_execution.id] = copy.deepcopy(step_execution.execution_context.to_dict())
        step_execution.execution_context.clear_dirty_flag()

    def get_execution_context(self, step_execution_id: str) -> ExecutionContext:
        """Return a fresh copy of the last persisted context (empty if none)."""
        with self._lock:
            snapshot = self._contexts.get(step_execution_id, {})
            return ExecutionContext(copy.deepcopy(snapshot))

    def get_last_step_execution(self, job_instance: JobInstance, step_name: str) -> StepExecution | None:
        with self._lock:
            for step_execution in reversed(self._step_executions.get(job_instance.id, [])):
                if step_execution.step_name == step_name:
                    return step_execution
            return None

    def get_step_execution_count(self, job_instance: JobInstance, step_name: str) -> int:
        with self._lock:
            return sum(
                1
                for step_execution in self._step_executions.get(job_instance.id, [])
                if step_execution.step_name == step_name
            )
