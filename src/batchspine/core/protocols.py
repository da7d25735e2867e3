"""
Canonical protocol definitions for batchspine.

Every collaborator contract lives here so that steps, jobs and launchers
depend on shape, not on each other's implementation.

Manifesto:
    Protocols define contracts without inheritance. They enable:
    - **Decoupling:** JobStep knows a launcher only by ``run(job, parameters)``
    - **Testability:** Any object matching the protocol works, mocks included
    - **Pluggability:** Extractors and handlers are one-method strategies

Architecture:
    ::

        protocols.py
        ├── Job                     — named, restartable unit launched by a JobLauncher
        ├── Step                    — one node of a job, run against a StepExecution
        ├── JobLauncher             — run(job, parameters) -> terminal JobExecution
        ├── JobParametersExtractor  — (job, step_execution) -> JobParameters
        ├── StepHandler             — one unit of work per call
        ├── ItemReader / ItemProcessor / ItemWriter
        └── JobRepository           — execution records + context snapshots

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts — implementations go in step/, job/, launch/

Tags:
    protocol, contracts, job, step, launcher, handler, batchspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .attributes import AttributeAccessor
    from .enums import ExitStatus
    from .execution_context import ExecutionContext
    from .models import JobExecution, JobInstance, StepContribution, StepExecution
    from .parameters import JobParameters


@runtime_checkable
class Job(Protocol):
    """A named, parameterised, restartable sequence of work.

    ``execute`` must leave the job execution in a terminal status and must
    not raise for ordinary step failures; the outcome is the status.
    """

    name: str
    restartable: bool

    def execute(self, job_execution: JobExecution) -> None: ...


@runtime_checkable
class Step(Protocol):
    """One unit of a job's execution graph."""

    name: str
    allow_start_if_complete: bool
    start_limit: int | None

    def execute(self, step_execution: StepExecution) -> None: ...


@runtime_checkable
class JobLauncher(Protocol):
    """Starts a job run and returns its outcome.

    Implementations must allow at most one live execution per identical
    (job, parameters) pair.  Callers that need a terminal status from an
    asynchronous launcher wrap it in
    :class:`~batchspine.launch.launcher.BlockingJobLauncher`.
    """

    def run(self, job: Job, job_parameters: JobParameters) -> JobExecution: ...


@runtime_checkable
class JobParametersExtractor(Protocol):
    """Derives the parameters of a nested job from the enclosing step execution.

    Implementations should be deterministic for a given step execution.
    """

    def get_job_parameters(self, job: Job, step_execution: StepExecution) -> JobParameters: ...


@runtime_checkable
class StepHandler(Protocol):
    """Strategy for processing one unit of work inside a step loop.

    Implementations obtain an item and return ``ExitStatus.FINISHED`` if
    there is none. Otherwise they process it, record the outcome on
    *contribution* and return ``ExitStatus.CONTINUABLE``. Failures are
    raised, never swallowed; commit, rollback, retry and skip belong to
    the caller.

    *attributes* is shared between invocations of one step attempt.
    """

    def handle(self, contribution: StepContribution, attributes: AttributeAccessor) -> ExitStatus: ...


@runtime_checkable
class ItemReader(Protocol):
    """Returns the next item, or ``None`` when the source is exhausted."""

    def read(self) -> Any | None: ...


@runtime_checkable
class ItemProcessor(Protocol):
    """Transforms an item; returning ``None`` filters it out."""

    def process(self, item: Any) -> Any | None: ...


@runtime_checkable
class ItemWriter(Protocol):
    """Writes one item to the sink."""

    def write(self, item: Any) -> None: ...


@runtime_checkable
class JobRepository(Protocol):
    """Persistence of job and step execution records."""

    def create_job_execution(self, job_name: str, job_parameters: JobParameters) -> JobExecution: ...

    def get_last_job_execution(self, job_name: str, job_parameters: JobParameters) -> JobExecution | None: ...

    def get_job_execution(self, execution_id: str) -> JobExecution: ...

    def update(self, job_execution: JobExecution) -> None: ...

    def add(self, step_execution: StepExecution) -> None: ...

    def update_step_execution(self, step_execution: StepExecution) -> None: ...

    def update_execution_context(self, step_execution: StepExecution) -> None: ...

    def get_execution_context(self, step_execution_id: str) -> ExecutionContext: ...

    def get_last_step_execution(self, job_instance: JobInstance, step_name: str) -> StepExecution | None: ...

    def get_step_execution_count(self, job_instance: JobInstance, step_name: str) -> int: ...
