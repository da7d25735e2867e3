"""AbstractStep — lifecycle skeleton shared by every step implementation.

Manifesto:
    A step implementation should only describe its unit of work.  Status
    bookkeeping, timing, failure recording and persistence of the execution
    context are the same for every step, so they live here once.

ARCHITECTURE
────────────
::

    AbstractStep.execute(step_execution)
      1. status = STARTED, start_time, persist
      2. ─── do_execute(step_execution) ───   (subclass work)
      3a. status = COMPLETED, exit_status = FINISHED      (no exception)
      3b. status = FAILED, exit_status = FAILED + description,
          failure recorded, exception re-raised             (exception)
      4. end_time, persist step execution + execution context (always)

Failures are never swallowed: the job (or any other caller) sees the
original exception and decides what to do.  The recorded exit description
starts with the exception type, so a delegate-job failure
(``UnexpectedJobExecutionError``) is distinguishable from a launcher or
extractor failure.

Related modules:
    job.py      — JobStep, the delegating step
    handler.py  — HandlerStep, the StepHandler loop

Tags:
    batchspine, step, lifecycle, skeleton

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from batchspine.core.enums import BatchStatus, ExitStatus
from batchspine.core.errors import ConfigurationError
from batchspine.core.logging import LogContext, get_logger
from batchspine.core.models import StepExecution, utcnow
from batchspine.core.protocols import JobRepository

logger = get_logger(__name__)

#: Context key under which a step records its implementation type.
STEP_TYPE_KEY = "batch.stepType"


class AbstractStep(ABC):
    """Base class for steps: handles status, timing, failures and persistence.

    Parameters
    ----------
    name
        Step name, unique within its job.
    job_repository
        Optional repository; when present the step execution and its
        execution context are persisted at start, after failures and at the end.
    allow_start_if_complete
        Run the step again on a job restart even if it completed before.
    start_limit
        Max number of executions of this step per job instance (None = unbounded).
    """

    def __init__(
        self,
        name: str,
        *,
        job_repository: JobRepository | None = None,
        allow_start_if_complete: bool = False,
        start_limit: int | None = None,
    ) -> None:
        self.name = name
        self.job_repository = job_repository
        self.allow_start_if_complete = allow_start_if_complete
        self.start_limit = start_limit

    def validate(self) -> None:
        """Check mandatory configuration. Subclasses extend and call super()."""
        if not self.name:
            raise ConfigurationError("A step name must be provided")
        if self.start_limit is not None and self.start_limit < 1:
            raise ConfigurationError(
                f"start_limit must be positive, got {self.start_limit}"
            ).with_context(step=self.name)

    @classmethod
    def step_type(cls) -> str:
        """Fully qualified implementation type, recorded for introspection."""
        return f"{cls.__module__}.{cls.__qualname__}"

    @abstractmethod
    def do_execute(self, step_execution: StepExecution) -> None:
        """Do the step's work. Raise to signal failure."""

    def execute(self, step_execution: StepExecution) -> None:
        """Run the step against *step_execution*, recording the outcome on it."""
        with LogContext(step=self.name, step_execution_id=step_execution.id):
            logger.info("step_started", step_type=self.step_type())
            step_execution.start_time = utcnow()
            step_execution.status = BatchStatus.STARTED
            self._persist(step_execution)

            try:
                self.do_execute(step_execution)
            except Exception as exc:
                step_execution.status = BatchStatus.FAILED
                step_execution.exit_status = ExitStatus.FAILED.add_exit_description(exc)
                step_execution.add_failure_exception(exc)
                logger.error("step_failed", error=exc)
                raise
            else:
                step_execution.status = BatchStatus.COMPLETED
                step_execution.exit_status = ExitStatus.FINISHED
                logger.info("step_completed", exit_code=step_execution.exit_status.exit_code)
            finally:
                step_execution.end_time = utcnow()
                self._persist(step_execution)

    def _persist(self, step_execution: StepExecution) -> None:
        if self.job_repository is None:
            return
        self.job_repository.update_step_execution(step_execution)
        self.job_repository.update_execution_context(step_execution)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
