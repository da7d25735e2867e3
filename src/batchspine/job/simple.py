"""SimpleJob — runs its steps in order, restart-aware.

Manifesto:
    Restarting a job must pick up where the failed run stopped: completed
    steps are skipped and a failed step gets a *new* attempt that starts
    from the execution context the failed attempt persisted.  That reload is
    what lets a step such as JobStep keep its state across restarts.

ARCHITECTURE
────────────
::

    SimpleJob.execute(job_execution)
      status = STARTED
      for step in steps:
        last = repository.get_last_step_execution(instance, step.name)
        last COMPLETED and not allow_start_if_complete → skip
        count >= start_limit                            → StartLimitExceededError
        step_execution = job_execution.create_step_execution(step.name)
        last not COMPLETED → step_execution.execution_context =
                             repository.get_execution_context(last.id)
        step.execute(step_execution)
        returned, status still running      → step COMPLETED
        exception or unsuccessful status    → job FAILED, stop
      status = COMPLETED (if nothing failed)

``execute`` never raises for a failing step; the outcome is recorded on
the job execution.

Tags:
    batchspine, job, sequential, restart

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Sequence

from batchspine.core.enums import BatchStatus, ExitStatus
from batchspine.core.errors import ConfigurationError, StartLimitExceededError
from batchspine.core.logging import LogContext, get_logger
from batchspine.core.models import JobExecution, StepExecution, utcnow
from batchspine.core.protocols import JobRepository, Step

logger = get_logger(__name__)


class SimpleJob:
    """Sequential job.

    Parameters
    ----------
    name
        Job name; together with the identifying parameters it forms the
        job instance identity.
    steps
        Steps to run in order.
    job_repository
        Repository holding the job's execution records.
    restartable
        Whether a launcher may start a new execution of an instance that
        already has one.
    """

    def __init__(
        self,
        name: str,
        steps: Sequence[Step],
        job_repository: JobRepository,
        *,
        restartable: bool = True,
    ) -> None:
        if not name:
            raise ConfigurationError("A job name must be provided")
        if job_repository is None:
            raise ConfigurationError("A JobRepository must be provided").with_context(job=name)
        names = [step.name for step in steps]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Duplicate step names in job {name}: {names}").with_context(job=name)
        self.name = name
        self.steps = list(steps)
        self.job_repository = job_repository
        self.restartable = restartable

    @property
    def step_names(self) -> list[str]:
        return [step.name for step in self.steps]

    def execute(self, job_execution: JobExecution) -> None:
        """Run every step against *job_execution*; record the outcome on it."""
        with LogContext(job=self.name, job_execution_id=job_execution.id):
            job_execution.start_time = utcnow()
            job_execution.status = BatchStatus.STARTED
            self.job_repository.update(job_execution)
            logger.info("job_started", parameters=job_execution.job_parameters.to_dict())

            try:
                for step in self.steps:
                    step_execution = self._handle_step(step, job_execution)
                    if step_execution is not None and step_execution.status.is_unsuccessful:
                        job_execution.upgrade_status(step_execution.status)
                        job_execution.exit_status = step_execution.exit_status
                        break
                else:
                    job_execution.status = BatchStatus.COMPLETED
                    job_execution.exit_status = ExitStatus.FINISHED
            except Exception as exc:
                job_execution.upgrade_status(BatchStatus.FAILED)
                job_execution.exit_status = ExitStatus.FAILED.add_exit_description(exc)
                job_execution.add_failure_exception(exc)
                logger.error("job_failed", error=exc)
            finally:
                job_execution.end_time = utcnow()
                self.job_repository.update(job_execution)

            logger.info(
                "job_finished",
                status=job_execution.status.value,
                exit_code=job_execution.exit_status.exit_code,
            )

    def _handle_step(self, step: Step, job_execution: JobExecution) -> StepExecution | None:
        instance = job_execution.job_instance
        last = self.job_repository.get_last_step_execution(instance, step.name)

        if last is not None and last.status is BatchStatus.COMPLETED and not step.allow_start_if_complete:
            logger.info("step_already_complete", step=step.name, previous_step_execution_id=last.id)
            return None

        if step.start_limit is not None:
            count = self.job_repository.get_step_execution_count(instance, step.name)
            if count >= step.start_limit:
                raise StartLimitExceededError(step.name, step.start_limit).with_context(
                    job=self.name, job_execution_id=job_execution.id
                )

        step_execution = job_execution.create_step_execution(step.name)
        if last is not None and last.status is not BatchStatus.COMPLETED:
            step_execution.execution_context = self.job_repository.get_execution_context(last.id)
            logger.info("step_restarting", step=step.name, previous_step_execution_id=last.id)
        self.job_repository.add(step_execution)

        try:
            step.execute(step_execution)
        except Exception as exc:
            # AbstractStep records its own failure; other Step implementations may not.
            if step_execution.status is not BatchStatus.FAILED:
                step_execution.status = BatchStatus.FAILED
                step_execution.exit_status = ExitStatus.FAILED.add_exit_description(exc)
                step_execution.add_failure_exception(exc)
        else:
            # a Step that returns without touching its status has completed
            if step_execution.status.is_running:
                step_execution.status = BatchStatus.COMPLETED
                step_execution.exit_status = ExitStatus.FINISHED
                step_execution.end_time = step_execution.end_time or utcnow()
                self.job_repository.update_step_execution(step_execution)
        return step_execution

    def __repr__(self) -> str:
        return f"SimpleJob(name={self.name!r}, steps={self.step_names!r})"
