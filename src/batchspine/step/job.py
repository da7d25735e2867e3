"""JobStep — a step that delegates its whole unit of work to a nested job.

Manifesto:
    Large jobs are easier to reason about, test and re-run when they are
    composed from smaller jobs.  A JobStep runs a nested job through a
    launcher, so the nested job keeps its own execution records and its own
    duplicate-run protection, and the outer step simply succeeds or fails
    with it.  With a custom extractor the same step works as the worker of
    a partitioned execution.

ARCHITECTURE
────────────
::

    JobStep.do_execute(step_execution)
      1. context[STEP_TYPE_KEY] = "batchspine.step.job.JobStep"
      2. parameters = context[JOB_PARAMETERS_KEY]                  (restart)
                   or extractor.get_job_parameters(job, step_execution)
                      → cached under JOB_PARAMETERS_KEY             (first run)
      3. job_execution = launcher.run(job, parameters)             (blocks)
      4. job_execution.status unsuccessful → UnexpectedJobExecutionError

    CONFIGURED → PARAMETERS_RESOLVED → DELEGATED → SUCCEEDED | FAILED

Restart safety:
    The cached parameters are part of the step execution context, which the
    step skeleton persists even when the attempt fails.  A restarted outer
    job hands the new step attempt that persisted context, so the nested job
    is launched with the *same* identity and the launcher resumes the failed
    nested job instead of starting a fresh one.

Example::

    step = JobStep(
        "load.nested",
        job=nested_job,
        job_launcher=SimpleJobLauncher(repository),
        job_repository=repository,
    )

Tags:
    batchspine, step, job-step, delegation, restart

Doc-Types:
    api-reference
"""

from __future__ import annotations

from batchspine.core.errors import ConfigurationError, UnexpectedJobExecutionError
from batchspine.core.logging import get_logger
from batchspine.core.models import StepExecution
from batchspine.core.parameters import JobParameters
from batchspine.core.protocols import Job, JobLauncher, JobParametersExtractor, JobRepository

from .base import STEP_TYPE_KEY, AbstractStep
from .extractor import DefaultJobParametersExtractor

logger = get_logger(__name__)

#: Context key of the cached nested-job parameters. Needed for restarts.
JOB_PARAMETERS_KEY = f"{__name__}.JobStep.JOB_PARAMETERS"


class JobStep(AbstractStep):
    """A step that runs a nested :class:`~batchspine.core.protocols.Job`.

    Parameters
    ----------
    name
        Step name.
    job
        The job to delegate to. Required.
    job_launcher
        Launcher used to run *job*; it must return a terminal execution.
        Required.
    job_parameters_extractor
        Strategy deriving the nested job's parameters. Defaults to copying
        the enclosing job's parameters.

    Raises:
        ConfigurationError: if *job* or *job_launcher* is missing.
    """

    def __init__(
        self,
        name: str,
        *,
        job: Job | None = None,
        job_launcher: JobLauncher | None = None,
        job_parameters_extractor: JobParametersExtractor | None = None,
        job_repository: JobRepository | None = None,
        allow_start_if_complete: bool = False,
        start_limit: int | None = None,
    ) -> None:
        super().__init__(
            name,
            job_repository=job_repository,
            allow_start_if_complete=allow_start_if_complete,
            start_limit=start_limit,
        )
        self.job = job
        self.job_launcher = job_launcher
        self.job_parameters_extractor = job_parameters_extractor or DefaultJobParametersExtractor()
        self.validate()

    def validate(self) -> None:
        super().validate()
        if self.job_launcher is None:
            raise ConfigurationError("A JobLauncher must be provided").with_context(step=self.name)
        if self.job is None:
            raise ConfigurationError("A Job must be provided").with_context(step=self.name)

    def do_execute(self, step_execution: StepExecution) -> None:
        """Launch the nested job with cached or freshly extracted parameters.

        On a restart the parameters are the same as those of the last
        (failed) attempt.  Extractor and launcher exceptions propagate
        unchanged.
        """
        execution_context = step_execution.execution_context
        execution_context.put(STEP_TYPE_KEY, self.step_type())

        job_parameters = self._resolve_job_parameters(step_execution)

        logger.info("job_step_delegating", job=self.job.name, parameters=job_parameters.to_dict())
        job_execution = self.job_launcher.run(self.job, job_parameters)

        status = job_execution.status
        if status.is_running:
            raise UnexpectedJobExecutionError(
                f"Step failure: the delegate Job is still {status.value} in JobStep "
                "(the launcher must return a terminal job execution).",
                job_execution=job_execution,
            ).with_context(step=self.name, job=self.job.name, job_execution_id=job_execution.id)
        if status.is_unsuccessful:
            # AbstractStep records the step execution status
            raise UnexpectedJobExecutionError(
                "Step failure: the delegate Job failed in JobStep.",
                job_execution=job_execution,
            ).with_context(step=self.name, job=self.job.name, job_execution_id=job_execution.id)

        logger.info("job_step_delegate_completed", job=self.job.name, job_execution_id=job_execution.id)

    def _resolve_job_parameters(self, step_execution: StepExecution) -> JobParameters:
        execution_context = step_execution.execution_context
        job_parameters = execution_context.get(JOB_PARAMETERS_KEY)
        if job_parameters is not None:
            logger.info("job_step_parameters_reused", parameters=job_parameters.to_dict())
            return job_parameters

        extracted = self.job_parameters_extractor.get_job_parameters(self.job, step_execution)
        job_parameters = execution_context.put_if_absent(JOB_PARAMETERS_KEY, extracted)
        logger.debug("job_step_parameters_cached", parameters=job_parameters.to_dict())
        return job_parameters
