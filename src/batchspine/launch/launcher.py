"""Job launchers.

``SimpleJobLauncher`` creates the job execution through the repository
(which enforces one live execution per job instance) and runs the job,
either in the calling thread or on a ``concurrent.futures`` executor.

``BlockingJobLauncher`` wraps any launcher and polls the repository until
the returned execution has reached a terminal status, so callers that need
a finished result (such as :class:`~batchspine.step.job.JobStep`) can use an
asynchronous launcher.

Architecture::

    JobStep ──▶ BlockingJobLauncher.run(job, params)
                    │
                    ├── SimpleJobLauncher.run(job, params)
                    │       ├── repository.create_job_execution()
                    │       └── executor.submit(job.execute, execution)
                    │
                    └── poll repository.get_job_execution(id)
                        until not status.is_running (or timeout)

Example::

    with ThreadPoolExecutor(max_workers=4) as pool:
        launcher = BlockingJobLauncher(
            SimpleJobLauncher(repository, task_executor=pool),
            repository,
            poll_interval=0.1,
        )
        execution = launcher.run(job, params)   # terminal status
"""

from __future__ import annotations

import time
from concurrent.futures import Executor, Future

from batchspine.core.enums import BatchStatus, ExitStatus
from batchspine.core.errors import ConfigurationError, JobExecutionTimeoutError, JobRestartError
from batchspine.core.logging import get_logger
from batchspine.core.models import JobExecution, utcnow
from batchspine.core.parameters import JobParameters
from batchspine.core.protocols import Job, JobLauncher, JobRepository
from batchspine.core.settings import get_settings

logger = get_logger(__name__)

#: Default for BlockingJobLauncher(timeout=...); None means "no timeout".
_FROM_SETTINGS = object()


class SimpleJobLauncher:
    """Launches jobs through a :class:`~batchspine.core.protocols.JobRepository`.

    Parameters
    ----------
    job_repository
        Repository used to create and look up executions. Required.
    task_executor
        Optional executor. Without one the job runs in the calling thread
        and the returned execution is terminal; with one the execution is
        returned as soon as the job has been submitted.
    """

    def __init__(self, job_repository: JobRepository, task_executor: Executor | None = None) -> None:
        if job_repository is None:
            raise ConfigurationError("A JobRepository must be provided")
        self.job_repository = job_repository
        self.task_executor = task_executor

    def run(self, job: Job, job_parameters: JobParameters) -> JobExecution:
        """Create an execution for (job, parameters) and run it.

        Raises:
            JobRestartError: the job is not restartable and already ran.
            JobExecutionAlreadyRunningError: the instance has a live execution.
            JobInstanceAlreadyCompleteError: the instance already completed.
        """
        last = self.job_repository.get_last_job_execution(job.name, job_parameters)
        if last is not None and not job.restartable:
            raise JobRestartError(f"JobInstance already exists and is not restartable: {job.name}").with_context(
                job=job.name, job_execution_id=last.id
            )

        job_execution = self.job_repository.create_job_execution(job.name, job_parameters)
        logger.info(
            "job_launched",
            job=job.name,
            job_execution_id=job_execution.id,
            parameters=job_parameters.to_dict(),
            restart=last is not None,
        )

        if self.task_executor is None:
            job.execute(job_execution)
            logger.info("job_returned", job=job.name, status=job_execution.status.value)
        else:
            future = self.task_executor.submit(job.execute, job_execution)
            future.add_done_callback(lambda f: self._on_done(f, job_execution))
        return job_execution

    def _on_done(self, future: Future, job_execution: JobExecution) -> None:
        if future.cancelled():
            # never started, so the execution is still STARTING
            job_execution.upgrade_status(BatchStatus.STOPPED)
            job_execution.exit_status = ExitStatus("STOPPED").add_exit_description(
                "Job submission was cancelled before it started"
            )
            job_execution.end_time = utcnow()
            self.job_repository.update(job_execution)
            logger.warning("job_cancelled", job=job_execution.job_name, job_execution_id=job_execution.id)
            return

        exc = future.exception()
        if exc is None:
            return
        # Job.execute is expected to record failures itself; this covers jobs that raise instead.
        job_execution.upgrade_status(BatchStatus.FAILED)
        job_execution.exit_status = ExitStatus.FAILED.add_exit_description(exc)
        job_execution.add_failure_exception(exc)
        job_execution.end_time = utcnow()
        self.job_repository.update(job_execution)
        logger.error("job_raised", job=job_execution.job_name, error=exc)


class BlockingJobLauncher:
    """Synchronous-completion facade over a possibly asynchronous launcher.

    Parameters
    ----------
    delegate
        The launcher that starts the job.
    job_repository
        Repository used to refresh the execution while waiting.
    poll_interval
        Seconds between status polls (default from settings).
    timeout
        Max seconds to wait.  Omitted: taken from settings.  ``None``: wait
        forever, whatever the settings say.
    """

    def __init__(
        self,
        delegate: JobLauncher,
        job_repository: JobRepository,
        *,
        poll_interval: float | None = None,
        timeout: float | None | object = _FROM_SETTINGS,
    ) -> None:
        if delegate is None:
            raise ConfigurationError("A delegate JobLauncher must be provided")
        if job_repository is None:
            raise ConfigurationError("A JobRepository must be provided")
        settings = get_settings()
        self.delegate = delegate
        self.job_repository = job_repository
        self.poll_interval = poll_interval if poll_interval is not None else settings.launcher_poll_interval
        self.timeout = settings.launcher_timeout if timeout is _FROM_SETTINGS else timeout
        if self.poll_interval <= 0:
            raise ConfigurationError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout}")

    def run(self, job: Job, job_parameters: JobParameters) -> JobExecution:
        job_execution = self.delegate.run(job, job_parameters)
        started = time.monotonic()

        while job_execution.status.is_running:
            elapsed = time.monotonic() - started
            if self.timeout is not None and elapsed >= self.timeout:
                logger.warning(
                    "job_wait_timed_out",
                    job=job.name,
                    job_execution_id=job_execution.id,
                    status=job_execution.status.value,
                    timeout=self.timeout,
                )
                raise JobExecutionTimeoutError(job_execution.id, self.timeout).with_context(
                    job=job.name, job_execution_id=job_execution.id
                )
            time.sleep(self.poll_interval)
            job_execution = self.job_repository.get_job_execution(job_execution.id)

        return job_execution
