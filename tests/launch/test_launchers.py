"""Tests for SimpleJobLauncher and BlockingJobLauncher."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from batchspine.core.enums import BatchStatus
from batchspine.core.errors import (
    ConfigurationError,
    JobExecutionAlreadyRunningError,
    JobExecutionTimeoutError,
    JobInstanceAlreadyCompleteError,
    JobRestartError,
)
from batchspine.core.parameters import JobParameters
from batchspine.core.protocols import JobLauncher
from batchspine.launch import BlockingJobLauncher, SimpleJobLauncher
from tests._support.doubles import StubJob

PARAMS = JobParameters.from_dict({"run_id": "42"})


# ---------------------------------------------------------------------------
# SimpleJobLauncher
# ---------------------------------------------------------------------------


class TestSimpleJobLauncher:
    def test_satisfies_protocol(self, launcher):
        assert isinstance(launcher, JobLauncher)

    def test_sync_run_returns_terminal_execution(self, launcher, repository):
        job = StubJob()
        execution = launcher.run(job, PARAMS)

        assert execution.status is BatchStatus.COMPLETED
        assert job.executions == [execution]
        assert repository.get_job_execution(execution.id) is execution
        assert execution.job_parameters == PARAMS

    def test_failed_instance_can_be_relaunched(self, launcher):
        job = StubJob(statuses=[BatchStatus.FAILED, BatchStatus.COMPLETED])
        first = launcher.run(job, PARAMS)
        second = launcher.run(job, PARAMS)

        assert first.status is BatchStatus.FAILED
        assert second.status is BatchStatus.COMPLETED
        assert first.job_instance is second.job_instance

    def test_completed_instance_is_refused(self, launcher):
        job = StubJob()
        launcher.run(job, PARAMS)
        with pytest.raises(JobInstanceAlreadyCompleteError):
            launcher.run(job, PARAMS)

    def test_different_parameters_make_new_instance(self, launcher):
        job = StubJob()
        first = launcher.run(job, PARAMS)
        second = launcher.run(job, JobParameters.from_dict({"run_id": "43"}))
        assert first.job_instance is not second.job_instance

    def test_running_instance_is_refused(self, launcher, repository):
        live = repository.create_job_execution("nested.job", PARAMS)
        with pytest.raises(JobExecutionAlreadyRunningError) as excinfo:
            launcher.run(StubJob(), PARAMS)
        assert excinfo.value.execution_id == live.id

    def test_non_restartable_job_is_refused(self, launcher):
        job = StubJob(statuses=[BatchStatus.FAILED], restartable=False)
        launcher.run(job, PARAMS)
        with pytest.raises(JobRestartError, match="not restartable"):
            launcher.run(job, PARAMS)
        assert len(job.executions) == 1

    def test_requires_repository(self):
        with pytest.raises(ConfigurationError):
            SimpleJobLauncher(None)


class TestAsyncLaunch:
    def test_returns_before_job_finishes(self, repository):
        gate = threading.Event()
        job = StubJob(gate=gate)
        with ThreadPoolExecutor(max_workers=1) as pool:
            execution = SimpleJobLauncher(repository, task_executor=pool).run(job, PARAMS)
            assert execution.status.is_running
            gate.set()
        assert execution.status is BatchStatus.COMPLETED

    def test_raising_job_marks_execution_failed(self, repository):
        job = MagicMock()
        job.name = "exploding.job"
        job.restartable = True
        job.execute.side_effect = RuntimeError("worker died")

        with ThreadPoolExecutor(max_workers=1) as pool:
            execution = SimpleJobLauncher(repository, task_executor=pool).run(job, PARAMS)

        assert execution.status is BatchStatus.FAILED
        assert execution.exit_status.exit_description == "RuntimeError: worker died"
        assert isinstance(execution.failure_exceptions[0], RuntimeError)

    def test_cancelled_submission_is_stopped(self, repository):
        gate = threading.Event()
        pool = ThreadPoolExecutor(max_workers=1)
        launcher = SimpleJobLauncher(repository, task_executor=pool)
        try:
            launcher.run(StubJob("busy.job", gate=gate), PARAMS)
            queued_job = StubJob("queued.job")
            queued = launcher.run(queued_job, PARAMS)
            pool.shutdown(wait=False, cancel_futures=True)
        finally:
            gate.set()
            pool.shutdown(wait=True)

        assert queued_job.executions == []
        assert queued.status is BatchStatus.STOPPED
        assert queued.exit_status.exit_code == "STOPPED"
        assert "cancelled" in queued.exit_status.exit_description
        assert queued.end_time is not None

    def test_cancelled_instance_can_be_relaunched(self, repository, launcher):
        gate = threading.Event()
        pool = ThreadPoolExecutor(max_workers=1)
        try:
            SimpleJobLauncher(repository, task_executor=pool).run(StubJob("busy.job", gate=gate), PARAMS)
            SimpleJobLauncher(repository, task_executor=pool).run(StubJob("queued.job"), PARAMS)
            pool.shutdown(wait=False, cancel_futures=True)
        finally:
            gate.set()
            pool.shutdown(wait=True)

        execution = launcher.run(StubJob("queued.job"), PARAMS)
        assert execution.status is BatchStatus.COMPLETED


# ---------------------------------------------------------------------------
# BlockingJobLauncher
# ---------------------------------------------------------------------------


class TestBlockingJobLauncher:
    def test_waits_for_async_job(self, repository):
        gate = threading.Event()
        job = StubJob(gate=gate)
        with ThreadPoolExecutor(max_workers=1) as pool:
            launcher = BlockingJobLauncher(
                SimpleJobLauncher(repository, task_executor=pool),
                repository,
                poll_interval=0.01,
                timeout=5,
            )
            timer = threading.Timer(0.05, gate.set)
            timer.start()
            execution = launcher.run(job, PARAMS)

        assert execution.status is BatchStatus.COMPLETED

    def test_timeout_raises(self, repository):
        gate = threading.Event()
        job = StubJob(gate=gate)
        with ThreadPoolExecutor(max_workers=1) as pool:
            launcher = BlockingJobLauncher(
                SimpleJobLauncher(repository, task_executor=pool),
                repository,
                poll_interval=0.01,
                timeout=0.05,
            )
            try:
                with pytest.raises(JobExecutionTimeoutError) as excinfo:
                    launcher.run(job, PARAMS)
            finally:
                gate.set()

        assert excinfo.value.retryable is True
        assert excinfo.value.context.job == "nested.job"

    def test_sync_delegate_returns_immediately(self, repository, launcher):
        delegate = MagicMock(wraps=launcher)
        blocking = BlockingJobLauncher(delegate, repository, poll_interval=10)
        execution = blocking.run(StubJob(), PARAMS)
        assert execution.status is BatchStatus.COMPLETED
        delegate.run.assert_called_once()

    def test_defaults_come_from_settings(self, repository, launcher, monkeypatch):
        monkeypatch.setenv("BATCHSPINE_LAUNCHER_POLL_INTERVAL", "0.2")
        monkeypatch.setenv("BATCHSPINE_LAUNCHER_TIMEOUT", "30")
        blocking = BlockingJobLauncher(launcher, repository)
        assert blocking.poll_interval == 0.2
        assert blocking.timeout == 30

    def test_explicit_none_waits_forever_despite_settings(self, repository, launcher, monkeypatch):
        monkeypatch.setenv("BATCHSPINE_LAUNCHER_TIMEOUT", "30")
        blocking = BlockingJobLauncher(launcher, repository, timeout=None)
        assert blocking.timeout is None

    def test_non_positive_timeout_rejected(self, repository, launcher):
        with pytest.raises(ConfigurationError, match="timeout"):
            BlockingJobLauncher(launcher, repository, timeout=0)

    def test_non_positive_poll_interval_rejected(self, repository, launcher):
        with pytest.raises(ConfigurationError, match="poll_interval"):
            BlockingJobLauncher(launcher, repository, poll_interval=0)
