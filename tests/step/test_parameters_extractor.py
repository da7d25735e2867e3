"""Tests for DefaultJobParametersExtractor."""

from datetime import datetime

import pytest

from batchspine.core.errors import ExtractionError
from batchspine.core.parameters import JobParameter, JobParameters, ParameterType
from batchspine.core.protocols import JobParametersExtractor
from batchspine.step.extractor import DefaultJobParametersExtractor
from tests._support.doubles import StubJob, make_step_execution


class TestDefaultBehaviour:
    def test_returns_parent_parameters_unmodified(self):
        step_execution = make_step_execution(parameters={"run_id": "42", "batch": 7})
        params = DefaultJobParametersExtractor().get_job_parameters(StubJob(), step_execution)
        assert params is step_execution.job_parameters

    def test_empty_parent_gives_empty_parameters(self):
        params = DefaultJobParametersExtractor().get_job_parameters(StubJob(), make_step_execution())
        assert params.is_empty()

    def test_satisfies_protocol(self):
        assert isinstance(DefaultJobParametersExtractor(), JobParametersExtractor)

    def test_is_pure(self):
        step_execution = make_step_execution(parameters={"run_id": "42"})
        extractor = DefaultJobParametersExtractor(keys=["partition"])
        step_execution.execution_context.put("partition", "p1")
        before = step_execution.execution_context.to_dict()

        first = extractor.get_job_parameters(StubJob(), step_execution)
        second = extractor.get_job_parameters(StubJob(), step_execution)

        assert first == second
        assert step_execution.execution_context.to_dict() == before


class TestKeys:
    def test_key_from_step_context(self):
        step_execution = make_step_execution(parameters={"run_id": "42"})
        step_execution.execution_context.put("partition", "p1")

        params = DefaultJobParametersExtractor(keys=["partition"]).get_job_parameters(StubJob(), step_execution)

        assert params.get_string("run_id") == "42"
        assert params.get_string("partition") == "p1"

    def test_typed_key_converts_value(self):
        step_execution = make_step_execution()
        step_execution.execution_context.put("partition.id", "3")
        step_execution.execution_context.put("ratio", 2)
        step_execution.execution_context.put("as_of", "2025-01-09")

        params = DefaultJobParametersExtractor(
            keys=["partition.id(long)", "ratio(double)", "as_of(date)"]
        ).get_job_parameters(StubJob(), step_execution)

        assert params.get_long("partition.id") == 3
        assert params.get_double("ratio") == 2.0
        assert params.get_date("as_of") == datetime(2025, 1, 9)

    def test_key_falls_back_to_parent(self):
        step_execution = make_step_execution(parameters={"region": "eu", "other": "x"})
        params = DefaultJobParametersExtractor(
            keys=["region"], use_all_parent_parameters=False
        ).get_job_parameters(StubJob(), step_execution)
        assert params.to_dict() == {"region": "eu"}

    def test_typed_key_converts_parent_value(self):
        step_execution = make_step_execution(parameters={"chunk": "12"})
        params = DefaultJobParametersExtractor(keys=["chunk(long)"]).get_job_parameters(StubJob(), step_execution)
        assert params["chunk"] == JobParameter(12, ParameterType.LONG)

    def test_context_value_overrides_parent(self):
        step_execution = make_step_execution(parameters={"region": "eu"})
        step_execution.execution_context.put("region", "us")
        params = DefaultJobParametersExtractor(keys=["region"]).get_job_parameters(StubJob(), step_execution)
        assert params.get_string("region") == "us"

    def test_missing_key_is_ignored(self):
        step_execution = make_step_execution(parameters={"run_id": "42"})
        params = DefaultJobParametersExtractor(keys=["absent"]).get_job_parameters(StubJob(), step_execution)
        assert params == JobParameters.from_dict({"run_id": "42"})

    def test_no_parent_parameters(self):
        step_execution = make_step_execution(parameters={"run_id": "42"})
        params = DefaultJobParametersExtractor(use_all_parent_parameters=False).get_job_parameters(
            StubJob(), step_execution
        )
        assert params.is_empty()


class TestConversionFailures:
    def test_unsupported_context_value_raises(self):
        step_execution = make_step_execution()
        step_execution.execution_context.put("items", [1, 2])
        with pytest.raises(ExtractionError) as excinfo:
            DefaultJobParametersExtractor(keys=["items"]).get_job_parameters(StubJob(), step_execution)
        assert isinstance(excinfo.value.__cause__, TypeError)

    def test_unparseable_typed_value_raises(self):
        step_execution = make_step_execution()
        step_execution.execution_context.put("partition.id", "abc")

        with pytest.raises(ExtractionError, match="'partition.id' to long") as excinfo:
            DefaultJobParametersExtractor(keys=["partition.id(long)"]).get_job_parameters(StubJob(), step_execution)

        assert isinstance(excinfo.value.cause, ValueError)
        assert excinfo.value.context.step == "delegate"
        assert excinfo.value.context.step_execution_id == step_execution.id

    def test_unparseable_parent_value_raises(self):
        step_execution = make_step_execution(parameters={"chunk": "many"})
        with pytest.raises(ExtractionError):
            DefaultJobParametersExtractor(keys=["chunk(long)"]).get_job_parameters(StubJob(), step_execution)

    def test_bool_context_value_raises(self):
        step_execution = make_step_execution()
        step_execution.execution_context.put("dry_run", True)
        with pytest.raises(ExtractionError):
            DefaultJobParametersExtractor(keys=["dry_run"]).get_job_parameters(StubJob(), step_execution)
