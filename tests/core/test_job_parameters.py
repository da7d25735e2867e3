"""Tests for JobParameter, JobParameters and JobParametersBuilder."""

from datetime import date, datetime

import pytest

from batchspine.core.parameters import JobParameter, JobParameters, JobParametersBuilder, ParameterType


class TestParameterType:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("x", ParameterType.STRING),
            (3, ParameterType.LONG),
            (1.5, ParameterType.DOUBLE),
            (date(2025, 1, 9), ParameterType.DATE),
            (datetime(2025, 1, 9, 6, 30), ParameterType.DATE),
        ],
    )
    def test_of(self, value, expected):
        assert ParameterType.of(value) is expected

    def test_bool_rejected(self):
        with pytest.raises(TypeError):
            ParameterType.of(True)

    def test_unsupported_rejected(self):
        with pytest.raises(TypeError):
            ParameterType.of({"a": 1})

    def test_coerce(self):
        assert ParameterType.LONG.coerce("12") == 12
        assert ParameterType.DOUBLE.coerce("1.5") == 1.5
        assert ParameterType.STRING.coerce(7) == "7"
        assert ParameterType.DATE.coerce("2025-01-09T06:30:00") == datetime(2025, 1, 9, 6, 30)


class TestJobParameter:
    def test_of_infers_type(self):
        parameter = JobParameter.of(42)
        assert parameter.type is ParameterType.LONG
        assert parameter.identifying is True

    def test_type_mismatch_rejected(self):
        with pytest.raises(TypeError):
            JobParameter("42", ParameterType.LONG)

    def test_none_rejected(self):
        with pytest.raises(ValueError):
            JobParameter(None, ParameterType.STRING)

    def test_str_of_date(self):
        assert str(JobParameter.of(date(2025, 1, 9))) == "2025-01-09"


class TestJobParameters:
    def test_mapping_behaviour(self):
        params = JobParameters.from_dict({"run_id": "42", "chunk": 100})
        assert len(params) == 2
        assert set(params) == {"run_id", "chunk"}
        assert params["chunk"] == JobParameter(100, ParameterType.LONG)

    def test_typed_getters(self):
        params = JobParameters.from_dict({"s": "x", "l": 1, "d": 2.5, "t": date(2025, 1, 9)})
        assert params.get_string("s") == "x"
        assert params.get_long("l") == 1
        assert params.get_double("d") == 2.5
        assert params.get_date("t") == date(2025, 1, 9)
        assert params.get_string("missing", "dflt") == "dflt"

    def test_typed_getter_mismatch(self):
        with pytest.raises(TypeError):
            JobParameters.from_dict({"l": 1}).get_string("l")

    def test_rejects_plain_values(self):
        with pytest.raises(TypeError):
            JobParameters({"run_id": "42"})

    def test_value_equality_and_hash(self):
        a = JobParameters.from_dict({"run_id": "42"})
        b = JobParameters.from_dict({"run_id": "42"})
        assert a == b
        assert hash(a) == hash(b)
        assert a != JobParameters.from_dict({"run_id": "43"})

    def test_identity_ignores_non_identifying(self):
        a = JobParametersBuilder().add_string("run_id", "42").add_long("attempt", 1, identifying=False)
        b = JobParametersBuilder().add_string("run_id", "42").add_long("attempt", 2, identifying=False)
        a, b = a.to_job_parameters(), b.to_job_parameters()
        assert a != b
        assert a.identity_key() == b.identity_key()
        assert set(a.identifying_parameters()) == {"run_id"}

    def test_empty(self):
        assert JobParameters().is_empty()
        assert JobParameters().to_dict() == {}

    def test_get_parameters_is_a_copy(self):
        params = JobParameters.from_dict({"run_id": "42"})
        params.get_parameters()["other"] = JobParameter.of("x")
        assert "other" not in params


class TestBuilder:
    def test_fluent_build(self):
        params = (
            JobParametersBuilder()
            .add_string("run_id", "42")
            .add_long("chunk", 100)
            .add_double("ratio", 0.5)
            .add_date("as_of", date(2025, 1, 9))
            .to_job_parameters()
        )
        assert params.to_dict() == {"run_id": "42", "chunk": 100, "ratio": 0.5, "as_of": date(2025, 1, 9)}

    def test_add_job_parameters_overrides(self):
        base = JobParameters.from_dict({"run_id": "42", "region": "eu"})
        params = (
            JobParametersBuilder(base)
            .add_job_parameters(JobParameters.from_dict({"region": "us"}))
            .to_job_parameters()
        )
        assert params.to_dict() == {"run_id": "42", "region": "us"}

    def test_builder_does_not_mutate_source(self):
        base = JobParameters.from_dict({"run_id": "42"})
        JobParametersBuilder(base).add_string("extra", "x").to_job_parameters()
        assert base.to_dict() == {"run_id": "42"}
