"""Job parameters — the immutable identity of one job run.

Manifesto:
    Two launches with equal identifying parameters address the same job
    instance; that is what lets a restarted step resume the job it started
    instead of minting a new one.  Parameters are therefore typed,
    immutable and compared by value.

ARCHITECTURE
────────────
::

    JobParametersBuilder
      ├── .add_string / add_long / add_double / add_date
      ├── .add_job_parameters(other)
      └── .to_job_parameters()  → JobParameters (read-only Mapping)

    JobParameter   ── (value, type, identifying)
    ParameterType  ── STRING, LONG, DOUBLE, DATE

Example::

    params = (
        JobParametersBuilder()
        .add_string("run_id", "42")
        .add_date("as_of", date(2025, 1, 9))
        .to_job_parameters()
    )
    params.get_string("run_id")      # "42"

Tags:
    batchspine, job-parameters, identity, immutable

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any


class ParameterType(str, Enum):
    """Supported parameter value types."""

    STRING = "string"
    LONG = "long"
    DOUBLE = "double"
    DATE = "date"

    @classmethod
    def of(cls, value: Any) -> ParameterType:
        """Infer the type from a Python value."""
        if isinstance(value, bool):
            raise TypeError("bool is not a supported job parameter type")
        if isinstance(value, str):
            return cls.STRING
        if isinstance(value, int):
            return cls.LONG
        if isinstance(value, float):
            return cls.DOUBLE
        if isinstance(value, (date, datetime)):
            return cls.DATE
        raise TypeError(f"Unsupported job parameter type: {type(value).__name__}")

    def coerce(self, value: Any) -> Any:
        """Convert *value* (typically a string) to this type."""
        if self is ParameterType.STRING:
            return str(value)
        if self is ParameterType.LONG:
            return int(value)
        if self is ParameterType.DOUBLE:
            return float(value)
        if isinstance(value, (date, datetime)):
            return value
        return datetime.fromisoformat(str(value))


@dataclass(frozen=True)
class JobParameter:
    """A single typed parameter value."""

    value: Any
    type: ParameterType
    identifying: bool = True

    def __post_init__(self):
        if self.value is None:
            raise ValueError("Job parameter values must not be None")
        if ParameterType.of(self.value) is not self.type:
            raise TypeError(
                f"Value {self.value!r} does not match parameter type {self.type.value}"
            )

    @classmethod
    def of(cls, value: Any, identifying: bool = True) -> JobParameter:
        return cls(value=value, type=ParameterType.of(value), identifying=identifying)

    def __str__(self) -> str:
        if self.type is ParameterType.DATE:
            return self.value.isoformat()
        return str(self.value)


class JobParameters(Mapping[str, JobParameter]):
    """Read-only, hashable mapping of parameter name to :class:`JobParameter`."""

    __slots__ = ("_parameters",)

    def __init__(self, parameters: Mapping[str, JobParameter] | None = None) -> None:
        params = dict(parameters or {})
        for name, parameter in params.items():
            if not isinstance(parameter, JobParameter):
                raise TypeError(f"Parameter {name!r} must be a JobParameter, got {type(parameter).__name__}")
        self._parameters = params

    @classmethod
    def from_dict(cls, values: Mapping[str, Any], identifying: bool = True) -> JobParameters:
        """Build from plain values, inferring each type."""
        return cls({name: JobParameter.of(value, identifying) for name, value in values.items()})

    # -- Mapping --------------------------------------------------------

    def __getitem__(self, key: str) -> JobParameter:
        return self._parameters[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._parameters)

    def __len__(self) -> int:
        return len(self._parameters)

    # -- typed getters ----------------------------------------------------

    def _get_value(self, key: str, expected: ParameterType, default: Any) -> Any:
        parameter = self._parameters.get(key)
        if parameter is None:
            return default
        if parameter.type is not expected:
            raise TypeError(
                f"Parameter {key!r} is of type {parameter.type.value}, not {expected.value}"
            )
        return parameter.value

    def get_string(self, key: str, default: str | None = None) -> str | None:
        return self._get_value(key, ParameterType.STRING, default)

    def get_long(self, key: str, default: int | None = None) -> int | None:
        return self._get_value(key, ParameterType.LONG, default)

    def get_double(self, key: str, default: float | None = None) -> float | None:
        return self._get_value(key, ParameterType.DOUBLE, default)

    def get_date(self, key: str, default: date | None = None) -> date | None:
        return self._get_value(key, ParameterType.DATE, default)

    # -- views ------------------------------------------------------------

    def is_empty(self) -> bool:
        return not self._parameters

    def get_parameters(self) -> dict[str, JobParameter]:
        return dict(self._parameters)

    def identifying_parameters(self) -> dict[str, JobParameter]:
        return {k: v for k, v in self._parameters.items() if v.identifying}

    def identity_key(self) -> frozenset[tuple[str, Any]]:
        """Hashable key built from the identifying parameters only."""
        return frozenset((k, v.type, v.value) for k, v in self.identifying_parameters().items())

    def to_dict(self) -> dict[str, Any]:
        """Plain ``name -> value`` dictionary."""
        return {k: v.value for k, v in self._parameters.items()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JobParameters):
            return NotImplemented
        return self._parameters == other._parameters

    def __hash__(self) -> int:
        return hash(frozenset(self._parameters.items()))

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v}" for k, v in self._parameters.items())
        return f"JobParameters({{{inner}}})"


class JobParametersBuilder:
    """Fluent builder for :class:`JobParameters`."""

    def __init__(self, parameters: JobParameters | None = None) -> None:
        self._parameters: dict[str, JobParameter] = dict(parameters or {})

    def add_parameter(self, key: str, parameter: JobParameter) -> JobParametersBuilder:
        self._parameters[key] = parameter
        return self

    def add_string(self, key: str, value: str, identifying: bool = True) -> JobParametersBuilder:
        return self.add_parameter(key, JobParameter(str(value), ParameterType.STRING, identifying))

    def add_long(self, key: str, value: int, identifying: bool = True) -> JobParametersBuilder:
        return self.add_parameter(key, JobParameter(int(value), ParameterType.LONG, identifying))

    def add_double(self, key: str, value: float, identifying: bool = True) -> JobParametersBuilder:
        return self.add_parameter(key, JobParameter(float(value), ParameterType.DOUBLE, identifying))

    def add_date(self, key: str, value: date, identifying: bool = True) -> JobParametersBuilder:
        return self.add_parameter(key, JobParameter(value, ParameterType.DATE, identifying))

    def add_job_parameters(self, parameters: JobParameters) -> JobParametersBuilder:
        """Copy every parameter of *parameters*, overriding same-named entries."""
        self._parameters.update(parameters.get_parameters())
        return self

    def to_job_parameters(self) -> JobParameters:
        return JobParameters(self._parameters)
