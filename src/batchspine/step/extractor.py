"""Job parameter extraction strategies for :class:`~batchspine.step.job.JobStep`.

The default strategy copies the enclosing job's parameters, which is all a
plain "run this job as a step" needs.  Partitioned or fan-out usage pulls
per-worker values out of the step execution context with ``keys``.

Example::

    # Every partition step carries "partition.id" in its execution context
    extractor = DefaultJobParametersExtractor(keys=["partition.id(long)"])
    extractor.get_job_parameters(job, step_execution)
    # -> parent parameters + partition.id as a LONG parameter
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

from batchspine.core.errors import ExtractionError
from batchspine.core.models import StepExecution
from batchspine.core.parameters import JobParameter, JobParameters, JobParametersBuilder, ParameterType
from batchspine.core.protocols import Job

_TYPED_KEY = re.compile(r"^(?P<name>.+)\((?P<type>string|long|double|date)\)$")


def _parse_key(key: str) -> tuple[str, ParameterType | None]:
    match = _TYPED_KEY.match(key)
    if match is None:
        return key, None
    return match.group("name"), ParameterType(match.group("type"))


class DefaultJobParametersExtractor:
    """Copies the parent job's parameters, optionally adding step-context values.

    Parameters
    ----------
    keys
        Names to look up in the step execution context first and the parent
        job parameters second.  A ``(string)``, ``(long)``, ``(double)`` or
        ``(date)`` suffix converts the value to that type.  Names found in
        neither place are ignored.
    use_all_parent_parameters
        Start from every parameter of the enclosing job (default) or from
        an empty set.

    Raises:
        ExtractionError: a value cannot be converted to a job parameter.
    """

    def __init__(self, keys: Iterable[str] = (), use_all_parent_parameters: bool = True) -> None:
        self.keys = list(keys)
        self.use_all_parent_parameters = use_all_parent_parameters

    def get_job_parameters(self, job: Job, step_execution: StepExecution) -> JobParameters:
        parent = step_execution.job_parameters
        if not self.keys:
            return parent if self.use_all_parent_parameters else JobParameters()

        builder = JobParametersBuilder(parent if self.use_all_parent_parameters else None)
        context = step_execution.execution_context
        for key in self.keys:
            name, declared = _parse_key(key)
            try:
                if name in context:
                    builder.add_parameter(name, self._to_parameter(context.get(name), declared))
                elif name in parent:
                    inherited = parent[name]
                    if declared is not None and declared is not inherited.type:
                        inherited = JobParameter(declared.coerce(inherited.value), declared, inherited.identifying)
                    builder.add_parameter(name, inherited)
            except (TypeError, ValueError) as exc:
                target = declared.value if declared is not None else "a job parameter"
                raise ExtractionError(f"Cannot convert {name!r} to {target}", cause=exc).with_context(
                    step=step_execution.step_name, step_execution_id=step_execution.id
                ) from exc
        return builder.to_job_parameters()

    @staticmethod
    def _to_parameter(value: Any, declared: ParameterType | None) -> JobParameter:
        if isinstance(value, JobParameter):
            return value
        if declared is None:
            return JobParameter.of(value)
        return JobParameter(declared.coerce(value), declared)

    def __repr__(self) -> str:
        return (
            f"DefaultJobParametersExtractor(keys={self.keys!r}, "
            f"use_all_parent_parameters={self.use_all_parent_parameters})"
        )
