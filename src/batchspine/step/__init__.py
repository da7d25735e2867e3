"""
batchspine.step - step implementations.

- base: AbstractStep lifecycle skeleton, STEP_TYPE_KEY
- job: JobStep (delegates to a nested job), JOB_PARAMETERS_KEY
- extractor: DefaultJobParametersExtractor
- handler: SimpleStepHandler, HandlerStep
"""

from .base import STEP_TYPE_KEY, AbstractStep
from .extractor import DefaultJobParametersExtractor
from .handler import HandlerStep, SimpleStepHandler
from .job import JOB_PARAMETERS_KEY, JobStep

__all__ = [
    "AbstractStep",
    "STEP_TYPE_KEY",
    "DefaultJobParametersExtractor",
    "HandlerStep",
    "SimpleStepHandler",
    "JobStep",
    "JOB_PARAMETERS_KEY",
]
