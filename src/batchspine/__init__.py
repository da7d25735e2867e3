"""
batchspine - batch-job building blocks.

- batchspine.core: execution records, parameters, contracts, errors, logging, settings
- batchspine.step: AbstractStep, JobStep (delegates to a nested job), HandlerStep
- batchspine.job: SimpleJob
- batchspine.launch: SimpleJobLauncher, BlockingJobLauncher
"""

__version__ = "0.1.0"

from batchspine.core import *  # noqa
from batchspine.job import SimpleJob
from batchspine.launch import BlockingJobLauncher, SimpleJobLauncher
from batchspine.step import (
    JOB_PARAMETERS_KEY,
    STEP_TYPE_KEY,
    AbstractStep,
    DefaultJobParametersExtractor,
    HandlerStep,
    JobStep,
    SimpleStepHandler,
)
