"""
batchspine.launch - job launchers.

- launcher: SimpleJobLauncher (repository-guarded, sync or executor-backed),
  BlockingJobLauncher (waits for a terminal status)
"""

from .launcher import BlockingJobLauncher, SimpleJobLauncher

__all__ = ["BlockingJobLauncher", "SimpleJobLauncher"]
