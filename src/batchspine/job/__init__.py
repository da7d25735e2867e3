"""
batchspine.job - job implementations.

- simple: SimpleJob (sequential, restart-aware)
"""

from .simple import SimpleJob

__all__ = ["SimpleJob"]
