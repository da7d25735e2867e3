"""Status types for job and step executions.

``BatchStatus`` is the lifecycle state of an execution record.
``ExitStatus`` is the outcome code a step or handler reports, and for
handlers it doubles as the "call me again" signal via ``continuable``.

Valid BatchStatus ordering (least to most severe)::

    COMPLETED < STARTING < STARTED < STOPPING < STOPPED < FAILED < ABANDONED < UNKNOWN

Tags:
    batchspine, status, exit-status, enums

Doc-Types:
    api-reference
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import ClassVar


class BatchStatus(str, Enum):
    """Status of a job or step execution."""

    COMPLETED = "COMPLETED"
    STARTING = "STARTING"
    STARTED = "STARTED"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"
    FAILED = "FAILED"
    ABANDONED = "ABANDONED"
    UNKNOWN = "UNKNOWN"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @property
    def is_running(self) -> bool:
        """True while the execution has not reached a terminal status."""
        return self in (BatchStatus.STARTING, BatchStatus.STARTED, BatchStatus.STOPPING)

    @property
    def is_unsuccessful(self) -> bool:
        """True for every terminal status other than COMPLETED."""
        return self is not BatchStatus.COMPLETED and not self.is_running

    def upgrade_to(self, other: BatchStatus) -> BatchStatus:
        """Return the more severe of the two statuses."""
        return other if other.severity > self.severity else self


_SEVERITY = {status: index for index, status in enumerate(BatchStatus)}


@dataclass(frozen=True)
class ExitStatus:
    """
    Outcome of a step or of one handler call.

    ``continuable`` tells a repeating caller whether there may be more work.
    ``exit_code`` is the short machine-readable outcome; ``exit_description``
    carries free text such as a failure message.
    """

    exit_code: str
    exit_description: str = ""
    continuable: bool = False

    # Populated below the class body.
    CONTINUABLE: ClassVar[ExitStatus]
    FINISHED: ClassVar[ExitStatus]
    FAILED: ClassVar[ExitStatus]
    NOOP: ClassVar[ExitStatus]
    UNKNOWN: ClassVar[ExitStatus]

    def is_continuable(self) -> bool:
        return self.continuable

    def and_(self, continuable: bool) -> ExitStatus:
        """Combine with another continuable flag (logical and)."""
        return replace(self, continuable=self.continuable and continuable)

    def replace_exit_code(self, exit_code: str) -> ExitStatus:
        return replace(self, exit_code=exit_code)

    def add_exit_description(self, description: str | BaseException) -> ExitStatus:
        """Append a description (or an exception rendered as ``Type: message``)."""
        if isinstance(description, BaseException):
            description = f"{type(description).__name__}: {description}"
        if not description:
            return self
        if self.exit_description and description != self.exit_description:
            description = f"{self.exit_description}; {description}"
        return replace(self, exit_description=description)

    def __str__(self) -> str:
        return (
            f"exitCode={self.exit_code};exitDescription={self.exit_description};"
            f"continuable={self.continuable}"
        )


ExitStatus.CONTINUABLE = ExitStatus("CONTINUABLE", continuable=True)
ExitStatus.FINISHED = ExitStatus("COMPLETED")
ExitStatus.FAILED = ExitStatus("FAILED")
ExitStatus.NOOP = ExitStatus("NOOP")
ExitStatus.UNKNOWN = ExitStatus("UNKNOWN", continuable=True)
