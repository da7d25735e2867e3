"""StepHandler implementations and the step that drives them.

``SimpleStepHandler`` processes exactly one item per call using a reader,
an optional processor and a writer.  ``HandlerStep`` is the minimal loop
around any :class:`~batchspine.core.protocols.StepHandler`: it calls the
handler until the handler reports there is nothing left.

::

    HandlerStep.do_execute(step_execution)
      attributes = AttributeAccessor()            # one per attempt
      loop:
        contribution = step_execution.create_step_contribution()
        exit_status  = handler.handle(contribution, attributes)
        step_execution.apply(contribution); commit_count += 1
      until not exit_status.is_continuable()

    SimpleStepHandler.handle(contribution, attributes)
      item = attributes[BUFFER_KEY] or reader.read()
      None           → FINISHED (no counters touched)
      processor→None → filter_count += 1 → CONTINUABLE
      otherwise      → writer.write(item), write_count += 1 → CONTINUABLE
"""

from __future__ import annotations

from typing import Any

from batchspine.core.attributes import AttributeAccessor
from batchspine.core.enums import ExitStatus
from batchspine.core.errors import ConfigurationError
from batchspine.core.logging import get_logger
from batchspine.core.models import StepContribution, StepExecution
from batchspine.core.protocols import ItemProcessor, ItemReader, ItemWriter, JobRepository, StepHandler

from .base import AbstractStep

logger = get_logger(__name__)


class SimpleStepHandler:
    """Reads, optionally processes, and writes one item per call.

    An item is parked in the attribute bag between reading and writing.  If
    processing or writing raises, the item stays parked and the next call
    (after the caller's rollback) retries that same item instead of reading
    a new one.
    """

    BUFFER_KEY = f"{__name__}.SimpleStepHandler.BUFFERED_ITEM"

    def __init__(
        self,
        reader: ItemReader,
        writer: ItemWriter,
        processor: ItemProcessor | None = None,
    ) -> None:
        if reader is None:
            raise ConfigurationError("An ItemReader must be provided")
        if writer is None:
            raise ConfigurationError("An ItemWriter must be provided")
        self.reader = reader
        self.writer = writer
        self.processor = processor

    def handle(self, contribution: StepContribution, attributes: AttributeAccessor) -> ExitStatus:
        item = attributes.get_attribute(self.BUFFER_KEY)
        if item is None:
            item = self.reader.read()
            if item is None:
                return ExitStatus.FINISHED
            attributes.set_attribute(self.BUFFER_KEY, item)

        output: Any = self.processor.process(item) if self.processor is not None else item
        if output is None:
            contribution.increment_filter_count()
        else:
            self.writer.write(output)
            contribution.increment_write_count()

        attributes.remove_attribute(self.BUFFER_KEY)
        return ExitStatus.CONTINUABLE


class HandlerStep(AbstractStep):
    """A step that calls a :class:`StepHandler` until it is exhausted."""

    def __init__(
        self,
        name: str,
        handler: StepHandler | None = None,
        *,
        job_repository: JobRepository | None = None,
        allow_start_if_complete: bool = False,
        start_limit: int | None = None,
    ) -> None:
        super().__init__(
            name,
            job_repository=job_repository,
            allow_start_if_complete=allow_start_if_complete,
            start_limit=start_limit,
        )
        self.handler = handler
        self.validate()

    def validate(self) -> None:
        super().validate()
        if self.handler is None:
            raise ConfigurationError("A StepHandler must be provided").with_context(step=self.name)

    def do_execute(self, step_execution: StepExecution) -> None:
        attributes = AttributeAccessor()
        while True:
            contribution = step_execution.create_step_contribution()
            exit_status = self.handler.handle(contribution, attributes)
            contribution.set_exit_status(exit_status)
            step_execution.apply(contribution)
            step_execution.commit_count += 1
            if self.job_repository is not None:
                self.job_repository.update_step_execution(step_execution)
            if not exit_status.is_continuable():
                break

        logger.debug(
            "handler_step_exhausted",
            read_count=step_execution.read_count,
            write_count=step_execution.write_count,
            filter_count=step_execution.filter_count,
        )
