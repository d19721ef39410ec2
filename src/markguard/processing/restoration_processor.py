"""Restoration and structural repair processors."""

import logging

from markguard.match_state import UnitLifecycle
from markguard.models import ExecutionContext, Granularity
from markguard.pipeline import repair_if_needed
from markguard.restoration import RestorationEngine

from .base import Processor

__all__ = ["RepairProcessor", "RestorationProcessor"]

logger = logging.getLogger(__name__)


class RestorationProcessor(Processor):
    """Phase 4: Put the protected spans back into the transformed text."""

    def __init__(self, engine: RestorationEngine | None = None) -> None:
        self.engine = engine or RestorationEngine()

    def process(self, context: ExecutionContext) -> None:
        if context.aborted:
            return
        if context.granularity is Granularity.CELL:
            self._restore_units(context)
            return

        document = context.document
        if document is None or context.transformed_text is None:
            return
        outcome = self.engine.restore(context.transformed_text, document.vault, document.separators)
        context.restored_text = outcome.text
        context.report = outcome.report

    def _restore_units(self, context: ExecutionContext) -> None:
        for unit, document in context.unit_documents:
            if unit.transformed_text is None:
                continue
            outcome = self.engine.restore(unit.transformed_text, document.vault, document.separators)
            unit.report = outcome.report
            context.report.merge(outcome.report)
            if unit.lifecycle is not UnitLifecycle.DRY_RUN_SIMULATED:
                unit.translated_text = outcome.text
        if context.layout is not None:
            context.restored_text = context.layout.assemble()


class RepairProcessor(Processor):
    """
    Phase 5: Repair table structure the transform damaged.

    Repair only runs when restoration was not clean, so a clean round trip
    returns the text exactly as the transform and restoration left it.
    """

    def process(self, context: ExecutionContext) -> None:
        if context.aborted or context.restored_text is None:
            return

        if context.granularity is Granularity.CELL or context.document is None:
            # Pipes and separator lines never reach the transform in cell granularity.
            context.final_text = context.restored_text
        else:
            context.final_text, context.issues = repair_if_needed(context.document, context.restored_text, context.report)

        for issue in context.issues:
            if not issue.repaired:
                logger.warning("Line %d: %s", issue.line_number, issue.message)
