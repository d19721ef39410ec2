"""Editor capture processor."""

import logging

from markguard.models import ExecutionContext, Scope

from .base import Processor

__all__ = ["CaptureProcessor"]

logger = logging.getLogger(__name__)


class CaptureProcessor(Processor):
    """Phase 1: Read the text to transform from the editor."""

    def process(self, context: ExecutionContext) -> None:
        if context.scope is Scope.SELECTION:
            text = context.editor.get_selection()
            if not text:
                logger.warning("Nothing is selected. Select the text to transform first.")
                context.abort("empty selection")
                return
        else:
            text = context.editor.get_full_text()

        if not text.strip():
            logger.info("The %s is empty. Nothing to do.", "selection" if context.scope is Scope.SELECTION else "document")
            context.abort("empty text")
            return

        context.source_text = text
        logger.debug("Captured %d characters (%s).", len(text), context.scope.value)
