"""Editor write-back processor."""

import logging

from markguard.models import ExecutionContext, Scope

from .base import Processor

__all__ = ["WriteBackProcessor"]

logger = logging.getLogger(__name__)


class WriteBackProcessor(Processor):
    """Phase 6: Write the final text back through the editor."""

    def process(self, context: ExecutionContext) -> None:
        if context.aborted:
            logger.debug("Operation aborted (%s). Nothing is written.", context.abort_reason)
            return
        if context.is_dry_run:
            logger.info("[DRY RUN] Skipping write-back.")
            return
        if context.final_text is None:
            return
        if context.final_text == context.source_text:
            logger.info("The text is unchanged. Nothing to write.")
            return

        if context.scope is Scope.SELECTION:
            context.editor.replace_selection(context.final_text)
        else:
            context.editor.set_full_text(context.final_text)
        context.written = True
