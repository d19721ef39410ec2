"""Protection processor: replaces protected spans with placeholder tokens."""

import logging

from markguard.models import ExecutionContext, Granularity
from markguard.pipeline import protect
from markguard.units import split_into_units

from .base import Processor

__all__ = ["ProtectionProcessor"]

logger = logging.getLogger(__name__)


class ProtectionProcessor(Processor):
    """Phase 2: Protect the captured text, as a whole or unit by unit."""

    def process(self, context: ExecutionContext) -> None:
        if context.aborted:
            return
        keywords = context.config.keywords

        if context.granularity is Granularity.DOCUMENT:
            context.document = protect(context.source_text, keywords)
            logger.info(
                "Protected %d spans and %d separator lines.",
                len(context.document.vault),
                len(context.document.separators),
            )
            return

        context.layout = split_into_units(context.source_text)
        context.unit_documents = [(unit, protect(unit.text, keywords)) for unit in context.layout.units()]
        logger.info("Split the text into %d units.", len(context.unit_documents))
