"""Transform processor: sends the protected text to the selected backend."""

import logging

from markguard.models import ExecutionContext, Granularity
from markguard.translate import get_translator, select_provider, transform_document, transform_units

from .base import Processor

__all__ = ["TransformProcessor"]

logger = logging.getLogger(__name__)


class TransformProcessor(Processor):
    """
    Phase 3: Transform the protected text.

    In document granularity a ``TransportError`` propagates and aborts the
    operation before anything is written. In cell granularity it is absorbed
    per unit. In dry-run mode the transform is the identity and no backend is
    contacted.
    """

    def process(self, context: ExecutionContext) -> None:
        if context.aborted:
            return

        context.provider_name = context.provider_name or select_provider(context.target_lang, context.config)
        if not context.is_dry_run and context.translator is None:
            context.translator = get_translator(context.provider_name, context.config)

        if context.granularity is Granularity.CELL:
            self._transform_units(context)
        else:
            self._transform_document(context)

    def _transform_document(self, context: ExecutionContext) -> None:
        document = context.document
        if document is None:
            return
        if context.is_dry_run or context.translator is None:
            logger.debug("[DRY RUN] Skipping the transform call for %d characters.", len(document.safe_text))
            context.transformed_text = document.safe_text
            return

        logger.info("Transforming the text to '%s' with '%s'.", context.target_lang, context.provider_name)
        context.transformed_text, context.characters_used = transform_document(
            document,
            context.translator,
            context.target_lang,
            context.config.source_lang,
            debug=context.is_debug,
        )

    def _transform_units(self, context: ExecutionContext) -> None:
        if not context.is_dry_run:
            logger.info("Transforming %d units to '%s' with '%s'.", len(context.unit_documents), context.target_lang, context.provider_name)
        context.characters_used = transform_units(
            context.unit_documents,
            context.translator,
            context.target_lang,
            context.config.source_lang,
            debug=context.is_debug,
            dry_run=context.is_dry_run,
        )
