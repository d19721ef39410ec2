"""Manages the overall MarkGuard protect/transform/restore workflow."""

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from .config import MarkGuardConfig
from .editor import Editor, FileEditor
from .models import ExecutionContext, Granularity, Scope
from .processing import (
    CaptureProcessor,
    Processor,
    ProtectionProcessor,
    RepairProcessor,
    RestorationProcessor,
    TransformProcessor,
    WriteBackProcessor,
)
from .reporters.dry_run_reporter import DryRunReporter
from .reporters.summary_reporter import SummaryReporter
from .translators.base import BaseTranslator

if TYPE_CHECKING:
    from collections.abc import Sequence

# Configure logging
logger = logging.getLogger(__name__)


def run_operation(  # noqa: PLR0913
    editor: Editor,
    config: MarkGuardConfig,
    *,
    target_lang: str | None = None,
    scope: Scope = Scope.FULL,
    granularity: Granularity | None = None,
    dry_run: bool = False,
    debug: bool = False,
    project_root: Path | None = None,
    translator: BaseTranslator | None = None,
) -> ExecutionContext:
    """
    Run one translate/convert operation by orchestrating the processor pipeline.

    Every placeholder, vault and separator set lives in the returned context
    only; nothing is shared with later operations.

    Args:
        editor: Where the text is read from and written back to.
        config: The application configuration (read-only during the operation).
        target_lang: Target language code. Defaults to the configured default.
        scope: Whether to work on the whole document or on the selection.
        granularity: Whole-document or per-cell transform calls. Defaults to the configured one.
        dry_run: If True, uses an identity transform and writes nothing back.
        debug: If True, enables debug behaviors of the backends.
        project_root: The project root, used for dry-run reports.
        translator: A ready translator to use instead of the configured provider.

    Returns:
        The execution context holding the results and diagnostics.

    Raises:
        ConfigurationError: If the backend cannot be set up. Nothing has been written.
        TransportError: If the backend fails in document granularity. Nothing has been written.

    """
    context = ExecutionContext(
        editor=editor,
        config=config,
        target_lang=(target_lang or config.default_target_lang).upper(),
        scope=scope,
        granularity=granularity or Granularity(config.granularity),
        is_dry_run=dry_run,
        is_debug=debug,
        project_root=project_root,
        translator=translator,
        document_name=editor.path.stem if isinstance(editor, FileEditor) else "document",
    )
    if translator is not None:
        context.provider_name = type(translator).__name__

    logger.info(
        "Transforming the %s to '%s' (%s granularity).",
        context.scope.value,
        context.target_lang,
        context.granularity.value,
    )

    # Define the processor pipeline
    pipeline: Sequence[Processor] = [
        CaptureProcessor(),
        ProtectionProcessor(),
        TransformProcessor(),
        RestorationProcessor(),
        RepairProcessor(),
        WriteBackProcessor(),
    ]

    # Execute the pipeline
    for processor in pipeline:
        logger.debug("Executing processor: %s", processor.__class__.__name__)
        processor.process(context)

    # Generate the appropriate report
    reporter = DryRunReporter() if context.is_dry_run else SummaryReporter()
    reporter.generate(context)

    return context
