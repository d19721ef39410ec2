"""
The protection pipeline: protect, transform, restore, repair.

`protect` runs the table guard first, so later rules work on a pipe-free and
separator-free text, then the span detector. Everything it creates (the token
generator, the vault, the separator set) belongs to one operation and is
discarded afterward.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from .repair import StructuralIssue, repair_tables
from .restoration import RestorationEngine, RestorationReport
from .spans import ProtectionRule, SpanDetector
from .tables import TableGuard, is_separator_line
from .types import Span, SpanKind
from .vault import PlaceholderVault, SeparatorSet, TokenGenerator, token_pattern

__all__ = [
    "PipelineResult",
    "ProtectedDocument",
    "protect",
    "repair_if_needed",
    "restore_document",
    "run_pipeline",
]

logger = logging.getLogger(__name__)


@dataclass
class ProtectedDocument:
    """
    The output of `protect`: the transform-safe text plus what restoration needs.

    Attributes:
        original_text: The text that was protected.
        safe_text: The text with every protected span replaced by a token.
        vault: Token to span mapping.
        separators: Token to separator line mapping.
        spans: Every span recorded during detection, including absorbed ones.

    """

    original_text: str
    safe_text: str
    vault: PlaceholderVault
    separators: SeparatorSet
    spans: list[Span] = field(default_factory=list)

    @property
    def marker(self) -> str:
        """Return the marker used by this document's tokens."""
        return self.vault.marker

    @property
    def is_fully_protected(self) -> bool:
        """Check whether nothing but tokens and whitespace is left for the transform."""
        return not token_pattern(self.marker).sub("", self.safe_text).strip()

    def inventory(self) -> dict[SpanKind, int]:
        """Count the stored entries per kind, separators included."""
        counts = self.vault.count_by_kind()
        counts.update(self.separators.count_by_kind())
        return dict(sorted(counts.items(), key=lambda item: item[0].priority))


def protect(
    text: str,
    keywords: Iterable[str] = (),
    *,
    rules: Sequence[ProtectionRule] | None = None,
    generator: TokenGenerator | None = None,
) -> ProtectedDocument:
    """
    Replace table structure and protected spans with placeholder tokens.

    Args:
        text: The document to protect.
        keywords: Technical terms to protect in addition to the structural rules.
        rules: Structural rules to use instead of the defaults.
        generator: Token source; a fresh one is created for `text` when omitted.

    Returns:
        The protected document.

    """
    generator = generator or TokenGenerator(text)
    vault = PlaceholderVault(generator.marker)
    separators = SeparatorSet(generator.marker)

    safe_text = TableGuard().protect(text, vault, separators, generator)
    table_spans = [entry.span for entry in vault.entries()]
    safe_text, spans = SpanDetector(rules, keywords).detect(safe_text, vault, separators, generator)

    logger.debug("Protected %d spans and %d separator lines with marker '%s'.", len(vault), len(separators), generator.marker)
    return ProtectedDocument(original_text=text, safe_text=safe_text, vault=vault, separators=separators, spans=table_spans + spans)


@dataclass
class PipelineResult:
    """The final text of a pipeline run and everything learned along the way."""

    text: str
    document: ProtectedDocument
    transformed_text: str
    report: RestorationReport
    issues: list[StructuralIssue] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """Check whether the final text differs from the input."""
        return self.text != self.document.original_text


def _needs_repair(document: ProtectedDocument, restored: str, report: RestorationReport) -> bool:
    """
    Decide whether structural repair should run.

    When every token came back verbatim the table grammar is byte-identical to
    the input, so repair would only touch tables the author wrote that way.
    """
    if report.shortfall or report.orphan_markers or report.used_fallback:
        return True
    present = sum(1 for line in restored.split("\n") if is_separator_line(line))
    return present < len(document.separators)


def repair_if_needed(document: ProtectedDocument, restored: str, report: RestorationReport) -> tuple[str, list[StructuralIssue]]:
    """
    Run structural repair on restored text when restoration was not clean.

    Rows are only padded when pipe placeholders went missing.
    """
    if not _needs_repair(document, restored, report):
        return restored, []
    unresolved = report.unresolved_by_kind()
    return repair_tables(restored, pad_short_rows=bool(unresolved.get(SpanKind.TABLE_PIPE)))


def restore_document(document: ProtectedDocument, transformed_text: str, *, repair: bool = True) -> PipelineResult:
    """
    Restore a transformed text and repair its tables when needed.

    Args:
        document: The protected document the transform was given.
        transformed_text: The transform's output.
        repair: Whether structural repair may run.

    Returns:
        The pipeline result.

    """
    outcome = RestorationEngine().restore(transformed_text, document.vault, document.separators)
    text, issues = outcome.text, []
    if repair:
        text, issues = repair_if_needed(document, text, outcome.report)
    return PipelineResult(text=text, document=document, transformed_text=transformed_text, report=outcome.report, issues=issues)


def run_pipeline(
    text: str,
    transform: Callable[[str], str],
    keywords: Iterable[str] = (),
    *,
    repair: bool = True,
) -> PipelineResult:
    """
    Protect `text`, pass it through `transform`, then restore and repair it.

    Exceptions raised by `transform` propagate unchanged; the input is never
    modified in place.

    Example:
        >>> run_pipeline("Use the `API`.", str.upper).text
        'USE THE `API`.'

    """
    document = protect(text, keywords)
    transformed = transform(document.safe_text)
    return restore_document(document, transformed, repair=repair)
