"""Defines the data models used throughout MarkGuard."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from markguard.config import MarkGuardConfig
from markguard.editor import Editor
from markguard.pipeline import ProtectedDocument
from markguard.repair import StructuralIssue
from markguard.restoration import RestorationReport
from markguard.translators.base import BaseTranslator
from markguard.units import DocumentLayout, TranslationUnit


class Scope(str, Enum):
    """Which part of the editor buffer an operation works on."""

    FULL = "full"
    SELECTION = "selection"


class Granularity(str, Enum):
    """How the text is cut into transform calls."""

    DOCUMENT = "document"
    CELL = "cell"


@dataclass
class ExecutionContext:
    """A data class to hold the context for a single translate/convert operation."""

    editor: Editor
    config: MarkGuardConfig
    target_lang: str
    scope: Scope = Scope.FULL
    granularity: Granularity = Granularity.DOCUMENT
    is_dry_run: bool = False
    is_debug: bool = False
    project_root: Path | None = None
    document_name: str = "document"
    translator: BaseTranslator | None = None
    provider_name: str | None = None
    source_text: str = ""
    document: ProtectedDocument | None = None
    layout: DocumentLayout | None = None
    unit_documents: list[tuple[TranslationUnit, ProtectedDocument]] = field(default_factory=list)
    transformed_text: str | None = None
    restored_text: str | None = None
    final_text: str | None = None
    report: RestorationReport = field(default_factory=RestorationReport)
    issues: list[StructuralIssue] = field(default_factory=list)
    characters_used: int = 0
    aborted: bool = False
    abort_reason: str | None = None
    written: bool = False

    def abort(self, reason: str) -> None:
        """Stop the remaining stages; nothing will be written."""
        self.aborted = True
        self.abort_reason = reason

    @property
    def units(self) -> list[TranslationUnit]:
        """Return the translation units of a cell-granular run."""
        return self.layout.units() if self.layout else []
