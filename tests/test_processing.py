"""Tests for the individual processors of the pipeline."""

import unittest
from unittest.mock import MagicMock, patch

import pytest

from markguard.config import MarkGuardConfig
from markguard.editor import MemoryEditor
from markguard.errors import TransportError
from markguard.match_state import UnitLifecycle
from markguard.models import ExecutionContext, Granularity, Scope
from markguard.pipeline import protect
from markguard.processing import (
    CaptureProcessor,
    ProtectionProcessor,
    RepairProcessor,
    RestorationProcessor,
    TransformProcessor,
    WriteBackProcessor,
)
from markguard.repair import ISSUE_SHORT_ROW
from markguard.restoration import RestorationLevel
from markguard.translators import MockTranslator

TABLE = "| A | B |\n|---|---|\n| 1 | 2 |"


def _context(text: str, **kwargs: object) -> ExecutionContext:
    editor = kwargs.pop("editor", None) or MemoryEditor(text)
    return ExecutionContext(editor=editor, config=MarkGuardConfig(), target_lang="FR", **kwargs)


class TestCaptureProcessor(unittest.TestCase):
    """Test suite for the CaptureProcessor."""

    def test_captures_full_text(self) -> None:
        """1. Full: The whole document is captured."""
        context = _context("Hello")
        CaptureProcessor().process(context)
        assert context.source_text == "Hello"
        assert not context.aborted

    def test_captures_selection(self) -> None:
        """2. Selection: Only the selected text is captured."""
        context = _context("", editor=MemoryEditor("Hello world", selection=(6, 11)), scope=Scope.SELECTION)
        CaptureProcessor().process(context)
        assert context.source_text == "world"

    def test_empty_selection_aborts(self) -> None:
        """3. Empty Selection: The operation stops with a notice."""
        context = _context("Hello", scope=Scope.SELECTION)
        CaptureProcessor().process(context)
        assert context.aborted
        assert context.abort_reason == "empty selection"

    def test_blank_text_aborts(self) -> None:
        """4. Blank Text: Whitespace-only text is not processed."""
        context = _context(" \n\t ")
        CaptureProcessor().process(context)
        assert context.abort_reason == "empty text"


class TestProtectionProcessor(unittest.TestCase):
    """Test suite for the ProtectionProcessor."""

    def test_document_granularity(self) -> None:
        """1. Document: One protected document is created, keywords included."""
        context = _context("")
        context.source_text = "Call the API with `curl`."
        ProtectionProcessor().process(context)
        assert context.document is not None
        assert "API" not in context.document.safe_text
        assert context.unit_documents == []

    def test_cell_granularity(self) -> None:
        """2. Cell: Every unit gets its own protected document."""
        context = _context("", granularity=Granularity.CELL)
        context.source_text = TABLE
        ProtectionProcessor().process(context)
        assert context.document is None
        assert [unit.text for unit, _ in context.unit_documents] == ["A", "B", "1", "2"]

    def test_aborted_context_is_untouched(self) -> None:
        """3. Abort: Nothing happens after an abort."""
        context = _context("")
        context.abort("empty text")
        ProtectionProcessor().process(context)
        assert context.document is None


class TestTransformProcessor(unittest.TestCase):
    """Test suite for the TransformProcessor."""

    def _protected(self, text: str, **kwargs: object) -> ExecutionContext:
        context = _context(text, **kwargs)
        CaptureProcessor().process(context)
        ProtectionProcessor().process(context)
        return context

    @patch("markguard.processing.transform_processor.get_translator")
    def test_dry_run_uses_identity(self, mock_get_translator: MagicMock) -> None:
        """1. Dry Run: The safe text is the transform output and no backend is created."""
        context = self._protected("Hello `x`", is_dry_run=True)
        TransformProcessor().process(context)
        mock_get_translator.assert_not_called()
        assert context.transformed_text == context.document.safe_text
        assert context.provider_name == "deepl"

    @patch("markguard.processing.transform_processor.get_translator")
    def test_translator_is_created_for_provider(self, mock_get_translator: MagicMock) -> None:
        """2. Provider: The selected provider is instantiated once."""
        mock_get_translator.return_value = MockTranslator(transform=str.upper)
        context = self._protected("Hello")
        TransformProcessor().process(context)
        mock_get_translator.assert_called_once_with("deepl", context.config)
        assert context.transformed_text == "HELLO"
        assert context.characters_used == 5

    def test_document_transport_error_propagates(self) -> None:
        """3. Errors: A failing call in document granularity aborts the operation."""
        context = self._protected("Hello", translator=MockTranslator(return_error=True))
        with pytest.raises(TransportError):
            TransformProcessor().process(context)
        assert context.transformed_text is None

    def test_cell_transport_error_falls_back(self) -> None:
        """4. Errors: A failing unit keeps its text in cell granularity."""
        translator = MockTranslator(transform=str.upper, fail_on=lambda text: text == "B")
        context = self._protected(TABLE, granularity=Granularity.CELL, translator=translator)
        TransformProcessor().process(context)
        lifecycles = [unit.lifecycle for unit in context.units]
        assert lifecycles == [UnitLifecycle.TRANSLATED, UnitLifecycle.FALLBACK, UnitLifecycle.TRANSLATED, UnitLifecycle.TRANSLATED]


class TestRestorationAndRepair(unittest.TestCase):
    """Test suite for the RestorationProcessor and RepairProcessor."""

    def test_document_restoration(self) -> None:
        """1. Restore: Tokens are replaced by their original spans."""
        context = _context("")
        context.document = protect("Run `make` now.")
        context.transformed_text = context.document.safe_text.replace("Run", "Lancez")
        RestorationProcessor().process(context)
        RepairProcessor().process(context)
        assert context.final_text == "Lancez `make` now."
        assert context.report.is_clean
        assert context.issues == []

    def test_missing_separator_is_rebuilt(self) -> None:
        """2. Rebuild: A separator dropped by the transform is reinserted."""
        context = _context("")
        context.document = protect(TABLE)
        separator_token = context.document.separators.entries()[0].token.text
        context.transformed_text = context.document.safe_text.replace(f"\n{separator_token}", "")
        RestorationProcessor().process(context)
        RepairProcessor().process(context)
        assert context.final_text == TABLE
        assert context.report.resolved[RestorationLevel.STRUCTURAL] == 1

    def test_short_row_is_repaired(self) -> None:
        """3. Repair: A row that lost a pipe is padded and reported."""
        context = _context("")
        context.document = protect(TABLE)
        middle_pipe = context.document.vault.entries()[-2].token.text
        context.transformed_text = context.document.safe_text.replace(middle_pipe, "")
        RestorationProcessor().process(context)
        RepairProcessor().process(context)
        assert [issue.code for issue in context.issues] == [ISSUE_SHORT_ROW]
        assert context.final_text.split("\n")[2].count("|") == 3

    def test_cell_restoration_assembles_layout(self) -> None:
        """4. Cells: Restored units are put back between the untouched structure."""
        context = _context("", granularity=Granularity.CELL, translator=MockTranslator(transform=str.lower))
        context.source_text = "| `A` and B | C |\n|---|---|"
        ProtectionProcessor().process(context)
        TransformProcessor().process(context)
        RestorationProcessor().process(context)
        RepairProcessor().process(context)
        assert context.final_text == "| `A` and b | c |\n|---|---|"
        assert context.issues == []


class TestWriteBackProcessor(unittest.TestCase):
    """Test suite for the WriteBackProcessor."""

    def test_writes_changed_text(self) -> None:
        """1. Write: A changed text replaces the document."""
        editor = MemoryEditor("Hello")
        context = _context("", editor=editor)
        context.source_text, context.final_text = "Hello", "Bonjour"
        WriteBackProcessor().process(context)
        assert editor.text == "Bonjour"
        assert context.written

    def test_selection_is_replaced(self) -> None:
        """2. Selection: Only the selection is replaced."""
        editor = MemoryEditor("Hello world", selection=(6, 11))
        context = _context("", editor=editor, scope=Scope.SELECTION)
        context.source_text, context.final_text = "world", "monde"
        WriteBackProcessor().process(context)
        assert editor.text == "Hello monde"

    def test_skips_unchanged_dry_run_and_abort(self) -> None:
        """3. Skip: Unchanged text, dry runs and aborted runs write nothing."""
        editor = MemoryEditor("Hello")
        unchanged = _context("", editor=editor)
        unchanged.source_text = unchanged.final_text = "Hello"
        dry_run = _context("", editor=editor, is_dry_run=True)
        dry_run.source_text, dry_run.final_text = "Hello", "Bonjour"
        aborted = _context("", editor=editor)
        aborted.source_text, aborted.final_text = "Hello", "Bonjour"
        aborted.abort("empty selection")

        for context in (unchanged, dry_run, aborted):
            WriteBackProcessor().process(context)
            assert not context.written
        assert editor.writes == 0
