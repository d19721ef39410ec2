"""
Integration tests running the whole pipeline against real backends.

The OpenCC and mock tests always run. The DeepL and Google tests need network
access and are skipped unless their environment variables are set.
"""

import pytest

from markguard.config import MarkGuardConfig
from markguard.editor import MemoryEditor
from markguard.models import Granularity
from markguard.pipeline import run_pipeline
from markguard.tables import count_pipes, is_separator_line
from markguard.translators.base import BaseTranslator
from markguard.workflow import run_operation

DOCUMENT = """# Installation

Run `pip install markguard` and read [[Getting Started]].

| Command | Description |
|:--------|------------:|
| `init` | Creates the configuration |
| `translate` | Translates a document |

See ./docs/usage.md for details. #markguard
"""


def _translate(translator: BaseTranslator, target: str) -> str:
    editor = MemoryEditor(DOCUMENT)
    run_operation(editor, MarkGuardConfig(), target_lang=target, translator=translator)
    return editor.text


def _assert_structure_kept(text: str) -> None:
    for protected in ("`pip install markguard`", "[[Getting Started]]", "`init`", "`translate`", "./docs/usage.md", "#markguard"):
        assert protected in text
    lines = text.split("\n")
    assert "|:--------|------------:|" in lines
    table = [line for line in lines if line.startswith("|")]
    assert len(table) == 4
    assert all(count_pipes(line) == 3 for line in table if not is_separator_line(line))


@pytest.mark.integration
def test_mock_translator_round_trip(mock_translator: BaseTranslator) -> None:
    """An upper-casing backend changes prose only."""
    text = _translate(mock_translator, "FR")
    _assert_structure_kept(text)
    assert "# INSTALLATION" in text


@pytest.mark.integration
def test_mock_translator_cell_granularity(mock_translator: BaseTranslator) -> None:
    """Cell granularity produces the same structure as document granularity."""
    editor = MemoryEditor(DOCUMENT)
    run_operation(editor, MarkGuardConfig(), target_lang="FR", granularity=Granularity.CELL, translator=mock_translator)
    assert editor.text == _translate(mock_translator, "FR")


@pytest.mark.integration
def test_opencc_conversion(opencc_converter: BaseTranslator) -> None:
    """Simplified Chinese prose is converted, code spans are not."""
    result = run_pipeline("请阅读 `汉语` 文档。", lambda text: opencc_converter.translate([text], "ZH-HANT")[0].translated_text)
    assert result.text.startswith("請閱讀 ")
    assert "`汉语`" in result.text
    assert result.report.is_clean


@pytest.mark.integration
def test_deepl_translation(deepl_translator: BaseTranslator) -> None:
    """A real DeepL call keeps every protected span and the table grammar."""
    _assert_structure_kept(_translate(deepl_translator, "DE"))


@pytest.mark.integration
def test_google_translation(google_translator: BaseTranslator) -> None:
    """A real Google call keeps every protected span and the table grammar."""
    _assert_structure_kept(_translate(google_translator, "FR"))
