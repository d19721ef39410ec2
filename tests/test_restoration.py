"""Tests for the restoration cascade."""

import random
import unittest

from markguard.pipeline import ProtectedDocument, protect
from markguard.restoration import (
    ExactMatchStrategy,
    RestorationEngine,
    RestorationLevel,
    restore,
    restore_with_report,
)
from markguard.types import SpanKind
from markguard.vault import PlaceholderVault, SeparatorSet

DOCUMENT = (
    "# Setup\n"
    "Install with `pip install markguard` and read [the docs](https://example.com/docs).\n"
    "See [[Getting Started|the guide]] and #howto/setup for details.\n"
    "\n"
    "| Option | Meaning |\n"
    "|:-------|--------:|\n"
    "| `--to` | Target for the API |\n"
    "| path | ./notes/today.md |\n"
    "\n"
    "```bash\nmarkguard translate README.md\n```\n"
    "> [!tip] Use the JSON output\n"
    "Block ref here ^abc-1 and <br> too."
)
KEYWORDS = ("API", "JSON")


def _shuffled(document: ProtectedDocument, seed: int) -> tuple[PlaceholderVault, SeparatorSet]:
    """Rebuild the stores with their entries in a random order."""
    rng = random.Random(seed)
    entries = document.vault.entries()
    rng.shuffle(entries)
    vault = PlaceholderVault(document.marker)
    for entry in entries:
        vault.add(entry.token, entry.span)
    separators = SeparatorSet(document.marker)
    separator_entries = document.separators.entries()
    rng.shuffle(separator_entries)
    for entry in separator_entries:
        separators.add(entry.token, entry.line, entry.pipe_count, entry.table_index)
    return vault, separators


class TestExactRestoration(unittest.TestCase):
    """Test suite for level 1 and the round-trip identity."""

    def setUp(self) -> None:
        """Protect the sample document."""
        self.document = protect(DOCUMENT, KEYWORDS)

    def test_round_trip_identity(self) -> None:
        """1. Identity: Restoring the untouched safe text gives back the input."""
        outcome = restore_with_report(self.document.safe_text, self.document.vault, self.document.separators)
        assert outcome.text == DOCUMENT
        assert outcome.report.is_clean
        assert outcome.report.resolved[RestorationLevel.EXACT] == len(self.document.vault) + len(self.document.separators)

    def test_restoration_ignores_store_order(self) -> None:
        """2. Order: Any enumeration order of the stores gives the same result."""
        for seed in range(10):
            vault, separators = _shuffled(self.document, seed)
            assert restore(self.document.safe_text, vault, separators) == DOCUMENT

    def test_restoring_twice_is_a_no_op(self) -> None:
        """3. Idempotence: Restored text does not change when restored again."""
        once = restore(self.document.safe_text, self.document.vault, self.document.separators)
        twice = restore(once, self.document.vault, self.document.separators)
        assert twice == once

    def test_duplicated_token_is_restored_everywhere(self) -> None:
        """4. Duplicates: A token the transform repeated is restored at every copy."""
        entry = next(e for e in self.document.vault.entries() if e.token.kind is SpanKind.INLINE_CODE)
        transformed = f"{self.document.safe_text}\n{entry.token.text}"
        restored = restore(transformed, self.document.vault, self.document.separators)
        assert restored == f"{DOCUMENT}\n{entry.replacement}"


class TestFallbackLevels(unittest.TestCase):
    """Test suite for the tolerant, salvage and structural levels."""

    def test_case_folded_tokens_use_tolerant_level(self) -> None:
        """1. Tolerant: Lower-cased tokens are found case-insensitively."""
        document = protect("Call the API with `curl`.", KEYWORDS)
        outcome = restore_with_report(document.safe_text.lower(), document.vault, document.separators)
        assert outcome.text == "call the API with `curl`."
        assert outcome.report.resolved[RestorationLevel.TOLERANT] == 2
        assert outcome.report.shortfall == 0

    def test_whitespace_inside_tokens_uses_tolerant_level(self) -> None:
        """2. Tolerant: Spaces inserted inside a token are tolerated."""
        document = protect("Use JSON here.", KEYWORDS)
        token = document.vault.entries()[0].token.text
        spaced = " ".join([token[:4], token[4:11], token[11:]])
        outcome = restore_with_report(document.safe_text.replace(token, spaced), document.vault, document.separators)
        assert outcome.text == "Use JSON here."
        assert outcome.report.resolved[RestorationLevel.TOLERANT] == 1

    def test_scrambled_ordinal_uses_salvage_level(self) -> None:
        """3. Salvage: A token with a wrong ordinal is tied back by its kind."""
        document = protect("Read `a.md` first.")
        token = document.vault.entries()[0].token
        broken = token.text.replace(f"{token.marker}{token.ordinal}{token.marker}", f"{token.marker}77{token.marker}")
        outcome = restore_with_report(document.safe_text.replace(token.text, broken), document.vault, document.separators)
        assert outcome.text == "Read `a.md` first."
        assert outcome.report.resolved[RestorationLevel.SALVAGE] == 1

    def test_truncated_token_uses_salvage_level(self) -> None:
        """4. Salvage: A token that lost its trailing half is still recognized."""
        document = protect("Tagged #alpha today.")
        token = document.vault.entries()[0].token
        truncated = f"{token.marker}{token.kind.tag}{token.marker}{token.ordinal}"
        outcome = restore_with_report(document.safe_text.replace(token.text, truncated), document.vault, document.separators)
        assert outcome.text == "Tagged #alpha today."

    def test_salvage_restores_pipes_first(self) -> None:
        """5. Salvage: Pipe residues keep the row's column count."""
        text = "| a | b |\n|---|---|\n| c | d |"
        document = protect(text)
        marker = document.marker
        damaged = document.safe_text.replace(f"{marker}TABLEPIPE{marker}", f"{marker} tablepipe {marker}")
        damaged = "".join("9" if char.isdigit() else char for char in damaged)
        restored = restore(damaged, document.vault, document.separators)
        assert [line.count("|") for line in restored.split("\n")] == [3, 3, 3]

    def test_lost_separator_is_rebuilt(self) -> None:
        """6. Structural: A separator whose line was deleted comes back after its header."""
        text = "| A | B |\n|:--|--:|\n| 1 | 2 |"
        document = protect(text)
        lines = [line for line in document.safe_text.split("\n") if "TABLESEP" not in line]
        outcome = restore_with_report("\n".join(lines), document.vault, document.separators)
        assert outcome.text == text
        assert outcome.report.resolved[RestorationLevel.STRUCTURAL] == 1

    def test_glued_separator_token_gets_its_own_line(self) -> None:
        """7. Separators: Text glued to the separator token moves to its own line."""
        text = "| A | B |\n|---|---|\n| 1 | 2 |"
        document = protect(text)
        safe_lines = document.safe_text.split("\n")
        glued = "\n".join([f"{safe_lines[0]} {safe_lines[1]} {safe_lines[2]}"])
        restored = restore(glued, document.vault, document.separators)
        assert restored.split("\n") == ["| A | B |", "|---|---|", "| 1 | 2 |"]

    def test_unresolved_entries_are_reported(self) -> None:
        """8. Shortfall: Tokens the transform dropped are reported by kind."""
        document = protect("Run `make` and `test`.")
        first = document.vault.entries()[0].token.text
        outcome = restore_with_report(document.safe_text.replace(first, ""), document.vault, document.separators)
        assert outcome.report.shortfall == 1
        assert outcome.report.unresolved_by_kind() == {SpanKind.INLINE_CODE: 1}
        assert "`test`" in outcome.text

    def test_custom_strategy_chain(self) -> None:
        """9. Chain: An engine limited to exact matching leaves damaged tokens alone."""
        document = protect("Call the API.", KEYWORDS)
        damaged = document.safe_text.lower()
        outcome = RestorationEngine([ExactMatchStrategy()]).restore(damaged, document.vault, document.separators)
        assert outcome.text == damaged
        assert outcome.report.shortfall == 1

    def test_lost_separator_returns_to_its_own_table(self) -> None:
        """10. Structural: A header-only line above the table does not receive the rebuilt separator."""
        text = "| x | y |\n\ntext\n\n| A | B |\n|---|---|\n| 1 | 2 |"
        document = protect(text)
        lines = [line for line in document.safe_text.split("\n") if "TABLESEP" not in line]
        outcome = restore_with_report("\n".join(lines), document.vault, document.separators)
        assert outcome.text == text
        assert outcome.report.resolved[RestorationLevel.STRUCTURAL] == 1

    def test_rebuild_falls_back_to_first_table_without_separator(self) -> None:
        """11. Structural: When the original table position is gone, the first header lacking a separator is used."""
        text = "| x | y |\n\ntext\n\n| A | B |\n|---|---|\n| 1 | 2 |"
        document = protect(text)
        lines = document.safe_text.split("\n")[2:]
        damaged = "\n".join(line for line in lines if "TABLESEP" not in line)
        outcome = restore_with_report(damaged, document.vault, document.separators)
        assert outcome.text == "text\n\n| A | B |\n|---|---|\n| 1 | 2 |"
        assert outcome.report.resolved[RestorationLevel.STRUCTURAL] == 1
