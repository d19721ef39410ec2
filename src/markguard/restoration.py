"""
Reverses placeholder substitution after the external transform has run.

Restoration is a cascade of strategies, each strictly more permissive than the
last, and each only looking at the entries the previous ones left outstanding:

1. `ExactMatchStrategy`: literal token search.
2. `TolerantMatchStrategy`: the token with optional whitespace between every
   character, matched case-insensitively.
3. `SalvageStrategy`: any marker-shaped residue, tied back to an outstanding
   entry by kind and ordinal (pipes first, since their content is context-free).
4. `SeparatorRebuildStrategy`: separators that never came back are reinserted
   under the header of the table they were taken from.

The engine never depends on the enumeration order of the stores, and restoring
already-restored text is a no-op: stored originals never contain the marker.
"""

import logging
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum

import regex

from .repair import TableBlock, find_table_blocks
from .tables import build_separator
from .types import SpanKind
from .vault import PlaceholderToken, PlaceholderVault, SeparatorEntry, SeparatorSet, VaultEntry

__all__ = [
    "ExactMatchStrategy",
    "RestorationEngine",
    "RestorationLevel",
    "RestorationOutcome",
    "RestorationReport",
    "RestorationState",
    "RestorationStrategy",
    "SalvageStrategy",
    "SeparatorRebuildStrategy",
    "TolerantMatchStrategy",
    "restore",
    "restore_with_report",
]

logger = logging.getLogger(__name__)

Entry = VaultEntry | SeparatorEntry

# Letters that can appear in a kind tag: A-Z without the marker alphabet.
_TAG_CHARS = "[A-IK-PR-UWYa-ik-pr-uwy]"
_KINDS_BY_TAG: dict[str, SpanKind] = {kind.tag: kind for kind in SpanKind}


class RestorationLevel(IntEnum):
    """The cascade level that resolved an entry."""

    EXACT = 1
    TOLERANT = 2
    SALVAGE = 3
    STRUCTURAL = 4


@dataclass
class RestorationReport:
    """
    Diagnostics of a restoration run.

    Attributes:
        resolved: Number of entries resolved per cascade level.
        unresolved: Tokens that no level could place back into the text.
        orphan_markers: Marker-shaped residues that matched no outstanding entry.

    """

    resolved: Counter[RestorationLevel] = field(default_factory=Counter)
    unresolved: list[PlaceholderToken] = field(default_factory=list)
    orphan_markers: list[str] = field(default_factory=list)

    @property
    def shortfall(self) -> int:
        """Return the number of unresolved entries."""
        return len(self.unresolved)

    @property
    def total_resolved(self) -> int:
        """Return the number of resolved entries across all levels."""
        return sum(self.resolved.values())

    @property
    def used_fallback(self) -> bool:
        """Check whether any entry needed a level beyond exact matching."""
        return any(level > RestorationLevel.EXACT and count for level, count in self.resolved.items())

    @property
    def is_clean(self) -> bool:
        """Check whether every entry was restored by exact matching with nothing left over."""
        return not self.unresolved and not self.orphan_markers and not self.used_fallback

    def unresolved_by_kind(self) -> Counter[SpanKind]:
        """Count the unresolved tokens per kind."""
        return Counter(token.kind for token in self.unresolved)

    def merge(self, other: "RestorationReport") -> None:
        """Fold another report into this one (used when restoring unit by unit)."""
        self.resolved.update(other.resolved)
        self.unresolved.extend(other.unresolved)
        self.orphan_markers.extend(other.orphan_markers)


class RestorationState:
    """The outstanding entries of one restoration run and its report."""

    def __init__(self, vault: PlaceholderVault, separators: SeparatorSet) -> None:
        """Collect every stored entry as outstanding."""
        self.marker = vault.marker
        self.outstanding: dict[str, Entry] = {}
        for entry in [*vault.entries(), *separators.entries()]:
            self.outstanding[entry.token.text] = entry
        self.resolved_entries: list[Entry] = []
        self.report = RestorationReport()

    def resolve(self, entry: Entry, level: RestorationLevel) -> None:
        """Mark an entry as restored at the given level."""
        if self.outstanding.pop(entry.token.text, None) is not None:
            self.resolved_entries.append(entry)
            self.report.resolved[level] += 1

    def pending(self, kind: SpanKind | None = None) -> list[Entry]:
        """Return the outstanding entries, optionally filtered by kind, lowest ordinal first."""
        entries = [entry for entry in self.outstanding.values() if kind is None or entry.token.kind is kind]
        return sorted(entries, key=lambda entry: entry.token.ordinal)


def _apply_edits(text: str, edits: list[tuple[int, int, str]]) -> str:
    """Apply non-overlapping (start, end, replacement) edits, right to left."""
    for start, end, replacement in sorted(edits, key=lambda edit: edit[0], reverse=True):
        text = text[:start] + replacement + text[end:]
    return text


def _separator_edit(text: str, start: int, end: int, line: str) -> tuple[int, int, str]:
    """
    Compute the edit that puts a separator line where a token was found.

    The separator always ends up on a line of its own. Text the transform glued
    to the token is kept and moved to its own line before or after it.
    """
    line_start = text.rfind("\n", 0, start) + 1
    line_end = text.find("\n", end)
    if line_end == -1:
        line_end = len(text)

    prefix = text[line_start:start]
    if prefix.strip():
        edit_start, lead = line_start + len(prefix.rstrip()), "\n"
    else:
        edit_start, lead = line_start, ""

    suffix = text[end:line_end]
    if suffix.strip():
        edit_end, trail = end + len(suffix) - len(suffix.lstrip()), "\n"
    else:
        edit_end, trail = line_end, ""

    return edit_start, edit_end, f"{lead}{line}{trail}"


def _edit_for(text: str, entry: Entry, match: regex.Match[str]) -> tuple[int, int, str]:
    if isinstance(entry, SeparatorEntry):
        return _separator_edit(text, match.start(), match.end(), entry.line)
    return match.start(), match.end(), entry.replacement


class RestorationStrategy(ABC):
    """One level of the restoration cascade."""

    level: RestorationLevel

    @abstractmethod
    def apply(self, text: str, state: RestorationState) -> tuple[bool, str]:
        """
        Resolve what this level can.

        Args:
            text: The current text.
            state: The outstanding entries; resolved entries are removed from it.

        Returns:
            A tuple ``(success, text)`` where success means nothing is left outstanding.

        """
        raise NotImplementedError


class _PatternStrategy(RestorationStrategy):
    """Shared loop of the strategies that look for one specific token at a time."""

    def _pattern(self, token: PlaceholderToken) -> regex.Pattern[str]:
        raise NotImplementedError

    def apply(self, text: str, state: RestorationState) -> tuple[bool, str]:
        for entry in list(state.outstanding.values()):
            pattern = self._pattern(entry.token)
            matches = list(pattern.finditer(text))
            if not matches:
                continue
            text = _apply_edits(text, [_edit_for(text, entry, match) for match in matches])
            state.resolve(entry, self.level)
        return not state.outstanding, text


class ExactMatchStrategy(_PatternStrategy):
    """Level 1: replace every literal occurrence of a token."""

    level = RestorationLevel.EXACT

    def _pattern(self, token: PlaceholderToken) -> regex.Pattern[str]:
        return regex.compile(regex.escape(token.text))


class TolerantMatchStrategy(_PatternStrategy):
    """Level 2: allow whitespace inside the token and any casing."""

    level = RestorationLevel.TOLERANT

    def _pattern(self, token: PlaceholderToken) -> regex.Pattern[str]:
        return token.tolerant_pattern()


def residue_pattern(marker: str) -> regex.Pattern[str]:
    """
    Compile a pattern for anything shaped like a token made with `marker`.

    Whitespace may appear inside the marker and around the tag, case is ignored,
    the ordinal may be missing and the trailing ``TAG<M>`` half may be gone. A lone
    trailing marker is consumed unless it starts the next token.
    """
    m = r"\s*".join(regex.escape(char) for char in marker)
    return regex.compile(
        rf"{m}\s*(?P<tag>{_TAG_CHARS}+)\s*{m}(?:\s*(?P<ordinal>\d(?:\s*\d)*))?(?:{m}(?:\s*(?P=tag)\s*)?{m}|{m}(?!{_TAG_CHARS}))?",
        regex.IGNORECASE,
    )


def _kind_of(tag: str) -> SpanKind | None:
    return _KINDS_BY_TAG.get("".join(tag.split()).upper())


class SalvageStrategy(RestorationStrategy):
    """
    Level 3: consume one outstanding entry per marker-shaped residue.

    Identity is taken from (kind, ordinal) when both survived, then from the
    ordinal alone, then the lowest outstanding entry of the residue's kind.
    Pipe residues are assigned first.
    """

    level = RestorationLevel.SALVAGE

    def apply(self, text: str, state: RestorationState) -> tuple[bool, str]:
        residues = list(residue_pattern(state.marker).finditer(text))
        if not residues:
            return not state.outstanding, text

        def _is_pipe(match: regex.Match[str]) -> bool:
            return _kind_of(match.group("tag")) is SpanKind.TABLE_PIPE

        ordered = sorted(residues, key=lambda match: (not _is_pipe(match), match.start()))
        edits: list[tuple[int, int, str]] = []
        for match in ordered:
            entry = self._claim(match, state)
            if entry is None:
                state.report.orphan_markers.append(match.group(0))
                continue
            edits.append(_edit_for(text, entry, match))
            state.resolve(entry, self.level)

        if state.report.orphan_markers:
            logger.warning("Found %d placeholder residues with no matching entry.", len(state.report.orphan_markers))
        return not state.outstanding, _apply_edits(text, edits)

    @staticmethod
    def _claim(match: regex.Match[str], state: RestorationState) -> Entry | None:
        kind = _kind_of(match.group("tag"))
        digits = "".join((match.group("ordinal") or "").split())
        ordinal = int(digits) if digits else None

        if ordinal is not None:
            by_ordinal = [entry for entry in state.pending() if entry.token.ordinal == ordinal]
            exact = [entry for entry in by_ordinal if entry.token.kind is kind]
            if exact:
                return exact[0]
            if kind is None and by_ordinal:
                return by_ordinal[0]
        if kind is not None:
            candidates = state.pending(kind)
            if candidates:
                return candidates[0]
        return None


class SeparatorRebuildStrategy(RestorationStrategy):
    """
    Level 4: reinsert separators whose token was lost entirely.

    Each outstanding separator goes back into the table it was taken from, found
    by its position among the table blocks of the document. When that table
    already has a separator or no longer exists, the first header row without a
    separator is used instead. The stored line is used when its pipe count
    matches the header, otherwise a plain ``|---|...|`` line is synthesized from
    the header.
    """

    level = RestorationLevel.STRUCTURAL

    def apply(self, text: str, state: RestorationState) -> tuple[bool, str]:
        pending = [entry for entry in state.pending(SpanKind.TABLE_SEPARATOR) if isinstance(entry, SeparatorEntry)]
        if not pending:
            return not state.outstanding, text

        # Separator lines already in the text (restoring restored text) satisfy entries as they are.
        present = Counter(line for line in text.split("\n"))
        for entry in list(pending):
            if present[entry.line] > 0 and self._expected(state, entry.line) < present[entry.line]:
                present[entry.line] -= 1
                pending.remove(entry)
                state.resolve(entry, self.level)

        for entry in pending:
            block = self._target_block(find_table_blocks(text), entry)
            if block is None or block.header is None:
                continue
            pipes = block.column_pipes
            line = entry.line if entry.pipe_count == pipes else build_separator(pipes)
            lines = text.split("\n")
            lines.insert(block.header.index + 1, line)
            text = "\n".join(lines)
            state.resolve(entry, self.level)
            logger.info("Rebuilt a missing table separator after line %d.", block.header.index + 1)

        return not state.outstanding, text

    @staticmethod
    def _target_block(blocks: list[TableBlock], entry: SeparatorEntry) -> TableBlock | None:
        """Return the table the separator belongs in, or None when no table lacks one."""
        candidates = [block for block in blocks if block.header is not None and block.separator is None]
        index = entry.table_index
        if index is not None and 0 <= index < len(blocks) and blocks[index] in candidates:
            return blocks[index]
        return candidates[0] if candidates else None

    @staticmethod
    def _expected(state: RestorationState, line: str) -> int:
        """Count how many copies of `line` were put back by earlier levels."""
        return sum(1 for entry in state.resolved_entries if isinstance(entry, SeparatorEntry) and entry.line == line)


DEFAULT_STRATEGIES: tuple[type[RestorationStrategy], ...] = (
    ExactMatchStrategy,
    TolerantMatchStrategy,
    SalvageStrategy,
    SeparatorRebuildStrategy,
)


@dataclass(frozen=True)
class RestorationOutcome:
    """The restored text together with its diagnostics."""

    text: str
    report: RestorationReport


class RestorationEngine:
    """Runs the restoration cascade."""

    def __init__(self, strategies: Sequence[RestorationStrategy] | None = None) -> None:
        """Initialize the engine with the given strategies, or the default four levels."""
        self.strategies: list[RestorationStrategy] = list(strategies) if strategies is not None else [cls() for cls in DEFAULT_STRATEGIES]

    def restore(self, transformed_text: str, vault: PlaceholderVault, separators: SeparatorSet) -> RestorationOutcome:
        """
        Restore every placeholder in `transformed_text`.

        Args:
            transformed_text: The text returned by the transform.
            vault: The placeholder vault created by protection.
            separators: The separator set created by protection.

        Returns:
            The restored text and a report of what each level resolved.

        """
        state = RestorationState(vault, separators)
        text = transformed_text
        for strategy in self.strategies:
            if not state.outstanding:
                break
            success, text = strategy.apply(text, state)
            if success:
                break

        state.report.unresolved = [entry.token for entry in state.pending()]
        if state.report.unresolved:
            logger.warning(
                "Restoration left %d placeholders unresolved: %s",
                state.report.shortfall,
                ", ".join(f"{kind.tag}={count}" for kind, count in sorted(state.report.unresolved_by_kind().items())),
            )
        elif state.report.used_fallback:
            logger.info("Restoration needed fallback levels: %s", dict(sorted(state.report.resolved.items())))
        return RestorationOutcome(text=text, report=state.report)


def restore_with_report(transformed_text: str, vault: PlaceholderVault, separators: SeparatorSet) -> RestorationOutcome:
    """Restore with the default cascade and return the text together with its report."""
    return RestorationEngine().restore(transformed_text, vault, separators)


def restore(transformed_text: str, vault: PlaceholderVault, separators: SeparatorSet) -> str:
    """Restore with the default cascade and return only the text."""
    return restore_with_report(transformed_text, vault, separators).text
