"""
Recognizes Markdown table structure and shields it from the transform.

Separator lines (``|---|:---:|``) are pulled out whole and replaced by a single
``TABLESEP`` token on their own line. Every unescaped pipe of a content row is
replaced by its own ``TABLEPIPE`` token, so the transform only ever sees cell text
between opaque markers. Lines inside fenced code blocks are never treated as table
lines.
"""

import logging
from dataclasses import dataclass
from enum import Enum

import regex

from .types import Span, SpanKind
from .vault import PlaceholderVault, SeparatorSet, TokenGenerator

__all__ = [
    "LineKind",
    "TableGuard",
    "build_separator",
    "classify_lines",
    "count_pipes",
    "is_separator_line",
    "is_table_row",
]

logger = logging.getLogger(__name__)

SEPARATOR_LINE_RE = regex.compile(r"^\|[ \t|:-]*-[ \t|:-]*\|[ \t\r]*$")
TABLE_ROW_RE = regex.compile(r"^\|.*\|[ \t\r]*$")
UNESCAPED_PIPE_RE = regex.compile(r"(?<!\\)\|")
FENCE_RE = regex.compile(r"^[ \t]{0,3}(```|~~~)")
MIN_ROW_PIPES = 3


class LineKind(str, Enum):
    """Classification of a single line of a Markdown document."""

    PROSE = "prose"
    CODE_FENCE = "code_fence"
    CODE = "code"
    TABLE_HEADER = "table_header"
    TABLE_SEPARATOR = "table_separator"
    TABLE_ROW = "table_row"

    @property
    def is_table(self) -> bool:
        """Check if the line belongs to a table block."""
        return self in (LineKind.TABLE_HEADER, LineKind.TABLE_SEPARATOR, LineKind.TABLE_ROW)


def count_pipes(line: str) -> int:
    """Count the pipe delimiters of a line, ignoring escaped ``\\|``."""
    return len(UNESCAPED_PIPE_RE.findall(line))


def is_separator_line(line: str) -> bool:
    """Check whether a line is a table header separator such as ``| --- | :-: |``."""
    return bool(SEPARATOR_LINE_RE.match(line))


def is_table_row(line: str, *, min_pipes: int = MIN_ROW_PIPES) -> bool:
    """Check whether a line looks like a table content row."""
    return bool(TABLE_ROW_RE.match(line)) and not is_separator_line(line) and count_pipes(line) >= min_pipes


def build_separator(pipe_count: int) -> str:
    """
    Synthesize a separator line with the given number of pipes.

    Examples:
        >>> build_separator(3)
        '|---|---|'

    """
    return "|" + "---|" * max(pipe_count - 1, 1)


@dataclass(frozen=True)
class ClassifiedLine:
    """A document line together with its structural kind."""

    index: int
    text: str
    kind: LineKind


def classify_lines(text: str) -> list[ClassifiedLine]:
    """
    Classify every line of a document.

    A line bounded by pipes counts as a table row when it has at least three
    pipes, or when it sits in a run of pipe-bounded lines that contains a
    separator (so single-column tables are recognized too). The first row of a
    block is the header when the next line is a separator.
    """
    lines = text.split("\n")
    kinds: list[LineKind] = []
    in_fence = False
    for line in lines:
        if FENCE_RE.match(line):
            kinds.append(LineKind.CODE_FENCE)
            in_fence = not in_fence
        elif in_fence:
            kinds.append(LineKind.CODE)
        elif is_separator_line(line):
            kinds.append(LineKind.TABLE_SEPARATOR)
        elif is_table_row(line):
            kinds.append(LineKind.TABLE_ROW)
        else:
            kinds.append(LineKind.PROSE)

    _promote_narrow_rows(lines, kinds)

    for index, kind in enumerate(kinds):
        next_kind = kinds[index + 1] if index + 1 < len(kinds) else None
        previous_is_table = index > 0 and kinds[index - 1].is_table
        if kind is LineKind.TABLE_ROW and next_kind is LineKind.TABLE_SEPARATOR and not previous_is_table:
            kinds[index] = LineKind.TABLE_HEADER

    return [ClassifiedLine(index, line, kind) for index, (line, kind) in enumerate(zip(lines, kinds, strict=True))]


def _promote_narrow_rows(lines: list[str], kinds: list[LineKind]) -> None:
    """Mark two-pipe lines as rows when they are adjacent to a separator run."""
    for index, kind in enumerate(kinds):
        if kind is not LineKind.TABLE_SEPARATOR:
            continue
        for step in (-1, 1):
            cursor = index + step
            while 0 <= cursor < len(lines) and kinds[cursor] in (LineKind.PROSE, LineKind.TABLE_ROW):
                if kinds[cursor] is LineKind.PROSE:
                    if not is_table_row(lines[cursor], min_pipes=2):
                        break
                    kinds[cursor] = LineKind.TABLE_ROW
                cursor += step


class TableGuard:
    """Replaces table separators and row pipes with placeholder tokens."""

    def protect(
        self,
        text: str,
        vault: PlaceholderVault,
        separators: SeparatorSet,
        generator: TokenGenerator,
    ) -> str:
        """
        Protect all table structure in `text`.

        Args:
            text: The original document.
            vault: Receives one ``TABLEPIPE`` entry per protected pipe.
            separators: Receives one entry per separator line.
            generator: The per-operation token source.

        Returns:
            The text with table structure replaced by tokens.

        """
        output: list[str] = []
        offset = 0
        # Table blocks are maximal runs of table lines, numbered from 0.
        table_index, previous_is_table = -1, False
        for line in classify_lines(text):
            if line.kind.is_table and not previous_is_table:
                table_index += 1
            previous_is_table = line.kind.is_table
            if line.kind is LineKind.TABLE_SEPARATOR:
                token = generator.next_token(SpanKind.TABLE_SEPARATOR)
                separators.add(token, line.text, count_pipes(line.text), table_index)
                output.append(token.text)
            elif line.kind in (LineKind.TABLE_HEADER, LineKind.TABLE_ROW):
                output.append(self._protect_row(line.text, offset, vault, generator))
            else:
                output.append(line.text)
            offset += len(line.text) + 1

        if separators or vault:
            logger.debug("Table guard protected %d separator lines and %d pipes.", len(separators), len(vault))
        return "\n".join(output)

    @staticmethod
    def _protect_row(line: str, offset: int, vault: PlaceholderVault, generator: TokenGenerator) -> str:
        def _claim(match: regex.Match[str]) -> str:
            token = generator.next_token(SpanKind.TABLE_PIPE)
            start = offset + match.start()
            vault.add(token, Span(kind=SpanKind.TABLE_PIPE, original_text="|", start=start, end=start + 1))
            return token.text

        return UNESCAPED_PIPE_RE.sub(_claim, line)
