"""
Post-restoration table repair.

Re-scans the restored document line by line (outside code fences), groups table
lines into blocks and uses the header row's pipe count as the ground truth for
the column count:

- a block of two or more rows with no separator gets one synthesized right after
  the header;
- a separator whose width differs from the header is resized, keeping the
  alignment of the cells it already had;
- rows with fewer pipes than the header are padded with empty cells;
- rows with more pipes than the header are ambiguous and only reported.

Running the repair on a well-formed document returns it unchanged.
"""

import logging
from dataclasses import dataclass, field

from .tables import ClassifiedLine, LineKind, build_separator, classify_lines, count_pipes

__all__ = [
    "ISSUE_LONG_ROW",
    "ISSUE_MISPLACED_SEPARATOR",
    "ISSUE_MISSING_SEPARATOR",
    "ISSUE_SEPARATOR_WIDTH",
    "ISSUE_SHORT_ROW",
    "StructuralIssue",
    "TableBlock",
    "find_table_blocks",
    "repair_tables",
]

logger = logging.getLogger(__name__)

ISSUE_MISSING_SEPARATOR = "missing-separator"
ISSUE_SEPARATOR_WIDTH = "separator-width"
ISSUE_MISPLACED_SEPARATOR = "misplaced-separator"
ISSUE_SHORT_ROW = "short-row"
ISSUE_LONG_ROW = "long-row"


@dataclass(frozen=True)
class StructuralIssue:
    """
    A table anomaly found during repair.

    Attributes:
        line_number: 1-based line number in the text that was scanned.
        code: One of the ``ISSUE_*`` constants.
        message: Human readable description.
        repaired: Whether the anomaly was fixed in the returned text.

    """

    line_number: int
    code: str
    message: str
    repaired: bool


@dataclass
class TableBlock:
    """A maximal run of consecutive table lines."""

    lines: list[ClassifiedLine] = field(default_factory=list)

    @property
    def rows(self) -> list[ClassifiedLine]:
        """Return the content rows (header included) of the block."""
        return [line for line in self.lines if line.kind is not LineKind.TABLE_SEPARATOR]

    @property
    def separator(self) -> ClassifiedLine | None:
        """Return the first separator line of the block, if any."""
        return next((line for line in self.lines if line.kind is LineKind.TABLE_SEPARATOR), None)

    @property
    def header(self) -> ClassifiedLine | None:
        """Return the first line of the block when it is a content row."""
        first = self.lines[0]
        return None if first.kind is LineKind.TABLE_SEPARATOR else first

    @property
    def column_pipes(self) -> int:
        """Return the header pipe count, or 0 for a block without a header."""
        return count_pipes(self.header.text) if self.header else 0


def find_table_blocks(text: str) -> list[TableBlock]:
    """Group the table lines of a document into blocks."""
    blocks: list[TableBlock] = []
    current: TableBlock | None = None
    for line in classify_lines(text):
        if line.kind.is_table:
            if current is None:
                current = TableBlock()
                blocks.append(current)
            current.lines.append(line)
        else:
            current = None
    return blocks


def _resize_separator(line: str, pipe_count: int) -> str:
    """Return `line` with as many cells as `pipe_count` implies, keeping existing alignments."""
    cells = [cell.strip() for cell in line.strip().strip("|").split("|")]
    wanted = max(pipe_count - 1, 1)
    cells = (cells + ["---"] * wanted)[:wanted]
    return "|" + "|".join(cell or "---" for cell in cells) + "|"


def _pad_row(line: str, missing: int) -> str:
    return line.rstrip() + " |" * missing


def repair_tables(text: str, *, pad_short_rows: bool = True) -> tuple[str, list[StructuralIssue]]:
    """
    Detect and fix malformed tables.

    This always scans the whole text. The pipeline only calls it when restoration
    was not clean, see `markguard.pipeline.repair_if_needed`.

    Args:
        text: The restored document.
        pad_short_rows: Whether rows with too few pipes are padded with empty cells.

    Returns:
        A tuple of the repaired text and the list of issues found.

    """
    lines = text.split("\n")
    replacements: dict[int, str] = {}
    insert_after: dict[int, str] = {}
    issues: list[StructuralIssue] = []

    for block in find_table_blocks(text):
        header = block.header
        if header is None:
            continue
        pipes = block.column_pipes
        separator = block.separator
        rows = block.rows

        if separator is None:
            if len(rows) < 2:  # noqa: PLR2004
                continue
            insert_after[header.index] = build_separator(pipes)
            issues.append(StructuralIssue(header.index + 1, ISSUE_MISSING_SEPARATOR, "Table header has no separator line; synthesized one.", repaired=True))
        elif separator.index != header.index + 1:
            issues.append(StructuralIssue(separator.index + 1, ISSUE_MISPLACED_SEPARATOR, "Separator line does not directly follow the table header.", repaired=False))
        elif count_pipes(separator.text) != pipes:
            replacements[separator.index] = _resize_separator(separator.text, pipes)
            issues.append(
                StructuralIssue(
                    separator.index + 1,
                    ISSUE_SEPARATOR_WIDTH,
                    f"Separator has {count_pipes(separator.text)} pipes but the header has {pipes}; resized.",
                    repaired=True,
                ),
            )

        for row in rows[1:]:
            row_pipes = count_pipes(row.text)
            if row_pipes < pipes:
                if pad_short_rows:
                    replacements[row.index] = _pad_row(row.text, pipes - row_pipes)
                issues.append(StructuralIssue(row.index + 1, ISSUE_SHORT_ROW, f"Row has {row_pipes} pipes, header has {pipes}.", repaired=pad_short_rows))
            elif row_pipes > pipes:
                issues.append(StructuralIssue(row.index + 1, ISSUE_LONG_ROW, f"Row has {row_pipes} pipes, header has {pipes}; left unchanged.", repaired=False))

    if not issues:
        return text, []

    output: list[str] = []
    for index, line in enumerate(lines):
        output.append(replacements.get(index, line))
        if index in insert_after:
            output.append(insert_after[index])

    for issue in issues:
        log = logger.info if issue.repaired else logger.warning
        log("Line %d: %s", issue.line_number, issue.message)
    return "\n".join(output), issues
