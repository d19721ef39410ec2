"""
Splits a document into independently transformable units.

Used for cell granularity: every table cell and every non-table line becomes its
own unit, while structure (pipes, separator lines, code fences and their content,
blank lines, leading and trailing whitespace) passes through untouched. A unit that
cannot be transformed simply keeps its original text, so the document can always be
reassembled.
"""

from dataclasses import dataclass, field

import regex

from .match_state import SkipReason, UnitLifecycle
from .restoration import RestorationReport
from .tables import UNESCAPED_PIPE_RE, LineKind, classify_lines

__all__ = ["DocumentLayout", "TranslationUnit", "split_into_units"]

_EDGE_WHITESPACE_RE = regex.compile(r"^(\s*)(.*?)(\s*)$", regex.DOTALL)


@dataclass
class TranslationUnit:
    """
    A piece of the document transformed on its own.

    Attributes:
        text: The unit's text without surrounding whitespace.
        leading: Whitespace before the text, kept as is.
        trailing: Whitespace after the text, kept as is.
        line_number: 1-based line the unit comes from.
        in_table: Whether the unit is a table cell.
        transformed_text: The raw transform output, placeholders still in it.
        translated_text: The restored transform result, once available.
        lifecycle: Where the unit is in the pipeline.
        skip_reason: Why the unit was not transformed, if it was not.
        report: Restoration diagnostics for this unit.

    """

    text: str
    leading: str = ""
    trailing: str = ""
    line_number: int = 0
    in_table: bool = False
    transformed_text: str | None = None
    translated_text: str | None = None
    lifecycle: UnitLifecycle = UnitLifecycle.PENDING
    skip_reason: SkipReason | None = None
    report: RestorationReport | None = None

    @property
    def output(self) -> str:
        """Return the text to put back into the document."""
        body = self.translated_text if self.translated_text is not None else self.text
        return f"{self.leading}{body}{self.trailing}"

    @classmethod
    def from_raw(cls, raw: str, *, line_number: int, in_table: bool) -> "TranslationUnit":
        """Build a unit from raw text, separating the surrounding whitespace."""
        match = _EDGE_WHITESPACE_RE.match(raw)
        leading, text, trailing = match.groups() if match else ("", raw, "")
        return cls(text=text, leading=leading, trailing=trailing, line_number=line_number, in_table=in_table)


@dataclass
class DocumentLayout:
    """A document as an ordered mix of literal text and translation units."""

    parts: list[str | TranslationUnit] = field(default_factory=list)

    def units(self) -> list[TranslationUnit]:
        """Return the translation units in document order."""
        return [part for part in self.parts if isinstance(part, TranslationUnit)]

    def assemble(self) -> str:
        """Join every part back into a document."""
        return "".join(part.output if isinstance(part, TranslationUnit) else part for part in self.parts)


def _split_row(layout: DocumentLayout, line: str, line_number: int) -> None:
    position = 0
    for match in UNESCAPED_PIPE_RE.finditer(line):
        cell = line[position : match.start()]
        if cell:
            layout.parts.append(TranslationUnit.from_raw(cell, line_number=line_number, in_table=True))
        layout.parts.append("|")
        position = match.end()
    if position < len(line):
        layout.parts.append(TranslationUnit.from_raw(line[position:], line_number=line_number, in_table=True))


def split_into_units(text: str) -> DocumentLayout:
    """
    Split a document into translation units.

    Examples:
        >>> layout = split_into_units("| a | b |")
        >>> [unit.text for unit in layout.units()]
        ['a', 'b']

    """
    layout = DocumentLayout()
    classified = classify_lines(text)
    for position, line in enumerate(classified):
        if position:
            layout.parts.append("\n")
        line_number = line.index + 1
        if line.kind in (LineKind.TABLE_HEADER, LineKind.TABLE_ROW):
            _split_row(layout, line.text, line_number)
        elif line.kind is LineKind.PROSE and line.text.strip():
            layout.parts.append(TranslationUnit.from_raw(line.text, line_number=line_number, in_table=False))
        elif line.text:
            layout.parts.append(line.text)
    return layout
