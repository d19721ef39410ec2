"""Defines shared data structures and types for MarkGuard."""

from dataclasses import dataclass
from enum import Enum


class SpanKind(str, Enum):
    """
    The kinds of protected regions, declared in protection priority order.

    Table structure is claimed first by the table guard, then each regex rule
    runs in the order below, so an earlier kind always claims text before a
    later kind can see it. The string value is the tag embedded in placeholder
    tokens.
    """

    TABLE_SEPARATOR = "TABLESEP"
    TABLE_PIPE = "TABLEPIPE"
    CODE_BLOCK = "CODEBLOCK"
    INLINE_CODE = "INLINECODE"
    WIKI_LINK = "WIKILINK"
    MD_LINK = "MDLINK"
    CALLOUT = "CALLOUT"
    TAG = "TAG"
    BLOCK_REF = "BLOCKREF"
    HTML_TAG = "HTMLTAG"
    FILE_PATH = "FILEPATH"
    KEYWORD = "KEYWORD"

    @property
    def tag(self) -> str:
        """Return the tag used inside placeholder tokens."""
        return self.value

    @property
    def priority(self) -> int:
        """Return the position of this kind in the protection order (lower runs first)."""
        return _PRIORITY[self]

    @property
    def is_table(self) -> bool:
        """Check if this kind belongs to table structure rather than inline content."""
        return self in (SpanKind.TABLE_SEPARATOR, SpanKind.TABLE_PIPE)


_PRIORITY: dict[SpanKind, int] = {kind: index for index, kind in enumerate(SpanKind)}


@dataclass(frozen=True)
class Span:
    """
    A contiguous region of text that must survive the transform unchanged.

    Attributes:
        kind: The rule category that claimed the region.
        original_text: The exact text of the region, with any nested placeholders expanded.
        start: Start offset of the region in the text the rule was applied to.
        end: End offset (exclusive) of the region in the text the rule was applied to.

    """

    kind: SpanKind
    original_text: str
    start: int
    end: int

    def __post_init__(self) -> None:
        """Validate that the span is not empty."""
        if not self.original_text:
            msg = "A protected span cannot be empty."
            raise ValueError(msg)
