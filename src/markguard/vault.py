"""
Placeholder tokens and the stores that map them back to protected text.

A token has the shape ``<M><TAG><M><ordinal><M><TAG><M>``:

- ``<M>`` is a per-operation marker built only from the letters ``J Q V X Z``.
  None of those letters appear in a kind tag, and the marker is chosen so that it
  never occurs in the source document (case and whitespace ignored). A token can
  therefore never collide with document text, and restored text never contains
  anything that looks like a token.
- ``<TAG>`` is the `SpanKind` tag, written twice so that a token with one damaged
  half can still be tied to its kind.
- ``<ordinal>`` comes from a single counter shared by every kind within one
  operation, so it identifies an entry on its own.

Usage example:
    >>> generator = TokenGenerator("Call the API.")
    >>> generator.next_token(SpanKind.KEYWORD).text
    'XXKEYWORDXX0XXKEYWORDXX'
"""

import random
from collections import Counter
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Final

import regex

from .types import Span, SpanKind

MARKER_ALPHABET: Final[str] = "JQVXZ"
_PREFERRED_MARKERS: Final[tuple[str, ...]] = ("XX", "QQ", "ZZ", "JJ", "VV")
_RANDOM_ATTEMPTS_PER_LENGTH = 32


def choose_marker(source_text: str, rng: random.Random | None = None) -> str:
    """
    Pick a marker that does not occur anywhere in the source text.

    Whitespace is removed and case is folded before the check, so the marker
    cannot be found in the document even by the tolerant restoration patterns.

    Args:
        source_text: The document about to be protected.
        rng: Optional random source for the fallback markers.

    Returns:
        A marker made of letters from `MARKER_ALPHABET`.

    """
    folded = "".join(source_text.split()).casefold()
    for candidate in _PREFERRED_MARKERS:
        if candidate.casefold() not in folded:
            return candidate

    rng = rng or random.Random()  # noqa: S311
    length = 3
    while True:
        for _ in range(_RANDOM_ATTEMPTS_PER_LENGTH):
            candidate = "".join(rng.choice(MARKER_ALPHABET) for _ in range(length))
            if candidate.casefold() not in folded:
                return candidate
        length += 1


@dataclass(frozen=True)
class PlaceholderToken:
    """A synthetic marker substituted for a protected span before the transform runs."""

    marker: str
    kind: SpanKind
    ordinal: int

    @property
    def text(self) -> str:
        """Return the textual form inserted into the document."""
        m, tag = self.marker, self.kind.tag
        return f"{m}{tag}{m}{self.ordinal}{m}{tag}{m}"

    def tolerant_pattern(self) -> regex.Pattern[str]:
        """
        Compile a pattern matching this token with whitespace inserted anywhere and any casing.

        Returns:
            A compiled, case-insensitive pattern.

        """
        return regex.compile(r"\s*".join(regex.escape(char) for char in self.text), regex.IGNORECASE)

    def __str__(self) -> str:
        """Return the textual form of the token."""
        return self.text


def token_pattern(marker: str) -> regex.Pattern[str]:
    """Compile a pattern matching any intact token built with the given marker."""
    m = regex.escape(marker)
    return regex.compile(rf"{m}(?P<tag>[A-Z]+){m}(?P<ordinal>\d+){m}(?P=tag){m}")


class TokenGenerator:
    """
    Issues fresh placeholder tokens for a single protect operation.

    A generator is created per operation and passed explicitly through the
    protection call chain; ordinals are never shared between operations.
    """

    def __init__(self, source_text: str = "", *, marker: str | None = None, rng: random.Random | None = None) -> None:
        """
        Initialize the generator.

        Args:
            source_text: The document to be protected, used to pick a collision-free marker.
            marker: An explicit marker to use instead of choosing one.
            rng: Optional random source for marker selection.

        """
        if marker is not None and any(char not in MARKER_ALPHABET for char in marker):
            msg = f"Marker '{marker}' must only use the letters '{MARKER_ALPHABET}'."
            raise ValueError(msg)
        self.marker = marker or choose_marker(source_text, rng)
        self._next_ordinal = 0

    @property
    def issued(self) -> int:
        """Return the number of tokens issued so far."""
        return self._next_ordinal

    def next_token(self, kind: SpanKind) -> PlaceholderToken:
        """Issue the next token for the given kind."""
        token = PlaceholderToken(marker=self.marker, kind=kind, ordinal=self._next_ordinal)
        self._next_ordinal += 1
        return token


@dataclass(frozen=True)
class VaultEntry:
    """A protected span and the token standing in for it."""

    token: PlaceholderToken
    span: Span

    @property
    def replacement(self) -> str:
        """Return the text the token restores to."""
        return self.span.original_text


@dataclass(frozen=True)
class SeparatorEntry:
    """
    A table separator line pulled out of the document.

    Attributes:
        token: The token occupying the separator's line in the protected text.
        line: The exact original separator line.
        pipe_count: The number of pipe delimiters in the original line.
        table_index: Position of the table the line belonged to among all table
            blocks of the document, or None when unknown.

    """

    token: PlaceholderToken
    line: str
    pipe_count: int
    table_index: int | None = None

    @property
    def replacement(self) -> str:
        """Return the text the token restores to."""
        return self.line


class _TokenStore:
    """Shared behaviour of the placeholder vault and the separator set."""

    def __init__(self, marker: str) -> None:
        self.marker = marker
        self._entries: dict[str, VaultEntry | SeparatorEntry] = {}
        self._pattern = token_pattern(marker)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, token_text: object) -> bool:
        return token_text in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def get(self, token_text: str) -> VaultEntry | SeparatorEntry | None:
        """Return the entry for a token, or None if it is unknown."""
        return self._entries.get(token_text)

    def discard(self, token_text: str) -> None:
        """Remove an entry if present."""
        self._entries.pop(token_text, None)

    def count_by_kind(self) -> Counter[SpanKind]:
        """Count the stored entries per span kind."""
        return Counter(entry.token.kind for entry in self._entries.values())

    def absorb(self, text: str) -> str:
        """
        Expand every token of this store found in `text` and drop those entries.

        Used when a later rule claims a region that already contains tokens: the
        outer span keeps the fully expanded original text, and the inner tokens
        no longer exist in the protected document.
        """

        def _expand(match: regex.Match[str]) -> str:
            entry = self._entries.pop(match.group(0), None)
            return entry.replacement if entry is not None else match.group(0)

        return self._pattern.sub(_expand, text)


class PlaceholderVault(_TokenStore):
    """
    Maps placeholder tokens to the protected spans they replaced.

    Entries are kept in insertion order for readable reports only; restoration
    never depends on that order.
    """

    def add(self, token: PlaceholderToken, span: Span) -> VaultEntry:
        """Store a span under its token."""
        if token.kind is not span.kind:
            msg = f"Token kind '{token.kind.tag}' does not match span kind '{span.kind.tag}'."
            raise ValueError(msg)
        entry = VaultEntry(token=token, span=span)
        self._entries[token.text] = entry
        return entry

    def entries(self) -> list[VaultEntry]:
        """Return all stored entries."""
        return [entry for entry in self._entries.values() if isinstance(entry, VaultEntry)]


class SeparatorSet(_TokenStore):
    """Maps separator tokens to the original table separator lines."""

    def add(self, token: PlaceholderToken, line: str, pipe_count: int, table_index: int | None = None) -> SeparatorEntry:
        """Store a separator line under its token."""
        if token.kind is not SpanKind.TABLE_SEPARATOR:
            msg = f"Separator tokens must have kind '{SpanKind.TABLE_SEPARATOR.tag}', got '{token.kind.tag}'."
            raise ValueError(msg)
        entry = SeparatorEntry(token=token, line=line, pipe_count=pipe_count, table_index=table_index)
        self._entries[token.text] = entry
        return entry

    def entries(self) -> list[SeparatorEntry]:
        """Return all stored separator entries."""
        return [entry for entry in self._entries.values() if isinstance(entry, SeparatorEntry)]
