"""
Detects the regions of a Markdown document that must pass through a transform untouched.

Each `ProtectionRule` pairs a `SpanKind` with a pattern. Rules run in the order of
`SpanKind`, one global substitution pass per rule, so an earlier kind always claims
its text before a later rule can see it. Every match is replaced by a placeholder
token and recorded in the vault.

When a match contains tokens issued earlier (for example an inline code span that
sits in a table row whose pipes were already claimed), those tokens are absorbed:
the stored text is the fully expanded original and the inner entries are dropped.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import regex

from .types import Span, SpanKind
from .vault import PlaceholderVault, SeparatorSet, TokenGenerator, token_pattern

__all__ = [
    "DEFAULT_RULES",
    "ProtectionRule",
    "SpanDetector",
    "keyword_rule",
    "parse_keywords",
]

logger = logging.getLogger(__name__)

# Lookarounds that reject a neighbouring word character, e.g. (?<!\w) or (?<![\w#&]).
_WORD_LOOKBEHIND_RE = regex.compile(r"\(\?<!(?:\\w|\[[^\]]*?\\w[^\]]*\])\)")
_WORD_LOOKAHEAD_RE = regex.compile(r"\(\?!(?:\\w|\[[^\]]*?\\w[^\]]*\])\)")


@dataclass(frozen=True)
class ProtectionRule:
    """
    A single detection rule.

    Attributes:
        kind: The span kind assigned to every match of this rule.
        pattern: The regular expression source (``regex`` module syntax).
        flags: Flags passed when compiling the pattern.
        stops_at_tokens: Whether a match ends where a placeholder token begins
            instead of absorbing it.

    """

    kind: SpanKind
    pattern: str
    flags: int = 0
    stops_at_tokens: bool = False
    compiled: regex.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Compile the pattern once, surfacing syntax errors at construction time."""
        object.__setattr__(self, "compiled", regex.compile(self.pattern, self.flags))

    def compile_for(self, marker: str) -> regex.Pattern[str]:
        """
        Compile the pattern so that a placeholder token next to a match counts as a word boundary.

        Tokens are made of word characters, so a lookaround such as ``(?<!\\w)``
        would otherwise reject a keyword written directly against a table pipe,
        as in ``|API|REST|``.
        """
        m = regex.escape(marker)
        token_end = rf"(?-i:(?<={m}[A-Z]+{m}))"
        token_start = rf"(?-i:(?={m}[A-Z]+{m}\d))"
        pattern = _WORD_LOOKBEHIND_RE.sub(lambda match: f"(?:{token_end}|{match.group(0)})", self.pattern)
        pattern = _WORD_LOOKAHEAD_RE.sub(lambda match: f"(?:{token_start}|{match.group(0)})", pattern)
        return regex.compile(pattern, self.flags)


_WINDOWS_PATH = r"(?<![\w\\])[A-Za-z]:\\(?:[^\s\\/:*?\"<>|]+\\)*[^\s\\/:*?\"<>|]*"
_RELATIVE_PATH = r"(?<![\w/.])\.{1,2}/(?:[^\s/]+/)*[^\s/]*"
_POSIX_PATH = r"(?<![\w/.:<])/(?:[^\s/]+/)*[^\s/]+"

DEFAULT_RULES: tuple[ProtectionRule, ...] = (
    ProtectionRule(SpanKind.CODE_BLOCK, r"```[\s\S]*?```"),
    ProtectionRule(SpanKind.INLINE_CODE, r"`[^`\n]+?`"),
    ProtectionRule(SpanKind.WIKI_LINK, r"!?\[\[[^\]\n]+\]\]"),
    ProtectionRule(SpanKind.MD_LINK, r"!?\[[^\]\n]*\]\([^)\n]+\)"),
    ProtectionRule(SpanKind.CALLOUT, r"^>[ \t]*\[![\w-]+\][^\n]*", regex.MULTILINE),
    ProtectionRule(SpanKind.TAG, r"(?<![\w#&])#[\w/-]+", stops_at_tokens=True),
    ProtectionRule(SpanKind.BLOCK_REF, r"(?<!\w)\^[\w-]+", stops_at_tokens=True),
    ProtectionRule(SpanKind.HTML_TAG, r"<!--[\s\S]*?-->|</?[A-Za-z][^<>\n]*>"),
    ProtectionRule(SpanKind.FILE_PATH, rf"{_WINDOWS_PATH}|{_RELATIVE_PATH}|{_POSIX_PATH}", stops_at_tokens=True),
)


def parse_keywords(raw: str | Iterable[str]) -> list[str]:
    """
    Normalize a keyword configuration into a clean list.

    Accepts either the comma-separated string form or an iterable of strings.
    Entries are trimmed, empty entries dropped and duplicates removed
    (case-insensitively, first spelling wins).

    Examples:
        >>> parse_keywords(" API, SDK ,, api")
        ['API', 'SDK']

    """
    items = raw.split(",") if isinstance(raw, str) else list(raw)
    seen: set[str] = set()
    keywords: list[str] = []
    for item in items:
        keyword = item.strip()
        if not keyword or keyword.casefold() in seen:
            continue
        seen.add(keyword.casefold())
        keywords.append(keyword)
    return keywords


def keyword_rule(keywords: Iterable[str]) -> ProtectionRule | None:
    """
    Build the keyword rule for a list of technical terms.

    The longest keywords come first in the alternation so that ``Node.js`` wins
    over ``Node``. Matching ignores case and each keyword must stand on its own
    (no word character directly before or after it). The matched text keeps its
    original casing when restored.

    Returns:
        The rule, or None when there are no keywords.

    """
    cleaned = parse_keywords(list(keywords))
    if not cleaned:
        return None
    ordered = sorted(cleaned, key=len, reverse=True)
    alternation = "|".join(regex.escape(keyword) for keyword in ordered)
    return ProtectionRule(SpanKind.KEYWORD, rf"(?<!\w)(?:{alternation})(?!\w)", regex.IGNORECASE)


class SpanDetector:
    """Applies the ordered protection rules to a document, filling a vault."""

    def __init__(self, rules: Sequence[ProtectionRule] | None = None, keywords: Iterable[str] = ()) -> None:
        """
        Initialize the detector.

        Args:
            rules: The structural rules to apply. Defaults to `DEFAULT_RULES`.
            keywords: Technical terms protected after all structural rules.

        """
        base_rules = list(DEFAULT_RULES if rules is None else rules)
        extra = keyword_rule(keywords)
        if extra is not None:
            base_rules.append(extra)
        # sorted() is stable, so rules sharing a kind keep their given order.
        self.rules: tuple[ProtectionRule, ...] = tuple(sorted(base_rules, key=lambda rule: rule.kind.priority))

    def detect(
        self,
        text: str,
        vault: PlaceholderVault,
        separators: SeparatorSet,
        generator: TokenGenerator,
    ) -> tuple[str, list[Span]]:
        """
        Replace every protected region of `text` with a placeholder token.

        Args:
            text: The document, possibly already containing table tokens.
            vault: Receives one entry per detected span.
            separators: Separator store, consulted when a match absorbs a separator token.
            generator: The per-operation token source.

        Returns:
            A tuple of the protected text and the spans that were recorded.

        """
        spans: list[Span] = []
        tokens = token_pattern(generator.marker)
        for rule in self.rules:
            text = self._apply_rule(rule, rule.compile_for(generator.marker), tokens, text, vault, separators, generator, spans)
        logger.debug("Span detection produced %d spans; %d vault entries remain.", len(spans), len(vault))
        return text, spans

    @staticmethod
    def _apply_rule(  # noqa: PLR0913
        rule: ProtectionRule,
        pattern: regex.Pattern[str],
        tokens: regex.Pattern[str],
        text: str,
        vault: PlaceholderVault,
        separators: SeparatorSet,
        generator: TokenGenerator,
        spans: list[Span],
    ) -> str:
        def _claim(match: regex.Match[str]) -> str:
            matched, tail = match.group(0), ""
            if rule.stops_at_tokens:
                inner = tokens.search(matched)
                if inner is not None:
                    matched, tail = matched[: inner.start()], matched[inner.start() :]
                    if not matched or not pattern.fullmatch(matched):
                        return match.group(0)
            if not matched:
                return matched
            expanded = separators.absorb(vault.absorb(matched))
            end = match.start() + len(matched)
            span = Span(kind=rule.kind, original_text=expanded, start=match.start(), end=end)
            token = generator.next_token(rule.kind)
            vault.add(token, span)
            spans.append(span)
            return token.text + tail

        return pattern.sub(_claim, text)
