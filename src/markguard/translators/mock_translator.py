"""A mock translator for testing purposes."""

import logging
from collections.abc import Callable

from markguard.config import ProviderSettings
from markguard.errors import TransportError

from .base import BaseTranslator, TranslationResult

logger = logging.getLogger(__name__)


class MockTranslatorError(TransportError):
    """Raised when the mock translator is configured to fail."""


class MockTranslator(BaseTranslator):
    """
    A mock translator for testing that prepends a '[MOCK]' prefix.

    A custom `transform` callable can replace the prefixing (e.g., `str.upper` to
    simulate a backend that touches everything but protected spans). It can also
    be configured to raise an exception for testing error handling.
    """

    def __init__(
        self,
        settings: ProviderSettings | None = None,
        *,
        return_error: bool = False,
        transform: Callable[[str], str] | None = None,
        fail_on: Callable[[str], bool] | None = None,
    ) -> None:
        """
        Initialize the Mock Translator.

        Args:
            settings: Provider-specific configurations (ignored).
            return_error: If True, the translate method will raise an exception.
            transform: Optional function applied to each text instead of the prefix.
            fail_on: Optional predicate; texts for which it returns True make the call fail.

        """
        super().__init__(settings)
        self.return_error = return_error
        self.transform = transform
        self.fail_on = fail_on
        self.calls: list[list[str]] = []

    def translate(
        self,
        texts: list[str],
        target_language: str,
        source_language: str | None = None,
        *,
        debug: bool = False,
    ) -> list[TranslationResult]:
        """
        Prepend '[MOCK] ' to each text (or apply `transform`) to simulate translation.

        Raises:
            MockTranslatorError: If `return_error` was set, or `fail_on` matches a text.

        """
        _ = source_language
        self.calls.append(list(texts))

        if self.return_error or (self.fail_on is not None and any(self.fail_on(text) for text in texts)):
            msg = "Mock translator was configured to fail."
            raise MockTranslatorError(msg, status_code=500)

        if not texts:
            return []

        results: list[TranslationResult] = []
        for text in texts:
            translated = self.transform(text) if self.transform else f"[MOCK] {text}"
            results.append(TranslationResult(translated_text=translated, characters_used=len(text)))

        if debug:
            logger.debug(
                "MockTranslator processed %d texts for target '%s'.",
                len(texts),
                target_language,
            )

        return results
