"""Defines the base class for all translators."""

from abc import ABC, abstractmethod

from pydantic import BaseModel

from markguard.config import ProviderSettings


class TranslationResult(BaseModel):
    """The transform output for a single input text."""

    translated_text: str
    characters_used: int | None = None


class BaseTranslator(ABC):
    """
    Abstract base class for all transform backends.

    A backend receives plain text that already has every protected span replaced
    by a placeholder token, and returns plain text. It may alter whitespace or
    case inside tokens; restoration copes with that.
    """

    def __init__(self, settings: ProviderSettings | None = None) -> None:
        """
        Initialize the translator with provider-specific settings.

        Args:
            settings: A Pydantic model containing provider-specific configurations.

        """
        self.settings = settings

    @abstractmethod
    def translate(
        self,
        texts: list[str],
        target_language: str,
        source_language: str | None = None,
        *,
        debug: bool = False,
    ) -> list[TranslationResult]:
        """
        Translate a list of texts.

        Args:
            texts: A list of strings to be translated.
            target_language: The target language or script variant code (e.g., 'ZH-HANT').
            source_language: The source language code (optional).
            debug: If True, enables debug logging.

        Returns:
            A list of TranslationResult objects, one per input text.

        Raises:
            TransportError: If the backend call fails.

        """
        raise NotImplementedError

    def count_characters(self, texts: list[str]) -> int:
        """Return the number of characters a call with `texts` would bill."""
        return sum(len(text) for text in texts)
