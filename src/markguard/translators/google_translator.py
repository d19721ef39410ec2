"""Translator implementation using the Google Translate API."""
# Implementation for the Google Translate API using deep-translator

from deep_translator import GoogleTranslator as DeepGoogleTranslator  # type: ignore[import-untyped]

from markguard.config import ProviderSettings
from markguard.errors import TransportError

from .base import BaseTranslator, TranslationResult

# DeepL-style codes that differ from Google's.
_LANGUAGE_CODE_MAP = {
    "ZH-HANT": "zh-TW",
    "ZH-HANS": "zh-CN",
    "ZH": "zh-CN",
    "EN-US": "en",
    "EN-GB": "en",
    "PT-BR": "pt",
    "PT-PT": "pt",
}


def to_google_code(language: str) -> str:
    """
    Map a DeepL-style language code to the code Google expects.

    Examples:
        >>> to_google_code("ZH-HANT")
        'zh-TW'
        >>> to_google_code("FR")
        'fr'

    """
    return _LANGUAGE_CODE_MAP.get(language.upper(), language.lower())


class GoogleTranslator(BaseTranslator):
    """A translator using the Google Translate API via the 'deep-translator' library."""

    def __init__(self, settings: ProviderSettings | None = None) -> None:
        """
        Initialize the Google Translator.

        Args:
            settings: Provider-specific configurations, which are ignored by this provider.

        """
        super().__init__(settings)
        # deep-translator handles the client setup internally.

    def translate(
        self,
        texts: list[str],
        target_language: str,
        source_language: str | None = None,
        *,
        debug: bool = False,
    ) -> list[TranslationResult]:
        """
        Translate a list of texts using deep-translator.

        Raises:
            TransportError: If the translation request fails.

        """
        _ = debug
        if not texts:
            return []

        source = to_google_code(source_language) if source_language else "auto"
        try:
            # deep-translator's translate_batch is a loop of single requests.
            translated_texts = DeepGoogleTranslator(source=source, target=to_google_code(target_language)).translate_batch(texts)
        except Exception as e:
            msg = f"deep-translator (Google) request failed: {e}"
            raise TransportError(msg) from e

        results = []
        for i, text in enumerate(texts):
            translated = translated_texts[i] if translated_texts and i < len(translated_texts) else None
            results.append(TranslationResult(translated_text=translated if translated is not None else text, characters_used=len(text)))
        return results
