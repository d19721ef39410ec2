"""Local Chinese script conversion using OpenCC."""

import logging

from opencc import OpenCC

from markguard.config import OpenCCSettings, ProviderSettings
from markguard.errors import ConfigurationError

from .base import BaseTranslator, TranslationResult

logger = logging.getLogger(__name__)


class OpenCCConverter(BaseTranslator):
    """
    Converts Simplified Chinese to Traditional Chinese (Taiwan phrasing by default).

    Runs locally without any network I/O. The target language is only used for
    routing; the conversion itself is fixed by the configured profile.
    """

    def __init__(self, settings: ProviderSettings | None = None) -> None:
        """
        Initialize the converter.

        Args:
            settings: OpenCC settings; ``conversion`` selects the profile (e.g., 's2twp').

        Raises:
            ConfigurationError: If the conversion profile is unknown.

        """
        if settings is None:
            settings = OpenCCSettings()
        elif not isinstance(settings, OpenCCSettings):
            settings = OpenCCSettings(**settings.model_dump())
        super().__init__(settings)
        self.conversion = settings.conversion
        try:
            self._converter = OpenCC(self.conversion)
        except (ValueError, FileNotFoundError, OSError) as e:
            msg = f"Unknown OpenCC conversion profile '{self.conversion}': {e}"
            raise ConfigurationError(msg) from e

    def convert(self, text: str) -> str:
        """Convert a single string."""
        return self._converter.convert(text)

    def translate(
        self,
        texts: list[str],
        target_language: str,
        source_language: str | None = None,
        *,
        debug: bool = False,
    ) -> list[TranslationResult]:
        """Convert each text with the configured profile."""
        _ = source_language
        if debug:
            logger.debug("OpenCC '%s' converting %d texts for target '%s'.", self.conversion, len(texts), target_language)
        return [TranslationResult(translated_text=self.convert(text), characters_used=0) for text in texts]

    def count_characters(self, texts: list[str]) -> int:
        """Local conversion is never billed."""
        _ = texts
        return 0
