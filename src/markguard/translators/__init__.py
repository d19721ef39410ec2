"""
Transform backend implementations.

Each translator adheres to the `BaseTranslator` interface and can be
dynamically initialized and selected based on the user's configuration.
"""

from .base import BaseTranslator, TranslationResult
from .deepl_translator import ConnectionCheck, DeepLTranslator, check_connection
from .google_translator import GoogleTranslator
from .mock_translator import MockTranslator, MockTranslatorError
from .opencc_converter import OpenCCConverter

# Central mapping from provider name to translator class.
# This allows for dynamic instantiation of translators.
TRANSLATOR_MAPPING: dict[str, type[BaseTranslator]] = {
    "deepl": DeepLTranslator,
    "opencc": OpenCCConverter,
    "google": GoogleTranslator,
    "mock": MockTranslator,
}

__all__ = [
    "TRANSLATOR_MAPPING",
    "BaseTranslator",
    "ConnectionCheck",
    "DeepLTranslator",
    "GoogleTranslator",
    "MockTranslator",
    "MockTranslatorError",
    "OpenCCConverter",
    "TranslationResult",
    "check_connection",
]
