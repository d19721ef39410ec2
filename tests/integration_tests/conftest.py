"""Pytest configuration and fixtures for integration tests."""

import os

import pytest

from markguard.config import DeepLSettings, OpenCCSettings, ProviderSettings
from markguard.translators.deepl_translator import DeepLTranslator
from markguard.translators.google_translator import GoogleTranslator
from markguard.translators.mock_translator import MockTranslator
from markguard.translators.opencc_converter import OpenCCConverter


def has_deepl_api_key() -> bool:
    """Check if a DeepL API key is available."""
    return bool(os.getenv("DEEPL_AUTH_KEY"))


def has_google_access() -> bool:
    """Check if network tests against Google Translate are enabled."""
    return bool(os.getenv("GOOGLE_TRANSLATE_API_KEY"))


@pytest.fixture
def mock_translator() -> MockTranslator:
    """
    Provide a MockTranslator that upper-cases everything it receives.

    This translator does not require API keys and touches every character
    the pipeline lets through, like a real backend would.
    """
    return MockTranslator(settings=ProviderSettings(), transform=str.upper)


@pytest.fixture
def opencc_converter() -> OpenCCConverter:
    """Provide the local OpenCC converter with Taiwan phrasing."""
    return OpenCCConverter(settings=OpenCCSettings(conversion="s2twp"))


@pytest.fixture
def deepl_translator() -> DeepLTranslator:
    """
    Provide DeepLTranslator if an API key is available.

    Skips the test if the DEEPL_AUTH_KEY environment variable is not set.
    Keys ending in ':fx' belong to the free plan.
    """
    api_key = os.getenv("DEEPL_AUTH_KEY")
    if not api_key:
        pytest.skip("DeepL API key not available (set DEEPL_AUTH_KEY)")
    api_type = "free" if api_key.endswith(":fx") else "pro"
    return DeepLTranslator(settings=DeepLSettings(api_key=api_key, api_type=api_type, retry_delay=1))


@pytest.fixture
def google_translator() -> GoogleTranslator:
    """
    Provide GoogleTranslator if network tests are enabled.

    Skips the test if GOOGLE_TRANSLATE_API_KEY environment variable is not set.
    Note: GoogleTranslator uses deep-translator which doesn't require explicit API key.
    """
    if not has_google_access():
        pytest.skip("Google Translate access not enabled (set GOOGLE_TRANSLATE_API_KEY)")
    return GoogleTranslator(settings=ProviderSettings())
