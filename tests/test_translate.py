"""Tests for provider selection and the transform calls."""

import unittest
from unittest.mock import MagicMock, patch

import pytest

from markguard.config import DeepLSettings, MarkGuardConfig
from markguard.errors import ConfigurationError, TransportError
from markguard.match_state import FALLBACK_TRANSPORT_ERROR, SKIP_DRY_RUN, SKIP_EMPTY, SKIP_FULLY_PROTECTED, UnitLifecycle
from markguard.pipeline import protect
from markguard.translate import _get_translator, get_translator, select_provider, transform_document, transform_units
from markguard.translators import MockTranslator, TranslationResult
from markguard.translators.deepl_translator import DeepLTranslator
from markguard.units import TranslationUnit


def _unit_documents(*texts: str) -> list:
    units = [TranslationUnit(text=text, line_number=index + 1) for index, text in enumerate(texts)]
    return [(unit, protect(unit.text)) for unit in units]


class TestProviderSelection(unittest.TestCase):
    """Test suite for choosing and creating translators."""

    def test_conversion_targets_go_to_opencc(self) -> None:
        """1. Routing: Script-conversion targets are handled locally."""
        config = MarkGuardConfig()
        assert select_provider("ZH-HANT", config) == "opencc"
        assert select_provider("zh-hant", config) == "opencc"
        assert select_provider("FR", config) == "deepl"

    def test_configured_translator_is_used(self) -> None:
        """2. Routing: Other targets use the configured translator."""
        config = MarkGuardConfig(translator="google", conversion_targets=[])
        assert select_provider("ZH-HANT", config) == "google"

    def test_unknown_provider(self) -> None:
        """3. Factory: An unknown provider is a configuration error."""
        with pytest.raises(ConfigurationError, match="Unknown translator provider"):
            get_translator("babel", MarkGuardConfig())

    def test_factory_creates_configured_translator(self) -> None:
        """4. Factory: Provider settings from the config are passed through."""
        config = MarkGuardConfig(providers={"deepl": DeepLSettings(api_key="k", api_type="pro")})
        translator = get_translator("DeepL", config)
        assert isinstance(translator, DeepLTranslator)
        assert translator.endpoint == "https://api.deepl.com/v2/translate"

    def test_factory_wraps_initialization_errors(self) -> None:
        """5. Factory: Unexpected initialization errors become configuration errors."""
        failing = MagicMock(side_effect=ValueError("boom"))
        with patch.dict("markguard.translate.TRANSLATOR_MAPPING", {"mock": failing}), pytest.raises(ConfigurationError, match="boom"):
            _get_translator("mock", None)


class TestTransformDocument(unittest.TestCase):
    """Test suite for whole-document transform calls."""

    def test_sends_safe_text(self) -> None:
        """1. Call: The translator receives the protected text once."""
        document = protect("Use `code` here.")
        translator = MockTranslator(transform=str.upper)
        text, characters = transform_document(document, translator, "FR")
        assert translator.calls == [[document.safe_text]]
        assert text == document.safe_text.upper()
        assert characters == len(document.safe_text)

    def test_fully_protected_skips_call(self) -> None:
        """2. Shortcut: A document with nothing to translate is not sent."""
        document = protect("`only code`")
        translator = MockTranslator()
        assert transform_document(document, translator, "FR") == (document.safe_text, 0)
        assert translator.calls == []

    def test_transport_error_propagates(self) -> None:
        """3. Errors: A failing backend aborts the document."""
        with pytest.raises(TransportError):
            transform_document(protect("Hello"), MockTranslator(return_error=True), "FR")

    def test_wrong_result_count(self) -> None:
        """4. Errors: A backend returning extra results is a transport error."""
        translator = MagicMock()
        translator.translate.return_value = [TranslationResult(translated_text="a"), TranslationResult(translated_text="b")]
        with pytest.raises(TransportError, match="2 results"):
            transform_document(protect("Hello"), translator, "FR")


class TestTransformUnits(unittest.TestCase):
    """Test suite for per-unit transform calls."""

    def test_lifecycles(self) -> None:
        """1. Lifecycle: Each unit ends up translated, skipped or fallen back."""
        pairs = _unit_documents("Hello", "   ", "`code`", "fail here")
        translator = MockTranslator(transform=str.upper, fail_on=lambda text: "fail" in text)

        characters = transform_units(pairs, translator, "FR")

        units = [unit for unit, _ in pairs]
        assert [unit.lifecycle for unit in units] == [UnitLifecycle.TRANSLATED, UnitLifecycle.SKIPPED, UnitLifecycle.SKIPPED, UnitLifecycle.FALLBACK]
        assert units[1].skip_reason == SKIP_EMPTY
        assert units[2].skip_reason == SKIP_FULLY_PROTECTED
        assert units[3].skip_reason == FALLBACK_TRANSPORT_ERROR
        assert units[0].transformed_text == "HELLO"
        assert units[3].transformed_text is None
        assert characters == len("Hello")

    def test_dry_run(self) -> None:
        """2. Dry Run: Units keep their protected text and no call is made."""
        pairs = _unit_documents("Hello `x`")
        translator = MockTranslator()
        assert transform_units(pairs, translator, "FR", dry_run=True) == 0
        unit, document = pairs[0]
        assert unit.lifecycle is UnitLifecycle.DRY_RUN_SIMULATED
        assert unit.skip_reason == SKIP_DRY_RUN
        assert unit.transformed_text == document.safe_text
        assert translator.calls == []

    def test_processed_units_are_not_resent(self) -> None:
        """3. Idempotence: Units that left PENDING are left alone."""
        pairs = _unit_documents("Hello")
        pairs[0][0].lifecycle = UnitLifecycle.TRANSLATED
        translator = MockTranslator()
        transform_units(pairs, translator, "FR")
        assert translator.calls == []
