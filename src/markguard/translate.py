"""Core transform orchestration for MarkGuard: provider selection and transform calls."""

import logging
from typing import Final

from .config import MarkGuardConfig, ProviderSettings
from .errors import ConfigurationError, TransportError
from .match_state import FALLBACK_TRANSPORT_ERROR, SKIP_DRY_RUN, SKIP_EMPTY, SKIP_FULLY_PROTECTED, UnitLifecycle
from .pipeline import ProtectedDocument
from .translators import TRANSLATOR_MAPPING
from .translators.base import BaseTranslator
from .units import TranslationUnit

logger = logging.getLogger(__name__)

LOCAL_CONVERSION_PROVIDER: Final[str] = "opencc"

# Target codes offered by the language prompt, with their display names.
LANGUAGE_NAMES: Final[dict[str, str]] = {
    "ZH-HANT": "Traditional Chinese (Taiwan)",
    "ZH": "Simplified Chinese",
    "EN": "English",
    "FR": "French",
    "DE": "German",
    "JA": "Japanese",
}


def _get_translator(provider_name: str, settings: ProviderSettings | None) -> BaseTranslator:
    """
    Instantiate a translator class using a dictionary-based factory pattern.

    Args:
        provider_name: The name of the provider (e.g., "deepl", "opencc").
        settings: The provider-specific settings object from the main config.

    Returns:
        An initialized translator instance.

    Raises:
        ConfigurationError: If the provider is unknown or cannot be initialized.

    """
    provider_name_lower = provider_name.lower()
    translator_class = TRANSLATOR_MAPPING.get(provider_name_lower)
    if translator_class is None:
        msg = f"Unknown translator provider: '{provider_name}'. Available: {', '.join(sorted(TRANSLATOR_MAPPING))}."
        raise ConfigurationError(msg)

    try:
        return translator_class(settings=settings)
    except ConfigurationError:
        raise
    except (ImportError, AttributeError, KeyError, ValueError) as e:
        msg = f"Could not initialize translator '{provider_name}': {e}"
        raise ConfigurationError(msg) from e


def get_translator(provider_name: str, config: MarkGuardConfig) -> BaseTranslator:
    """
    Create a translator for one operation.

    Translators are not cached across operations: each operation reads the
    configuration as it is when the operation starts.

    Raises:
        ConfigurationError: If the provider is unknown or cannot be initialized.

    """
    translator = _get_translator(provider_name, config.provider_settings(provider_name.lower()))
    logger.debug("Provider '%s' initialized.", provider_name)
    return translator


def select_provider(target_lang: str, config: MarkGuardConfig) -> str:
    """
    Choose the provider for a target.

    Targets that only need script conversion go to the local converter, every
    other target goes to the configured translator.

    Examples:
        >>> select_provider("ZH-HANT", MarkGuardConfig())
        'opencc'
        >>> select_provider("FR", MarkGuardConfig())
        'deepl'

    """
    conversion_targets = {target.upper() for target in config.conversion_targets}
    if target_lang.upper() in conversion_targets:
        return LOCAL_CONVERSION_PROVIDER
    return config.translator


def _call(translator: BaseTranslator, text: str, target_lang: str, source_lang: str | None, *, debug: bool) -> tuple[str, int]:
    results = translator.translate([text], target_lang, source_lang, debug=debug)
    if len(results) != 1:
        msg = f"Translator returned {len(results)} results for one text."
        raise TransportError(msg)
    return results[0].translated_text, results[0].characters_used or 0


def transform_document(
    document: ProtectedDocument,
    translator: BaseTranslator,
    target_lang: str,
    source_lang: str | None = None,
    *,
    debug: bool = False,
) -> tuple[str, int]:
    """
    Send a protected document through the translator in a single call.

    Returns:
        The transformed text (placeholders still in it) and the billed characters.

    Raises:
        TransportError: If the call fails. Nothing has been written at this point.

    """
    if document.is_fully_protected:
        logger.info("Document contains only protected content. Skipping the transform call.")
        return document.safe_text, 0
    return _call(translator, document.safe_text, target_lang, source_lang, debug=debug)


def transform_units(
    unit_documents: list[tuple[TranslationUnit, ProtectedDocument]],
    translator: BaseTranslator | None,
    target_lang: str,
    source_lang: str | None = None,
    *,
    debug: bool = False,
    dry_run: bool = False,
) -> int:
    """
    Transform every unit independently.

    A transport failure only affects its own unit, which keeps its original text.

    Returns:
        The number of billed characters.

    """
    characters = 0
    failures = 0
    for unit, document in unit_documents:
        if unit.lifecycle is not UnitLifecycle.PENDING:
            continue
        if not unit.text.strip():
            unit.lifecycle, unit.skip_reason = UnitLifecycle.SKIPPED, SKIP_EMPTY
            continue
        if document.is_fully_protected:
            unit.lifecycle, unit.skip_reason = UnitLifecycle.SKIPPED, SKIP_FULLY_PROTECTED
            continue
        if dry_run or translator is None:
            unit.transformed_text = document.safe_text
            unit.lifecycle, unit.skip_reason = UnitLifecycle.DRY_RUN_SIMULATED, SKIP_DRY_RUN
            continue
        try:
            unit.transformed_text, used = _call(translator, document.safe_text, target_lang, source_lang, debug=debug)
        except TransportError as e:
            failures += 1
            unit.lifecycle, unit.skip_reason = UnitLifecycle.FALLBACK, FALLBACK_TRANSPORT_ERROR
            logger.warning("Line %d: transform failed, keeping the original text: %s", unit.line_number, e)
            continue
        characters += used
        unit.lifecycle = UnitLifecycle.TRANSLATED

    if failures:
        logger.warning("%d of %d units fell back to their original text.", failures, len(unit_documents))
    return characters
