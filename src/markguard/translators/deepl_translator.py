"""Translator implementation using the DeepL REST API."""

import logging
import time
from dataclasses import dataclass
from typing import Any, Final

import requests

from markguard.config import DeepLSettings, ProviderSettings
from markguard.errors import ConfigurationError, TransportError

from .base import BaseTranslator, TranslationResult

logger = logging.getLogger(__name__)

FREE_ENDPOINT: Final[str] = "https://api-free.deepl.com"
PRO_ENDPOINT: Final[str] = "https://api.deepl.com"
TRANSLATE_PATH: Final[str] = "/v2/translate"

# Status codes worth retrying: rate limiting and transient server errors.
_RETRYABLE_STATUS: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})
_QUOTA_EXCEEDED_STATUS: Final[int] = 456

# Optional request parameters, sent only when configured.
_OPTIONAL_PARAMS: Final[tuple[str, ...]] = (
    "preserve_formatting",
    "split_sentences",
    "tag_handling",
    "formality",
    "glossary_id",
    "style_id",
    "context",
)

CONNECTION_TEST_TEXT: Final[str] = "Hello"
CONNECTION_TEST_TARGET: Final[str] = "ZH-HANT"


@dataclass(frozen=True)
class ConnectionCheck:
    """The outcome of a credential check against the DeepL API."""

    success: bool
    message: str
    details: Any = None


def endpoint_for(settings: DeepLSettings) -> str:
    """Return the translate URL for the configured API plan."""
    base = PRO_ENDPOINT if settings.api_type == "pro" else FREE_ENDPOINT
    return f"{base}{TRANSLATE_PATH}"


class DeepLTranslator(BaseTranslator):
    """A translator calling DeepL's ``/v2/translate`` endpoint with `requests`."""

    def __init__(self, settings: ProviderSettings | None = None, *, session: requests.Session | None = None) -> None:
        """
        Initialize the DeepL translator.

        Args:
            settings: DeepL settings; plain provider settings are upgraded to `DeepLSettings`.
            session: An optional `requests.Session` to send requests with.

        Raises:
            ConfigurationError: If no API key is configured.

        """
        if settings is None:
            settings = DeepLSettings()
        elif not isinstance(settings, DeepLSettings):
            settings = DeepLSettings(**settings.model_dump())
        super().__init__(settings)
        self.settings: DeepLSettings = settings

        if not settings.api_key:
            msg = "DeepL API key is missing. Set 'providers.deepl.api_key' or the DEEPL_AUTH_KEY environment variable."
            raise ConfigurationError(msg)

        self.endpoint = endpoint_for(settings)
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"DeepL-Auth-Key {settings.api_key}"})

    def build_payload(self, texts: list[str], target_language: str, source_language: str | None = None) -> dict[str, Any]:
        """
        Build the JSON body of a translate request.

        Optional parameters only appear when configured, so an unset option never
        changes the request.
        """
        payload: dict[str, Any] = {"text": texts, "target_lang": target_language.upper()}
        if source_language:
            payload["source_lang"] = source_language.upper()
        if self.settings.enable_beta_languages:
            payload["enable_beta_languages"] = True
        for name in _OPTIONAL_PARAMS:
            value = getattr(self.settings, name)
            if value is None or value == "":
                continue
            payload[name] = str(value) if name == "split_sentences" else value
        return payload

    def _post(self, payload: dict[str, Any]) -> requests.Response:
        """Send a request, retrying rate limiting and transient failures."""
        attempts = max(self.settings.retry_attempts or 1, 1)
        delay = self.settings.retry_delay or 0.0
        backoff = self.settings.retry_backoff_factor or 1.0

        for attempt in range(1, attempts + 1):
            try:
                response = self.session.post(self.endpoint, json=payload, timeout=self.settings.timeout)
            except requests.exceptions.RequestException as e:
                if attempt == attempts:
                    msg = f"DeepL request failed: {e}"
                    raise TransportError(msg) from e
                logger.warning("DeepL request error (attempt %d/%d): %s", attempt, attempts, e)
            else:
                if response.status_code == requests.codes.ok:
                    return response
                if response.status_code == _QUOTA_EXCEEDED_STATUS:
                    msg = "DeepL quota exceeded."
                    raise TransportError(msg, status_code=response.status_code, body=response.text)
                if response.status_code not in _RETRYABLE_STATUS or attempt == attempts:
                    msg = f"DeepL API error: {response.status_code}"
                    raise TransportError(msg, status_code=response.status_code, body=response.text)
                logger.warning("DeepL returned %d (attempt %d/%d), retrying.", response.status_code, attempt, attempts)

            wait = delay * (backoff ** (attempt - 1))
            if wait > 0:
                logger.debug("Sleeping for %.2f seconds before retrying.", wait)
                time.sleep(wait)

        # Unreachable: the last attempt always returns or raises.
        msg = "DeepL request failed."
        raise TransportError(msg)

    def translate(
        self,
        texts: list[str],
        target_language: str,
        source_language: str | None = None,
        *,
        debug: bool = False,
    ) -> list[TranslationResult]:
        """
        Translate texts with DeepL.

        Raises:
            TransportError: On a non-success status or a malformed response.

        """
        if not texts:
            return []

        payload = self.build_payload(texts, target_language, source_language)
        if debug:
            logger.debug("DeepL request to %s with parameters: %s", self.endpoint, sorted(key for key in payload if key != "text"))

        response = self._post(payload)
        try:
            translations = response.json()["translations"]
            translated = [item["text"] for item in translations]
        except (ValueError, KeyError, TypeError) as e:
            msg = f"Unexpected DeepL response: {e}"
            raise TransportError(msg, status_code=response.status_code, body=response.text) from e

        if len(translated) != len(texts):
            msg = f"DeepL returned {len(translated)} translations for {len(texts)} texts."
            raise TransportError(msg, status_code=response.status_code, body=response.text)

        return [TranslationResult(translated_text=text, characters_used=len(source)) for source, text in zip(texts, translated, strict=True)]


def check_connection(settings: ProviderSettings | None, *, session: requests.Session | None = None) -> ConnectionCheck:
    """
    Verify that the configured DeepL credentials work.

    Translates a short greeting into Traditional Chinese. Never raises.
    """
    if settings is None or not settings.api_key:
        return ConnectionCheck(success=False, message="API key is missing. Please enter your API key first.")

    try:
        translator = DeepLTranslator(settings, session=session)
        result = translator.translate([CONNECTION_TEST_TEXT], CONNECTION_TEST_TARGET)
    except TransportError as e:
        message = f"Connection failed: {e.status_code}" if e.status_code is not None else f"Connection error: {e}"
        return ConnectionCheck(success=False, message=message, details=e.body)
    except ConfigurationError as e:
        return ConnectionCheck(success=False, message=str(e))

    return ConnectionCheck(
        success=True,
        message="Connection successful! DeepL API is working correctly.",
        details=result[0].translated_text,
    )
