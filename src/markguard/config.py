"""Handles the parsing, validation and persistence of the MarkGuard configuration file."""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.scalarstring import SingleQuotedScalarString

from .spans import parse_keywords

logger = logging.getLogger(__name__)

DEEPL_AUTH_KEY_ENV = "DEEPL_AUTH_KEY"

DEFAULT_TECHNICAL_KEYWORDS = "API, SDK, REST, HTTP, JSON, XML, CSS, HTML, JavaScript, TypeScript, Python, React, Vue, Angular, Node.js, npm, Git, GitHub"


class ProviderSettings(BaseModel):
    """Settings for a specific transform provider."""

    api_key: str | None = None
    retry_attempts: int | None = 3
    retry_delay: float | None = 5.0
    retry_backoff_factor: float | None = 2.0
    timeout: float | None = 60.0
    extra: dict[str, Any] | None = None


class DeepLSettings(ProviderSettings):
    """
    Settings for the DeepL provider.

    Every tuning option defaults to None and is only sent to the API when set.
    """

    api_type: Literal["free", "pro"] = "free"
    enable_beta_languages: bool = True
    preserve_formatting: bool | None = None
    split_sentences: str | int | None = None
    tag_handling: Literal["xml", "html"] | None = None
    formality: Literal["default", "more", "less", "prefer_more", "prefer_less"] | None = None
    glossary_id: str | None = None
    style_id: str | None = None
    context: str | None = None


class OpenCCSettings(ProviderSettings):
    """Settings for the local OpenCC script converter."""

    conversion: str = "s2twp"


# Dispatch map for provider-specific settings classes
PROVIDER_SETTINGS_MAP: dict[str, type[ProviderSettings]] = {
    "deepl": DeepLSettings,
    "opencc": OpenCCSettings,
}


class MarkGuardConfig(BaseModel):
    """The root configuration for MarkGuard."""

    model_config = ConfigDict(extra="forbid")

    default_target_lang: str = "ZH-HANT"
    technical_keywords: str | list[str] = DEFAULT_TECHNICAL_KEYWORDS
    translator: str = "deepl"
    granularity: Literal["document", "cell"] = "document"
    conversion_targets: list[str] = Field(default_factory=lambda: ["ZH-HANT"])
    source_lang: str | None = None
    providers: dict[str, ProviderSettings] = Field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MarkGuardConfig":
        """
        Create a MarkGuardConfig object from a dictionary.

        Raises:
            ValueError: If the configuration does not validate.

        """
        fields = {key: value for key, value in data.items() if key != "providers"}
        providers_data = data.get("providers") or {}
        try:
            providers = _build_providers_from_dict(providers_data)
            return cls(providers=providers, **fields)
        except (ValidationError, TypeError) as e:
            msg = f"Invalid or missing configuration: {e}"
            raise ValueError(msg) from e

    @property
    def keywords(self) -> list[str]:
        """Return the cleaned list of technical keywords."""
        return parse_keywords(self.technical_keywords)

    def provider_settings(self, name: str) -> ProviderSettings:
        """
        Return the settings for a provider, falling back to its defaults.

        The DeepL key falls back to the ``DEEPL_AUTH_KEY`` environment variable.
        """
        settings_class = PROVIDER_SETTINGS_MAP.get(name, ProviderSettings)
        settings = self.providers.get(name) or settings_class()
        if name == "deepl" and not settings.api_key:
            env_key = os.environ.get(DEEPL_AUTH_KEY_ENV)
            if env_key:
                settings = settings.model_copy(update={"api_key": env_key})
        return settings


def _build_providers_from_dict(providers_data: dict[str, Any]) -> dict[str, ProviderSettings]:
    """Build a dictionary of ProviderSettings objects from a dictionary."""
    if not isinstance(providers_data, dict):
        msg = "'providers' must be a mapping of provider names to settings."
        raise TypeError(msg)
    providers = {}
    for name, p_config in providers_data.items():
        config_data = p_config if isinstance(p_config, dict) else {}
        provider_class = PROVIDER_SETTINGS_MAP.get(name, ProviderSettings)
        providers[name] = provider_class(**config_data)
    return providers


class StrictSingleQuoteLoader(yaml.SafeLoader):
    """
    A custom YAML loader that enforces the use of single quotes for all strings.

    It raises an error if any double-quoted strings are found.
    """


def _construct_scalar(loader: StrictSingleQuoteLoader, node: yaml.ScalarNode) -> Any:  # noqa: ANN401
    """Construct a scalar node, but first check its style."""
    if node.style == '"':
        line = node.start_mark.line + 1
        col = node.start_mark.column + 1
        msg = f"Double-quoted string found at line {line}, column {col}. Please use single quotes (') instead."
        raise yaml.YAMLError(msg)
    return loader.construct_scalar(node)


StrictSingleQuoteLoader.add_constructor("tag:yaml.org,2002:str", _construct_scalar)


def load_config(config_path: str | Path) -> MarkGuardConfig:
    """
    Load, parse, and validate the YAML configuration file.

    Args:
        config_path: The path to the main.yaml file.

    Returns:
        A MarkGuardConfig object representing the validated configuration.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If there is a syntax error in the YAML file.
        ValueError: If the configuration is invalid.

    """
    path = Path(config_path)
    if not path.is_file():
        msg = f"Configuration file not found at: {config_path}"
        raise FileNotFoundError(msg)

    def _raise_type_error(msg: str) -> None:
        """Raise a TypeError with a specific message."""
        raise TypeError(msg)

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.load(f, Loader=StrictSingleQuoteLoader)  # noqa: S506

        if data is None:
            data = {}
        if not isinstance(data, dict):
            _raise_type_error("Config file must be a YAML mapping (dictionary).")

        config = MarkGuardConfig.from_dict(data)
    except yaml.YAMLError as e:
        msg = f"Error parsing YAML config file: {e}"
        raise yaml.YAMLError(msg) from e
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        msg = f"Invalid or missing configuration: {e}"
        raise ValueError(msg) from e
    else:
        logger.debug("Loaded configuration from %s", path)
        return config


def _coerce_value(raw: str) -> Any:  # noqa: ANN401
    """Interpret a command-line value the way YAML would (booleans, numbers, lists)."""
    try:
        value = yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw
    return raw if value is None else value


def _quote_strings(value: Any) -> Any:  # noqa: ANN401
    """Wrap strings so ruamel.yaml writes them single-quoted, as the strict loader requires."""
    if isinstance(value, str):
        return SingleQuotedScalarString(value)
    if isinstance(value, list):
        return [_quote_strings(item) for item in value]
    return value


def _set_dotted(data: dict[str, Any], dotted_key: str, value: Any) -> None:  # noqa: ANN401
    parts = dotted_key.split(".")
    node = data
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = CommentedMap()
            node[part] = child
        node = child
    node[parts[-1]] = value


def save_setting(config_path: str | Path, dotted_key: str, value: Any) -> MarkGuardConfig:  # noqa: ANN401
    """
    Persist a single setting, keeping the file's comments and layout.

    Args:
        config_path: The path to the main.yaml file.
        dotted_key: The setting to change, e.g. ``providers.deepl.api_type``.
        value: The new value. Strings from the command line are interpreted as YAML scalars.

    Returns:
        The validated configuration after the change.

    Raises:
        ValueError: If the change would make the configuration invalid. The file is left untouched.

    """
    path = Path(config_path)
    yaml_handler = YAML()
    yaml_handler.preserve_quotes = True
    yaml_handler.default_flow_style = False

    with path.open(encoding="utf-8") as f:
        data = yaml_handler.load(f) or CommentedMap()

    if isinstance(value, str):
        value = _coerce_value(value)
        # Keys and keyword lists are kept as text even when they look like numbers.
        if dotted_key.endswith(("api_key", "technical_keywords")) and not isinstance(value, str | list):
            value = str(value)

    candidate = copy.deepcopy(data)
    _set_dotted(candidate, dotted_key, value)
    config = MarkGuardConfig.from_dict(dict(candidate))

    _set_dotted(data, dotted_key, _quote_strings(value))
    with path.open("w", encoding="utf-8") as f:
        yaml_handler.dump(data, f)

    logger.info("Saved setting '%s' to %s", dotted_key, path)
    return config
