# src/thoughtrag/config.py
"""Configuration loading utilities for thoughtrag.

This module provides configuration loading that can be used by:
- CLI commands
- External applications using thoughtrag as a library

It handles:
- Finding and loading thoughtrag.yaml config files
- Loading .env files for API keys
- Building Settings objects from multiple sources
- Creating ThoughtRAG instances from configuration
"""

from __future__ import annotations

import importlib
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast

import yaml

if TYPE_CHECKING:
    from thoughtrag.settings import Settings
    from thoughtrag.stores import SQLiteThoughtStore
    from thoughtrag.thoughtrag import ThoughtRAG

from thoughtrag.providers.litellm import ChatModels, EmbeddingModels

logger = logging.getLogger(__name__)

# Default paths
DEFAULT_DATA_DIR = "./thoughtrag_data"
CONFIG_FILES = ["thoughtrag.yaml", "thoughtrag.yml", ".thoughtragrc"]
ENV_FILE = ".env"
ENV_PREFIX = "THOUGHTRAG_"


@dataclass
class ConfigError:
    """Error during configuration loading."""

    message: str
    suggestion: str | None = None


def load_env_file(env_path: str | Path = ENV_FILE) -> None:
    """Copy KEY=value pairs from a .env file into os.environ.

    Variables already present in the environment win over the file. A
    missing file is not an error.
    """
    path = Path(env_path)
    if not path.exists():
        return

    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip().strip("'\"")
                if key not in os.environ:
                    os.environ[key] = value


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Return the nearest thoughtrag config file at or above ``start_dir``."""
    start = (start_dir or Path.cwd()).absolute()
    # Walk at most ten levels up
    for directory in [start, *start.parents][:10]:
        for name in CONFIG_FILES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


# Valid configuration keys for validation
VALID_ROOT_KEYS = {
    # Provider config
    "provider",
    "llm_model",
    "embedding_model",
    "vision_model",
    "data_dir",
    # Custom provider
    "embedding_service",
    "description_service",
    "completion_service",
    "embedding_service_kwargs",
    "description_service_kwargs",
    "completion_service_kwargs",
    # Settings section
    "settings",
}

VALID_SETTINGS_KEYS = {
    "chat_preset",
    "search_preset",
    "match_threshold",
    "match_count",
    "grounding_prompt",
    "description_prompt",
    "description_max_tokens",
    "completion_temperature",
    "description_timeout",
    "embedding_timeout",
    "completion_timeout",
    "stream_read_timeout",
    "search_timeout",
    "num_retries",
    "max_embedding_attempts",
    "max_attempts",  # alias
    "retry_initial_delay",
    "retry_backoff_multiplier",
    "retry_max_delay",
    "max_concurrent_ingestions",
    "timeout_profile",
}

SETTINGS_ALIASES = {"max_attempts": "max_embedding_attempts"}


def validate_config(config: dict[str, Any], config_path: Path | None = None) -> list[str]:
    """List warnings for keys this loader does not understand.

    Unknown keys are reported rather than rejected so older config files keep
    working after a setting is renamed.
    """
    warnings: list[str] = []

    unknown_root = set(config.keys()) - VALID_ROOT_KEYS
    if unknown_root:
        path_str = str(config_path) if config_path else "config"
        warnings.append(f"Unknown config keys in {path_str}: {', '.join(sorted(unknown_root))}")

    settings = config.get("settings", {})
    if isinstance(settings, dict):
        unknown_settings = set(settings.keys()) - VALID_SETTINGS_KEYS
        if unknown_settings:
            warnings.append(f"Unknown settings keys: {', '.join(sorted(unknown_settings))}")

    return warnings


def load_config(config_path: Path | str | None = None) -> dict[str, Any]:
    """Read the YAML config, searching upward from the cwd when no path is given.

    Returns an empty dict when no file is found.
    """
    config_path = Path(config_path) if config_path is not None else find_config_file()

    if config_path is None:
        return {}

    with open(config_path, encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    for warning in validate_config(config, config_path):
        logger.warning(warning)

    return config


_UNSET = ("", "none", "null", "unlimited")


def _optional_float(value: str) -> float | None:
    """Parse a float where an empty or 'none' value means None."""
    if value.strip().lower() in _UNSET:
        return None
    return float(value)


def _optional_int(value: str) -> int | None:
    """Parse an int where an empty, 'none' or 'unlimited' value means None."""
    if value.strip().lower() in _UNSET:
        return None
    return int(value)


def _optional_str(value: str) -> str | None:
    return value or None


# THOUGHTRAG_<NAME> -> (Settings field, parser)
_ENV_SETTINGS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "CHAT_PRESET": ("chat_preset", str),
    "SEARCH_PRESET": ("search_preset", str),
    "MATCH_THRESHOLD": ("match_threshold", _optional_float),
    "MATCH_COUNT": ("match_count", _optional_int),
    "GROUNDING_PROMPT": ("grounding_prompt", _optional_str),
    "DESCRIPTION_PROMPT": ("description_prompt", _optional_str),
    "DESCRIPTION_MAX_TOKENS": ("description_max_tokens", int),
    "COMPLETION_TEMPERATURE": ("completion_temperature", _optional_float),
    "DESCRIPTION_TIMEOUT": ("description_timeout", _optional_float),
    "EMBEDDING_TIMEOUT": ("embedding_timeout", _optional_float),
    "COMPLETION_TIMEOUT": ("completion_timeout", _optional_float),
    "STREAM_READ_TIMEOUT": ("stream_read_timeout", _optional_float),
    "SEARCH_TIMEOUT": ("search_timeout", _optional_float),
    "NUM_RETRIES": ("num_retries", int),
    "MAX_EMBEDDING_ATTEMPTS": ("max_embedding_attempts", _optional_int),
    "RETRY_INITIAL_DELAY": ("retry_initial_delay", float),
    "RETRY_BACKOFF_MULTIPLIER": ("retry_backoff_multiplier", float),
    "RETRY_MAX_DELAY": ("retry_max_delay", float),
    "MAX_CONCURRENT_INGESTIONS": ("max_concurrent_ingestions", int),
    "TIMEOUT_PROFILE": ("timeout_profile", str),
}


def get_settings_from_env() -> dict[str, Any]:
    """Read behavioral settings from THOUGHTRAG_* environment variables.

    Returns values that were explicitly set (not defaults), to allow proper
    precedence: YAML settings are used unless overridden by env vars.
    Unparseable values are ignored with a warning.

    Returns:
        Dictionary of setting name -> value for explicitly set env vars
    """
    result: dict[str, Any] = {}

    for suffix, (field, parse) in _ENV_SETTINGS.items():
        name = ENV_PREFIX + suffix
        if name not in os.environ:
            continue
        try:
            result[field] = parse(os.environ[name])
        except ValueError:
            logger.warning("Ignoring invalid value for %s: %r", name, os.environ[name])

    return result


def get_settings_from_yaml(config: dict[str, Any]) -> dict[str, Any]:
    """Known keys from the YAML ``settings:`` section, with aliases resolved."""
    yaml_settings = config.get("settings", {}) or {}
    result: dict[str, Any] = {}

    for key, value in yaml_settings.items():
        if key not in VALID_SETTINGS_KEYS:
            continue
        result[SETTINGS_ALIASES.get(key, key)] = value

    return result


def build_settings(
    config: dict[str, Any] | None = None,
    env_settings: dict[str, Any] | None = None,
) -> Settings:
    """Merge YAML and environment settings into a Settings instance.

    Environment values override the YAML ``settings:`` section, which
    overrides the Settings defaults. ``env_settings=None`` reads the
    current environment. A ``timeout_profile`` key is applied through
    ``Settings.with_profile`` before the other overrides.
    """
    from thoughtrag.settings import Settings

    config = config or {}
    yaml_settings = get_settings_from_yaml(config)
    env_settings = env_settings if env_settings is not None else get_settings_from_env()

    merged = {**yaml_settings, **env_settings}
    timeout_profile = merged.pop("timeout_profile", None)

    if timeout_profile:
        return Settings.with_profile(timeout_profile, **merged)
    return Settings(**merged)


@dataclass(frozen=True)
class ServiceBundle:
    """Provider config wrapping services that were built elsewhere.

    Satisfies ProviderConfig by handing back the same instances regardless
    of settings.
    """

    embedding_service: Any
    description_service: Any
    completion_service: Any

    def build_embedding_service(self, settings: Settings) -> Any:
        return self.embedding_service

    def build_description_service(self, settings: Settings) -> Any:
        return self.description_service

    def build_completion_service(self, settings: Settings) -> Any:
        return self.completion_service


def get_store(data_dir: str | Path) -> SQLiteThoughtStore:
    """Get the thought store for read-only operations (status, listing).

    This doesn't require provider configuration since it only accesses storage.
    """
    from thoughtrag.configuration.storage.local import DATABASE_FILENAME
    from thoughtrag.stores import SQLiteThoughtStore

    return SQLiteThoughtStore(os.path.join(str(data_dir), DATABASE_FILENAME))


def import_class(class_path: str) -> type[Any]:
    """Resolve ``package.module.ClassName`` to the class object."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return cast(type[Any], getattr(module, class_name))


@dataclass
class ThoughtRAGConfig:
    """Configuration for creating a ThoughtRAG instance."""

    provider: str
    llm_model: str | None
    embedding_model: str | None
    data_dir: str
    settings: Settings
    vision_model: str | None = None
    api_key: str | None = None
    # Custom provider fields
    embedding_service_class: str | None = None
    description_service_class: str | None = None
    completion_service_class: str | None = None
    embedding_service_kwargs: dict[str, Any] | None = None
    description_service_kwargs: dict[str, Any] | None = None
    completion_service_kwargs: dict[str, Any] | None = None


def get_thoughtrag_config(
    data_dir: str | None = None,
    config_path: str | Path | None = None,
) -> ThoughtRAGConfig | ConfigError:
    """Get configuration for creating a ThoughtRAG instance.

    This extracts configuration without creating the instance, allowing
    the caller to handle errors and missing values appropriately.

    Args:
        data_dir: Override data directory
        config_path: Override config file path

    Returns:
        ThoughtRAGConfig with all settings, or ConfigError if invalid
    """
    try:
        config = load_config(config_path)
    except (OSError, yaml.YAMLError) as e:
        return ConfigError(
            message=f"Could not read config file: {e}",
            suggestion="Check that the file exists and is valid YAML",
        )

    effective_data_dir = (
        data_dir
        or os.environ.get(f"{ENV_PREFIX}DATA_DIR")
        or config.get("data_dir")
        or DEFAULT_DATA_DIR
    )
    provider = config.get("provider", "litellm")

    try:
        settings = build_settings(config, get_settings_from_env())
    except ValueError as e:
        return ConfigError(message=f"Invalid settings: {e}")

    if provider == "litellm":
        llm_model = (
            os.environ.get(f"{ENV_PREFIX}LLM_MODEL") or config.get("llm_model") or ChatModels.GPT_4O
        )
        embedding_model = (
            os.environ.get(f"{ENV_PREFIX}EMBEDDING_MODEL")
            or config.get("embedding_model")
            or EmbeddingModels.TEXT_3_SMALL
        )
        vision_model = os.environ.get(f"{ENV_PREFIX}VISION_MODEL") or config.get("vision_model")

        return ThoughtRAGConfig(
            provider=provider,
            llm_model=llm_model,
            embedding_model=embedding_model,
            vision_model=vision_model,
            data_dir=effective_data_dir,
            settings=settings,
            api_key=os.environ.get(f"{ENV_PREFIX}API_KEY"),
        )

    elif provider == "custom":
        embedding_cls = config.get("embedding_service")
        description_cls = config.get("description_service")
        completion_cls = config.get("completion_service")

        if not all([embedding_cls, description_cls, completion_cls]):
            return ConfigError(
                message=(
                    "Custom provider requires embedding_service, description_service, "
                    "and completion_service."
                ),
                suggestion="Add these to thoughtrag.yaml as dotted class paths",
            )

        return ThoughtRAGConfig(
            provider=provider,
            llm_model=None,
            embedding_model=None,
            data_dir=effective_data_dir,
            settings=settings,
            embedding_service_class=embedding_cls,
            description_service_class=description_cls,
            completion_service_class=completion_cls,
            embedding_service_kwargs=config.get("embedding_service_kwargs", {}),
            description_service_kwargs=config.get("description_service_kwargs", {}),
            completion_service_kwargs=config.get("completion_service_kwargs", {}),
        )

    else:
        return ConfigError(
            message=f"Unknown provider '{provider}'",
            suggestion="Supported providers: litellm, custom",
        )


def create_thoughtrag(config: ThoughtRAGConfig) -> ThoughtRAG:
    """Create a ThoughtRAG instance from configuration.

    Raises:
        ImportError: If custom provider classes cannot be imported
    """
    from thoughtrag.configuration import LiteLLMProvider, LocalStorage
    from thoughtrag.thoughtrag import ThoughtRAG

    if config.provider == "litellm":
        if not config.llm_model or not config.embedding_model:
            raise ValueError("LiteLLM provider requires llm_model and embedding_model")

        return ThoughtRAG(
            provider=LiteLLMProvider(
                llm=config.llm_model,
                embedding=config.embedding_model,
                vision=config.vision_model,
                api_key=config.api_key,
            ),
            storage=LocalStorage(config.data_dir),
            settings=config.settings,
        )

    elif config.provider == "custom":
        paths = (
            config.embedding_service_class,
            config.description_service_class,
            config.completion_service_class,
        )
        if not all(paths):
            raise ValueError("Custom provider requires all class paths")

        services = [
            import_class(cast(str, path))(**(kwargs or {}))
            for path, kwargs in zip(
                paths,
                (
                    config.embedding_service_kwargs,
                    config.description_service_kwargs,
                    config.completion_service_kwargs,
                ),
            )
        ]

        return ThoughtRAG(
            provider=ServiceBundle(*services),
            storage=LocalStorage(config.data_dir),
            settings=config.settings,
        )

    else:
        raise ValueError(f"Unknown provider: {config.provider}")


def get_thoughtrag(
    data_dir: str | None = None,
    config_path: str | Path | None = None,
) -> ThoughtRAG | ConfigError:
    """Create a ThoughtRAG instance based on configuration.

    Convenience wrapper around get_thoughtrag_config and create_thoughtrag.
    """
    config = get_thoughtrag_config(data_dir, config_path)
    if isinstance(config, ConfigError):
        return config
    return create_thoughtrag(config)
