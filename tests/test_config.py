# tests/test_config.py
"""Tests for configuration loading (yaml, .env and THOUGHTRAG_* variables)."""

import os

import pytest

from thoughtrag.config import (
    DEFAULT_DATA_DIR,
    ConfigError,
    ServiceBundle,
    ThoughtRAGConfig,
    build_settings,
    create_thoughtrag,
    find_config_file,
    get_settings_from_env,
    get_settings_from_yaml,
    get_store,
    get_thoughtrag,
    get_thoughtrag_config,
    import_class,
    load_config,
    load_env_file,
    validate_config,
)
from thoughtrag.providers.litellm import (
    ChatModels,
    EmbeddingModels,
    LiteLLMDescriptionService,
    LiteLLMEmbeddingService,
)
from thoughtrag.configuration import ProviderConfig
from thoughtrag.settings import Settings
from thoughtrag.thoughtrag import ThoughtRAG


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from THOUGHTRAG_* variables and config files on disk."""
    for name in list(os.environ):
        if name.startswith("THOUGHTRAG_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


def write_config(tmp_path, text, name="thoughtrag.yaml"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


class TestEnvFile:
    def test_loads_values(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TR_TEST_KEY", raising=False)
        env = tmp_path / ".env"
        env.write_text("# comment\nTR_TEST_KEY='secret'\n\n", encoding="utf-8")

        load_env_file(env)

        assert os.environ["TR_TEST_KEY"] == "secret"
        monkeypatch.delenv("TR_TEST_KEY")

    def test_never_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TR_TEST_KEY", "original")
        env = tmp_path / ".env"
        env.write_text("TR_TEST_KEY=from-file\n", encoding="utf-8")

        load_env_file(env)

        assert os.environ["TR_TEST_KEY"] == "original"

    def test_missing_file(self, tmp_path):
        load_env_file(tmp_path / "nope.env")


class TestConfigFile:
    def test_find_in_parent_directory(self, tmp_path):
        path = write_config(tmp_path, "provider: litellm\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == path

    def test_load_config_without_file(self):
        assert load_config() == {}

    def test_load_config(self, tmp_path):
        path = write_config(tmp_path, "llm_model: openai/gpt-4o-mini\nsettings:\n  match_count: 3\n")
        config = load_config(path)
        assert config["llm_model"] == "openai/gpt-4o-mini"
        assert config["settings"]["match_count"] == 3

    def test_empty_file(self, tmp_path):
        assert load_config(write_config(tmp_path, "")) == {}

    def test_validate_config_reports_unknown_keys(self):
        warnings = validate_config({"provider": "litellm", "colour": "red", "settings": {"k": 1}})
        assert len(warnings) == 2
        assert "colour" in warnings[0]
        assert "k" in warnings[1]

    def test_validate_config_accepts_known_keys(self):
        assert validate_config({"provider": "litellm", "settings": {"max_attempts": 3}}) == []


class TestSettingsSources:
    def test_env_parsing(self, monkeypatch):
        monkeypatch.setenv("THOUGHTRAG_MATCH_COUNT", "7")
        monkeypatch.setenv("THOUGHTRAG_MATCH_THRESHOLD", "0.25")
        monkeypatch.setenv("THOUGHTRAG_MAX_EMBEDDING_ATTEMPTS", "unlimited")
        monkeypatch.setenv("THOUGHTRAG_COMPLETION_TIMEOUT", "none")

        env = get_settings_from_env()

        assert env == {
            "match_count": 7,
            "match_threshold": 0.25,
            "max_embedding_attempts": None,
            "completion_timeout": None,
        }

    def test_invalid_env_value_is_ignored(self, monkeypatch):
        monkeypatch.setenv("THOUGHTRAG_NUM_RETRIES", "many")
        assert get_settings_from_env() == {}

    def test_yaml_settings_with_alias(self):
        config = {"settings": {"max_attempts": 2, "unknown": True, "num_retries": 1}}
        assert get_settings_from_yaml(config) == {"max_embedding_attempts": 2, "num_retries": 1}

    def test_env_overrides_yaml(self):
        config = {"settings": {"num_retries": 1, "match_count": 3}}
        settings = build_settings(config, {"num_retries": 6})
        assert settings.num_retries == 6
        assert settings.match_count == 3

    def test_timeout_profile(self):
        settings = build_settings({"settings": {"timeout_profile": "patient", "num_retries": 1}}, {})
        assert settings.completion_timeout == 180.0
        assert settings.num_retries == 1

    def test_defaults(self):
        assert build_settings({}, {}) == Settings()


class TestGetThoughtRAGConfig:
    def test_defaults(self):
        config = get_thoughtrag_config()

        assert isinstance(config, ThoughtRAGConfig)
        assert config.provider == "litellm"
        assert config.llm_model == ChatModels.GPT_4O
        assert config.embedding_model == EmbeddingModels.TEXT_3_SMALL
        assert config.vision_model is None
        assert config.data_dir == DEFAULT_DATA_DIR

    def test_yaml_models(self, tmp_path):
        path = write_config(
            tmp_path,
            "llm_model: openai/gpt-4o-mini\n"
            "embedding_model: openai/text-embedding-3-large\n"
            "vision_model: openai/gpt-4o\n"
            "data_dir: ./from-yaml\n",
        )
        config = get_thoughtrag_config(config_path=path)

        assert config.llm_model == "openai/gpt-4o-mini"
        assert config.embedding_model == "openai/text-embedding-3-large"
        assert config.vision_model == "openai/gpt-4o"
        assert config.data_dir == "./from-yaml"

    def test_env_beats_yaml(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, "llm_model: openai/gpt-4o-mini\ndata_dir: ./from-yaml\n")
        monkeypatch.setenv("THOUGHTRAG_LLM_MODEL", "ollama/llama3.2")
        monkeypatch.setenv("THOUGHTRAG_DATA_DIR", "./from-env")
        monkeypatch.setenv("THOUGHTRAG_API_KEY", "sk-test")

        config = get_thoughtrag_config(config_path=path)

        assert config.llm_model == "ollama/llama3.2"
        assert config.data_dir == "./from-env"
        assert config.api_key == "sk-test"

    def test_argument_beats_env(self, monkeypatch):
        monkeypatch.setenv("THOUGHTRAG_DATA_DIR", "./from-env")
        assert get_thoughtrag_config(data_dir="./explicit").data_dir == "./explicit"

    def test_unknown_provider(self, tmp_path):
        path = write_config(tmp_path, "provider: magic\n")
        result = get_thoughtrag_config(config_path=path)
        assert isinstance(result, ConfigError)
        assert "magic" in result.message

    def test_custom_provider_requires_classes(self, tmp_path):
        path = write_config(tmp_path, "provider: custom\nembedding_service: a.B\n")
        result = get_thoughtrag_config(config_path=path)
        assert isinstance(result, ConfigError)
        assert result.suggestion is not None

    def test_invalid_settings(self, tmp_path):
        path = write_config(tmp_path, "settings:\n  match_threshold: 2.5\n")
        result = get_thoughtrag_config(config_path=path)
        assert isinstance(result, ConfigError)
        assert "Invalid settings" in result.message

    def test_unreadable_config(self, tmp_path):
        path = write_config(tmp_path, "settings: [unclosed\n")
        result = get_thoughtrag_config(config_path=path)
        assert isinstance(result, ConfigError)

    def test_missing_config_file(self, tmp_path):
        result = get_thoughtrag_config(config_path=tmp_path / "missing.yaml")
        assert isinstance(result, ConfigError)


class TestCreateThoughtRAG:
    def test_litellm(self, tmp_path):
        config = get_thoughtrag_config(data_dir=str(tmp_path / "data"))
        rag = create_thoughtrag(config)

        assert isinstance(rag, ThoughtRAG)
        assert isinstance(rag.embedding_service, LiteLLMEmbeddingService)
        assert rag.embedding_service.model == EmbeddingModels.TEXT_3_SMALL
        assert isinstance(rag.description_service, LiteLLMDescriptionService)
        assert rag.description_service.model == ChatModels.GPT_4O
        assert (tmp_path / "data" / "thoughts.db").exists()

    def test_custom(self, tmp_path):
        path = write_config(
            tmp_path,
            "provider: custom\n"
            "embedding_service: thoughtrag.providers.litellm.LiteLLMEmbeddingService\n"
            "description_service: thoughtrag.providers.litellm.LiteLLMDescriptionService\n"
            "completion_service: thoughtrag.providers.litellm.LiteLLMCompletionService\n"
            "embedding_service_kwargs:\n"
            "  model: ollama/nomic-embed-text\n",
        )
        rag = get_thoughtrag(data_dir=str(tmp_path / "data"), config_path=path)

        assert isinstance(rag, ThoughtRAG)
        assert rag.embedding_service.model == "ollama/nomic-embed-text"

    def test_get_thoughtrag_returns_config_error(self, tmp_path):
        path = write_config(tmp_path, "provider: magic\n")
        assert isinstance(get_thoughtrag(config_path=path), ConfigError)

    def test_get_store(self, tmp_path):
        store = get_store(tmp_path)
        assert store.count_thoughts() == 0

    def test_import_class(self):
        assert import_class("thoughtrag.settings.Settings") is Settings

    def test_service_bundle_is_a_provider(self):
        bundle = ServiceBundle("embed", "describe", "complete")
        assert isinstance(bundle, ProviderConfig)
        assert bundle.build_completion_service(Settings()) == "complete"
