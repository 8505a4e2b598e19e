"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest

from jobmatch.config import (
    AppConfig,
    ConfigurationError,
    EnvironmentConfig,
    load_config,
    load_environment_config,
    parse_app_config,
    validate_config_file,
)
from jobmatch.config.environment import DEFAULT_DATABASE_URL
from jobmatch.config.validators import check_for_warnings

ENV_VARS = ("TAVILY_API_KEY", "OPENAI_API_KEY", "DATABASE_URL", "LOG_LEVEL", "ENVIRONMENT")


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the loader reads."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestConfigurationLoading:
    """Test configuration loading from YAML files."""

    def test_defaults_when_no_file(self, clean_env, tmp_path):
        """No config file anywhere means built-in defaults."""
        clean_env.chdir(tmp_path)
        app_config, env_config = load_config()

        assert app_config.search.max_results == 50
        assert app_config.search.search_depth == "basic"
        assert app_config.ingestion.max_workers == 4
        assert app_config.scoring.similarity == "lexical"
        assert app_config.scoring.require_sponsorship is False
        assert app_config.logging.level == "INFO"
        assert app_config.logging.format == "key-value"
        assert env_config.database_url == DEFAULT_DATABASE_URL

    def test_load_full_config(self, clean_env, tmp_path):
        path = write_config(
            tmp_path,
            """
search:
  max_results: 20
  search_depth: deep
ingestion:
  max_workers: 2
scoring:
  similarity: openai
  require_sponsorship: true
  exclude_keywords: [" Clearance ", "clearance", "Senior"]
listing:
  min_score: 40
logging:
  level: DEBUG
  format: json
advanced:
  http_request_timeout: 10
  user_agent: "  JobMatchTest/1.0  "
""",
        )
        with pytest.warns(UserWarning):
            app_config, _ = load_config(path)

        assert app_config.search.max_results == 20
        assert app_config.search.search_depth == "deep"
        assert app_config.ingestion.max_workers == 2
        assert app_config.scoring.similarity == "openai"
        assert app_config.scoring.require_sponsorship is True
        assert app_config.scoring.exclude_keywords == ["clearance", "senior"]
        assert app_config.listing.min_score == 40
        assert app_config.logging.level == "DEBUG"
        assert app_config.logging.format == "json"
        assert app_config.advanced.user_agent == "JobMatchTest/1.0"

    def test_config_yaml_in_working_directory(self, clean_env, tmp_path):
        write_config(tmp_path, "ingestion:\n  max_workers: 3\n")
        clean_env.chdir(tmp_path)
        app_config, _ = load_config()
        assert app_config.ingestion.max_workers == 3

    def test_empty_file_means_defaults(self, clean_env, tmp_path):
        app_config, _ = load_config(write_config(tmp_path, ""))
        assert app_config == AppConfig()

    def test_missing_explicit_path(self, clean_env, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_non_mapping_root(self, clean_env, tmp_path):
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(write_config(tmp_path, "- a\n- b\n"))

    def test_invalid_yaml(self, clean_env, tmp_path):
        with pytest.raises(ConfigurationError, match="parse YAML"):
            load_config(write_config(tmp_path, "search: [unclosed\n"))


class TestSchemaValidation:
    """Test pydantic validation errors are folded into ConfigurationError."""

    def test_unknown_section(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_app_config({"scheduler": {"interval": "15m"}})
        assert exc_info.value.errors == ["Unknown setting: scheduler"]

    @pytest.mark.parametrize(
        "config_dict",
        [
            {"search": {"max_results": 0}},
            {"search": {"max_results": 51}},
            {"search": {"search_depth": "extreme"}},
            {"ingestion": {"max_workers": 0}},
            {"scoring": {"similarity": "magic"}},
            {"listing": {"min_score": 101}},
            {"logging": {"level": "LOUD"}},
            {"advanced": {"http_request_timeout": 1}},
            {"advanced": {"user_agent": "   "}},
        ],
    )
    def test_out_of_range_values(self, config_dict):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_app_config(config_dict)
        assert len(exc_info.value.errors) == 1

    def test_type_errors_name_the_field(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_app_config({"ingestion": {"max_workers": "many"}})
        assert exc_info.value.errors[0].startswith("Invalid type for 'ingestion -> max_workers'")

    def test_error_message_lists_suggestions(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_app_config({"unknown": 1})
        message = str(exc_info.value)
        assert "Validation Errors:" in message
        assert "Suggestions:" in message


class TestWarnings:
    """Test soft warnings for legal but questionable settings."""

    def test_no_warnings_for_defaults(self):
        assert check_for_warnings({}) == []

    def test_collects_warnings(self):
        messages = check_for_warnings(
            {
                "search": {"search_depth": "deep", "default_days_ago": 45},
                "ingestion": {"max_workers": 16},
                "scoring": {"exclude_keywords": ["a", "A", "b", "c", "d", "e"]},
            }
        )
        assert len(messages) == 5
        assert any("Duplicate exclude_keywords" in m and "a" in m for m in messages)

    def test_ignores_malformed_sections(self):
        assert check_for_warnings({"search": "deep", "scoring": None}) == []


class TestEnvironment:
    """Test environment variable loading."""

    def test_empty_environment(self, clean_env):
        env_config = load_environment_config()
        assert env_config.tavily_api_key is None
        assert env_config.openai_api_key is None
        assert env_config.database_url == DEFAULT_DATABASE_URL
        assert env_config.log_level is None
        assert env_config.environment == "local"

    def test_reads_and_normalises(self, clean_env):
        clean_env.setenv("TAVILY_API_KEY", "  tvly-123  ")
        clean_env.setenv("DATABASE_URL", "sqlite:///./tmp.db")
        clean_env.setenv("LOG_LEVEL", "debug")
        clean_env.setenv("ENVIRONMENT", "staging")

        env_config = load_environment_config()

        assert env_config.tavily_api_key == "tvly-123"
        assert env_config.database_url == "sqlite:///./tmp.db"
        assert env_config.log_level == "DEBUG"
        assert env_config.environment == "staging"

    def test_blank_values_are_unset(self, clean_env):
        clean_env.setenv("TAVILY_API_KEY", "   ")
        assert load_environment_config().tavily_api_key is None

    def test_malformed_values_reported_together(self, clean_env):
        clean_env.setenv("LOG_LEVEL", "LOUD")
        clean_env.setenv("DATABASE_URL", "jobmatch.db")
        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()
        assert len(exc_info.value.errors) == 2

    def test_require_keys(self):
        env_config = EnvironmentConfig(tavily_api_key="tvly-1", openai_api_key="sk-1")
        assert env_config.require_tavily_key() == "tvly-1"
        assert env_config.require_openai_key() == "sk-1"

    def test_require_missing_keys(self):
        env_config = EnvironmentConfig()
        with pytest.raises(ConfigurationError, match="Search provider"):
            env_config.require_tavily_key()
        with pytest.raises(ConfigurationError, match="Embedding"):
            env_config.require_openai_key()

    def test_missing_key_names_variable(self):
        with pytest.raises(ConfigurationError) as exc_info:
            EnvironmentConfig().require_tavily_key()
        assert exc_info.value.variable == "TAVILY_API_KEY"
        assert exc_info.value.errors == ["Missing required environment variable: TAVILY_API_KEY"]


class TestConfigurationError:
    """Tests for ConfigurationError formatting."""

    def test_message_lists_errors_and_suggestions(self):
        error = ConfigurationError("Bad config", errors=["a", "b"], suggestions=["fix it"])
        assert str(error) == "Bad config\n\nValidation Errors:\n  1. a\n  2. b\n\nSuggestions:\n  - fix it"

    def test_plain_message(self):
        error = ConfigurationError("Bad config")
        assert str(error) == "Bad config"
        assert error.errors == []
        assert error.variable is None

    def test_rejected_credentials(self):
        error = ConfigurationError.rejected_credentials("OPENAI_API_KEY", "Embedding provider", 401)
        assert error.message == "Embedding provider rejected the API key (HTTP 401)"
        assert error.suggestions == ["Check OPENAI_API_KEY in .env"]


class TestValidateConfigFile:
    def test_valid(self, tmp_path, capsys):
        assert validate_config_file(write_config(tmp_path, "listing:\n  min_score: 10\n")) is True
        assert "is valid" in capsys.readouterr().out

    def test_invalid(self, tmp_path, capsys):
        assert validate_config_file(write_config(tmp_path, "listing:\n  min_score: -1\n")) is False
        assert "validation failed" in capsys.readouterr().out
