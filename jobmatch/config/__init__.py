"""Configuration management: YAML settings, environment secrets, errors."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_app_config, validate_config_file
from .models import (
    AdvancedConfig,
    AppConfig,
    IngestionConfig,
    ListingConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    ScoringConfig,
    SearchConfig,
    SearchDepth,
    SimilarityBackend,
)

__all__ = [
    "load_config",
    "parse_app_config",
    "validate_config_file",
    "load_environment_config",
    "AppConfig",
    "SearchConfig",
    "IngestionConfig",
    "ScoringConfig",
    "ListingConfig",
    "LoggingConfig",
    "AdvancedConfig",
    "EnvironmentConfig",
    "SearchDepth",
    "SimilarityBackend",
    "LogLevel",
    "LogFormat",
    "ConfigurationError",
]
