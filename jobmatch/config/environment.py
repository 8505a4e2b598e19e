"""Environment variable loading and validation.

Secrets never live in the YAML file; they come from the process environment,
which ``main`` seeds from a local ``.env`` file via python-dotenv.
"""

import os
from typing import Optional

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/jobmatch.db"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Holder for values read from the environment."""

    def __init__(
        self,
        tavily_api_key: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        database_url: Optional[str] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.tavily_api_key = tavily_api_key
        self.openai_api_key = openai_api_key
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.log_level = log_level
        self.environment = environment or "local"

    def require_tavily_key(self) -> str:
        """Return the search provider key or fail with a ConfigurationError."""
        if not self.tavily_api_key:
            raise ConfigurationError.missing_credentials(
                "TAVILY_API_KEY",
                "Search provider",
                suggestions=[
                    "Copy .env.example to .env and set TAVILY_API_KEY",
                    "Export TAVILY_API_KEY in the shell that runs jobmatch",
                ],
            )
        return self.tavily_api_key

    def require_openai_key(self) -> str:
        """Return the embeddings provider key or fail with a ConfigurationError."""
        if not self.openai_api_key:
            raise ConfigurationError.missing_credentials(
                "OPENAI_API_KEY",
                "Embedding provider",
                suggestions=[
                    "Set OPENAI_API_KEY in .env",
                    "Or set scoring.similarity to 'lexical' in config.yaml",
                ],
            )
        return self.openai_api_key


def load_environment_config() -> EnvironmentConfig:
    """Read and validate environment variables.

    Optional variables:
    - TAVILY_API_KEY: search provider key (required by the ``search`` command)
    - OPENAI_API_KEY: embeddings key (required when scoring.similarity is ``openai``)
    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/jobmatch.db)
    - LOG_LEVEL: overrides the configured log level
    - ENVIRONMENT: label stamped on every log record (default: local)

    Raises:
        ConfigurationError: If a variable is present but malformed.
    """
    errors = []

    tavily_api_key = _clean(os.getenv("TAVILY_API_KEY"))
    openai_api_key = _clean(os.getenv("OPENAI_API_KEY"))
    database_url = _clean(os.getenv("DATABASE_URL"))
    log_level = _clean(os.getenv("LOG_LEVEL"))
    environment = _clean(os.getenv("ENVIRONMENT"))

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if database_url and "://" not in database_url:
        errors.append(
            f"Invalid DATABASE_URL: '{database_url}'. Expected a URL such as {DEFAULT_DATABASE_URL}"
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and review the values",
                "Unset variables you do not need; every variable is optional",
            ],
        )

    return EnvironmentConfig(
        tavily_api_key=tavily_api_key,
        openai_api_key=openai_api_key,
        database_url=database_url,
        log_level=log_level.upper() if log_level else None,
        environment=environment,
    )


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None
