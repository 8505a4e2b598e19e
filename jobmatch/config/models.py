"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field, field_validator


class SearchDepth(str, Enum):
    """Search provider depth modes."""

    BASIC = "basic"
    DEEP = "deep"


class SimilarityBackend(str, Enum):
    """Semantic similarity implementations available to the scorer."""

    LEXICAL = "lexical"
    OPENAI = "openai"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class SearchConfig(BaseModel):
    """Search provider settings."""

    max_results: int = Field(
        50, ge=1, le=50, description="Result cap per search call (provider maximum is 50)"
    )
    search_depth: SearchDepth = Field(
        "basic", description="basic is fast and cheap, deep trades latency for recall"
    )
    default_days_ago: int = Field(
        7, ge=1, le=60, description="Recency window used when the caller does not give one"
    )

    model_config = {"use_enum_values": True}


class IngestionConfig(BaseModel):
    """Bounded concurrency for the per-record upsert fan-out."""

    max_workers: int = Field(
        4, ge=1, le=32, description="Worker threads used to upsert and score records"
    )


class ScoringConfig(BaseModel):
    """Match scorer preferences."""

    similarity: SimilarityBackend = Field(
        "lexical", description="Semantic similarity backend"
    )
    embedding_model: str = Field(
        "text-embedding-3-small", min_length=1, description="Embedding model for the openai backend"
    )
    require_sponsorship: bool = Field(
        False, description="Penalise jobs that do not (or may not) sponsor visas"
    )
    exclude_keywords: List[str] = Field(
        default_factory=list,
        description="Each keyword found in a job's title or description costs risk points",
    )

    @field_validator("exclude_keywords")
    @classmethod
    def normalize_keywords(cls, v: List[str]) -> List[str]:
        """Strip, lowercase and de-duplicate keywords, keeping first-seen order."""
        normalized: List[str] = []
        for keyword in v:
            stripped = keyword.strip().lower()
            if stripped and stripped not in normalized:
                normalized.append(stripped)
        return normalized

    model_config = {"use_enum_values": True}


class ListingConfig(BaseModel):
    """Defaults for the read-side job listing."""

    min_score: int = Field(0, ge=0, le=100, description="Hide jobs scoring below this")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field("INFO", description="Log level")
    format: LogFormat = Field(
        "key-value", description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AdvancedConfig(BaseModel):
    """HTTP client settings shared by the search and embedding clients."""

    http_request_timeout: int = Field(
        30, ge=5, le=300, description="Request timeout for provider calls (seconds)"
    )
    user_agent: str = Field(
        "JobMatch/0.1",
        min_length=1,
        description="User-Agent string for HTTP requests",
    )

    @field_validator("user_agent")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("user_agent cannot be empty")
        return stripped


class AppConfig(BaseModel):
    """Root configuration object. Every section has defaults."""

    search: SearchConfig = Field(default_factory=SearchConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    listing: ListingConfig = Field(default_factory=ListingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    advanced: AdvancedConfig = Field(default_factory=AdvancedConfig)

    model_config = {"extra": "forbid"}
