"""
Superinvestors Engine Configuration

Cohort thresholds, ranking limits, cache and timeout settings loaded with
pydantic-settings from environment variables, with optional YAML overrides.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class EngineSettings(BaseSettings):
    """
    Aggregation engine configuration settings.

    Every value can be overridden with a ``SUPERINVESTORS_`` prefixed
    environment variable, e.g. ``SUPERINVESTORS_MAX_COHORT_SIZE=50``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SUPERINVESTORS_",
        case_sensitive=False,
        extra="ignore",
    )

    # Cohort selection
    MIN_TOTAL_VALUE: float = Field(
        default=500_000_000,
        ge=0,
        description="Filings must report a total value strictly above this to join the cohort.",
    )
    MAX_COHORT_SIZE: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum number of managers analyzed per period.",
    )

    # Ranking limits
    CONSENSUS_LIMIT: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Rows kept in the consensus holdings list.",
    )
    TOP_VALUE_LIMIT: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Rows kept in the top-by-value and top-conviction lists.",
    )
    CONVICTION_MIN_OWNERS: int = Field(
        default=2,
        ge=1,
        description="Minimum owner count for a row to count as a conviction holding.",
    )
    CONSENSUS_CHANGE_LIMIT: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Rows kept in the emerging and fading consensus lists.",
    )
    STATS_LIMIT: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Rows kept in top-owned, top-by-percentage, big-bet and buy/sell lists.",
    )
    MANAGER_TOP_HOLDINGS: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Largest holdings listed per manager in the superinvestor list.",
    )

    # Cache and time budget
    CACHE_TTL_SECONDS: int = Field(
        default=3600,
        ge=0,
        le=86400,
        description="Lifetime of cached aggregates; 0 disables caching.",
    )
    COHORT_CACHE_TTL_SECONDS: int = Field(
        default=300,
        ge=0,
        le=86400,
        description="Lifetime of cached cohort selections; 0 disables caching.",
    )
    TIMEOUT_SECONDS: Optional[float] = Field(
        default=None,
        gt=0,
        description="Time budget for one report computation; None means unbounded.",
    )

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Root log level.",
    )
    LOG_JSON: bool = Field(
        default=False,
        description="Emit JSON structured logs instead of console format.",
    )


def load_settings(path: Optional[Union[str, Path]] = None, **overrides: Any) -> EngineSettings:
    """
    Build settings from environment, an optional YAML file and overrides.

    YAML keys are matched case-insensitively against the field names, so a
    file may use ``max_cohort_size: 50``. Explicit keyword overrides win over
    the file, which wins over the environment.

    Args:
        path: Optional YAML configuration file
        **overrides: Field values that take precedence over everything else

    Returns:
        EngineSettings instance
    """
    values: Dict[str, Any] = {}

    if path is not None:
        config_path = Path(path)
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        values.update({str(k).upper(): v for k, v in data.items()})
        logger.info(f"Loaded engine configuration from {config_path}")

    values.update({k.upper(): v for k, v in overrides.items()})
    return EngineSettings(**values)


@lru_cache()
def get_engine_settings() -> EngineSettings:
    """
    Get cached engine settings instance.

    Returns:
        EngineSettings instance with values from environment.
    """
    return EngineSettings()


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    Useful for testing or when environment variables change.
    """
    get_engine_settings.cache_clear()
