"""
Configuration management using pydantic-settings.

Loads configuration from environment variables and .env file.
"""
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    MIN_EXPECTED_VALUE,
    TEAM_SIMILARITY_THRESHOLD,
    VALUE_BET_RETENTION_HOURS,
    OddsSource,
)


class MatchingSettings(BaseSettings):
    """Settings for cross-source event matching."""

    model_config = SettingsConfigDict(env_prefix="MATCH_")

    team_similarity_threshold: Decimal = Field(
        default=TEAM_SIMILARITY_THRESHOLD,
        description="Minimum per-team token-set similarity (0-100) to pair two events",
    )

    @field_validator("team_similarity_threshold")
    @classmethod
    def validate_threshold(cls, v: Decimal) -> Decimal:
        if not Decimal("0") <= v <= Decimal("100"):
            raise ValueError("team_similarity_threshold must be between 0 and 100")
        return v


class ValueDetectionSettings(BaseSettings):
    """Settings for value bet detection."""

    model_config = SettingsConfigDict(env_prefix="VALUE_")

    min_expected_value: Decimal = Field(
        default=MIN_EXPECTED_VALUE,
        description="Minimum EV per unit stake to accept a value bet",
    )
    retention_hours: int = Field(
        default=VALUE_BET_RETENTION_HOURS,
        description="Stored value bets older than this are purged",
    )

    @field_validator("min_expected_value")
    @classmethod
    def validate_min_ev(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("min_expected_value must not be negative")
        return v

    @field_validator("retention_hours")
    @classmethod
    def validate_retention(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("retention_hours must be positive")
        return v


class SourceSettings(BaseSettings):
    """Settings for the two event feeds."""

    model_config = SettingsConfigDict(env_prefix="SOURCE_")

    reference_path: Optional[Path] = Field(
        default=None,
        description="JSON file with scraped events of the bettable feed",
    )
    candidate_path: Optional[Path] = Field(
        default=None,
        description="JSON file with scraped events of the pricing feed",
    )
    reference_name: str = Field(default=OddsSource.BETBY.value)
    candidate_name: str = Field(default=OddsSource.PINNACLE.value)
    reference_timezone: str = Field(
        default="UTC",
        description="Timezone applied to naive kickoff times of the bettable feed",
    )
    candidate_timezone: str = Field(default="UTC")


class SchedulerSettings(BaseSettings):
    """Settings for the periodic pipeline runner."""

    model_config = SettingsConfigDict(env_prefix="SCHEDULER_")

    run_interval_minutes: int = Field(
        default=5,
        description="Minutes between full pipeline runs",
    )

    @field_validator("run_interval_minutes")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("run_interval_minutes must be positive")
        return v


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///odd_scout.db",
        description="Database connection URL",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default="logs/odd_scout.log")
    debug: bool = Field(default=False)

    # Sub-settings
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    value_detection: ValueDetectionSettings = Field(
        default_factory=ValueDetectionSettings
    )
    sources: SourceSettings = Field(default_factory=SourceSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        level = v.upper()
        if level not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return level


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
