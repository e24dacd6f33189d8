"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages


class PartySettings(BaseModel):
    """Tunables for activity tracking, voting thresholds and suggestion testing."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    active_window_min: int = Field(
        default=10,
        ge=1,
        le=24 * 60,
        validation_alias=AliasChoices("active_window_min", "ACTIVE_WINDOW_MIN"),
    )
    promote_threshold: float = Field(
        default=0.40,
        gt=0.0,
        le=1.0,
        validation_alias=AliasChoices("promote_threshold", "PROMOTE_THRESHOLD"),
    )
    remove_threshold: float = Field(
        default=0.40,
        gt=0.0,
        le=1.0,
        validation_alias=AliasChoices("remove_threshold", "REMOVE_THRESHOLD"),
    )
    sample_percent: float = Field(
        default=0.05,
        gt=0.0,
        le=1.0,
        validation_alias=AliasChoices("sample_percent", "SAMPLE_PERCENT"),
    )
    sample_min: int = Field(
        default=3, ge=1, validation_alias=AliasChoices("sample_min", "SAMPLE_MIN")
    )
    sample_cap: int = Field(
        default=15, ge=1, validation_alias=AliasChoices("sample_cap", "SAMPLE_CAP")
    )
    suggest_expand_at_ms: int = Field(
        default=120_000,
        gt=0,
        validation_alias=AliasChoices("suggest_expand_at_ms", "SUGGEST_EXPAND_AT_MS"),
    )
    suggest_expire_at_ms: int = Field(
        default=300_000,
        gt=0,
        validation_alias=AliasChoices("suggest_expire_at_ms", "SUGGEST_EXPIRE_AT_MS"),
    )
    join_code_length: int = Field(default=6, ge=4, le=12)
    join_code_max_attempts: int = Field(default=10, ge=1, le=1000)

    @model_validator(mode="after")
    def validate_ranges(self) -> PartySettings:
        if self.sample_min > self.sample_cap:
            raise ValueError(ErrorMessages.SAMPLE_BOUNDS_INVERTED)
        if self.suggest_expand_at_ms >= self.suggest_expire_at_ms:
            raise ValueError(ErrorMessages.SUGGEST_WINDOWS_INVERTED)
        return self

    @property
    def active_window_ms(self) -> int:
        return self.active_window_min * 60 * 1000


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - PARTY__ACTIVE_WINDOW_MIN, PARTY__SAMPLE_CAP, etc. (nested with delimiter)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    party: PartySettings = Field(default_factory=PartySettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels)
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
