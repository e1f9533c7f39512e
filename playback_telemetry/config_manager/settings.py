"""Pydantic models and helper utilities for configuration values."""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .. import logging_manager

from .constants import (
    DEFAULT_BREAKDOWN_TOP_N,
    DEFAULT_DATABASE_URL,
    DEFAULT_REPORT_LIMIT,
    DEFAULT_REPORT_WORKERS,
    DEFAULT_SESSION_FILE,
    MAX_REPORT_LIMIT,
)

logger = logging_manager.get_logger()


class TelemetrySettings(BaseModel):
    """Typed representation of the service configuration."""

    model_config = ConfigDict(extra="ignore")

    database_url: SecretStr = SecretStr(DEFAULT_DATABASE_URL)
    playback_api_key: Optional[SecretStr] = None
    session_file: str = DEFAULT_SESSION_FILE
    session_ttl_hours: Optional[int] = Field(default=None, ge=1)
    report_default_limit: int = Field(default=DEFAULT_REPORT_LIMIT, ge=1)
    report_max_limit: int = Field(default=MAX_REPORT_LIMIT, ge=1)
    breakdown_top_n: int = Field(default=DEFAULT_BREAKDOWN_TOP_N, ge=1)
    report_workers: int = Field(default=DEFAULT_REPORT_WORKERS, ge=1)
    log_level: str = "INFO"
    cors_origins: Optional[str] = None


class EnvironmentOverrides(BaseSettings):
    """Configuration overrides sourced from environment variables."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    database_url: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("DATABASE_URL", "PLAYBACK_DATABASE_URL")
    )
    playback_api_key: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("PLAYBACK_API_KEY")
    )
    session_file: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("PLAYBACK_SESSION_FILE")
    )
    session_ttl_hours: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("PLAYBACK_SESSION_TTL_HOURS")
    )
    report_default_limit: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("PLAYBACK_REPORT_DEFAULT_LIMIT")
    )
    report_max_limit: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("PLAYBACK_REPORT_MAX_LIMIT")
    )
    breakdown_top_n: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("PLAYBACK_BREAKDOWN_TOP_N")
    )
    report_workers: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("PLAYBACK_REPORT_WORKERS")
    )
    log_level: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("PLAYBACK_LOG_LEVEL", "LOG_LEVEL")
    )
    cors_origins: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("PLAYBACK_CORS_ORIGINS")
    )


def load_environment_overrides() -> Dict[str, Any]:
    """Return configuration overrides sourced from environment variables."""

    try:
        overrides = EnvironmentOverrides()
    except ValidationError as exc:
        logger.warning(
            "Invalid environment configuration detected; using defaults.",
            extra={"event": "config.env.validation_error", "error": str(exc)},
        )
        return {}
    return overrides.model_dump(exclude_none=True)


def apply_settings_updates(
    settings: TelemetrySettings, updates: Dict[str, Any]
) -> TelemetrySettings:
    """Return a copy of ``settings`` validated with ``updates`` applied."""

    if not updates:
        return settings
    merged = settings.model_dump()
    merged.update(updates)
    return TelemetrySettings.model_validate(merged)


__all__ = [
    "TelemetrySettings",
    "EnvironmentOverrides",
    "apply_settings_updates",
    "load_environment_overrides",
]
