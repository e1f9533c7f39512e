"""Configuration management for the playback telemetry service."""

from .constants import (
    DEFAULT_BREAKDOWN_TOP_N,
    DEFAULT_REPORT_LIMIT,
    DEFAULT_REPORT_PAGE,
    MAX_REPORT_LIMIT,
)
from .loader import get_settings, load_configuration, reset_settings
from .settings import EnvironmentOverrides, TelemetrySettings

__all__ = [
    "DEFAULT_BREAKDOWN_TOP_N",
    "DEFAULT_REPORT_LIMIT",
    "DEFAULT_REPORT_PAGE",
    "MAX_REPORT_LIMIT",
    "EnvironmentOverrides",
    "TelemetrySettings",
    "get_settings",
    "load_configuration",
    "reset_settings",
]
