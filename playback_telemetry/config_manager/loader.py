"""Configuration loading utilities."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .. import logging_manager

from .constants import CONFIG_FILE_ENV, DEFAULT_CONFIG_PATH, DEFAULT_LOCAL_CONFIG_PATH
from .settings import TelemetrySettings, apply_settings_updates, load_environment_overrides

logger = logging_manager.get_logger()

_ACTIVE_SETTINGS: Optional[TelemetrySettings] = None


def _read_config_json(path: Optional[Path], label: str = "configuration") -> Dict[str, Any]:
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except FileNotFoundError:
        return {}
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning(
            "Error loading %s from %s: %s. Proceeding without it.",
            label,
            path,
            exc,
            extra={"event": "config.file.invalid"},
        )
        return {}
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring %s at %s; expected a JSON object.",
            label,
            path,
            extra={"event": "config.file.invalid"},
        )
        return {}
    logger.debug("Loaded %s from %s", label, path, extra={"event": "config.file.loaded"})
    return data


def _resolve_config_path(config_file: Optional[str]) -> Path:
    candidate = config_file or os.environ.get(CONFIG_FILE_ENV)
    if candidate:
        return Path(candidate).expanduser()
    return DEFAULT_CONFIG_PATH


def load_configuration(config_file: Optional[str] = None) -> TelemetrySettings:
    """Build settings from defaults, JSON config files and the environment.

    Precedence, lowest first: model defaults, ``conf/config.json`` (or the
    file named by ``PLAYBACK_CONFIG_FILE``), ``conf/config.local.json``, then
    environment variables.
    """

    file_values: Dict[str, Any] = {}
    file_values.update(_read_config_json(_resolve_config_path(config_file)))
    if config_file is None:
        file_values.update(_read_config_json(DEFAULT_LOCAL_CONFIG_PATH, "local configuration"))

    try:
        settings = TelemetrySettings.model_validate(file_values)
    except ValidationError as exc:
        logger.warning(
            "Invalid configuration file values; falling back to defaults.",
            extra={"event": "config.file.validation_error", "error": str(exc)},
        )
        settings = TelemetrySettings()

    try:
        return apply_settings_updates(settings, load_environment_overrides())
    except ValidationError as exc:
        logger.warning(
            "Environment overrides rejected; keeping file configuration.",
            extra={"event": "config.env.validation_error", "error": str(exc)},
        )
        return settings


def get_settings() -> TelemetrySettings:
    """Return the process-wide settings, loading them on first use."""

    global _ACTIVE_SETTINGS
    if _ACTIVE_SETTINGS is None:
        _ACTIVE_SETTINGS = load_configuration()
    return _ACTIVE_SETTINGS


def reset_settings() -> None:
    """Forget cached settings so the next access reloads them."""

    global _ACTIVE_SETTINGS
    _ACTIVE_SETTINGS = None


__all__ = ["get_settings", "load_configuration", "reset_settings"]
