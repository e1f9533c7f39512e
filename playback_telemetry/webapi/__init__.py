"""FastAPI surface for the playback telemetry service."""

from .application import create_app

__all__ = ["create_app"]
