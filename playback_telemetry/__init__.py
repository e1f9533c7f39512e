"""Playback telemetry: proof-of-play ingestion and reporting."""

from .environment import load_environment

# Load environment variables from .env-style files as soon as the package is
# imported so the CLI runner and the FastAPI app see the same settings.
load_environment()

__all__ = ["load_environment"]
