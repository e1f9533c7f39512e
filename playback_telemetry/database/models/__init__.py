"""SQLAlchemy models: import all to register with Base.metadata."""

from .playback import PlaybackEventModel

__all__ = ["PlaybackEventModel"]
