"""SQLAlchemy database layer for the playback telemetry service.

Provides the shared engine, session factory, and declarative base
used by the playback event store.
"""

from .base import Base
from .engine import dispose_engine, get_db_session, get_engine, init_schema

__all__ = ["Base", "get_engine", "get_db_session", "dispose_engine", "init_schema"]
