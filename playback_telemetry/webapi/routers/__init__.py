"""Routers exposed by the playback telemetry API."""
