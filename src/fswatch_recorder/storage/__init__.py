"""Durable storage for recorded file events."""

from fswatch_recorder.storage.sqlite_store import SQLiteEventStore

__all__ = ["SQLiteEventStore"]
