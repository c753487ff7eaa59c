"""Data models and exceptions for the event recorder."""

from fswatch_recorder.models.events import ChangeType, EventRecord, RawChangeKind, RawNotification
from fswatch_recorder.models.exceptions import (
    BaseError,
    ChannelClosedError,
    ConfigurationError,
    PersistenceError,
    SchemaInitializationError,
    ShutdownError,
    WatchSetupError,
)

__all__ = [
    "ChangeType",
    "EventRecord",
    "RawChangeKind",
    "RawNotification",
    "BaseError",
    "ChannelClosedError",
    "ConfigurationError",
    "PersistenceError",
    "SchemaInitializationError",
    "ShutdownError",
    "WatchSetupError",
]
