"""
Data models for filesystem change events.

These models represent the raw notifications coming off the watch layer and
the canonical records that flow through the relay channel into the store.
"""

import time
from enum import Enum
from pathlib import Path
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class ChangeType(str, Enum):
    """Persisted change type tags."""

    CREATE = "create"
    MODIFY = "modify"
    REMOVE = "remove"
    RENAME_FROM = "rename_from"
    RENAME_TO = "rename_to"
    RENAMED = "renamed"


class RawChangeKind(str, Enum):
    """Platform-neutral kind of a raw change notification."""

    CREATE = "create"
    MODIFY_DATA = "modify_data"
    MODIFY_METADATA = "modify_metadata"
    MODIFY_OTHER = "modify_other"
    RENAME_FROM = "rename_from"
    RENAME_TO = "rename_to"
    RENAME_ANY = "rename_any"
    REMOVE = "remove"
    ACCESS = "access"
    OTHER = "other"


class RawNotification:
    """A change reported by the watch layer, before normalization."""

    def __init__(self, kind: RawChangeKind, paths: list[str | bytes | Path]):
        self.kind = kind
        self.paths = list(paths)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RawNotification):
            return NotImplemented
        return self.kind == other.kind and self.paths == other.paths

    def __repr__(self) -> str:
        return f"RawNotification({self.kind.value}: {self.paths!r})"


class EventRecord(BaseModel):
    """
    Canonical, immutable representation of one detected change.

    Records are created once by the normalizer and never mutated; the store
    is append-only. The id is drawn from a fresh random UUID per record so
    producers never coordinate on a shared counter.
    """

    id: str = Field(default_factory=lambda: str(uuid4()), min_length=1, description="Random 128-bit identifier")
    timestamp: int = Field(
        default_factory=lambda: int(time.time()), ge=0, description="Detection time, Unix seconds"
    )
    change_type: ChangeType = Field(..., description="Kind of change detected")
    path: str = Field(..., min_length=1, description="Path as reported at detection time")
    file_name: str = Field(..., min_length=1, description="Final path segment")

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    def as_row(self) -> tuple[str, int, str, str, str]:
        """Get the record as a ``file_events`` insert row."""
        return (self.id, self.timestamp, self.change_type, self.path, self.file_name)

    def __str__(self) -> str:
        return f"EventRecord({self.change_type}: {self.path})"
