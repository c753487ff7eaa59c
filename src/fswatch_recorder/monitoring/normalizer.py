"""
Normalization of raw change notifications into event records.

Maps the platform-neutral notification kinds onto the persisted change
types and fans a notification out into one record per usable path.
"""

import logging
import os
from pathlib import Path, PurePath

from fswatch_recorder.models.events import ChangeType, EventRecord, RawChangeKind, RawNotification

logger = logging.getLogger(__name__)

# Kinds absent from this table (metadata-only, access, other) yield nothing.
_CHANGE_TYPES: dict[RawChangeKind, ChangeType] = {
    RawChangeKind.RENAME_FROM: ChangeType.RENAME_FROM,
    RawChangeKind.RENAME_TO: ChangeType.RENAME_TO,
    RawChangeKind.RENAME_ANY: ChangeType.RENAMED,
    RawChangeKind.MODIFY_DATA: ChangeType.MODIFY,
    RawChangeKind.MODIFY_OTHER: ChangeType.MODIFY,
    RawChangeKind.CREATE: ChangeType.CREATE,
    RawChangeKind.REMOVE: ChangeType.REMOVE,
}


def classify(kind: RawChangeKind) -> ChangeType | None:
    """
    Get the persisted change type for a raw notification kind.

    Args:
        kind: Raw notification kind

    Returns:
        The change type, or None when notifications of this kind are dropped
    """
    if kind == RawChangeKind.MODIFY_METADATA:
        return None
    return _CHANGE_TYPES.get(kind)


def _as_text(path: str | bytes | Path) -> str | None:
    """Decode a reported path to text, or None if it has no text form."""
    text = os.fsdecode(path) if isinstance(path, bytes) else str(path)
    try:
        # Undecodable bytes surface as lone surrogates and cannot be stored.
        text.encode("utf-8")
    except UnicodeEncodeError:
        return None
    return text


def _file_name(path: str) -> str | None:
    if not path:
        return None
    name = PurePath(path).name
    if not name or name == "..":
        return None
    return name


def normalize(notification: RawNotification) -> list[EventRecord]:
    """
    Convert one raw notification into zero or more event records.

    Every attached path yields one record stamped with the current time and
    a fresh id. Paths without a final name segment, or that cannot be
    represented as text, are skipped.

    Args:
        notification: Raw notification from the watch layer

    Returns:
        Records in the order of the notification's paths
    """
    change_type = classify(notification.kind)
    if change_type is None:
        logger.debug("Dropping %s notification for %s", notification.kind.value, notification.paths)
        return []

    records = []
    for raw_path in notification.paths:
        path = _as_text(raw_path)
        if path is None:
            continue
        file_name = _file_name(path)
        if file_name is None:
            continue
        records.append(EventRecord(change_type=change_type, path=path, file_name=file_name))

    return records
