"""Unit tests for event models."""

import time
from uuid import UUID

import pytest
from fswatch_recorder.models.events import ChangeType, EventRecord, RawChangeKind, RawNotification
from pydantic import ValidationError


class TestEventRecord:
    """Test cases for EventRecord model."""

    def test_create_valid_record(self):
        """Test creating a record fills id and timestamp."""
        before = int(time.time())
        record = EventRecord(change_type=ChangeType.CREATE, path="/watched/a.txt", file_name="a.txt")
        after = int(time.time())

        assert UUID(record.id).version == 4
        assert before <= record.timestamp <= after
        assert record.change_type == ChangeType.CREATE
        assert record.change_type == "create"
        assert record.path == "/watched/a.txt"
        assert record.file_name == "a.txt"

    def test_ids_are_unique(self):
        """Test every record draws its own id."""
        records = [EventRecord(change_type="modify", path="/w/f", file_name="f") for _ in range(500)]

        assert len({record.id for record in records}) == 500

    def test_record_is_immutable(self):
        """Test records cannot be changed after creation."""
        record = EventRecord(change_type=ChangeType.REMOVE, path="/w/gone.txt", file_name="gone.txt")

        with pytest.raises(ValidationError):
            record.path = "/w/other.txt"

    def test_invalid_change_type(self):
        """Test unknown change types are rejected."""
        with pytest.raises(ValidationError):
            EventRecord(change_type="chmod", path="/w/a.txt", file_name="a.txt")

    def test_empty_file_name_rejected(self):
        """Test records need a file name."""
        with pytest.raises(ValidationError):
            EventRecord(change_type=ChangeType.CREATE, path="/w", file_name="")

    def test_as_row(self):
        """Test conversion to an insert row."""
        record = EventRecord(
            id="0b0f6c1e-5d2a-4bb4-9d8e-6a1f7d1c2b3a",
            timestamp=1_700_000_000,
            change_type=ChangeType.RENAME_TO,
            path="/w/new.txt",
            file_name="new.txt",
        )

        assert record.as_row() == (
            "0b0f6c1e-5d2a-4bb4-9d8e-6a1f7d1c2b3a",
            1_700_000_000,
            "rename_to",
            "/w/new.txt",
            "new.txt",
        )

    def test_string_representation(self):
        """Test string representation of a record."""
        record = EventRecord(change_type=ChangeType.RENAMED, path="/w/x.md", file_name="x.md")

        assert str(record) == "EventRecord(renamed: /w/x.md)"


class TestRawNotification:
    """Test cases for RawNotification."""

    def test_equality(self):
        """Test notifications compare by kind and paths."""
        first = RawNotification(RawChangeKind.CREATE, ["/w/a.txt"])

        assert first == RawNotification(RawChangeKind.CREATE, ["/w/a.txt"])
        assert first != RawNotification(RawChangeKind.REMOVE, ["/w/a.txt"])
        assert first != RawNotification(RawChangeKind.CREATE, ["/w/b.txt"])

    def test_paths_are_copied(self):
        """Test the notification keeps its own list of paths."""
        paths = ["/w/a.txt"]
        notification = RawNotification(RawChangeKind.CREATE, paths)
        paths.append("/w/b.txt")

        assert notification.paths == ["/w/a.txt"]

    def test_repr(self):
        """Test debug representation."""
        notification = RawNotification(RawChangeKind.RENAME_FROM, ["/w/old.txt"])

        assert repr(notification) == "RawNotification(rename_from: ['/w/old.txt'])"
