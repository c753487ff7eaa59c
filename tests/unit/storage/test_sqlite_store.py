"""Unit tests for the SQLite event store."""

import sqlite3
from unittest.mock import patch

import pytest
from fswatch_recorder.models import ChangeType, EventRecord, PersistenceError, SchemaInitializationError
from fswatch_recorder.storage import SQLiteEventStore


def make_record(name: str, change_type: ChangeType = ChangeType.CREATE, **kwargs) -> EventRecord:
    return EventRecord(change_type=change_type, path=f"/w/{name}", file_name=name, **kwargs)


def fetch_rows(db_path) -> list[tuple]:
    conn = sqlite3.connect(db_path)
    try:
        return conn.execute(
            "SELECT id, timestamp, change_type, path, file_name FROM file_events ORDER BY rowid"
        ).fetchall()
    finally:
        conn.close()


class TestSQLiteEventStore:
    """Test cases for SQLiteEventStore."""

    @pytest.fixture
    def db_path(self, tmp_path):
        return tmp_path / "events.db"

    @pytest.fixture
    def store(self, db_path):
        """Create an initialized store."""
        store = SQLiteEventStore(db_path)
        store.initialize()
        return store

    def test_initialize_creates_schema(self, store, db_path):
        """Test the events table is created with the expected columns."""
        conn = sqlite3.connect(db_path)
        try:
            columns = conn.execute("PRAGMA table_info(file_events)").fetchall()
            journal_mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
        finally:
            conn.close()

        assert [(c[1], c[2], c[3], c[5]) for c in columns] == [
            ("id", "TEXT", 0, 1),
            ("timestamp", "INTEGER", 1, 0),
            ("change_type", "TEXT", 1, 0),
            ("path", "TEXT", 1, 0),
            ("file_name", "TEXT", 1, 0),
        ]
        assert journal_mode == "wal"
        assert store.is_initialized

    def test_initialize_is_idempotent(self, store, db_path):
        """Test a second initialization keeps the table and its rows."""
        store.write_batch([make_record("a.txt"), make_record("b.txt")])

        SQLiteEventStore(db_path).initialize()

        conn = sqlite3.connect(db_path)
        try:
            tables = conn.execute(
                "SELECT COUNT(*) FROM sqlite_master WHERE type = 'table' AND name = 'file_events'"
            ).fetchone()[0]
        finally:
            conn.close()

        assert tables == 1
        assert len(fetch_rows(db_path)) == 2

    def test_initialize_failure(self, tmp_path):
        """Test an unusable database path is reported as a schema error."""
        store = SQLiteEventStore(tmp_path / "missing" / "dir" / "events.db")

        with pytest.raises(SchemaInitializationError) as exc_info:
            store.initialize()

        assert exc_info.value.error_code == "SCHEMA_ERROR"
        assert isinstance(exc_info.value.cause, sqlite3.Error)
        assert not store.is_initialized

    def test_write_batch(self, store, db_path):
        """Test records are stored with every field in append order."""
        records = [
            make_record("a.txt", ChangeType.CREATE, timestamp=1_700_000_000),
            make_record("a.txt", ChangeType.MODIFY, timestamp=1_700_000_001),
            make_record("a.txt", ChangeType.REMOVE, timestamp=1_700_000_002),
        ]

        store.write_batch(records)

        assert fetch_rows(db_path) == [record.as_row() for record in records]
        assert store.count_events() == 3

    def test_write_empty_batch(self, store):
        """Test an empty batch does not open a transaction."""
        with patch.object(store, "_connect") as mock_connect:
            store.write_batch([])

        mock_connect.assert_not_called()

    def test_batch_is_atomic(self, store, db_path):
        """Test a failing insert mid-batch leaves none of the batch behind."""
        store.write_batch([make_record("before.txt")])

        duplicate = make_record("dup-1.txt")
        batch = [
            make_record("first.txt"),
            duplicate,
            make_record("dup-2.txt", id=duplicate.id),
            make_record("never.txt"),
        ]

        with pytest.raises(PersistenceError) as exc_info:
            store.write_batch(batch)

        assert exc_info.value.context["record_count"] == 4
        assert [row[4] for row in fetch_rows(db_path)] == ["before.txt"]

    def test_write_without_schema_fails(self, db_path):
        """Test writing to a store whose table is missing is a persistence error."""
        store = SQLiteEventStore(db_path)

        with pytest.raises(PersistenceError):
            store.write_batch([make_record("a.txt")])

    @pytest.mark.asyncio
    async def test_flush(self, store, db_path):
        """Test the async flush commits through a worker thread."""
        records = [make_record(f"{i}.txt") for i in range(3)]

        await store.flush(records)

        assert [row[0] for row in fetch_rows(db_path)] == [record.id for record in records]

    @pytest.mark.asyncio
    async def test_flush_propagates_failure(self, store):
        """Test persistence errors surface from the async flush."""
        record = make_record("a.txt")

        with pytest.raises(PersistenceError):
            await store.flush([record, record])

    @pytest.mark.asyncio
    async def test_flush_empty_batch(self, store):
        """Test an empty flush is a no-op."""
        with patch.object(store, "write_batch") as mock_write:
            await store.flush([])

        mock_write.assert_not_called()
