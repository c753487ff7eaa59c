"""
SQLite event store.

Bootstraps the ``file_events`` table and commits batches of event records
in single transactions. Connections are opened per flush and never shared.
"""

import asyncio
import logging
import sqlite3
from pathlib import Path

from fswatch_recorder.core.interfaces import IEventWriter
from fswatch_recorder.models.events import EventRecord
from fswatch_recorder.models.exceptions import PersistenceError, SchemaInitializationError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS file_events (
    id TEXT PRIMARY KEY,
    timestamp INTEGER NOT NULL,
    change_type TEXT NOT NULL,
    path TEXT NOT NULL,
    file_name TEXT NOT NULL
);
"""

INSERT_EVENT = """
INSERT INTO file_events (id, timestamp, change_type, path, file_name)
VALUES (?, ?, ?, ?, ?)
"""


class SQLiteEventStore(IEventWriter):
    """
    Append-only store of file events in a local SQLite database.

    The database runs in WAL mode. Each batch is written inside one
    transaction that is rolled back as a whole if any insert fails.
    """

    def __init__(self, db_path: str | Path, timeout: float = 30.0):
        """Initialize the store for the database file at ``db_path``."""
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=self.timeout)

    def initialize(self) -> None:
        """Enable WAL journaling and create the events table if absent."""
        try:
            conn = self._connect()
            try:
                mode = conn.execute("PRAGMA journal_mode = WAL").fetchone()
                conn.executescript(SCHEMA)
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise SchemaInitializationError(
                f"Failed to initialize event store: {e}",
                db_path=str(self.db_path),
                underlying_error=e,
            ) from e

        self._initialized = True
        logger.info("Event store ready at %s (journal mode: %s)", self.db_path, mode[0] if mode else "unknown")

    def write_batch(self, records: list[EventRecord]) -> None:
        """
        Insert a batch of records in one transaction. Blocks on disk I/O.

        Raises:
            PersistenceError: If any insert or the commit fails; nothing from
                the batch is stored in that case
        """
        if not records:
            return

        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to open event store: {e}",
                db_path=str(self.db_path),
                record_count=len(records),
                underlying_error=e,
            ) from e

        try:
            # The connection context manager commits on success and rolls back on error.
            with conn:
                conn.executemany(INSERT_EVENT, (record.as_row() for record in records))
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to commit batch of {len(records)} events: {e}",
                db_path=str(self.db_path),
                record_count=len(records),
                underlying_error=e,
            ) from e
        finally:
            conn.close()

        logger.info("Committed %d events to %s", len(records), self.db_path)

    async def flush(self, records: list[EventRecord]) -> None:
        """Commit a batch from a worker thread so the event loop keeps running."""
        if not records:
            return
        await asyncio.to_thread(self.write_batch, records)

    def count_events(self) -> int:
        """Get the number of stored events."""
        conn = self._connect()
        try:
            return conn.execute("SELECT COUNT(*) FROM file_events").fetchone()[0]
        finally:
            conn.close()
