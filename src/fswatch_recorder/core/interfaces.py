"""
Abstract interfaces for the event recorder.

These interfaces define the contracts between the pipeline and its
collaborators, enabling dependency injection for testing.
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path

from fswatch_recorder.models.events import EventRecord


class IEventWriter(ABC):
    """Interface for durable, transactional storage of event batches."""

    @abstractmethod
    def initialize(self) -> None:
        """
        Prepare the store for writing, creating the schema if absent.

        Calling this more than once must leave existing data untouched.

        Raises:
            SchemaInitializationError: If the store cannot be prepared
        """
        pass

    @abstractmethod
    async def flush(self, records: list[EventRecord]) -> None:
        """
        Commit a batch of records atomically.

        Either every record in the batch is stored or none is.

        Args:
            records: Records in append order

        Raises:
            PersistenceError: If the batch cannot be committed
        """
        pass


class IWatchSource(ABC):
    """Interface for a recursive directory watch feeding the relay channel."""

    @abstractmethod
    def start(self, root: Path, loop: asyncio.AbstractEventLoop) -> None:
        """
        Establish the watch and begin producing records.

        Args:
            root: Directory to watch
            loop: Event loop that runs the normalizing producer tasks

        Raises:
            WatchSetupError: If the watch cannot be established
        """
        pass

    @abstractmethod
    def stop(self, timeout: float | None = None) -> None:
        """Stop receiving notifications from the OS."""
        pass

    @abstractmethod
    async def wait_for_producers(self, timeout: float | None = None) -> int:
        """
        Wait for dispatched producer tasks to finish.

        Returns:
            Number of producer tasks still running when the wait ended
        """
        pass

    @property
    @abstractmethod
    def is_watching(self) -> bool:
        """Check if the watch is currently active."""
        pass
