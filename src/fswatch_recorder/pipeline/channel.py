"""
Bounded relay channel between normalizing producers and the batch consumer.

A full channel suspends senders instead of dropping records, which is the
only backpressure in the pipeline.
"""

import asyncio
import logging
from collections import deque

from fswatch_recorder.models.events import EventRecord
from fswatch_recorder.models.exceptions import ChannelClosedError

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100


class RelayChannel:
    """
    Ordered, capacity-limited, multi-producer single-consumer queue.

    Once closed, sends fail with ChannelClosedError while the consumer keeps
    receiving buffered records until the buffer is drained.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._buffer: deque[EventRecord] = deque()
        self._closed = False

        lock = asyncio.Lock()
        self._not_full = asyncio.Condition(lock)
        self._not_empty = asyncio.Condition(lock)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        """Get the number of buffered records."""
        return len(self._buffer)

    async def send(self, record: EventRecord) -> None:
        """
        Append a record, waiting while the channel is full.

        Raises:
            ChannelClosedError: If the channel is closed before the record fits
        """
        async with self._not_full:
            while not self._closed and len(self._buffer) >= self._capacity:
                await self._not_full.wait()
            if self._closed:
                raise ChannelClosedError(operation="send")
            self._buffer.append(record)
            self._not_empty.notify()

    async def receive(self) -> EventRecord:
        """
        Take the oldest record, waiting while the channel is empty.

        Raises:
            ChannelClosedError: If the channel is closed and fully drained
        """
        async with self._not_empty:
            while not self._buffer and not self._closed:
                await self._not_empty.wait()
            if not self._buffer:
                raise ChannelClosedError(operation="receive")
            record = self._buffer.popleft()
            self._not_full.notify()
            return record

    async def close(self) -> None:
        """Close the channel, waking every waiting sender and receiver."""
        async with self._not_full:
            if self._closed:
                return
            self._closed = True
            self._not_full.notify_all()
            self._not_empty.notify_all()
        logger.debug("Relay channel closed with %d buffered records", len(self._buffer))
