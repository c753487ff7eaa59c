"""
Batch accumulation and flush scheduling.

Collects records from the relay channel and hands them to the event writer
when either the batch fills up or the fixed flush timer fires, whichever
comes first.
"""

import asyncio
import logging

from fswatch_recorder.core.interfaces import IEventWriter
from fswatch_recorder.models.events import EventRecord
from fswatch_recorder.models.exceptions import ChannelClosedError, PersistenceError
from fswatch_recorder.pipeline.channel import RelayChannel

logger = logging.getLogger(__name__)

DEFAULT_MAX_BATCH_SIZE = 100
DEFAULT_FLUSH_INTERVAL = 2.0


class BatchAccumulator:
    """
    Single consumer of the relay channel.

    Each loop iteration races the flush timer, the next channel receive and
    a stop request. The timer runs on a fixed schedule measured from the
    start of ``run()``, so its period does not depend on traffic. Flushes
    are awaited in line, so at most one transaction is in flight.
    """

    def __init__(
        self,
        channel: RelayChannel,
        writer: IEventWriter,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
        flush_interval: float = DEFAULT_FLUSH_INTERVAL,
    ):
        """
        Initialize the accumulator.

        Args:
            channel: Relay channel to consume
            writer: Writer that commits flushed batches
            max_batch_size: Record count that triggers an immediate flush
            flush_interval: Timer period in seconds
        """
        if max_batch_size < 1:
            raise ValueError("max_batch_size must be at least 1")
        if flush_interval <= 0:
            raise ValueError("flush_interval must be positive")

        self.channel = channel
        self.writer = writer
        self.max_batch_size = max_batch_size
        self.flush_interval = flush_interval

        self._batch: list[EventRecord] = []
        self._stop_requested = asyncio.Event()
        self._running = False
        self._started_at = 0.0
        self._next_tick_at = 0.0

        self._stats = {"flushes": 0, "records_flushed": 0, "timer_flushes": 0, "size_flushes": 0}

    @property
    def pending_count(self) -> int:
        """Number of records accumulated but not yet flushed."""
        return len(self._batch)

    @property
    def is_running(self) -> bool:
        return self._running

    def get_stats(self) -> dict[str, int]:
        return dict(self._stats)

    def stop(self) -> None:
        """Request a graceful stop: drain buffered records, flush, return."""
        self._stop_requested.set()

    async def run(self) -> None:
        """
        Accumulate and flush until stopped or the channel is closed.

        Raises:
            PersistenceError: If a batch cannot be committed
        """
        loop = asyncio.get_running_loop()
        self._started_at = loop.time()
        self._next_tick_at = self._started_at + self.flush_interval
        self._running = True
        logger.info(
            "Batch accumulator started (max batch size: %d, flush interval: %.1fs)",
            self.max_batch_size,
            self.flush_interval,
        )

        receive_task: asyncio.Task | None = None
        tick_task: asyncio.Task | None = None
        stop_task = asyncio.ensure_future(self._stop_requested.wait())

        try:
            while True:
                if receive_task is None:
                    receive_task = asyncio.ensure_future(self.channel.receive())
                if tick_task is None:
                    tick_task = asyncio.ensure_future(self._wait_for_tick())

                done, _ = await asyncio.wait(
                    {receive_task, tick_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
                )

                if receive_task in done:
                    finished, receive_task = receive_task, None
                    try:
                        record = finished.result()
                    except ChannelClosedError:
                        logger.info("Relay channel closed, finishing accumulation")
                        break
                    await self._append(record)

                if tick_task in done:
                    tick_task = None
                    await self._on_tick()

                if stop_task in done:
                    logger.info("Stop requested, draining relay channel")
                    break

            if receive_task is not None:
                await self._settle_receive(receive_task)
                receive_task = None

            await self._drain()
            await self._flush("final")
        finally:
            for task in (receive_task, tick_task, stop_task):
                if task is not None and not task.done():
                    task.cancel()
            self._running = False

        logger.info(
            "Batch accumulator stopped after %d flushes (%d records)",
            self._stats["flushes"],
            self._stats["records_flushed"],
        )

    async def _wait_for_tick(self) -> None:
        loop = asyncio.get_running_loop()
        delay = self._next_tick_at - loop.time()
        if delay > 0:
            await asyncio.sleep(delay)

        # Skip ticks missed during a slow flush instead of firing them back to back.
        now = loop.time()
        self._next_tick_at += self.flush_interval
        if self._next_tick_at <= now:
            missed = int((now - self._next_tick_at) // self.flush_interval) + 1
            self._next_tick_at += missed * self.flush_interval

    async def _on_tick(self) -> None:
        if not self._batch:
            return
        self._stats["timer_flushes"] += 1
        await self._flush("timer")

    async def _append(self, record: EventRecord) -> None:
        self._batch.append(record)
        if len(self._batch) >= self.max_batch_size:
            self._stats["size_flushes"] += 1
            await self._flush("size")

    async def _settle_receive(self, task: asyncio.Task) -> None:
        """Cancel an outstanding receive, keeping its record if it already got one."""
        if not task.done():
            task.cancel()
        try:
            record = await task
        except (asyncio.CancelledError, ChannelClosedError):
            return
        await self._append(record)

    async def _drain(self) -> None:
        """Close the channel and take every record still buffered in it."""
        await self.channel.close()
        drained = 0
        while True:
            try:
                record = await self.channel.receive()
            except ChannelClosedError:
                break
            drained += 1
            await self._append(record)
        if drained:
            logger.debug("Drained %d buffered records from relay channel", drained)

    async def _flush(self, trigger: str) -> None:
        """Hand the working set to the writer and start a new one."""
        if not self._batch:
            return

        batch, self._batch = self._batch, []
        try:
            await self.writer.flush(batch)
        except PersistenceError as e:
            logger.error("Failed to flush %d records (%s trigger): %s", len(batch), trigger, e)
            raise

        self._stats["flushes"] += 1
        self._stats["records_flushed"] += len(batch)
        logger.debug("Flushed %d records (%s trigger)", len(batch), trigger)
