"""
Pipeline coordinator for recording file events.

Wires the watch source, relay channel, batch accumulator and event writer
together, and sequences startup and graceful shutdown.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

from fswatch_recorder.config.settings import RecorderConfig
from fswatch_recorder.core.interfaces import IEventWriter, IWatchSource
from fswatch_recorder.models.exceptions import ShutdownError
from fswatch_recorder.monitoring.file_watcher import FileSystemWatchSource, check_watch_root
from fswatch_recorder.pipeline.accumulator import BatchAccumulator
from fswatch_recorder.pipeline.channel import RelayChannel

logger = logging.getLogger(__name__)


class EventPipeline:
    """
    Coordinates the event pipeline from OS notification to committed row.

    Startup failures (watch root, schema, watch) propagate before any work is
    done. The watch root is checked before the store is touched, so an invalid
    root never leaves a database file behind. A persistence failure while
    running ends the pipeline with that error.

    On a stop request, or when the running task is cancelled (Ctrl+C where no
    signal handler can be installed), the watch is stopped first, in-flight
    producers are given ``shutdown_timeout_seconds`` to finish, and the
    accumulator then drains the channel and performs a final flush.
    """

    def __init__(
        self,
        config: RecorderConfig,
        root_dir: Path,
        writer: IEventWriter,
        watch_source: IWatchSource | None = None,
        channel: RelayChannel | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Recorder configuration
            root_dir: Directory to watch
            writer: Event writer for flushed batches
            watch_source: Optional watch source (will create if not provided)
            channel: Optional relay channel (will create if not provided)
        """
        self.config = config
        self.root_dir = Path(root_dir)
        self.writer = writer

        self.channel = channel or RelayChannel(capacity=config.channel_capacity)
        self.watch_source = watch_source or FileSystemWatchSource(
            channel=self.channel,
            recursive=config.recursive,
            fingerprint_cache_size=config.fingerprint_cache_size,
        )
        self.accumulator = BatchAccumulator(
            channel=self.channel,
            writer=writer,
            max_batch_size=config.max_batch_size,
            flush_interval=config.flush_interval_seconds,
        )

        self._stop_requested = asyncio.Event()
        self._accumulator_task: asyncio.Task | None = None
        self._started = False

    @property
    def is_running(self) -> bool:
        return self._accumulator_task is not None and not self._accumulator_task.done()

    def request_stop(self) -> None:
        """Ask a running pipeline to shut down gracefully. Safe to call repeatedly."""
        if not self._stop_requested.is_set():
            logger.info("Shutdown requested")
        self._stop_requested.set()

    async def start(self) -> None:
        """
        Check the watch root, prepare the store, start the consumer, then start the watch.

        Raises:
            SchemaInitializationError: If the store cannot be prepared
            WatchSetupError: If the root is unusable or the watch cannot be established
        """
        if self._started:
            return

        check_watch_root(self.root_dir)
        self.writer.initialize()

        self._accumulator_task = asyncio.create_task(self.accumulator.run())
        try:
            self.watch_source.start(self.root_dir, asyncio.get_running_loop())
        except BaseException:
            self.accumulator.stop()
            await asyncio.gather(self._accumulator_task, return_exceptions=True)
            raise

        self._started = True
        logger.info("Recording file events under %s", self.root_dir)

    async def run(self) -> None:
        """
        Start the pipeline and run until a stop request or a fatal error.

        Raises:
            PersistenceError: If a batch cannot be committed
        """
        await self.start()

        stop_waiter = asyncio.create_task(self._stop_requested.wait())
        try:
            await asyncio.wait({self._accumulator_task, stop_waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            logger.info("Pipeline cancelled, shutting down")
            await self.shutdown()
            raise
        finally:
            stop_waiter.cancel()

        if self._accumulator_task.done():
            # The consumer ended on its own, which only happens on a write failure or a closed channel.
            await asyncio.to_thread(self.watch_source.stop, timeout=self.config.shutdown_timeout_seconds)
            self._accumulator_task.result()
            return

        await self.shutdown()

    async def shutdown(self) -> None:
        """Stop the watch, let producers finish, then drain and flush."""
        timeout = self.config.shutdown_timeout_seconds
        try:
            await asyncio.to_thread(self.watch_source.stop, timeout=timeout)
        except Exception as e:
            raise ShutdownError(
                "Failed to stop watch source", component="watch_source", shutdown_stage="stop", underlying_error=e
            ) from e

        remaining = await self.watch_source.wait_for_producers(timeout=timeout)
        if remaining:
            logger.warning("%d producer tasks still running after %.1fs, their records may be lost", remaining, timeout)

        self.accumulator.stop()
        if self._accumulator_task is not None:
            await self._accumulator_task

        logger.info("Pipeline stopped")

    def get_stats(self) -> dict[str, Any]:
        """
        Get pipeline statistics.

        Returns:
            Dictionary with watch, channel and accumulator statistics
        """
        watch_stats = self.watch_source.get_stats() if hasattr(self.watch_source, "get_stats") else {}
        return {
            "running": self.is_running,
            "root_dir": str(self.root_dir),
            "watching": self.watch_source.is_watching,
            "watch": watch_stats,
            "channel": {"buffered": self.channel.qsize(), "capacity": self.channel.capacity},
            "accumulator": {"pending": self.accumulator.pending_count, **self.accumulator.get_stats()},
        }
