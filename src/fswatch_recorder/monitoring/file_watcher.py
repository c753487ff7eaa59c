"""
File system watch source for the event pipeline.

Runs a recursive watchdog observer on a root directory, translates each
watchdog event into raw notifications on the observer thread, and hands
every notification to its own producer task on the asyncio loop. Producer
tasks normalize the notification and send the records into the relay
channel.
"""

import asyncio
import logging
import os
import threading
from collections import OrderedDict
from collections.abc import Callable
from concurrent.futures import Future
from pathlib import Path

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from fswatch_recorder.core.interfaces import IWatchSource
from fswatch_recorder.models.events import EventRecord, RawChangeKind, RawNotification
from fswatch_recorder.models.exceptions import ChannelClosedError, WatchSetupError
from fswatch_recorder.monitoring.normalizer import normalize
from fswatch_recorder.pipeline.channel import RelayChannel

logger = logging.getLogger(__name__)

ACCESS_EVENT_TYPES = frozenset({"opened", "closed", "closed_no_write"})


def check_watch_root(root: Path) -> None:
    """
    Make sure ``root`` is an existing directory.

    Raises:
        WatchSetupError: If the root is missing or not a directory
    """
    if not root.exists():
        raise WatchSetupError(f"Directory does not exist: {root}", path=str(root), operation="start")

    if not root.is_dir():
        raise WatchSetupError(f"Path is not a directory: {root}", path=str(root), operation="start")


class FileSystemWatchSource(FileSystemEventHandler, IWatchSource):
    """
    Recursive directory watch feeding the relay channel.

    watchdog reports content and attribute changes alike as "modified", so
    the source keeps a bounded cache of (size, mtime) fingerprints per file
    and reports a modification whose fingerprint is unchanged as
    metadata-only. A file seen for the first time is metadata-only when its
    ctime is newer than its mtime.
    """

    def __init__(
        self,
        channel: RelayChannel,
        recursive: bool = True,
        fingerprint_cache_size: int = 10_000,
        normalizer: Callable[[RawNotification], list[EventRecord]] = normalize,
    ):
        """
        Initialize the watch source.

        Args:
            channel: Relay channel that receives normalized records
            recursive: Whether to watch subdirectories
            fingerprint_cache_size: Files remembered for metadata-only detection
            normalizer: Function turning a raw notification into records
        """
        super().__init__()
        self.channel = channel
        self.recursive = recursive
        self.fingerprint_cache_size = fingerprint_cache_size
        self.normalizer = normalizer

        self._observer: Observer | None = None
        self._root: Path | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

        # Only touched from the observer thread.
        self._fingerprints: OrderedDict[str, tuple[int, int]] = OrderedDict()

        # Completed from the loop thread, registered from the observer thread.
        self._producers: set[Future] = set()
        self._producers_lock = threading.Lock()

        self._stats = {"notifications": 0, "records_sent": 0, "producer_failures": 0}

    def start(self, root: Path, loop: asyncio.AbstractEventLoop) -> None:
        """
        Start watching ``root`` and dispatching producers onto ``loop``.

        Raises:
            WatchSetupError: If the root is unusable or the OS refuses the watch
        """
        root = Path(root)
        try:
            check_watch_root(root)

            if self._observer is not None:
                raise WatchSetupError("Watch source is already started", path=str(root), operation="start")

            self._loop = loop
            self._root = root.resolve()

            observer = Observer()
            observer.schedule(self, str(self._root), recursive=self.recursive)
            observer.start()
            self._observer = observer
            logger.info("Started watching %s (recursive: %s)", self._root, self.recursive)

        except WatchSetupError:
            raise
        except Exception as e:
            logger.error("Failed to start watching %s: %s", root, e)
            raise WatchSetupError(
                f"Failed to start watching: {e}",
                path=str(root),
                operation="start",
                underlying_error=e,
            ) from e

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the observer and wait for its thread to exit."""
        observer, self._observer = self._observer, None
        if observer is None:
            return

        if observer.is_alive():
            observer.stop()
            observer.join(timeout=timeout)
        self._fingerprints.clear()
        logger.info("Stopped watching %s", self._root)

    async def wait_for_producers(self, timeout: float | None = None) -> int:
        """Wait for in-flight producer tasks; return how many are still running."""
        with self._producers_lock:
            pending = list(self._producers)
        if not pending:
            return 0

        _, still_running = await asyncio.wait([asyncio.wrap_future(f) for f in pending], timeout=timeout)
        return len(still_running)

    @property
    def is_watching(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    @property
    def root(self) -> Path | None:
        return self._root

    def get_in_flight_count(self) -> int:
        with self._producers_lock:
            return len(self._producers)

    def get_stats(self) -> dict[str, int]:
        return dict(self._stats)

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Translate a watchdog event and dispatch its notifications."""
        for notification in self.translate(event):
            self._dispatch(notification)

    def translate(self, event: FileSystemEvent) -> list[RawNotification]:
        """
        Translate a watchdog event into raw notifications.

        A move with both ends known is reported as its two halves, the old
        name first. A move with only one end known is an atomic rename.

        Args:
            event: watchdog event

        Returns:
            Zero or more raw notifications
        """
        src_path = event.src_path
        event_type = event.event_type

        if event_type == EVENT_TYPE_CREATED:
            return [RawNotification(RawChangeKind.CREATE, [src_path])]

        if event_type == EVENT_TYPE_DELETED:
            self._forget(src_path)
            return [RawNotification(RawChangeKind.REMOVE, [src_path])]

        if event_type == EVENT_TYPE_MOVED:
            dest_path = getattr(event, "dest_path", "")
            self._forget(src_path)
            if src_path and dest_path:
                self._forget(dest_path)
                return [
                    RawNotification(RawChangeKind.RENAME_FROM, [src_path]),
                    RawNotification(RawChangeKind.RENAME_TO, [dest_path]),
                ]
            return [RawNotification(RawChangeKind.RENAME_ANY, [src_path or dest_path])]

        if event_type == EVENT_TYPE_MODIFIED:
            if event.is_directory:
                return [RawNotification(RawChangeKind.MODIFY_METADATA, [src_path])]
            return [RawNotification(self._classify_modification(src_path), [src_path])]

        if event_type in ACCESS_EVENT_TYPES:
            return [RawNotification(RawChangeKind.ACCESS, [src_path])]

        return [RawNotification(RawChangeKind.OTHER, [src_path])]

    def _classify_modification(self, path: str | bytes) -> RawChangeKind:
        try:
            stat = os.stat(path)
        except OSError:
            # Gone before we looked; report what the OS said.
            return RawChangeKind.MODIFY_DATA

        fingerprint = (stat.st_size, stat.st_mtime_ns)
        previous = self._fingerprints.get(path)
        self._remember(path, fingerprint)
        if previous is None:
            # A data write stamps ctime and mtime together; an attribute change only moves ctime (POSIX).
            if os.name == "posix" and stat.st_ctime_ns > stat.st_mtime_ns:
                return RawChangeKind.MODIFY_METADATA
            return RawChangeKind.MODIFY_DATA
        if previous == fingerprint:
            return RawChangeKind.MODIFY_METADATA
        return RawChangeKind.MODIFY_DATA

    def _remember(self, path: str | bytes, fingerprint: tuple[int, int]) -> None:
        if self.fingerprint_cache_size <= 0:
            return
        self._fingerprints[path] = fingerprint
        self._fingerprints.move_to_end(path)
        while len(self._fingerprints) > self.fingerprint_cache_size:
            self._fingerprints.popitem(last=False)

    def _forget(self, path: str | bytes) -> None:
        self._fingerprints.pop(path, None)

    def _dispatch(self, notification: RawNotification) -> None:
        """Schedule a producer task for one notification on the event loop."""
        self._stats["notifications"] += 1
        if self._loop is None or self._loop.is_closed():
            logger.error("No event loop available for %r", notification)
            return

        future = asyncio.run_coroutine_threadsafe(self._produce(notification), self._loop)
        with self._producers_lock:
            self._producers.add(future)
        future.add_done_callback(self._on_producer_done)

    async def _produce(self, notification: RawNotification) -> None:
        records = self.normalizer(notification)
        for index, record in enumerate(records):
            try:
                await self.channel.send(record)
            except ChannelClosedError:
                logger.warning(
                    "Relay channel closed, %d records from %r not sent", len(records) - index, notification
                )
                return
            self._stats["records_sent"] += 1

    def _on_producer_done(self, future: Future) -> None:
        with self._producers_lock:
            self._producers.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            self._stats["producer_failures"] += 1
            logger.error("Producer task failed: %s", error, exc_info=error)
