"""Background file system watcher feeding the change pipeline."""

import asyncio
import concurrent.futures
import logging
import threading
from typing import Iterable, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..config.glimpse_config import QueueOverflow
from ..models import ChangeEvent
from .ignore import IgnoreFilter
from .normalizer import normalize_path
from .patterns import WatchRoot, resolve_watch_roots

logger = logging.getLogger(__name__)

# Notifications that mean file content may differ; open/read events are not changes
CHANGE_EVENT_TYPES = frozenset({"created", "modified", "moved", "deleted", "closed"})


class _WatchdogAdapter(FileSystemEventHandler):
    """Forward watchdog callbacks to the owning watcher."""

    def __init__(self, watcher: "ChangeWatcher"):
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        # An exception here would kill the observer thread
        try:
            self.watcher.handle_raw_event(event)
        except Exception:
            logger.exception(f"Error handling filesystem event {event!r}")


class ChangeWatcher:
    """
    Bridge OS filesystem notifications to a bounded asyncio queue.

    PATTERN: watchdog Observer thread -> event loop via run_coroutine_threadsafe
    CRITICAL: Only normalized paths reach the queue
    GOTCHA: With the "block" overflow policy the observer thread waits for
            queue space, so a stalled consumer delays notifications instead
            of losing them. close() keeps the consumer window open for
            close_timeout so a blocked event still lands in the queue
    """

    def __init__(
        self,
        watch_patterns: Iterable[str],
        ignore_patterns: Optional[Iterable[str]] = None,
        queue_size: int = 100,
        overflow: str = QueueOverflow.BLOCK,
        observer_factory=Observer,
        close_timeout: float = 2.0,
    ):
        """
        Initialize watcher.

        Args:
            watch_patterns: Glob patterns naming files of interest
            ignore_patterns: Basename globs to discard
            queue_size: Capacity of the outbound event queue
            overflow: "block" for backpressure, "drop" to discard when full
            observer_factory: Callable returning a watchdog observer
            close_timeout: Seconds close() waits for a blocked event to be
                accepted before giving up on it
        """
        self.watch_patterns = list(watch_patterns)
        self.ignore_filter = IgnoreFilter(ignore_patterns)
        self.queue_size = queue_size
        self.overflow = overflow
        self.close_timeout = close_timeout

        self._observer_factory = observer_factory
        self._observer = None
        self._queue: Optional[asyncio.Queue] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._roots: List[WatchRoot] = []
        self._closed = threading.Event()
        self._pending_put: Optional[concurrent.futures.Future] = None
        self._lock = threading.Lock()
        self.dropped_events = 0

    @property
    def events(self) -> asyncio.Queue:
        """Outbound queue of ChangeEvent objects."""
        if self._queue is None:
            raise RuntimeError("Watcher has not been started")
        return self._queue

    @property
    def watched_roots(self) -> List[WatchRoot]:
        return list(self._roots)

    @property
    def is_running(self) -> bool:
        return self._observer is not None and not self._closed.is_set()

    def start(self) -> List[WatchRoot]:
        """
        Resolve watch roots and start the observer thread.

        Must be called from a running event loop. Directories that fail to
        register are logged and skipped; an empty watch set is valid.

        Returns:
            Watch roots that were registered
        """
        if self._observer is not None:
            logger.warning("Watcher already running")
            return self.watched_roots

        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self.queue_size)
        self._closed.clear()

        observer = self._observer_factory()
        adapter = _WatchdogAdapter(self)

        for root in resolve_watch_roots(self.watch_patterns):
            try:
                observer.schedule(adapter, root.path, recursive=root.recursive)
            except OSError as e:
                logger.error(f"Failed to watch directory {root.path}: {e}")
                continue
            self._roots.append(root)
            logger.info(
                f"Watching directory: {root.path}"
                f"{' (recursive)' if root.recursive else ''}"
            )

        if not self._roots:
            logger.warning("No directories to watch; file changes will not be reported")

        observer.start()
        self._observer = observer
        return self.watched_roots

    def handle_raw_event(self, event: FileSystemEvent) -> None:
        """
        Filter, normalize and enqueue one raw notification.

        Runs on the observer thread.
        """
        if self._closed.is_set() or getattr(event, "is_directory", False):
            return
        if getattr(event, "event_type", "modified") not in CHANGE_EVENT_TYPES:
            return

        raw_path = getattr(event, "dest_path", "") or getattr(event, "src_path", "")
        if isinstance(raw_path, bytes):
            raw_path = raw_path.decode(errors="replace")
        if not raw_path:
            return

        if self.ignore_filter.matches(raw_path):
            return

        self.emit(ChangeEvent(path=normalize_path(raw_path)))

    def emit(self, change: ChangeEvent) -> None:
        """Push an event onto the outbound queue from the observer thread."""
        loop = self._loop
        if loop is None or loop.is_closed() or self._closed.is_set():
            return

        if self.overflow == QueueOverflow.DROP:
            loop.call_soon_threadsafe(self._put_or_drop, change)
            return

        try:
            future = asyncio.run_coroutine_threadsafe(self._queue.put(change), loop)
        except RuntimeError:
            # Loop shut down between the check and the call
            return

        with self._lock:
            self._pending_put = future
        try:
            future.result()
        except concurrent.futures.CancelledError:
            self.dropped_events += 1
            logger.warning(f"Dropped {change.path}: queue stayed full while the watcher closed")
        finally:
            with self._lock:
                self._pending_put = None

    def _put_or_drop(self, change: ChangeEvent) -> None:
        try:
            self._queue.put_nowait(change)
        except asyncio.QueueFull:
            self.dropped_events += 1
            logger.warning(f"Event queue full, dropped change for {change.path}")

    async def close(self) -> None:
        """Stop the observer and release every OS watch handle."""
        if self._closed.is_set():
            return
        self._closed.set()

        # An event already accepted while the queue was full still gets
        # delivered if the consumer frees space within close_timeout
        with self._lock:
            pending = self._pending_put
        if pending is not None:
            try:
                await asyncio.wait_for(asyncio.wrap_future(pending), timeout=self.close_timeout)
            except asyncio.TimeoutError:
                logger.debug("Gave up waiting for the event queue to drain")

        observer, self._observer = self._observer, None
        if observer is not None:
            observer.unschedule_all()
            observer.stop()
            await asyncio.get_running_loop().run_in_executor(None, observer.join, 5)

        logger.info("Stopped watching")

    def get_status(self) -> dict:
        """Get watcher status."""
        return {
            "running": self.is_running,
            "roots": [root.path for root in self._roots],
            "ignore_patterns": len(self.ignore_filter),
            "pending_events": self._queue.qsize() if self._queue else 0,
            "dropped_events": self.dropped_events,
        }
