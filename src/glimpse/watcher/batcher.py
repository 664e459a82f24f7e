"""Coalesce change events into batches."""

import asyncio
import logging
from typing import List, Optional, Set

from ..models import Batch, ChangeEvent, FlushReason

logger = logging.getLogger(__name__)


class EventBatcher:
    """
    Turn a bursty ChangeEvent stream into a few discrete batches.

    PATTERN: Single global debounce deadline, reset on every event
    CRITICAL: Size check happens before the debounce reset, so a stream
              faster than the debounce interval still flushes every
              max_batch_size distinct files
    CRITICAL: A pending batch is always flushed on shutdown
    GOTCHA: Events still queued at shutdown are absorbed under the same
            size cap, so shutdown can emit a size batch followed by the
            final shutdown batch; max_batch_size is never exceeded

    States: idle (nothing pending, deadline disarmed), accumulating
    (deadline armed) and a transient flush that hands the batch to the
    output queue and returns to idle. A path already pending is not
    appended twice, but it still resets the debounce deadline.
    """

    def __init__(
        self,
        events: asyncio.Queue,
        batches: asyncio.Queue,
        debounce_seconds: float = 2.0,
        max_batch_size: int = 100,
        max_wait_seconds: Optional[float] = None,
    ):
        """
        Initialize batcher.

        Args:
            events: Inbound queue of ChangeEvent objects
            batches: Outbound queue receiving Batch objects
            debounce_seconds: Quiet period that closes a batch
            max_batch_size: Distinct paths that force an immediate flush
            max_wait_seconds: Ceiling on how long a non-empty batch may
                stay pending while the debounce deadline keeps moving
        """
        if max_batch_size < 1:
            raise ValueError("max_batch_size must be at least 1")

        self.events = events
        self.batches = batches
        self.debounce_seconds = debounce_seconds
        self.max_batch_size = max_batch_size
        self.max_wait_seconds = max_wait_seconds

        self._pending: List[ChangeEvent] = []
        self._pending_paths: Set[str] = set()
        self._deadline: Optional[float] = None
        self._first_event_at: Optional[float] = None
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self.batches_emitted = 0

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Start the batching loop as a background task."""
        if self._task is None:
            self._task = asyncio.create_task(self.run(), name="event-batcher")
        return self._task

    async def stop(self) -> None:
        """Signal shutdown and wait for the final flush."""
        self._stop.set()
        if self._task is not None:
            await self._task

    async def run(self) -> None:
        """Batching loop; returns after the shutdown flush."""
        loop = asyncio.get_running_loop()
        stop_task = asyncio.ensure_future(self._stop.wait())
        get_task: Optional[asyncio.Future] = None

        try:
            while True:
                if get_task is None:
                    get_task = asyncio.ensure_future(self.events.get())

                timeout = None
                if self._deadline is not None:
                    timeout = max(0.0, self._deadline - loop.time())

                done, _ = await asyncio.wait(
                    {get_task, stop_task},
                    timeout=timeout,
                    return_when=asyncio.FIRST_COMPLETED,
                )

                if get_task in done:
                    event = get_task.result()
                    get_task = None
                    await self._add(event, loop.time())
                    continue

                if stop_task in done:
                    break

                await self._on_timer(loop.time())
        finally:
            if get_task is not None:
                get_task.cancel()
            stop_task.cancel()

        if get_task is not None and get_task.done() and not get_task.cancelled():
            await self._add(get_task.result(), loop.time())
        await self._shutdown_flush()

    async def _add(self, event: ChangeEvent, now: float) -> None:
        if event.path not in self._pending_paths:
            self._pending.append(event)
            self._pending_paths.add(event.path)

        if len(self._pending) >= self.max_batch_size:
            await self._flush(FlushReason.SIZE)
            return

        if self._first_event_at is None:
            self._first_event_at = now

        self._deadline = now + self.debounce_seconds
        if self.max_wait_seconds is not None:
            self._deadline = min(self._deadline, self._first_event_at + self.max_wait_seconds)

    async def _on_timer(self, now: float) -> None:
        if not self._pending:
            self._disarm()
            return
        await self._flush(FlushReason.DEBOUNCE)

    async def _shutdown_flush(self) -> None:
        """Absorb events already queued, then flush what is pending."""
        while True:
            try:
                event = self.events.get_nowait()
            except asyncio.QueueEmpty:
                break
            if event.path not in self._pending_paths:
                self._pending.append(event)
                self._pending_paths.add(event.path)
            if len(self._pending) >= self.max_batch_size:
                await self._flush(FlushReason.SIZE)

        if self._pending:
            await self._flush(FlushReason.SHUTDOWN)
        logger.debug("Batcher stopped")

    async def _flush(self, reason: FlushReason) -> None:
        batch = Batch(events=self._pending, reason=reason)
        self._pending = []
        self._pending_paths = set()
        self._disarm()

        logger.debug(f"Flushing batch of {len(batch)} files ({reason.value})")
        await self.batches.put(batch)
        self.batches_emitted += 1

    def _disarm(self) -> None:
        self._deadline = None
        self._first_event_at = None
