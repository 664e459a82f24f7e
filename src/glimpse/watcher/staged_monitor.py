"""Poll the git staging area and report fingerprint changes."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..models import StagedState

logger = logging.getLogger(__name__)

StagedStateProvider = Callable[[], Awaitable[StagedState]]


class StagedStateMonitor:
    """
    Emit a StagedState whenever the staged fingerprint changes.

    PATTERN: Fixed-interval polling in its own task
    CRITICAL: The first successful poll only sets the baseline
    CRITICAL: A failed poll keeps the previous baseline; the next
              successful poll compares against the last good hash
    """

    def __init__(
        self,
        provider: StagedStateProvider,
        triggers: asyncio.Queue,
        interval_seconds: float = 1.0,
    ):
        """
        Initialize monitor.

        Args:
            provider: Coroutine function returning the current StagedState
            triggers: Queue receiving changed StagedState objects
            interval_seconds: Delay between polls
        """
        self.provider = provider
        self.triggers = triggers
        self.interval_seconds = interval_seconds

        self._baseline: Optional[str] = None
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self.poll_count = 0
        self.failure_count = 0

    @property
    def baseline(self) -> Optional[str]:
        """Hash from the last successful poll."""
        return self._baseline

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.create_task(self.run(), name="staged-state-monitor")
        return self._task

    async def stop(self) -> None:
        self._stop.set()
        if self._task is not None:
            await self._task

    async def run(self) -> None:
        """Poll until stopped."""
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
            else:
                break

            await self.poll_once()

    async def poll_once(self) -> Optional[StagedState]:
        """
        Run one poll tick.

        Returns:
            The new StagedState if it changed from a known baseline
        """
        self.poll_count += 1
        try:
            state = await self.provider()
        except Exception as e:
            self.failure_count += 1
            logger.warning(f"Staged state poll failed, keeping previous baseline: {e}")
            return None

        previous, self._baseline = self._baseline, state.hash
        if previous is None:
            logger.debug(f"Staged baseline recorded: {state.hash[:12]}")
            return None
        if previous == state.hash:
            return None

        logger.info(f"Staged state changed ({len(state.staged_files)} files)")
        await self.triggers.put(state)
        return state
