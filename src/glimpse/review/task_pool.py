"""Bounded pool of detached review tasks."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)


class ReviewTaskPool:
    """
    Run review coroutines in the background with a concurrency cap.

    PATTERN: asyncio.Semaphore bounded execution
    CRITICAL: spawn() never blocks; excess work waits on the semaphore
              inside its own task, not in the caller
    GOTCHA: Exceptions are logged and counted, never re-raised
    """

    def __init__(self, max_concurrent: int = 4):
        """
        Initialize pool.

        Args:
            max_concurrent: Reviews allowed to run at once
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")

        self.max_concurrent = max_concurrent
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._tasks: Set[asyncio.Task] = set()
        self._active = 0
        self.completed = 0
        self.failed = 0

    @property
    def in_flight(self) -> int:
        """Tasks spawned and not yet finished (running or waiting)."""
        return len(self._tasks)

    @property
    def active(self) -> int:
        """Tasks currently holding a slot."""
        return self._active

    def spawn(
        self,
        factory: Callable[[], Awaitable[Any]],
        name: Optional[str] = None,
    ) -> asyncio.Task:
        """
        Launch work as a detached task.

        Args:
            factory: Zero-argument callable returning the awaitable to run
            name: Optional task name

        Returns:
            The task (callers are not expected to await it)
        """
        task = asyncio.create_task(self._run(factory), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, factory: Callable[[], Awaitable[Any]]) -> Any:
        async with self._semaphore:
            self._active += 1
            try:
                result = await factory()
            except asyncio.CancelledError:
                raise
            except Exception:
                self.failed += 1
                logger.exception("Review task failed")
                return None
            else:
                self.completed += 1
                return result
            finally:
                self._active -= 1

    async def wait_idle(self) -> None:
        """Wait until every spawned task has finished."""
        while self._tasks:
            await asyncio.wait(set(self._tasks))

    def cancel_all(self) -> int:
        """Cancel outstanding tasks; returns how many were cancelled."""
        tasks = [task for task in self._tasks if not task.done()]
        for task in tasks:
            task.cancel()
        return len(tasks)

    def get_status(self) -> dict:
        return {
            "max_concurrent": self.max_concurrent,
            "in_flight": self.in_flight,
            "active": self.active,
            "completed": self.completed,
            "failed": self.failed,
        }
