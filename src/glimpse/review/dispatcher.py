"""Coordinate triggers into asynchronous review requests."""

import asyncio
import logging
import os
import time
from collections import deque
from typing import Deque, List, Optional

from ..git.client import GitClient, GitError
from ..llm.base import BaseLLM, ProviderError
from ..logs.tailer import LogTailer, LogTailError
from ..models import Batch, ReviewResult, ReviewTrigger, StagedState, TriggerKind
from ..watcher.ignore import IgnoreFilter
from .context import build_request
from .task_pool import ReviewTaskPool
from .verdict import parse_review

logger = logging.getLogger(__name__)


class ReviewDispatcher:
    """
    Single coordination point between triggers and the generation provider.

    PATTERN: Select loop over the batch queue, the staged-state queue and
             a shutdown event; one item serviced per iteration
    CRITICAL: The loop never awaits git, the log file or the provider;
              all of that happens inside detached pool tasks
    """

    def __init__(
        self,
        provider: BaseLLM,
        git: GitClient,
        log_tailer: LogTailer,
        task_pool: ReviewTaskPool,
        ignore_filter: Optional[IgnoreFilter] = None,
        system_prompt: str = "",
        metadata_dir: str = ".git",
        renderer=None,
    ):
        """
        Initialize dispatcher.

        Args:
            provider: Generation provider
            git: Diff collaborator
            log_tailer: Runtime log collaborator
            task_pool: Pool running detached review tasks
            ignore_filter: Review-level ignore patterns
            system_prompt: System prompt for every request
            metadata_dir: Repository metadata directory never reviewed
            renderer: Optional ReviewRenderer for user-facing output
        """
        self.provider = provider
        self.git = git
        self.log_tailer = log_tailer
        self.task_pool = task_pool
        self.ignore_filter = ignore_filter or IgnoreFilter()
        self.system_prompt = system_prompt
        self.metadata_dir = metadata_dir
        self.renderer = renderer

        self._log_file = os.path.abspath(str(log_tailer.file))
        self.recent_results: Deque[ReviewResult] = deque(maxlen=50)
        self.triggers_received = 0
        self.triggers_discarded = 0

    def is_reviewable(self, path: str) -> bool:
        """
        Check a path against the review-level exclusions.

        The tool's own log file and anything under the repository metadata
        directory are always excluded, on top of the ignore patterns.
        """
        normalized = os.path.normpath(path)
        if self.metadata_dir in normalized.split(os.sep):
            return False
        if os.path.abspath(normalized) == self._log_file:
            return False
        return not self.ignore_filter.matches(path)

    def reviewable_files(self, trigger: ReviewTrigger) -> List[str]:
        return [path for path in trigger.files if self.is_reviewable(path)]

    def dispatch(self, trigger: ReviewTrigger) -> Optional[asyncio.Task]:
        """
        Launch one review for a trigger, without waiting for it.

        Returns:
            The detached task, or None if nothing reviewable remained
        """
        self.triggers_received += 1
        files = self.reviewable_files(trigger)
        if not files:
            self.triggers_discarded += 1
            logger.debug(f"Discarded {trigger.kind.value} trigger: no reviewable files")
            return None

        if self.renderer is not None:
            if trigger.kind == TriggerKind.STAGED_CHANGE:
                self.renderer.staged_changed()
            else:
                self.renderer.batch_header(len(files))

        return self.task_pool.spawn(
            lambda: self.review(trigger.kind, files),
            name=f"review-{trigger.kind.value}",
        )

    def dispatch_batch(self, batch: Batch) -> Optional[asyncio.Task]:
        return self.dispatch(ReviewTrigger.from_batch(batch))

    def dispatch_staged(self, state: StagedState) -> Optional[asyncio.Task]:
        return self.dispatch(ReviewTrigger.from_staged_state(state))

    async def review(self, kind: TriggerKind, files: List[str]) -> Optional[ReviewResult]:
        """
        Gather context, call the provider and report the outcome.

        Returns:
            The result, or None when the diff fetch failed or was empty
        """
        try:
            if kind == TriggerKind.STAGED_CHANGE:
                diffs = await self.git.staged_diff(files)
            else:
                diffs = await self.git.diff(files)
        except GitError as e:
            logger.warning(f"Skipping review, diff failed: {e}")
            return None

        if not diffs:
            logger.debug(f"No diff content for {len(files)} files, skipping review")
            return None

        logs = await self._tail_logs()
        request = build_request(kind, diffs, logs, self.system_prompt)

        if self.renderer is not None:
            self.renderer.provider_info(self.provider.name, self.provider.model)

        start = time.monotonic()
        try:
            content = await self.provider.agenerate(request)
            needs_fix, review = parse_review(content)
        except (ProviderError, ValueError) as e:
            result = ReviewResult(title=request.title, error=str(e))
        except Exception as e:
            logger.exception("Unexpected error during review")
            result = ReviewResult(title=request.title, error=f"Unexpected error: {e}")
        else:
            result = ReviewResult(
                title=request.title,
                content=content,
                needs_fix=needs_fix,
                review=review,
            )
        result.latency_ms = int((time.monotonic() - start) * 1000)

        self.recent_results.append(result)
        if self.renderer is not None:
            self.renderer.review_result(result)
        elif result.error:
            logger.error(f"{result.title}: {result.error}")
        return result

    async def _tail_logs(self) -> str:
        try:
            return await asyncio.to_thread(self.log_tailer.tail)
        except LogTailError as e:
            logger.debug(f"No runtime logs: {e}")
            return ""

    async def run(
        self,
        batches: asyncio.Queue,
        staged: asyncio.Queue,
        shutdown: asyncio.Event,
    ) -> None:
        """
        Main coordination loop.

        Services one batch or staged-state trigger per iteration until
        shutdown is set, then dispatches whatever is already queued.
        """
        shutdown_task = asyncio.ensure_future(shutdown.wait())
        batch_get: Optional[asyncio.Future] = None
        staged_get: Optional[asyncio.Future] = None

        try:
            while True:
                if batch_get is None:
                    batch_get = asyncio.ensure_future(batches.get())
                if staged_get is None:
                    staged_get = asyncio.ensure_future(staged.get())

                done, _ = await asyncio.wait(
                    {batch_get, staged_get, shutdown_task},
                    return_when=asyncio.FIRST_COMPLETED,
                )

                if batch_get in done:
                    batch = batch_get.result()
                    batch_get = None
                    self.dispatch_batch(batch)
                    continue

                if staged_get in done:
                    state = staged_get.result()
                    staged_get = None
                    self.dispatch_staged(state)
                    continue

                break
        finally:
            shutdown_task.cancel()
            for future in (batch_get, staged_get):
                if future is not None:
                    future.cancel()

        # A get may have completed after the wait returned
        if batch_get is not None and batch_get.done() and not batch_get.cancelled():
            self.dispatch_batch(batch_get.result())
        if staged_get is not None and staged_get.done() and not staged_get.cancelled():
            self.dispatch_staged(staged_get.result())
        self.drain(batches, staged)
        logger.debug("Dispatcher stopped")

    def drain(self, batches: asyncio.Queue, staged: asyncio.Queue) -> None:
        """Dispatch every trigger already sitting in the queues."""
        while not batches.empty():
            self.dispatch_batch(batches.get_nowait())
        while not staged.empty():
            self.dispatch_staged(staged.get_nowait())

    def get_status(self) -> dict:
        return {
            "triggers_received": self.triggers_received,
            "triggers_discarded": self.triggers_discarded,
            "pool": self.task_pool.get_status(),
        }
