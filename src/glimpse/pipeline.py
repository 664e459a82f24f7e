"""Wire the change pipeline together and run it until shutdown."""

import asyncio
import logging
from typing import List, Optional

from .config import GlimpseConfig
from .config.glimpse_config import METADATA_DIR
from .git import GitClient, GitError
from .llm import BaseLLM
from .logs import LogTailer
from .review import ReviewDispatcher, ReviewTaskPool
from .watcher import ChangeWatcher, EventBatcher, IgnoreFilter, StagedStateMonitor

logger = logging.getLogger(__name__)


class GlimpsePipeline:
    """
    Own every long-lived component and the shutdown sequence.

    Data flow: watcher -> batcher -> dispatcher, with the staged-state
    monitor feeding the dispatcher directly.

    Shutdown stops the watcher, flushes the batcher, stops the monitor,
    dispatches anything still queued and returns without waiting for
    in-flight reviews.
    """

    def __init__(
        self,
        config: GlimpseConfig,
        provider: BaseLLM,
        git: Optional[GitClient] = None,
        log_tailer: Optional[LogTailer] = None,
        renderer=None,
        watcher: Optional[ChangeWatcher] = None,
    ):
        self.config = config
        self.provider = provider
        self.git = git or GitClient()
        self.log_tailer = log_tailer or LogTailer(config.logs.file, config.logs.lines)
        self.renderer = renderer

        self.watcher = watcher or ChangeWatcher(
            watch_patterns=config.watch,
            ignore_patterns=config.ignore,
            queue_size=config.event_queue_size,
            overflow=config.queue_overflow,
        )
        self.task_pool = ReviewTaskPool(config.llm.max_concurrent_reviews)
        self.dispatcher = ReviewDispatcher(
            provider=provider,
            git=self.git,
            log_tailer=self.log_tailer,
            task_pool=self.task_pool,
            ignore_filter=IgnoreFilter(config.ignore),
            system_prompt=config.llm.system_prompt,
            metadata_dir=METADATA_DIR,
            renderer=renderer,
        )

        self.batches: asyncio.Queue = asyncio.Queue()
        self.staged: asyncio.Queue = asyncio.Queue()
        self.shutdown_event = asyncio.Event()

        self.batcher: Optional[EventBatcher] = None
        self.monitor: Optional[StagedStateMonitor] = None
        self._dispatch_stop = asyncio.Event()

    def request_shutdown(self) -> None:
        """Ask the pipeline to stop; safe to call from a signal handler."""
        self.shutdown_event.set()

    async def start(self) -> None:
        if self.config.review_file_changes:
            self.watcher.start()
            self.batcher = EventBatcher(
                events=self.watcher.events,
                batches=self.batches,
                debounce_seconds=self.config.debounce_seconds,
                max_batch_size=self.config.max_batch_size,
                max_wait_seconds=self.config.max_batch_wait_seconds,
            )
            self.batcher.start()

        if self.config.review_staged_changes:
            self.monitor = StagedStateMonitor(
                provider=self.git.staged_state,
                triggers=self.staged,
                interval_seconds=self.config.staged_poll_interval_seconds,
            )
            self.monitor.start()

    async def run(self) -> None:
        """Run until request_shutdown() is called."""
        await self.start()
        dispatcher_task = asyncio.create_task(
            self.dispatcher.run(self.batches, self.staged, self._dispatch_stop),
            name="review-dispatcher",
        )

        try:
            await self.shutdown_event.wait()
        finally:
            await self.shutdown()
            self._dispatch_stop.set()
            await dispatcher_task

        in_flight = self.task_pool.in_flight
        if in_flight:
            logger.info(f"Exiting with {in_flight} review(s) still in flight")

    async def shutdown(self) -> None:
        """Stop producers in order so no pending batch is lost."""
        if self.config.review_file_changes:
            await self.watcher.close()
            if self.batcher is not None:
                await self.batcher.stop()
        if self.monitor is not None:
            await self.monitor.stop()

    async def uncommitted_files(self) -> List[str]:
        """
        List files with staged or unstaged changes, for the startup summary.

        Returns an empty list outside a git repository.
        """
        try:
            return await self.git.changed_files()
        except GitError as e:
            logger.warning(f"Could not list changed files: {e}")
            return []

    def get_status(self) -> dict:
        return {
            "watcher": self.watcher.get_status(),
            "pending_batch": self.batcher.pending_count if self.batcher else 0,
            "dispatcher": self.dispatcher.get_status(),
        }
