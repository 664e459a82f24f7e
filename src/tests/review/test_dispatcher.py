"""Tests for the review dispatcher."""

import asyncio
from unittest.mock import MagicMock

import pytest

from glimpse.config import LLMSettings
from glimpse.git import GitError
from glimpse.llm import APIError, BaseLLM
from glimpse.logs import LogTailer
from glimpse.models import Batch, ChangeEvent, FileDiff, StagedState, TriggerKind
from glimpse.review import ReviewDispatcher, ReviewTaskPool
from glimpse.watcher import IgnoreFilter


class FakeProvider(BaseLLM):
    """Provider returning a canned review, optionally after a delay."""

    name = "fake"
    default_model = "fake-1"

    def __init__(self, reply="NEED FIX: NO\nLooks fine.", delay=0.0, error=None):
        super().__init__(LLMSettings(provider="fake"))
        self.reply = reply
        self.delay = delay
        self.error = error
        self.requests = []

    async def agenerate(self, request):
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.reply


class FakeGit:
    """Git stand-in returning one diff per requested file."""

    def __init__(self, error=None, empty=False):
        self.error = error
        self.empty = empty
        self.diff_calls = []
        self.staged_calls = []

    async def diff(self, files):
        self.diff_calls.append(list(files))
        return self._diffs(files)

    async def staged_diff(self, files=()):
        self.staged_calls.append(list(files))
        return self._diffs(files)

    def _diffs(self, files):
        if self.error:
            raise self.error
        if self.empty:
            return []
        return [FileDiff(path=path, content=f"+change in {path}") for path in files]


def make_batch(*paths):
    return Batch(events=[ChangeEvent(path=p) for p in paths])


@pytest.fixture
def log_file(tmp_path):
    path = tmp_path / "server.log"
    path.write_text("line 1\nline 2\npanic: boom\n")
    return path


@pytest.fixture
def make_dispatcher(log_file):
    def factory(provider=None, git=None, renderer=None, ignore=("*_test.go",), max_concurrent=4):
        return ReviewDispatcher(
            provider=provider or FakeProvider(),
            git=git or FakeGit(),
            log_tailer=LogTailer(str(log_file), lines=2),
            task_pool=ReviewTaskPool(max_concurrent),
            ignore_filter=IgnoreFilter(list(ignore)),
            system_prompt="Review Go code.",
            renderer=renderer,
        )

    return factory


class TestReviewableFiles:
    """Tests for review-level path exclusions."""

    def test_metadata_dir_excluded(self, make_dispatcher):
        dispatcher = make_dispatcher()

        assert not dispatcher.is_reviewable(".git/index")
        assert not dispatcher.is_reviewable("./.git/refs/heads/main")
        assert dispatcher.is_reviewable("internal/gitutil/run.go")

    def test_log_file_excluded(self, make_dispatcher, log_file):
        dispatcher = make_dispatcher()

        assert not dispatcher.is_reviewable(str(log_file))

    def test_ignore_patterns_applied(self, make_dispatcher):
        dispatcher = make_dispatcher()

        assert not dispatcher.is_reviewable("pkg/server_test.go")
        assert dispatcher.is_reviewable("pkg/server.go")


class TestDispatch:
    """Tests for dispatch and review."""

    @pytest.mark.asyncio
    async def test_batch_review_end_to_end(self, make_dispatcher):
        provider = FakeProvider()
        git = FakeGit()
        dispatcher = make_dispatcher(provider=provider, git=git)

        task = dispatcher.dispatch_batch(make_batch("main.go", "util.go"))
        result = await task

        assert git.diff_calls == [["main.go", "util.go"]]
        assert len(provider.requests) == 1
        request = provider.requests[0]
        assert request.system_prompt == "Review Go code."
        assert request.context.startswith("=== FILE CHANGE REVIEW ===")
        assert "File: main.go\n+change in main.go" in request.context
        assert request.context.endswith("=== RUNTIME LOGS ===\nline 2\npanic: boom")
        assert result.title == "AI Analysis Complete"
        assert result.needs_fix is False
        assert result.review == "Looks fine."
        assert list(dispatcher.recent_results) == [result]

    @pytest.mark.asyncio
    async def test_staged_review_uses_staged_diff(self, make_dispatcher):
        git = FakeGit()
        provider = FakeProvider()
        dispatcher = make_dispatcher(provider=provider, git=git)

        result = await dispatcher.dispatch_staged(StagedState(hash="abc", staged_files=["api.go"]))

        assert git.staged_calls == [["api.go"]]
        assert git.diff_calls == []
        assert provider.requests[0].context.startswith("=== STAGED CHANGE REVIEW ===")
        assert result.title == "AI Staged Review Complete"

    @pytest.mark.asyncio
    async def test_fully_filtered_trigger_discarded(self, make_dispatcher):
        provider = FakeProvider()
        dispatcher = make_dispatcher(provider=provider)

        task = dispatcher.dispatch_batch(make_batch(".git/index", "a_test.go"))

        assert task is None
        assert dispatcher.triggers_discarded == 1
        assert provider.requests == []

    @pytest.mark.asyncio
    async def test_partially_filtered_batch(self, make_dispatcher):
        git = FakeGit()
        dispatcher = make_dispatcher(git=git)

        await dispatcher.dispatch_batch(make_batch(".git/HEAD", "main.go"))

        assert git.diff_calls == [["main.go"]]

    @pytest.mark.asyncio
    async def test_empty_diff_skips_provider(self, make_dispatcher):
        provider = FakeProvider()
        dispatcher = make_dispatcher(provider=provider, git=FakeGit(empty=True))

        assert await dispatcher.dispatch_batch(make_batch("main.go")) is None
        assert provider.requests == []

    @pytest.mark.asyncio
    async def test_git_failure_skips_review(self, make_dispatcher):
        provider = FakeProvider()
        dispatcher = make_dispatcher(provider=provider, git=FakeGit(error=GitError("not a repo")))

        assert await dispatcher.dispatch_batch(make_batch("main.go")) is None
        assert provider.requests == []

    @pytest.mark.asyncio
    async def test_missing_log_file_sends_empty_logs(self, make_dispatcher, log_file):
        provider = FakeProvider()
        dispatcher = make_dispatcher(provider=provider)
        log_file.unlink()

        result = await dispatcher.dispatch_batch(make_batch("main.go"))

        assert result.ok
        assert provider.requests[0].context.endswith("=== RUNTIME LOGS ===\n")

    @pytest.mark.asyncio
    async def test_provider_error_reported(self, make_dispatcher):
        renderer = MagicMock()
        provider = FakeProvider(error=APIError("API error: quota"))
        dispatcher = make_dispatcher(provider=provider, renderer=renderer)

        result = await dispatcher.dispatch_batch(make_batch("main.go"))

        assert not result.ok
        assert result.error == "API error: quota"
        renderer.batch_header.assert_called_once_with(1)
        renderer.review_result.assert_called_once_with(result)

    @pytest.mark.asyncio
    async def test_empty_reply_is_an_error(self, make_dispatcher):
        dispatcher = make_dispatcher(provider=FakeProvider(reply="  "))

        result = await dispatcher.dispatch_batch(make_batch("main.go"))

        assert result.error == "empty response"

    @pytest.mark.asyncio
    async def test_renderer_notified_for_staged(self, make_dispatcher):
        renderer = MagicMock()
        dispatcher = make_dispatcher(renderer=renderer)

        await dispatcher.dispatch_staged(StagedState(hash="h", staged_files=["x.go"]))

        renderer.staged_changed.assert_called_once()
        renderer.provider_info.assert_called_once_with("fake", "fake-1")


class TestDispatcherLoop:
    """Tests for the coordination loop."""

    @pytest.mark.asyncio
    async def test_slow_provider_does_not_block_loop(self, make_dispatcher):
        """Test triggers keep being dispatched while a review is in flight."""
        provider = FakeProvider(delay=5.0)
        dispatcher = make_dispatcher(provider=provider)
        batches: asyncio.Queue = asyncio.Queue()
        staged: asyncio.Queue = asyncio.Queue()
        shutdown = asyncio.Event()

        loop_task = asyncio.create_task(dispatcher.run(batches, staged, shutdown))
        await batches.put(make_batch("a.go"))
        await staged.put(StagedState(hash="h1", staged_files=["b.go"]))
        await batches.put(make_batch("c.go"))
        await asyncio.sleep(0.1)

        assert dispatcher.triggers_received == 3
        assert len(provider.requests) == 3

        shutdown.set()
        await asyncio.wait_for(loop_task, timeout=1)
        assert dispatcher.task_pool.cancel_all() == 3
        await dispatcher.task_pool.wait_idle()

    @pytest.mark.asyncio
    async def test_shutdown_drains_queued_triggers(self, make_dispatcher):
        dispatcher = make_dispatcher()
        batches: asyncio.Queue = asyncio.Queue()
        staged: asyncio.Queue = asyncio.Queue()
        shutdown = asyncio.Event()
        shutdown.set()
        batches.put_nowait(make_batch("final.go"))
        staged.put_nowait(StagedState(hash="h", staged_files=["s.go"]))

        await dispatcher.run(batches, staged, shutdown)

        assert dispatcher.triggers_received == 2
        assert batches.empty() and staged.empty()
        await dispatcher.task_pool.wait_idle()
        assert len(dispatcher.recent_results) == 2

    @pytest.mark.asyncio
    async def test_status(self, make_dispatcher):
        dispatcher = make_dispatcher()
        dispatcher.dispatch_batch(make_batch(".git/index"))

        status = dispatcher.get_status()

        assert status["triggers_received"] == 1
        assert status["triggers_discarded"] == 1
        assert status["pool"]["in_flight"] == 0


def test_trigger_kind_values():
    assert TriggerKind.FILE_BATCH.value == "file_batch"
    assert TriggerKind.STAGED_CHANGE.value == "staged_change"
