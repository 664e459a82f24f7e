"""Change detection: watching, normalizing, batching and staged polling."""

from .normalizer import normalize_path
from .ignore import IgnoreFilter
from .patterns import WatchRoot, resolve_watch_roots
from .file_watcher import ChangeWatcher
from .batcher import EventBatcher
from .staged_monitor import StagedStateMonitor

__all__ = [
    "normalize_path",
    "IgnoreFilter",
    "WatchRoot",
    "resolve_watch_roots",
    "ChangeWatcher",
    "EventBatcher",
    "StagedStateMonitor",
]
