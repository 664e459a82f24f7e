"""Runtime log tailing."""

from .tailer import LogTailer, LogTailError

__all__ = ["LogTailer", "LogTailError"]
