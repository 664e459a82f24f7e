"""Read the last lines of a runtime log file."""

import logging
from collections import deque
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class LogTailError(Exception):
    """Raised when the log file cannot be read."""

    pass


class LogTailer:
    """Return recent lines from the application's log file."""

    def __init__(self, file: str, lines: int = 50):
        self.file = Path(file)
        self.lines = lines

    def tail(self, n: Optional[int] = None) -> str:
        """
        Get the last n lines of the log file.

        Only n lines are held in memory regardless of file size.

        Args:
            n: Number of lines (default: configured line count)

        Returns:
            Lines joined with newlines

        Raises:
            LogTailError: If the file is missing or unreadable
        """
        count = self.lines if n is None else n
        if count <= 0:
            return ""

        try:
            with open(self.file, encoding="utf-8", errors="replace") as f:
                recent = deque((line.rstrip("\n") for line in f), maxlen=count)
        except OSError as e:
            raise LogTailError(f"failed to open log file: {e}") from e

        return "\n".join(recent)
