"""Basename glob filtering for change events."""

import fnmatch
import os
from typing import Iterable, List, Optional


class IgnoreFilter:
    """
    Decide whether a path should be suppressed.

    Patterns are shell globs matched against the final path segment,
    so ``*_test.go`` hides ``pkg/foo_test.go`` wherever it lives.
    """

    def __init__(self, patterns: Optional[Iterable[str]] = None):
        self._patterns: List[str] = [p for p in (patterns or []) if p]

    @property
    def patterns(self) -> List[str]:
        return list(self._patterns)

    def matches(self, path: str) -> bool:
        """Check if the basename of path matches any ignore pattern."""
        name = os.path.basename(path.rstrip("/\\")) or path
        return any(fnmatch.fnmatchcase(name, pattern) for pattern in self._patterns)

    def filter(self, paths: Iterable[str]) -> List[str]:
        """Return the paths that are not ignored, in order."""
        return [path for path in paths if not self.matches(path)]

    def __len__(self) -> int:
        return len(self._patterns)
