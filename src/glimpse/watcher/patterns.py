"""Resolve watch patterns into concrete directories."""

import glob
import logging
import os
from dataclasses import dataclass
from typing import Dict, Iterable, List

logger = logging.getLogger(__name__)

RECURSIVE_WILDCARD = "**"


@dataclass(frozen=True)
class WatchRoot:
    """A directory to register with the OS notification layer."""

    path: str
    recursive: bool = False


def resolve_watch_roots(patterns: Iterable[str]) -> List[WatchRoot]:
    """
    Resolve glob patterns to a de-duplicated list of watch roots.

    A pattern containing ``**`` resolves to its fixed prefix directory,
    watched recursively. Any other glob resolves to the parent directory
    of each match (or the match itself when it is a directory).
    Patterns that match nothing are skipped with a warning.

    Args:
        patterns: Watch patterns from configuration

    Returns:
        Watch roots in first-seen order
    """
    roots: Dict[str, WatchRoot] = {}

    for pattern in patterns:
        logger.debug(f"Resolving watch pattern: {pattern}")

        if RECURSIVE_WILDCARD in pattern:
            base_dir = pattern.split(RECURSIVE_WILDCARD, 1)[0].rstrip("/\\")
            candidates = [(base_dir or ".", True)]
        else:
            matches = sorted(glob.glob(pattern))
            if not matches:
                logger.warning(f"Watch pattern matched nothing: {pattern}")
                continue
            candidates = [
                (match if os.path.isdir(match) else (os.path.dirname(match) or "."), False)
                for match in matches
            ]

        for directory, recursive in candidates:
            if not os.path.isdir(directory):
                logger.warning(f"Skipping missing watch directory {directory} ({pattern})")
                continue

            key = os.path.abspath(directory)
            existing = roots.get(key)
            if existing is None:
                roots[key] = WatchRoot(path=os.path.normpath(directory), recursive=recursive)
            elif recursive and not existing.recursive:
                roots[key] = WatchRoot(path=existing.path, recursive=True)
            else:
                logger.debug(f"Directory {directory} already being watched")

    return list(roots.values())
