"""Collapse editor artifact filenames onto the file they shadow."""

import os

# Suffix rules, checked in order before the basename rules
_ARTIFACT_SUFFIXES = (
    "~",  # vim/emacs backup
    ".swp",  # vim swap
    ".tmp",  # generic temp file
)


def normalize_path(path: str) -> str:
    """
    Map a raw changed path to the logical file it represents.

    The first matching rule wins:
    ``file~``, ``file.swp`` and ``file.tmp`` lose the suffix,
    ``.#file`` (emacs lock) and ``#file#`` (emacs autosave) lose the
    markers on the basename only. Anything else is returned unchanged.

    Args:
        path: Path as reported by the OS

    Returns:
        Normalized path
    """
    for suffix in _ARTIFACT_SUFFIXES:
        if path.endswith(suffix):
            return path[: -len(suffix)]

    directory, basename = os.path.split(path)

    if len(basename) > 2 and basename.startswith(".#"):
        return os.path.join(directory, basename[2:])

    if len(basename) > 1 and basename.startswith("#") and basename.endswith("#"):
        return os.path.join(directory, basename[1:-1])

    return path
