"""Git integration."""

from .client import GitClient, GitError

__all__ = ["GitClient", "GitError"]
