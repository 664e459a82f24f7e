"""Git command wrapper for diffs and staged state."""

import asyncio
import hashlib
import logging
from typing import List, Optional, Sequence

from ..models import FileDiff, StagedState

logger = logging.getLogger(__name__)


class GitError(Exception):
    """Raised when a git invocation fails."""

    pass


class GitClient:
    """
    Thin async wrapper around the git CLI.

    PATTERN: asyncio subprocess, stdout captured as text
    GOTCHA: Outside a repository every command fails with GitError
    """

    def __init__(self, repo_path: Optional[str] = None, git_binary: str = "git"):
        """
        Initialize client.

        Args:
            repo_path: Working directory for git commands (default: cwd)
            git_binary: git executable
        """
        self.repo_path = repo_path
        self.git_binary = git_binary

    async def _run(self, *args: str) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                self.git_binary,
                *args,
                cwd=self.repo_path,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise GitError(f"git executable not found: {self.git_binary}") from e

        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            raise GitError(
                f"git {' '.join(args)} failed ({process.returncode}): "
                f"{stderr.decode(errors='replace').strip()}"
            )
        return stdout.decode(errors="replace")

    async def diff(self, files: Sequence[str]) -> List[FileDiff]:
        """
        Get unstaged and staged changes against HEAD for each file.

        Files without changes are omitted; an empty list means nothing changed.

        Args:
            files: Paths to diff

        Returns:
            One FileDiff per file with changes
        """
        diffs: List[FileDiff] = []
        for path in files:
            parts = []
            for cached in (False, True):
                args = ["diff", "--no-color", "--unified=3"]
                if cached:
                    args.append("--cached")
                args.extend(["HEAD", "--", path])
                try:
                    output = await self._run(*args)
                except GitError as e:
                    logger.debug(f"Diff failed for {path}: {e}")
                    continue
                if output:
                    parts.append(output)

            if parts:
                diffs.append(FileDiff(path=path, content="\n".join(parts)))
        return diffs

    async def staged_diff(self, files: Sequence[str] = ()) -> List[FileDiff]:
        """Get the staged diff, per file when files are given."""
        if not files:
            output = await self._run("diff", "--no-color", "--cached")
            return [FileDiff(path="staged_changes", content=output)] if output else []

        diffs: List[FileDiff] = []
        for path in files:
            output = await self._run("diff", "--no-color", "--cached", "--", path)
            if output:
                diffs.append(FileDiff(path=path, content=output))
        return diffs

    async def staged_files(self) -> List[str]:
        output = await self._run("diff", "--cached", "--name-only")
        return [line for line in output.splitlines() if line]

    async def staged_state(self) -> StagedState:
        """
        Fingerprint the staging area.

        The hash covers the sorted staged file names and the full binary
        staged diff, so it only changes when staged content changes.

        Raises:
            GitError: If git cannot be queried
        """
        staged = sorted(await self.staged_files())
        content = await self._run(
            "diff", "--cached", "--no-color", "--no-ext-diff", "--full-index", "--binary"
        )

        digest = hashlib.sha256()
        digest.update("\0".join(staged).encode())
        digest.update(b"\0\0")
        digest.update(content.encode())
        return StagedState(hash=digest.hexdigest(), staged_files=staged)

    async def changed_files(self) -> List[str]:
        """List files with staged or unstaged changes against HEAD."""
        unstaged = await self._run("diff", "--name-only", "HEAD")
        staged = await self._run("diff", "--name-only", "--cached", "HEAD")

        files: List[str] = []
        for line in (unstaged + "\n" + staged).splitlines():
            if line and line not in files:
                files.append(line)
        return files
