"""GitPython access for cloning and describing a single repository."""

from __future__ import annotations

import logging
from pathlib import Path

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo
from git.exc import BadName

from pygit_kit.models import OperationResult, OperationType, RepositoryInfo


class GitPythonRepository:
    """Thin wrapper over git.Repo for the clone and view commands"""

    def __init__(self, repo_path: Path):
        """Open repo_path. Raises GitPython's errors if it is not a readable repository."""
        self.path = repo_path
        self._repo = Repo(repo_path)
        self._logger = logging.getLogger(__name__)

    @classmethod
    def clone(cls, url: str, destination: Path) -> OperationResult:
        """Run git clone url destination."""
        logger = logging.getLogger(__name__)
        logger.info("Running: git clone %s %s", url, destination)
        try:
            Repo.clone_from(url, str(destination)).close()
        except GitCommandError as e:
            return OperationResult(False, OperationType.CLONE, f"git clone failed: {e}", e)
        return OperationResult(True, OperationType.CLONE, f"Cloned {url} to {destination}")

    @classmethod
    def open(cls, repo_path: Path) -> GitPythonRepository | None:
        """Open repo_path, or return None if GitPython cannot read it."""
        try:
            return cls(repo_path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            logging.getLogger(__name__).debug("Cannot open %s with GitPython: %s", repo_path, e)
            return None

    def __enter__(self) -> GitPythonRepository:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._repo.close()

    def _branch(self) -> str | None:
        try:
            return self._repo.active_branch.name
        except (TypeError, ValueError):
            # detached HEAD
            return None

    def _head(self) -> str | None:
        try:
            return self._repo.head.commit.hexsha[:12]
        except ValueError:
            # unborn branch
            return None

    def _remotes(self) -> dict[str, str]:
        urls = {}
        for remote in self._repo.remotes:
            try:
                urls[remote.name] = next(iter(remote.urls))
            except (GitCommandError, StopIteration):
                self._logger.debug("Remote %s has no URL", remote.name)
        return urls

    def _staged_count(self) -> int:
        try:
            return len(self._repo.index.diff('HEAD'))
        except (BadName, ValueError):
            # nothing committed yet, so everything in the index is staged
            return len(self._repo.index.entries)

    def describe(self) -> RepositoryInfo:
        """Snapshot branch, HEAD, remotes and working tree counts."""
        return RepositoryInfo(
            path=self.path,
            branch=self._branch(),
            head=self._head(),
            remotes=self._remotes(),
            staged=self._staged_count(),
            unstaged=len(self._repo.index.diff(None)),
            untracked=len(self._repo.untracked_files),
        )
