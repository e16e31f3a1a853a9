"""PathFilterPolicy: decides what is a repository and where the walk goes next."""

from __future__ import annotations

import os

from pygit_kit.models import ScanConfig

GIT_MARKER = '.git'


def is_repo_root(path: str | os.PathLike) -> bool:
    """Return True if path contains a .git directory (clone) or file (worktree)."""
    try:
        return os.path.exists(os.path.join(path, GIT_MARKER))
    except OSError:
        return False


class PathFilterPolicy:
    """Boundary rules for one scan: depth, filesystem, symlinks, nested repos."""

    def __init__(self, config: ScanConfig):
        self.config = config

    def is_repo_root(self, path: str | os.PathLike) -> bool:
        return is_repo_root(path)

    def should_descend(
        self,
        path: str,
        depth: int,
        device_id: int,
        *,
        is_repo: bool | None = None,
        stat_result: os.stat_result | None = None,
    ) -> bool:
        """Return True if the children of path should be queued.

        is_repo and stat_result may be passed when the caller already knows
        them. A directory that cannot be stat'ed is never descended into.
        """
        if depth >= self.config.max_depth:
            return False

        if not self.config.follow_links and os.path.islink(path):
            return False

        if self.config.same_filesystem:
            if stat_result is None:
                try:
                    stat_result = os.stat(path)
                except OSError:
                    return False
            if stat_result.st_dev != device_id:
                return False

        if self.config.stop_at_git:
            if is_repo is None:
                is_repo = self.is_repo_root(path)
            if is_repo:
                return False

        return True

    def accepts_child(self, entry: os.DirEntry) -> bool:
        """Return True if a directory entry should be queued for a visit."""
        if entry.name == GIT_MARKER:
            return False
        try:
            return entry.is_dir(follow_symlinks=self.config.follow_links)
        except OSError:
            return False
