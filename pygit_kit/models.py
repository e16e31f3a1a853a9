"""Domain models: enums, dataclasses, and configuration."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any

DEFAULT_MAX_DEPTH = 4
DEFAULT_CACHE_TTL = 24 * 60 * 60
DEFAULT_PROJECT_ROOT = '~/projects'


class CacheStatus(Enum):
    """Outcome of a cache operation"""
    OK = auto()
    MISS = auto()
    UNAVAILABLE = auto()


class CacheOperation(Enum):
    """Types of cache operations"""
    LOOKUP = auto()
    UPSERT = auto()
    PRUNE = auto()
    SAVE = auto()


class OperationType(Enum):
    """Types of workspace operations"""
    CLONE = auto()
    VIEW = auto()


def _default_thread_count() -> int:
    return os.cpu_count() or 4


@dataclass(frozen=True)
class ScanConfig:
    """Configuration for one repository scan"""
    root: Path
    max_depth: int = DEFAULT_MAX_DEPTH
    follow_links: bool = False
    same_filesystem: bool = True
    thread_count: int = field(default_factory=_default_thread_count)
    max_repos: int | None = None
    stop_at_git: bool = True

    def __post_init__(self):
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.thread_count < 1:
            raise ValueError(f"thread_count must be >= 1, got {self.thread_count}")
        if self.max_repos is not None and self.max_repos < 1:
            raise ValueError(f"max_repos must be positive, got {self.max_repos}")

    def with_updates(self, **kwargs) -> ScanConfig:
        """Return a new ScanConfig with the given fields replaced."""
        current = {f.name: getattr(self, f.name) for f in self.__dataclass_fields__.values()}
        current.update(kwargs)
        return ScanConfig(**current)


@dataclass(frozen=True)
class DirVisit:
    """A directory queued for a worker, with its distance from the scan root"""
    path: str
    depth: int
    device_id: int


@dataclass(frozen=True)
class RepoFound:
    """A repository root discovered during a scan"""
    path: Path
    discovered_at: float


@dataclass(frozen=True)
class ScanSummary:
    """Aggregate metrics of a finished scan"""
    directories_visited: int = 0
    repositories_found: int = 0
    directories_skipped: int = 0
    elapsed: float = 0.0
    truncated: bool = False

    def __str__(self) -> str:
        return (
            f"Found {self.repositories_found} repositories in "
            f"{self.directories_visited} directories ({self.elapsed:.3f}s)"
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict for JSON output."""
        return {
            'directories_visited': self.directories_visited,
            'repositories_found': self.repositories_found,
            'directories_skipped': self.directories_skipped,
            'elapsed_seconds': round(self.elapsed, 6),
            'truncated': self.truncated,
        }


@dataclass(frozen=True)
class CacheEntry:
    """A previously validated repository location"""
    path: str
    last_modified: int
    last_checked: int

    def to_dict(self) -> dict[str, int]:
        """Serialize the persisted fields (the path is the map key)."""
        return {'last_modified': self.last_modified, 'last_checked': self.last_checked}

    @classmethod
    def from_dict(cls, path: str, data: dict[str, Any]) -> CacheEntry:
        """Build an entry from its persisted form. Raises ValueError on bad fields."""
        try:
            return cls(
                path=path,
                last_modified=int(data['last_modified']),
                last_checked=int(data['last_checked']),
            )
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise ValueError(f"Invalid cache entry for {path}: {e}") from e


@dataclass(frozen=True)
class CacheResult:
    """Result of a single cache operation"""
    status: CacheStatus
    operation: CacheOperation
    message: str = ""
    entry: CacheEntry | None = None
    removed: int = 0

    @property
    def success(self) -> bool:
        """True only for OK; MISS and UNAVAILABLE are handled alike by callers."""
        return self.status is CacheStatus.OK


@dataclass(frozen=True)
class OperationResult:
    """Result of a single workspace operation"""
    success: bool
    operation: OperationType
    message: str
    error: Exception | None = None


@dataclass(frozen=True)
class RepositoryInfo:
    """Snapshot of one repository shown by the view command"""
    path: Path
    branch: str | None
    head: str | None
    remotes: dict[str, str] = field(default_factory=dict)
    staged: int = 0
    unstaged: int = 0
    untracked: int = 0

    @property
    def is_clean(self) -> bool:
        return not (self.staged or self.unstaged or self.untracked)

    def changes(self) -> str:
        return f"{self.staged} staged, {self.unstaged} unstaged, {self.untracked} untracked"


@dataclass(frozen=True)
class ParsedRepoUrl:
    """Components of a clone URL that determine its place in the workspace"""
    domain: str
    org: str
    repo: str

    def destination(self, project_root: Path) -> Path:
        """Return project_root/domain/org/repo."""
        return project_root / self.domain / self.org / self.repo


@dataclass(frozen=True)
class ViewCommand:
    """A labelled shell command template; {REPO} is replaced by the repo path"""
    label: str
    command: str

    def render(self, repo_path: Path) -> str:
        return self.command.replace('{REPO}', str(repo_path))

    def argv(self, repo_path: Path) -> list[str]:
        """Split the template first so a repo path with spaces stays one argument."""
        return [arg.replace('{REPO}', str(repo_path)) for arg in shlex.split(self.command)]


@dataclass(frozen=True)
class WorkspaceConfig:
    """Settings loaded from the config file, before CLI overrides"""
    project_root: Path = field(default_factory=lambda: Path(DEFAULT_PROJECT_ROOT).expanduser())
    view_commands: list[ViewCommand] = field(default_factory=list)
    cache_ttl: int = DEFAULT_CACHE_TTL
    cache_path: Path | None = None
    scan_options: dict[str, Any] = field(default_factory=dict)
