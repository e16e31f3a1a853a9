"""Exceptions raised by pygit-kit.

Recoverable conditions (unreadable directories, an unavailable or corrupt
cache) are handled where they occur and never surface through these types,
except for CacheUnavailableError, which the cache converts into an
UNAVAILABLE result before returning to its caller.
"""

from __future__ import annotations

from pathlib import Path


class PygitKitError(Exception):
    """Base exception for all pygit-kit errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ScanError(PygitKitError):
    """A condition that aborts a scan before it produces any result."""


class RootNotFoundError(ScanError):
    """Raised when the scan root does not exist."""

    def __init__(self, root: Path) -> None:
        self.root = root
        super().__init__(f"Scan root does not exist: {root}")


class RootNotADirectoryError(ScanError):
    """Raised when the scan root exists but is not a directory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        super().__init__(f"Scan root is not a directory: {root}")


class WorkerPoolError(ScanError):
    """Raised when the scanner cannot start its worker threads."""

    def __init__(self, thread_count: int, reason: str) -> None:
        self.thread_count = thread_count
        super().__init__(f"Failed to start {thread_count} scan workers: {reason}")


class CacheUnavailableError(PygitKitError):
    """Raised internally when the cache lock cannot be acquired within its retry bound."""


class ConfigError(PygitKitError):
    """Raised when the configuration file holds values of the wrong type."""


class InvalidRepoUrlError(PygitKitError):
    """Raised when a clone URL is neither a usable HTTPS nor SSH URL."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        super().__init__(f"Invalid repository URL '{url}': {reason}")


class CloneError(PygitKitError):
    """Raised when git clone fails or the destination cannot be prepared."""


class RepositoryNotFoundError(PygitKitError):
    """Raised when a repository path does not exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Repository not found: {path}")


class NotARepositoryError(PygitKitError):
    """Raised when a path exists but has no .git entry."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"{path} is not a git repository")
