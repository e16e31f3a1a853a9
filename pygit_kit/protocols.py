"""Protocols for dependency injection."""

from __future__ import annotations

import os
from collections.abc import Iterable
from typing import Protocol

from pygit_kit.models import CacheEntry, CacheResult


class RepoCache(Protocol):
    """Protocol for the repository result cache"""

    def lookup(self, path: str | os.PathLike) -> CacheEntry | None: ...
    def upsert(self, path: str | os.PathLike, entry: CacheEntry) -> CacheResult: ...
    def record(self, path: str | os.PathLike) -> CacheResult: ...
    def record_many(self, paths: Iterable[str | os.PathLike]) -> CacheResult: ...
    def entries(self) -> list[CacheEntry]: ...
    def validate_and_prune(self) -> CacheResult: ...


class OutputHandler(Protocol):
    """Protocol for handling output"""

    def info(self, message: str, indent: int = 0) -> None: ...
    def success(self, message: str, indent: int = 0) -> None: ...
    def warning(self, message: str, indent: int = 0) -> None: ...
    def error(self, message: str, indent: int = 0) -> None: ...
    def section(self, title: str) -> None: ...
    def debug(self, message: str) -> None: ...
