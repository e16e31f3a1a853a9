"""ResultCache: persisted, TTL-validated index of known repository roots."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
import threading
import time
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from pygit_kit.errors import CacheUnavailableError
from pygit_kit.models import (
    DEFAULT_CACHE_TTL,
    CacheEntry,
    CacheOperation,
    CacheResult,
    CacheStatus,
)
from pygit_kit.policy import is_repo_root

CACHE_VERSION = 1
CACHE_LOCK_RETRIES = 3
CACHE_LOCK_TIMEOUT = 1.0


def canonical_path(path: str | os.PathLike) -> str:
    """Absolute, symlink-resolved form used for every cache key."""
    return os.path.realpath(os.path.abspath(os.path.expanduser(os.fspath(path))))


class ReadWriteLock:
    """Writer-preferring reader/writer lock with timed acquisition."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def acquire_read(self, timeout: float | None = None) -> bool:
        with self._cond:
            ok = self._cond.wait_for(
                lambda: not self._writer and not self._waiting_writers, timeout
            )
            if ok:
                self._readers += 1
            return ok

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self, timeout: float | None = None) -> bool:
        with self._cond:
            self._waiting_writers += 1
            try:
                ok = self._cond.wait_for(
                    lambda: not self._writer and self._readers == 0, timeout
                )
            finally:
                self._waiting_writers -= 1
            if ok:
                self._writer = True
            else:
                # Readers blocked behind this writer may proceed now
                self._cond.notify_all()
            return ok

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()


class ResultCache:
    """Thread-safe map of repository paths to CacheEntry, persisted as JSON.

    The cache is a hint: every read re-verifies the TTL, that the path still
    exists and that it is still a repository root. Lock contention beyond the
    retry bound makes an operation report CacheStatus.UNAVAILABLE instead of
    raising, and callers are expected to treat that exactly like a miss.
    """

    def __init__(
        self,
        cache_path: Path | None = None,
        ttl_seconds: int = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.time,
    ):
        """Create a cache backed by cache_path and load whatever it holds."""
        if cache_path is None:
            from pygit_kit.config import default_cache_path
            cache_path = default_cache_path()
        self._path = Path(cache_path)
        self._ttl = int(ttl_seconds)
        self._clock = clock
        self._lock = ReadWriteLock()
        self._logger = logging.getLogger(__name__)
        self._entries: dict[str, CacheEntry] = self.load()

    @property
    def path(self) -> Path:
        """Location of the persisted cache file."""
        return self._path

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, os.PathLike)):
            return False
        return canonical_path(path) in self._entries

    def load(self) -> dict[str, CacheEntry]:
        """Read the persisted store. Any problem yields an empty map and a warning."""
        if not self._path.exists():
            return {}
        try:
            with open(self._path, encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self._logger.warning("Failed to read cache %s, starting empty: %s", self._path, e)
            return {}

        if not isinstance(data, dict) or not isinstance(data.get('entries'), dict):
            self._logger.warning("Malformed cache %s, starting empty", self._path)
            return {}
        if data.get('version') != CACHE_VERSION:
            self._logger.warning(
                "Unsupported cache version %r in %s, starting empty", data.get('version'), self._path
            )
            return {}

        entries = {}
        for raw_path, raw_entry in data['entries'].items():
            key = canonical_path(raw_path)
            try:
                entries[key] = CacheEntry.from_dict(key, raw_entry)
            except ValueError as e:
                self._logger.warning("Dropping cache entry: %s", e)
        self._logger.debug("Loaded %d cache entries from %s", len(entries), self._path)
        return entries

    def is_valid(self, entry: CacheEntry) -> bool:
        """TTL not elapsed, path still exists, and it still holds a .git entry."""
        if self._clock() - entry.last_checked >= self._ttl:
            self._logger.debug("Cache entry expired: %s", entry.path)
            return False
        if not os.path.isdir(entry.path):
            self._logger.debug("Cache entry path does not exist: %s", entry.path)
            return False
        if not is_repo_root(entry.path):
            self._logger.debug("Cache entry is not a git repository: %s", entry.path)
            return False
        return True

    def get(self, path: str | os.PathLike) -> CacheResult:
        """Look up path, reporting OK, MISS or UNAVAILABLE explicitly."""
        key = canonical_path(path)
        try:
            with self._locked(write=False):
                entry = self._entries.get(key)
                if entry is not None and self.is_valid(entry):
                    return CacheResult(CacheStatus.OK, CacheOperation.LOOKUP, "Cache hit", entry=entry)
                return CacheResult(CacheStatus.MISS, CacheOperation.LOOKUP, "Cache miss")
        except CacheUnavailableError as e:
            return self._unavailable(CacheOperation.LOOKUP, e)

    def lookup(self, path: str | os.PathLike) -> CacheEntry | None:
        """Return the entry for path if it is still valid, else None."""
        return self.get(path).entry

    def entries(self) -> list[CacheEntry]:
        """Snapshot of all stored entries, valid or not. Empty if unavailable."""
        try:
            with self._locked(write=False):
                return list(self._entries.values())
        except CacheUnavailableError as e:
            self._unavailable(CacheOperation.LOOKUP, e)
            return []

    def upsert(self, path: str | os.PathLike, entry: CacheEntry) -> CacheResult:
        """Insert or replace the entry for path and persist the whole store."""
        key = canonical_path(path)
        if entry.path != key:
            entry = CacheEntry(key, entry.last_modified, entry.last_checked)
        try:
            with self._locked(write=True):
                self._entries[key] = entry
                self._logger.debug("Cached %s (%d entries)", key, len(self._entries))
                saved = self._save_locked()
        except CacheUnavailableError as e:
            return self._unavailable(CacheOperation.UPSERT, e)
        if not saved.success:
            return CacheResult(CacheStatus.UNAVAILABLE, CacheOperation.UPSERT, saved.message, entry=entry)
        return CacheResult(CacheStatus.OK, CacheOperation.UPSERT, f"Cached {key}", entry=entry)

    def entry_for(self, path: str | os.PathLike) -> CacheEntry:
        """Build a fresh entry from the directory's mtime and the current time."""
        key = canonical_path(path)
        now = int(self._clock())
        try:
            last_modified = int(os.stat(key).st_mtime)
        except OSError:
            last_modified = now
        return CacheEntry(path=key, last_modified=last_modified, last_checked=now)

    def record(self, path: str | os.PathLike) -> CacheResult:
        """Validate-and-store path as a freshly seen repository."""
        return self.upsert(path, self.entry_for(path))

    def record_many(self, paths: Iterable[str | os.PathLike]) -> CacheResult:
        """Store every path as freshly seen with a single locked write."""
        fresh = [self.entry_for(path) for path in paths]
        try:
            with self._locked(write=True):
                for entry in fresh:
                    self._entries[entry.path] = entry
                saved = self._save_locked()
        except CacheUnavailableError as e:
            return self._unavailable(CacheOperation.UPSERT, e)
        if not saved.success:
            return CacheResult(CacheStatus.UNAVAILABLE, CacheOperation.UPSERT, saved.message)
        return CacheResult(CacheStatus.OK, CacheOperation.UPSERT, f"Cached {len(fresh)} repositories")

    def validate_and_prune(self) -> CacheResult:
        """Remove every entry that would fail lookup, then persist."""
        try:
            with self._locked(write=True):
                stale = [key for key, entry in self._entries.items() if not self.is_valid(entry)]
                for key in stale:
                    del self._entries[key]
                saved = self._save_locked()
        except CacheUnavailableError as e:
            return self._unavailable(CacheOperation.PRUNE, e)
        message = f"Removed {len(stale)} stale cache entries"
        self._logger.debug(message)
        if not saved.success:
            return CacheResult(CacheStatus.UNAVAILABLE, CacheOperation.PRUNE, saved.message, removed=len(stale))
        return CacheResult(CacheStatus.OK, CacheOperation.PRUNE, message, removed=len(stale))

    def save(self) -> CacheResult:
        """Persist a snapshot of the current store."""
        try:
            with self._locked(write=True):
                return self._save_locked()
        except CacheUnavailableError as e:
            return self._unavailable(CacheOperation.SAVE, e)

    def _save_locked(self) -> CacheResult:
        """Write the store atomically. Caller must hold the lock."""
        document = {
            'version': CACHE_VERSION,
            'entries': {key: entry.to_dict() for key, entry in self._entries.items()},
        }
        temp_path = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            # Unique temp name: other processes may be saving the same cache
            fd, temp_name = tempfile.mkstemp(
                prefix=f'.{self._path.name}.', suffix='.tmp', dir=self._path.parent, text=True
            )
            temp_path = Path(temp_name)
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2, sort_keys=True)
            os.replace(temp_path, self._path)
        except OSError as e:
            if temp_path is not None:
                with contextlib.suppress(OSError):
                    temp_path.unlink()
            self._logger.warning("Failed to write cache %s: %s", self._path, e)
            return CacheResult(CacheStatus.UNAVAILABLE, CacheOperation.SAVE, f"Failed to write cache: {e}")
        self._logger.debug("Saved %d cache entries to %s", len(self._entries), self._path)
        return CacheResult(CacheStatus.OK, CacheOperation.SAVE, f"Saved {len(self._entries)} entries")

    @contextlib.contextmanager
    def _locked(self, write: bool) -> Iterator[None]:
        """Hold the read or write lock, retrying a bounded number of times."""
        acquire = self._lock.acquire_write if write else self._lock.acquire_read
        release = self._lock.release_write if write else self._lock.release_read
        mode = 'write' if write else 'read'
        for attempt in range(1, CACHE_LOCK_RETRIES + 1):
            if acquire(timeout=CACHE_LOCK_TIMEOUT):
                break
            self._logger.debug("Cache %s lock busy (attempt %d/%d)", mode, attempt, CACHE_LOCK_RETRIES)
        else:
            raise CacheUnavailableError(
                f"Could not acquire cache {mode} lock after {CACHE_LOCK_RETRIES} attempts"
            )
        try:
            yield
        finally:
            release()

    def _unavailable(self, operation: CacheOperation, error: Exception) -> CacheResult:
        self._logger.warning("Cache unavailable for %s: %s", operation.name.lower(), error)
        return CacheResult(CacheStatus.UNAVAILABLE, operation, str(error))
