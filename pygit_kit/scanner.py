"""Repository scanner: finds git repos under a directory with a pool of worker threads."""

from __future__ import annotations

import concurrent.futures
import logging
import os
import queue
import threading
import time
from collections.abc import Iterator
from pathlib import Path

from pygit_kit.errors import RootNotADirectoryError, RootNotFoundError, WorkerPoolError
from pygit_kit.models import DirVisit, RepoFound, ScanConfig, ScanSummary
from pygit_kit.policy import PathFilterPolicy
from pygit_kit.protocols import RepoCache

_SHUTDOWN = object()
_DONE = object()


class ScanMetrics:
    """Counters shared by all workers of one scan."""

    def __init__(self):
        self._lock = threading.Lock()
        self.directories_visited = 0
        self.directories_skipped = 0
        self.repositories_found = 0

    def add_visited(self) -> None:
        with self._lock:
            self.directories_visited += 1

    def add_skipped(self) -> None:
        with self._lock:
            self.directories_skipped += 1

    def claim_repo(self, max_repos: int | None) -> tuple[bool, bool]:
        """Reserve an emission slot. Returns (claimed, cap_reached)."""
        with self._lock:
            if max_repos is not None and self.repositories_found >= max_repos:
                return False, True
            self.repositories_found += 1
            return True, max_repos is not None and self.repositories_found >= max_repos

    def summary(self, elapsed: float, truncated: bool) -> ScanSummary:
        with self._lock:
            return ScanSummary(
                directories_visited=self.directories_visited,
                repositories_found=self.repositories_found,
                directories_skipped=self.directories_skipped,
                elapsed=elapsed,
                truncated=truncated,
            )


class ScanSession:
    """A running scan.

    Iterating yields RepoFound events as soon as a worker finds them. The
    stream is finite and cannot be restarted. Call close() (or leave the
    ``with`` block) to stop early; workers finish the visit they are in and
    drop everything still queued. ``summary`` is set once the scan is over.
    """

    def __init__(self, config: ScanConfig, root: Path, cache: RepoCache | None = None):
        """Prepare a scan of root. Call start() to launch the workers."""
        self.config = config
        self.root = root
        self.policy = PathFilterPolicy(config)
        self.summary: ScanSummary | None = None
        self._cache = cache
        self._logger = logging.getLogger(__name__)

        self._work: queue.Queue = queue.Queue()
        self._results: queue.Queue = queue.Queue()
        self._stop = threading.Event()
        self._finished = threading.Event()
        self._metrics = ScanMetrics()
        self._truncated = False

        self._seen_lock = threading.Lock()
        self._reported: set = set()
        self._found: list[Path] = []
        self._expanded: set[tuple[int, int]] = set()

        self._executor: concurrent.futures.ThreadPoolExecutor | None = None
        self._coordinator: threading.Thread | None = None
        self._started_at = 0.0
        self._exhausted = False

    @property
    def stopped(self) -> bool:
        """True once the stop flag is set by max_repos or close()."""
        return self._stop.is_set()

    def start(self) -> ScanSession:
        """Seed the queue with the root and start the worker pool."""
        try:
            device_id = os.stat(self.root).st_dev
        except FileNotFoundError as e:
            raise RootNotFoundError(self.root) from e
        self._started_at = time.monotonic()
        self._work.put(DirVisit(str(self.root), 0, device_id))

        workers = self.config.thread_count
        try:
            self._executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix='pygit-kit-scan'
            )
            for _ in range(workers):
                self._executor.submit(self._worker)
            self._coordinator = threading.Thread(
                target=self._coordinate, name='pygit-kit-scan-coordinator', daemon=True
            )
            self._coordinator.start()
        except RuntimeError as e:
            self._abort_start()
            raise WorkerPoolError(workers, str(e)) from e

        self._logger.debug("Scanning %s with %d workers", self.root, workers)
        return self

    def _abort_start(self) -> None:
        self._stop.set()
        if self._executor is not None:
            for _ in range(self.config.thread_count):
                self._work.put(_SHUTDOWN)
            self._executor.shutdown(wait=False)

    def __iter__(self) -> ScanSession:
        return self

    def __next__(self) -> RepoFound:
        if self._exhausted:
            raise StopIteration
        item = self._results.get()
        if item is _DONE:
            self._exhausted = True
            raise StopIteration
        return item

    def __enter__(self) -> ScanSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Stop the scan cooperatively and wait for the workers to wind down."""
        self._stop.set()
        self.wait()

    def wait(self) -> ScanSummary | None:
        """Block until every worker has exited; returns the summary."""
        if self._coordinator is not None:
            self._finished.wait()
        return self.summary

    def _coordinate(self) -> None:
        """Wait for the queue to drain, then shut the workers down."""
        self._work.join()
        for _ in range(self.config.thread_count):
            self._work.put(_SHUTDOWN)
        self._executor.shutdown(wait=True)
        self._record_found()
        self.summary = self._metrics.summary(time.monotonic() - self._started_at, self._truncated)
        self._logger.debug("%s", self.summary)
        self._logger.debug("Skipped %d unreadable directories", self.summary.directories_skipped)
        self._finished.set()
        self._results.put(_DONE)

    def _worker(self) -> None:
        while True:
            visit = self._work.get()
            try:
                if visit is _SHUTDOWN:
                    return
                if self._stop.is_set():
                    continue
                self._visit(visit)
            except Exception:
                self._logger.exception("Unexpected error scanning %s", visit.path)
                self._metrics.add_skipped()
            finally:
                self._work.task_done()

    def _visit(self, visit: DirVisit) -> None:
        self._metrics.add_visited()
        path = visit.path

        is_repo = self.policy.is_repo_root(path)
        if is_repo:
            self._emit(path)

        try:
            st = os.stat(path)
        except OSError as e:
            self._skip(path, e)
            return

        if not self.policy.should_descend(
            path, visit.depth, visit.device_id, is_repo=is_repo, stat_result=st
        ):
            return
        if self.config.follow_links and not self._claim_directory(st):
            self._logger.debug("Already expanded, skipping: %s", path)
            return

        try:
            with os.scandir(path) as it:
                children = [entry.path for entry in it if self.policy.accepts_child(entry)]
        except OSError as e:
            self._skip(path, e)
            return

        for child in children:
            self._work.put(DirVisit(child, visit.depth + 1, visit.device_id))

    def _skip(self, path: str, error: OSError) -> None:
        self._metrics.add_skipped()
        if isinstance(error, PermissionError):
            self._logger.warning("Permission denied, skipping %s", path)
        else:
            self._logger.debug("Skipping %s: %s", path, error)

    def _claim_directory(self, st: os.stat_result) -> bool:
        """Mark a physical directory as expanded; False if it already was."""
        key = (st.st_dev, st.st_ino)
        with self._seen_lock:
            if key in self._expanded:
                return False
            self._expanded.add(key)
            return True

    def _identity(self, path: str):
        try:
            st = os.stat(path)
            return (st.st_dev, st.st_ino)
        except OSError:
            return path

    def _emit(self, path: str) -> None:
        key = self._identity(path)
        with self._seen_lock:
            if key in self._reported:
                return
            self._reported.add(key)

        claimed, cap_reached = self._metrics.claim_repo(self.config.max_repos)
        if cap_reached and not self._stop.is_set():
            self._logger.debug("Reached max_repos=%s, stopping", self.config.max_repos)
            self._truncated = True
            self._stop.set()
        if not claimed:
            return

        repo_path = Path(path)
        self._results.put(RepoFound(repo_path, time.time()))
        with self._seen_lock:
            self._found.append(repo_path)

    def _record_found(self) -> None:
        """Write every emitted repository to the cache in one batch."""
        if self._cache is None or not self._found:
            return
        result = self._cache.record_many(self._found)
        if not result.success:
            self._logger.warning("Failed to cache %d repositories: %s", len(self._found), result.message)


class RepositoryScanner:
    """Responsible for finding git repositories"""

    def __init__(self, config: ScanConfig, cache: RepoCache | None = None):
        """Create a scanner for config; found repos are recorded in cache if given."""
        self.config = config
        self.cache = cache

    def resolve_root(self) -> Path:
        """Return the absolute, resolved root or raise a fatal ScanError."""
        root = Path(self.config.root).expanduser()
        if not root.exists():
            raise RootNotFoundError(root)
        if not root.is_dir():
            raise RootNotADirectoryError(root)
        return root.resolve()

    def scan(self) -> ScanSession:
        """Start a scan and return its live session."""
        return ScanSession(self.config, self.resolve_root(), self.cache).start()

    def find_repositories(self) -> Iterator[Path]:
        """Yield repository paths as they are found; stops the scan if abandoned."""
        with self.scan() as session:
            for event in session:
                yield event.path
