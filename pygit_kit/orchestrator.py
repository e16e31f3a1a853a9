"""WorkspaceOrchestrator: coordinates scanner, cache, cloner and viewer per command."""

from __future__ import annotations

import logging
from pathlib import Path

from pygit_kit.cloner import RepositoryCloner
from pygit_kit.models import CacheResult, OperationResult, RepoFound, ScanConfig, WorkspaceConfig
from pygit_kit.protocols import OutputHandler, RepoCache
from pygit_kit.reporter import ScanReporter, display_path
from pygit_kit.scanner import RepositoryScanner
from pygit_kit.viewer import RepositoryViewer


class WorkspaceOrchestrator:
    """Main orchestrator - one instance per process, shared cache passed in"""

    def __init__(
        self,
        workspace: WorkspaceConfig,
        output: OutputHandler,
        cache: RepoCache | None = None,
    ):
        """Create an orchestrator for the workspace with an optional shared cache."""
        self.workspace = workspace
        self.output = output
        self.cache = cache
        self._logger = logging.getLogger(__name__)

    @property
    def project_root(self) -> Path:
        return self.workspace.project_root

    def scan_config(self, **overrides) -> ScanConfig:
        """ScanConfig for the project root: config file options, then overrides."""
        options = dict(self.workspace.scan_options)
        if 'threads' in options:
            options['thread_count'] = options.pop('threads')
        options.update({k: v for k, v in overrides.items() if v is not None})
        return ScanConfig(root=self.project_root, **options)

    def list_repositories(
        self,
        config: ScanConfig,
        full: bool = False,
        json_output: bool = False,
        progress: bool = True,
        record: bool = True,
    ) -> list[RepoFound]:
        """Stream every repository under config.root to the output.

        Always traverses; found repositories are only recorded into the cache.
        """
        scanner = RepositoryScanner(config, self.cache if record else None)
        reporter = ScanReporter(self.output, full=full, progress=progress and not json_output)
        with scanner.scan() as session:
            if json_output:
                return reporter.print_json(session)
            return reporter.stream(session)

    def find_repository(self, name: str, full: bool = False) -> list[Path]:
        """Find repositories named name: valid cache entries first, else a rescan."""
        matches = self._cached_matches(name)
        if matches:
            self._logger.debug("Cache hit for %s: %d match(es)", name, len(matches))
        else:
            self._logger.debug("Cache miss for %s, rescanning %s", name, self.project_root)
            scanner = RepositoryScanner(self.scan_config(), self.cache)
            matches = sorted(path for path in scanner.find_repositories() if path.name == name)

        root = self.project_root.resolve()
        for path in matches:
            self.output.info(display_path(path, root, full))
        return matches

    def _cached_matches(self, name: str) -> list[Path]:
        if self.cache is None:
            return []
        root = self.project_root.resolve()
        matches = []
        for entry in self.cache.entries():
            path = Path(entry.path)
            if path.name != name or (path != root and root not in path.parents):
                continue
            if self.cache.lookup(path) is not None:
                matches.append(path)
        return sorted(matches)

    def clone(self, url: str) -> Path:
        """Clone url into its workspace location."""
        return RepositoryCloner(self.project_root, self.output, self.cache).clone(url)

    def view(self, path: str | Path) -> list[OperationResult]:
        """Display a repository; relative paths resolve against the project root."""
        repo_path = Path(path).expanduser()
        if not repo_path.is_absolute():
            repo_path = self.project_root / repo_path
        return RepositoryViewer(self.output, self.workspace.view_commands).view(repo_path)

    def show_cache(self) -> None:
        """Print every cache entry, marking the ones that no longer validate."""
        if self.cache is None:
            self.output.warning("Cache disabled")
            return
        entries = sorted(self.cache.entries(), key=lambda e: e.path)
        if not entries:
            self.output.info("Cache is empty")
            return
        for entry in entries:
            if self.cache.lookup(entry.path) is not None:
                self.output.info(entry.path)
            else:
                self.output.warning(f"{entry.path} (stale)")

    def prune_cache(self) -> CacheResult | None:
        """Drop stale cache entries and report how many went."""
        if self.cache is None:
            self.output.warning("Cache disabled")
            return None
        result = self.cache.validate_and_prune()
        if result.success:
            self.output.success(result.message)
        else:
            self.output.warning(f"Cache unavailable: {result.message}")
        return result
