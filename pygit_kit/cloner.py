"""RepositoryCloner: clones a URL into its place under the project root."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from urllib.parse import urlparse

from pygit_kit.errors import CloneError, InvalidRepoUrlError
from pygit_kit.models import ParsedRepoUrl
from pygit_kit.protocols import OutputHandler, RepoCache
from pygit_kit.repository import GitPythonRepository


def _trim_git_suffix(name: str) -> str:
    return name[:-len('.git')] if name.endswith('.git') else name


def _parse_url_with_scheme(url: str) -> ParsedRepoUrl:
    parsed = urlparse(url)
    if not parsed.hostname:
        raise InvalidRepoUrlError(url, "no domain found")
    segments = [s for s in parsed.path.split('/') if s]
    if len(segments) < 2:
        raise InvalidRepoUrlError(url, "URL must contain organization and repository")
    return ParsedRepoUrl(parsed.hostname, segments[0], _trim_git_suffix(segments[1]))


def _parse_scp_url(url: str) -> ParsedRepoUrl:
    """Parse the scp-like form user@host:org/repo(.git)."""
    at = url.find('@')
    colon = url.rfind(':')
    if colon < at:
        raise InvalidRepoUrlError(url, "no path separator after the host")
    domain = url[at + 1:colon]
    if not domain:
        raise InvalidRepoUrlError(url, "no domain found")
    parts = url[colon + 1:].split('/')
    if len(parts) != 2 or not all(parts):
        raise InvalidRepoUrlError(url, "URL must contain organization and repository")
    return ParsedRepoUrl(domain, parts[0], _trim_git_suffix(parts[1]))


def parse_repo_url(url: str) -> ParsedRepoUrl:
    """Split an HTTPS or SSH clone URL into domain, organization and repository."""
    if url.startswith(('http://', 'https://', 'ssh://')):
        return _parse_url_with_scheme(url)
    if '@' in url:
        return _parse_scp_url(url)
    raise InvalidRepoUrlError(url, "URL must be either HTTPS or SSH format")


class RepositoryCloner:
    """Clones repositories into <project_root>/<domain>/<org>/<repo>"""

    def __init__(self, project_root: Path, output: OutputHandler, cache: RepoCache | None = None):
        """Create a cloner rooted at project_root; clones are recorded in cache if given."""
        self.project_root = project_root
        self.output = output
        self.cache = cache
        self._logger = logging.getLogger(__name__)

    def destination_for(self, url: str) -> Path:
        return parse_repo_url(url).destination(self.project_root)

    def clone(self, url: str) -> Path:
        """Clone url and return the working tree path. Raises CloneError on failure."""
        target = self.destination_for(url)
        if target.exists():
            raise CloneError(f"Destination already exists: {target}")

        parent = target.parent
        if parent.exists():
            if not os.access(parent, os.W_OK):
                raise CloneError(f"No permission to write to directory: {parent}")
        else:
            self._logger.debug("Creating parent directories: %s", parent)
            try:
                parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise CloneError(f"Failed to create directory {parent}: {e}") from e

        self.output.info(f"Cloning {url} into {target}")
        result = GitPythonRepository.clone(url, target)
        if not result.success:
            raise CloneError(result.message)

        if self.cache is not None:
            cached = self.cache.record(target)
            if not cached.success:
                self._logger.warning("Failed to cache cloned repository: %s", cached.message)

        self.output.success(result.message)
        return target
