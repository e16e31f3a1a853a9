"""ScanReporter: consumes a scan's discovery stream and displays it."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from tqdm import tqdm

from pygit_kit.models import RepoFound, ScanSummary
from pygit_kit.output import SECTION_WIDTH
from pygit_kit.protocols import OutputHandler
from pygit_kit.scanner import ScanSession


def display_path(path: Path, root: Path, full: bool) -> str:
    """Render a repository path, relative to root unless full is set."""
    if full:
        return str(path)
    try:
        relative = path.relative_to(root)
    except ValueError:
        return str(path)
    return str(relative) if relative.parts else "."


class ScanReporter:
    """Streams discovered repositories to the output and summarizes the scan"""

    def __init__(self, output: OutputHandler, full: bool = False, progress: bool = True):
        """Create a reporter writing to output; progress shows a tqdm counter on stderr."""
        self.output = output
        self.full = full
        self.progress = progress
        self._logger = logging.getLogger(__name__)

    def stream(self, session: ScanSession) -> list[RepoFound]:
        """Print each repository as it arrives. Returns the events in arrival order."""
        found: list[RepoFound] = []
        with tqdm(desc="Scanning", unit="repo", disable=not self.progress, leave=False) as pbar:
            for event in session:
                found.append(event)
                self.output.info(display_path(event.path, session.root, self.full))
                pbar.update(1)
        self.print_summary(session.wait())
        return found

    def print_summary(self, summary: ScanSummary | None) -> None:
        """Emit the scan metrics at debug level."""
        if summary is None:
            return
        self._logger.debug("Found %d repositories", summary.repositories_found)
        self._logger.debug("Scanned %d directories", summary.directories_visited)
        self._logger.debug("Total duration: %.3fs", summary.elapsed)
        self.output.debug("-" * SECTION_WIDTH)
        self.output.debug(str(summary))
        if summary.directories_skipped:
            self.output.debug(f"Skipped {summary.directories_skipped} unreadable directories")
        if summary.truncated:
            self.output.debug("Stopped early: repository limit reached")

    def print_json(self, session: ScanSession) -> list[RepoFound]:
        """Collect the whole stream and print it as one JSON document."""
        found = list(session)
        summary = session.wait()
        document = {
            'root': str(session.root),
            'repositories': [display_path(e.path, session.root, self.full) for e in found],
            'summary': summary.to_dict() if summary else None,
        }
        print(json.dumps(document, indent=2))
        return found
