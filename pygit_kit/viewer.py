"""RepositoryViewer: shows information about one repository."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Callable
from pathlib import Path

from pygit_kit.errors import NotARepositoryError, PygitKitError, RepositoryNotFoundError
from pygit_kit.models import OperationResult, OperationType, ViewCommand
from pygit_kit.policy import is_repo_root
from pygit_kit.protocols import OutputHandler
from pygit_kit.repository import GitPythonRepository

README_NAMES = ('README.md', 'README.rst', 'README.txt', 'README')


class RepositoryViewer:
    """Runs the configured view commands, or prints a built-in summary"""

    def __init__(
        self,
        output: OutputHandler,
        commands: list[ViewCommand] | None = None,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        """Create a viewer; runner is injectable for tests."""
        self.output = output
        self.commands = commands or []
        self.runner = runner
        self._logger = logging.getLogger(__name__)

    def validate(self, repo_path: Path) -> None:
        """Raise unless repo_path is a readable repository root."""
        if not repo_path.exists():
            raise RepositoryNotFoundError(repo_path)
        if not is_repo_root(repo_path):
            raise NotARepositoryError(repo_path)
        if not os.access(repo_path, os.R_OK | os.X_OK):
            raise PygitKitError(f"No permission to read directory: {repo_path}")

    def view(self, repo_path: Path) -> list[OperationResult]:
        """Validate repo_path and display it. Returns one result per command run."""
        self.validate(repo_path)
        if not self.commands:
            self.show_summary(repo_path)
            return [OperationResult(True, OperationType.VIEW, "Displayed summary")]
        return [self._run(command, repo_path) for command in self.commands]

    def _run(self, command: ViewCommand, repo_path: Path) -> OperationResult:
        self.output.section(command.label)
        argv = command.argv(repo_path)
        if not argv:
            self._logger.warning("Empty command for label: %s", command.label)
            return OperationResult(False, OperationType.VIEW, f"Empty command for {command.label}")

        self._logger.debug("Running command for %s: %s", command.label, command.render(repo_path))
        try:
            completed = self.runner(argv, cwd=repo_path, check=False)
        except OSError as e:
            self.output.error(f"Failed to run '{argv[0]}': {e}")
            return OperationResult(False, OperationType.VIEW, f"Failed to run {command.label}", e)

        if completed.returncode != 0:
            self.output.warning(f"Command '{command.command}' exited with status {completed.returncode}")
            return OperationResult(False, OperationType.VIEW, f"{command.label} exited with {completed.returncode}")
        return OperationResult(True, OperationType.VIEW, f"Ran {command.label}")

    def show_summary(self, repo_path: Path) -> None:
        """Print branch, HEAD, remotes and working tree state, then the README."""
        self.output.section(str(repo_path))
        repo = GitPythonRepository.open(repo_path)
        if repo is None:
            self.output.warning("Unable to read repository metadata", indent=1)
        else:
            with repo:
                info = repo.describe()
            self.output.info(f"Branch: {info.branch or '(detached)'}", indent=1)
            self.output.info(f"HEAD:   {info.head or '(no commits)'}", indent=1)
            for name, url in info.remotes.items():
                self.output.info(f"Remote: {name} {url}", indent=1)
            if info.is_clean:
                self.output.success("Working tree clean", indent=1)
            else:
                self.output.warning(info.changes(), indent=1)

        for name in README_NAMES:
            readme = repo_path / name
            if readme.is_file():
                self.output.section(name)
                self.output.info(readme.read_text(encoding='utf-8', errors='replace'))
                return
        self.output.section("Directory Listing")
        for entry in sorted(os.listdir(repo_path)):
            self.output.info(entry, indent=1)
