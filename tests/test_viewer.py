"""Tests for RepositoryViewer."""

import subprocess
from pathlib import Path

import pytest

from pygit_kit import (
    ConsoleOutputHandler,
    NotARepositoryError,
    NullOutputHandler,
    RepositoryNotFoundError,
    RepositoryViewer,
    ViewCommand,
)


def _git(cwd: Path, *args: str) -> str:
    """Run a git command and return stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


class RecordingRunner:
    """Stands in for subprocess.run and remembers each call."""

    def __init__(self, returncode: int = 0, error: Exception | None = None):
        self.returncode = returncode
        self.error = error
        self.calls: list[tuple[list[str], Path]] = []

    def __call__(self, argv, cwd=None, check=False):
        self.calls.append((argv, cwd))
        if self.error is not None:
            raise self.error
        return subprocess.CompletedProcess(argv, self.returncode)


@pytest.fixture
def real_repo(tmp_path: Path) -> Path:
    repo = tmp_path / "real"
    repo.mkdir()
    _git(repo, "init", "-b", "main")
    _git(repo, "config", "user.email", "test@test.com")
    _git(repo, "config", "user.name", "Test")
    (repo / "README.md").write_text("Hello from the readme\n")
    _git(repo, "add", "README.md")
    _git(repo, "commit", "-m", "initial")
    return repo


class TestValidate:
    def test_missing_path(self, tmp_path: Path):
        viewer = RepositoryViewer(NullOutputHandler())
        with pytest.raises(RepositoryNotFoundError):
            viewer.view(tmp_path / "missing")

    def test_not_a_repository(self, tmp_path: Path):
        viewer = RepositoryViewer(NullOutputHandler(), runner=RecordingRunner())
        with pytest.raises(NotARepositoryError):
            viewer.view(tmp_path)


class TestConfiguredCommands:
    def test_commands_run_in_order_with_repo_substituted(self, tmp_path: Path):
        repo = tmp_path / "my repo"
        (repo / ".git").mkdir(parents=True)
        runner = RecordingRunner()
        commands = [
            ViewCommand("Status", "git -C {REPO} status --short"),
            ViewCommand("Files", "ls {REPO}"),
        ]

        results = RepositoryViewer(NullOutputHandler(), commands, runner=runner).view(repo)

        assert all(r.success for r in results)
        assert runner.calls == [
            (["git", "-C", str(repo), "status", "--short"], repo),
            (["ls", str(repo)], repo),
        ]

    def test_labels_printed_as_sections(self, tmp_path: Path, capsys):
        (tmp_path / ".git").mkdir()
        commands = [ViewCommand("Recent Commits", "git log -5")]

        RepositoryViewer(ConsoleOutputHandler(), commands, runner=RecordingRunner()).view(tmp_path)

        assert "=== Recent Commits ===" in capsys.readouterr().out

    def test_nonzero_exit_is_reported(self, tmp_path: Path, capsys):
        (tmp_path / ".git").mkdir()
        commands = [ViewCommand("Broken", "false")]

        results = RepositoryViewer(ConsoleOutputHandler(), commands, runner=RecordingRunner(returncode=2)).view(tmp_path)

        assert not results[0].success
        assert "exited with status 2" in capsys.readouterr().err

    def test_missing_program_continues(self, tmp_path: Path):
        (tmp_path / ".git").mkdir()
        runner = RecordingRunner(error=FileNotFoundError(2, "No such file", "nope"))
        commands = [ViewCommand("A", "nope"), ViewCommand("B", "nope --again")]

        results = RepositoryViewer(NullOutputHandler(), commands, runner=runner).view(tmp_path)

        assert [r.success for r in results] == [False, False]
        assert len(runner.calls) == 2
        assert isinstance(results[0].error, FileNotFoundError)

    def test_empty_command_skipped(self, tmp_path: Path):
        (tmp_path / ".git").mkdir()
        runner = RecordingRunner()

        results = RepositoryViewer(NullOutputHandler(), [ViewCommand("Empty", "  ")], runner=runner).view(tmp_path)

        assert not results[0].success
        assert runner.calls == []


class TestSummary:
    def test_summary_shows_branch_and_readme(self, real_repo: Path, capsys):
        results = RepositoryViewer(ConsoleOutputHandler()).view(real_repo)

        out = capsys.readouterr().out
        assert results[0].success
        assert "Branch: main" in out
        assert "Working tree clean" in out
        assert "Hello from the readme" in out

    def test_summary_reports_changes(self, real_repo: Path, capsys):
        (real_repo / "new.txt").write_text("untracked")

        RepositoryViewer(ConsoleOutputHandler()).view(real_repo)

        assert "1 untracked" in capsys.readouterr().err

    def test_summary_lists_directory_without_readme(self, tmp_path: Path, capsys):
        (tmp_path / ".git").mkdir()
        (tmp_path / "main.py").write_text("print('hi')")

        RepositoryViewer(ConsoleOutputHandler()).view(tmp_path)

        captured = capsys.readouterr()
        assert "Unable to read repository metadata" in captured.err
        assert "=== Directory Listing ===" in captured.out
        assert "main.py" in captured.out
