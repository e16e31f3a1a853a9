"""Tests for GitPythonRepository."""

import logging
import subprocess
from pathlib import Path
from types import SimpleNamespace

from pygit_kit.repository import GitPythonRepository


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


def _init(path: Path) -> Path:
    path.mkdir()
    _git(path, "init", "-b", "main")
    _git(path, "config", "user.email", "test@test.com")
    _git(path, "config", "user.name", "Test")
    return path


class TestDescribe:
    def test_describe_unborn_repo(self, tmp_path: Path):
        repo_path = _init(tmp_path / "repo")
        (repo_path / "a.txt").write_text("a")
        _git(repo_path, "add", "a.txt")

        with GitPythonRepository(repo_path) as repo:
            info = repo.describe()

        assert info.head is None
        assert info.staged == 1
        assert info.remotes == {}

    def test_open_non_repository_returns_none(self, tmp_path: Path):
        assert GitPythonRepository.open(tmp_path / "missing") is None


class TestLogging:
    def test_instance_logs_through_module_logger(self, tmp_path: Path):
        with GitPythonRepository(_init(tmp_path / "repo")) as repo:
            assert repo._logger is logging.getLogger("pygit_kit.repository")

    def test_remote_without_url_logged(self, tmp_path: Path, caplog):
        repo = GitPythonRepository(_init(tmp_path / "repo"))
        real = repo._repo
        repo._repo = SimpleNamespace(remotes=[SimpleNamespace(name="broken", urls=[])])
        try:
            with caplog.at_level(logging.DEBUG, logger="pygit_kit.repository"):
                assert repo._remotes() == {}
        finally:
            repo._repo = real
            real.close()

        assert [r.name for r in caplog.records] == ["pygit_kit.repository"]
        assert "Remote broken has no URL" in caplog.text
