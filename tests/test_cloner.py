"""Tests for clone URL parsing and RepositoryCloner."""

import subprocess
from pathlib import Path

import pytest

from pygit_kit import (
    CloneError,
    InvalidRepoUrlError,
    NullOutputHandler,
    ParsedRepoUrl,
    RepositoryCloner,
    ResultCache,
    is_repo_root,
    parse_repo_url,
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


@pytest.fixture
def bare_remote(tmp_path: Path) -> Path:
    """A bare repo with one commit on main, reachable by local path."""
    remote = tmp_path / "remote.git"
    remote.mkdir()
    _git(remote, "init", "--bare", "-b", "main")

    seed = tmp_path / "seed"
    _git(tmp_path, "clone", str(remote), "seed")
    _git(seed, "config", "user.email", "test@test.com")
    _git(seed, "config", "user.name", "Test")
    _git(seed, "checkout", "-b", "main")
    (seed / "README.md").write_text("# seed\n")
    _git(seed, "add", "README.md")
    _git(seed, "commit", "-m", "initial")
    _git(seed, "push", "origin", "main")
    return remote


@pytest.fixture
def fixed_destination(monkeypatch):
    """Route every URL to example.com/org/repo so local paths can be cloned."""
    monkeypatch.setattr(
        "pygit_kit.cloner.parse_repo_url",
        lambda url: ParsedRepoUrl("example.com", "org", "repo"),
    )


class TestParseRepoUrl:
    @pytest.mark.parametrize("url, expected", [
        ("https://github.com/org/repo", ("github.com", "org", "repo")),
        ("https://github.com/org/repo.git", ("github.com", "org", "repo")),
        ("http://gitlab.example.com/group/project", ("gitlab.example.com", "group", "project")),
        ("https://github.com/org/repo/tree/main", ("github.com", "org", "repo")),
        ("git@github.com:org/repo.git", ("github.com", "org", "repo")),
        ("git@github.com:org/repo", ("github.com", "org", "repo")),
        ("ssh://git@github.com/org/repo.git", ("github.com", "org", "repo")),
        ("ssh://git@example.com:2222/org/repo.git", ("example.com", "org", "repo")),
    ])
    def test_valid_urls(self, url, expected):
        parsed = parse_repo_url(url)
        assert (parsed.domain, parsed.org, parsed.repo) == expected

    @pytest.mark.parametrize("url", [
        "https://github.com/org",
        "https://github.com/",
        "git@github.com:repo.git",
        "git@github.com:a/b/c.git",
        "git@:org/repo",
        "ftp://example.com/org/repo",
        "just-a-name",
        "",
    ])
    def test_invalid_urls(self, url):
        with pytest.raises(InvalidRepoUrlError):
            parse_repo_url(url)

    def test_destination_layout(self, tmp_path: Path):
        cloner = RepositoryCloner(tmp_path, NullOutputHandler())
        assert cloner.destination_for("git@github.com:org/repo.git") == tmp_path / "github.com" / "org" / "repo"


class TestRepositoryCloner:
    def test_clone_creates_parents(self, tmp_path: Path, bare_remote: Path, fixed_destination):
        root = tmp_path / "projects"
        cloner = RepositoryCloner(root, NullOutputHandler())

        target = cloner.clone(str(bare_remote))

        assert target == root / "example.com" / "org" / "repo"
        assert is_repo_root(target)
        assert (target / "README.md").read_text() == "# seed\n"

    def test_clone_recorded_in_cache(self, tmp_path: Path, bare_remote: Path, fixed_destination):
        cache = ResultCache(tmp_path / "cache.json")
        cloner = RepositoryCloner(tmp_path / "projects", NullOutputHandler(), cache)

        target = cloner.clone(str(bare_remote))

        assert cache.lookup(target) is not None

    def test_existing_destination_refused(self, tmp_path: Path, bare_remote: Path, fixed_destination):
        root = tmp_path / "projects"
        (root / "example.com" / "org" / "repo").mkdir(parents=True)

        with pytest.raises(CloneError, match="already exists"):
            RepositoryCloner(root, NullOutputHandler()).clone(str(bare_remote))

    def test_failed_clone_raises(self, tmp_path: Path, fixed_destination):
        cache = ResultCache(tmp_path / "cache.json")
        cloner = RepositoryCloner(tmp_path / "projects", NullOutputHandler(), cache)

        with pytest.raises(CloneError, match="git clone failed"):
            cloner.clone(str(tmp_path / "no-such-remote.git"))
        assert len(cache) == 0

    def test_invalid_url_raises_before_touching_disk(self, tmp_path: Path):
        root = tmp_path / "projects"
        with pytest.raises(InvalidRepoUrlError):
            RepositoryCloner(root, NullOutputHandler()).clone("not a url")
        assert not root.exists()
