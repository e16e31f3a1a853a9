"""Tests for output handler implementations and the scan reporter."""

import json
from pathlib import Path

from pygit_kit import (
    ConsoleOutputHandler,
    NullOutputHandler,
    RepositoryScanner,
    ScanConfig,
    ScanReporter,
    display_path,
)


class TestNullOutputHandler:
    """NullOutputHandler should accept all calls silently."""

    def test_all_methods(self, capsys):
        handler = NullOutputHandler()
        handler.info("test", indent=2)
        handler.success("test")
        handler.warning("test")
        handler.error("test", indent=1)
        handler.section("title")
        handler.debug("test")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""


class TestConsoleOutputHandler:
    def test_info_prints_to_stdout(self, capsys):
        handler = ConsoleOutputHandler()
        handler.info("hello")
        captured = capsys.readouterr()
        assert "hello" in captured.out

    def test_info_with_indent(self, capsys):
        handler = ConsoleOutputHandler()
        handler.info("hello", indent=2)
        captured = capsys.readouterr()
        assert captured.out.startswith("    ")  # 2 * "  "

    def test_warning_and_error_go_to_stderr(self, capsys):
        handler = ConsoleOutputHandler()
        handler.warning("careful")
        handler.error("broken")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "careful" in captured.err
        assert "broken" in captured.err

    def test_section_prints(self, capsys):
        handler = ConsoleOutputHandler()
        handler.section("My Section")
        captured = capsys.readouterr()
        assert "=== My Section ===" in captured.out

    def test_debug_verbose(self, capsys):
        handler = ConsoleOutputHandler(verbose=True)
        handler.debug("debugging")
        captured = capsys.readouterr()
        assert "debugging" in captured.err

    def test_debug_non_verbose(self, capsys):
        handler = ConsoleOutputHandler(verbose=False)
        handler.debug("debugging")
        captured = capsys.readouterr()
        assert captured.err == ""


class TestDisplayPath:
    def test_relative(self):
        assert display_path(Path("/ws/a/b"), Path("/ws"), full=False) == "a/b"

    def test_full(self):
        assert display_path(Path("/ws/a/b"), Path("/ws"), full=True) == "/ws/a/b"

    def test_root_itself(self):
        assert display_path(Path("/ws"), Path("/ws"), full=False) == "."

    def test_outside_root(self):
        assert display_path(Path("/elsewhere/x"), Path("/ws"), full=False) == "/elsewhere/x"


class TestScanReporter:
    def _workspace(self, root: Path) -> None:
        for name in ("alpha", "beta/gamma"):
            (root / name / ".git").mkdir(parents=True)

    def test_stream_prints_relative_paths(self, tmp_path: Path, capsys):
        self._workspace(tmp_path)
        reporter = ScanReporter(ConsoleOutputHandler(), progress=False)

        with RepositoryScanner(ScanConfig(root=tmp_path)).scan() as session:
            found = reporter.stream(session)

        lines = capsys.readouterr().out.splitlines()
        assert sorted(lines) == ["alpha", "beta/gamma"]
        assert len(found) == 2

    def test_verbose_stream_shows_summary(self, tmp_path: Path, capsys):
        self._workspace(tmp_path)
        reporter = ScanReporter(ConsoleOutputHandler(verbose=True), progress=False)

        with RepositoryScanner(ScanConfig(root=tmp_path)).scan() as session:
            reporter.stream(session)

        assert "Found 2 repositories" in capsys.readouterr().err

    def test_json_output(self, tmp_path: Path, capsys):
        self._workspace(tmp_path)
        reporter = ScanReporter(NullOutputHandler(), full=True, progress=False)

        with RepositoryScanner(ScanConfig(root=tmp_path)).scan() as session:
            reporter.print_json(session)

        document = json.loads(capsys.readouterr().out)
        assert document["root"] == str(tmp_path.resolve())
        assert sorted(document["repositories"]) == sorted(
            str((tmp_path / name).resolve()) for name in ("alpha", "beta/gamma")
        )
        assert document["summary"]["repositories_found"] == 2
