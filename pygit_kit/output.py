"""Output handlers: colored console output and a silent handler."""

from __future__ import annotations

import sys

from colorama import Fore, Style
from tqdm import tqdm

SECTION_WIDTH = 50


class ConsoleOutputHandler:
    """Colored console output.

    Plain results (repository paths, summaries) go to stdout so they can be
    piped; warnings, errors and debug lines go to stderr. Everything is
    written through tqdm.write so a running progress counter is not torn.
    """

    def __init__(self, verbose: bool = False):
        """Set verbose=True to show debug lines."""
        self.verbose = verbose

    @staticmethod
    def _write(message: str, indent: int = 0, color: str = "", to_stderr: bool = False) -> None:
        text = "  " * indent + (f"{color}{message}{Style.RESET_ALL}" if color else message)
        tqdm.write(text, file=sys.stderr if to_stderr else sys.stdout)

    def info(self, message: str, indent: int = 0) -> None:
        self._write(message, indent)

    def success(self, message: str, indent: int = 0) -> None:
        self._write(message, indent, Fore.GREEN)

    def warning(self, message: str, indent: int = 0) -> None:
        self._write(message, indent, Fore.YELLOW, to_stderr=True)

    def error(self, message: str, indent: int = 0) -> None:
        self._write(message, indent, Fore.RED, to_stderr=True)

    def section(self, title: str) -> None:
        """Blank line, then ``=== title ===``."""
        self._write("")
        self._write(f"=== {title} ===", color=Style.BRIGHT)

    def debug(self, message: str) -> None:
        if self.verbose:
            self._write(f"[DEBUG] {message}", color=Fore.CYAN, to_stderr=True)


class NullOutputHandler:
    """Discards everything; used by tests and when stdout carries JSON."""

    def info(self, message: str, indent: int = 0) -> None: ...
    def success(self, message: str, indent: int = 0) -> None: ...
    def warning(self, message: str, indent: int = 0) -> None: ...
    def error(self, message: str, indent: int = 0) -> None: ...
    def section(self, title: str) -> None: ...
    def debug(self, message: str) -> None: ...
