"""Console output formatting utilities for tp."""

from __future__ import annotations

import sys
from typing import Optional, Sequence


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_server_selected(self, name: str, url: str) -> None:
        print(f"using Jenkins server {name} at {url}")

    def print_trigger_started(self, job: str, git_url: str, branch: str) -> None:
        """Print which pipeline is about to be triggered and from where."""
        print(f"Using git URL {git_url} and branch {branch}")
        print(f"triggering pipeline job {job}")

    def print_build_started(self, job: str, number: int, url: str = "") -> None:
        print(f"\nBUILD STARTED: {job} #{number}")
        if url:
            print(f"URL: {url}")

    def print_build_cancelled(self, job: str, number: int) -> None:
        print(f"\nBUILD CANCELLED: {job} #{number}")

    def print_build_status(self, job: str, number: int, result: str) -> None:
        """Print the post-build status line."""
        print(f"\nbuild {job} #{number} finished: {result.upper()}")

    def print_table(self, headers: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
        """Print rows as left aligned columns under upper-case headers."""
        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                widths[i] = max(widths[i], len(str(cell)))

        def line(cells: Sequence[str]) -> str:
            return "  ".join(str(c).ljust(widths[i]) for i, c in enumerate(cells)).rstrip()

        print(line([h.upper() for h in headers]))
        for row in rows:
            print(line(row))

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_warning(self, message: str) -> None:
        print(f"WARNING: {message}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
