"""Console output helpers for dirsync."""

import json
from typing import Any, Optional

from rich.console import Console


class OutputFormatter:
    """Formats progress, status, and error messages.

    Normal messages go to stdout, warnings and errors to stderr. Rich markup is
    disabled for every message so that the ``[add]``/``[rm]`` tags and paths
    containing brackets are printed literally.
    """

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        """Initialize output formatter.

        Args:
            json_output: Emit machine-readable JSON instead of status text
            quiet: Suppress informational messages (action lines and errors
                are still printed)
            console: Console for standard output
            err_console: Console for warnings and errors
        """
        self.json_output = json_output
        self.quiet = quiet
        self.console = console or Console(
            soft_wrap=True, highlight=False, emoji=False
        )
        self.err_console = err_console or Console(
            stderr=True, soft_wrap=True, highlight=False, emoji=False
        )

    def print(self, message: str = "") -> None:
        """Print a plain line to stdout unless in JSON mode."""
        if self.json_output:
            return
        self.console.print(message, markup=False)

    def info(self, message: str) -> None:
        """Print an informational message unless quiet or in JSON mode."""
        if self.quiet or self.json_output:
            return
        self.console.print(message, markup=False)

    def success(self, message: str) -> None:
        """Print a success message."""
        if self.quiet or self.json_output:
            return
        self.console.print(message, style="green", markup=False)

    def warning(self, message: str) -> None:
        """Print a warning to stderr."""
        self.err_console.print(f"Warning: {message}", style="yellow", markup=False)

    def error(self, message: str) -> None:
        """Print an error to stderr."""
        self.err_console.print(f"Error: {message}", style="bold red", markup=False)

    def output_json(self, data: Any) -> None:
        """Print data as JSON to stdout."""
        self.console.print_json(json.dumps(data))
