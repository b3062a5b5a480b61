"""Console and logging configuration module for the line client.

This module provides a standardised console setup for the line client package,
configuring a Rich-based console with integrated logging. Received lines are
printed on the same console, so log records and traffic interleave cleanly.
"""

from __future__ import annotations

import logging
import threading
from logging import INFO, getLogger

from rich.console import Console
from rich.logging import RichHandler

# Create a Rich console for output
console = Console()

# Serialises console writes from log records and received lines
console_lock = threading.RLock()


class ConsoleHandler(RichHandler):
    """A Rich handler that shares the console lock with line output."""

    def emit(self, record: logging.LogRecord) -> None:
        """Emit a log record while holding the console lock."""
        with console_lock:
            super().emit(record)


# Configure logging with our custom handler
logging.basicConfig(
    level=INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[ConsoleHandler(console=console, rich_tracebacks=True, show_time=True)],
    force=True,
)

# Get the logger for this package
log = getLogger("line_client")


def print_line(line: str, prefix: str = "") -> None:
    """Print a line of traffic verbatim, without Rich markup or highlighting.

    Args:
        line: The text to print
        prefix: Optional marker printed before the line
    """
    with console_lock:
        console.print(f"{prefix}{line}", markup=False, highlight=False, soft_wrap=True)


def set_verbosity(level: int) -> None:
    """Set the package log level from a -v count.

    Args:
        level: 0 for warnings only, 1 for info, 2 or more for debug
    """
    if level >= 2:  # noqa: PLR2004
        log.setLevel("DEBUG")
    elif level == 1:
        log.setLevel("INFO")
    else:
        log.setLevel("WARNING")
