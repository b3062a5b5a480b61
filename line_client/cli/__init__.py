"""Command line interface components for the line client.

This module provides CLI-related functionality including console output,
logging and argument parsing for the interactive line session.
"""

from __future__ import annotations

from .args import parse_args
from .console import console, log, print_line, set_verbosity
from .main import main

__all__ = [
    "console",
    "log",
    "main",
    "parse_args",
    "print_line",
    "set_verbosity",
]
