"""Main entry point for the line client."""

from __future__ import annotations

from asyncio import run as asyncio_run
from sys import exit as sys_exit

from .cli import main


def launch() -> None:
    """Launch the interactive line client."""
    try:
        sys_exit(asyncio_run(main()))
    except KeyboardInterrupt:
        sys_exit(130)


if __name__ == "__main__":
    launch()
