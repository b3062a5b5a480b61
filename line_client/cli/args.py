"""Command line argument parser for the line client.

This module builds the argument parser from the argument table in
`line_client.constants` and validates the combined values.
"""

from __future__ import annotations

from argparse import (
    ArgumentParser,
    Namespace as Arguments,
    RawDescriptionHelpFormatter as Formatter,
)
from codecs import lookup as codecs_lookup
from sys import argv as sys_argv, exit as sys_exit

from line_client.constants import (
    CLI_ARGUMENTS,
    CLI_HELP_DESCRIPTION,
    CLI_HELP_EPILOGUE,
    CLI_HELP_NAME,
    MAX_PORT,
    MIN_PORT,
)

from .console import set_verbosity


def parse_endpoint(value: str) -> tuple[str, int]:
    """Split a HOST:PORT string.

    Returns:
        The host and port

    Raises:
        ValueError: If the port is missing or out of range
    """
    host, sep, port_text = value.rpartition(":")
    if not sep or not host or not port_text.isdigit():
        msg = f"Expected HOST:PORT, got {value!r}"
        raise ValueError(msg)
    port = int(port_text)
    if not MIN_PORT <= port <= MAX_PORT:
        msg = f"Port must be between {MIN_PORT} and {MAX_PORT}, got {port}"
        raise ValueError(msg)
    return host.strip("[]"), port


def build_parser() -> ArgumentParser:
    """Create the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = ArgumentParser(
        description=CLI_HELP_DESCRIPTION,
        epilog=CLI_HELP_EPILOGUE,
        prog=CLI_HELP_NAME,
        formatter_class=Formatter,
    )
    # Add groups and arguments
    for category_name, args in CLI_ARGUMENTS.items():
        category = parser.add_argument_group(category_name)
        for flags, kwargs in args:
            category.add_argument(*flags, **kwargs)
    return parser


def parse_args(argv: list[str] | None = None) -> Arguments:
    """Parse and validate command line arguments.

    Args:
        argv: Arguments to parse, defaults to the process arguments

    Returns:
        The parsed arguments, with `proxy` converted to a (host, port) tuple
    """
    parser = build_parser()
    if argv is None:
        argv = sys_argv[1:]

    # Check if no arguments are provided
    if not argv:
        parser.print_help()
        sys_exit(0)

    parsed_args = parser.parse_args(argv)

    if not MIN_PORT <= parsed_args.port <= MAX_PORT:
        parser.error(f"port must be between {MIN_PORT} and {MAX_PORT}")
    if parsed_args.interval < 0:
        parser.error("interval must not be negative")
    try:
        codecs_lookup(parsed_args.encoding)
    except LookupError:
        parser.error(f"unknown encoding: {parsed_args.encoding}")
    if parsed_args.proxy is not None:
        try:
            parsed_args.proxy = parse_endpoint(parsed_args.proxy)
        except ValueError as e:
            parser.error(f"--proxy: {e}")

    set_verbosity(parsed_args.verbose)
    return parsed_args
