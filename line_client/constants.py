"""Constants for the line client."""

from __future__ import annotations

from typing import Any

# Network protocol constants

MIN_PORT = 1
MAX_PORT = 65535

DEFAULT_ENCODING = "utf-8"
DEFAULT_LINE_LIMIT = 2**16  # StreamReader buffer limit, bounds a single line
DEFAULT_NEWLINE = "\n"

# SOCKS4 constants

SOCKS4_VERSION = 0x04
SOCKS4_CONNECT = 0x01
SOCKS4_TERMINATOR = 0x00
SOCKS4_RESPONSE_LENGTH = 8

# CLI constants

CLI_ARGUMENTS: dict[str, list[tuple[Any]]] = {
    "target": [
        (["host"], {"help": "Hostname or IP address to connect to"}),
        (["port"], {"help": "TCP port to connect to", "type": int}),
    ],
    "proxy": [
        (["--proxy"], {"help": "SOCKS4 proxy as HOST:PORT", "metavar": "HOST:PORT"}),
        (["--proxy-user"], {"default": "", "help": "SOCKS4 user ID", "metavar": "<empty>"}),
    ],
    "session": [
        (
            ["-i", "--interval"],
            {"type": float, "default": 1.0, "help": "Minimum seconds between sends", "metavar": "<1.0>"},
        ),
        (["-e", "--encoding"], {"default": DEFAULT_ENCODING, "metavar": f"<{DEFAULT_ENCODING}>"}),
        (["-v", "--verbose"], {"action": "count", "default": 0, "help": "Increase log verbosity"}),
    ],
}
CLI_HELP_DESCRIPTION: str = """Line client: talk to line-oriented TCP services.

Every line typed on stdin is sent to the remote service, throttled so that
sends are at least --interval seconds apart, and every line the service sends
back is printed. The connection can optionally be tunnelled through a SOCKS4
proxy. The session ends on end of input, Ctrl+C or when the server hangs up.
"""
CLI_HELP_EPILOGUE: str | None = "If an argument has a default, it's shown in <parentheses>."
CLI_HELP_NAME: str = "line_client"
