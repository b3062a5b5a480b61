"""Line-oriented TCP client package.

This package provides a client for line-oriented text protocols over raw TCP
connections, optionally tunnelled through a SOCKS4 proxy. Received lines are
delivered to subscribers as they arrive, outgoing lines are throttled to a
minimum interval for flood protection, and disconnecting tears down every
pending read and send exactly once.

It uses modern asynchronous Python patterns, and ships a small interactive
command line tool (`python -m line_client HOST PORT`).
"""

from __future__ import annotations

from importlib.metadata import version

from .cancel import CancellationScope
from .cli import console, log, parse_args
from .clients.line import AsyncLineClient, ClientConfig, ConnectionState, ProxyErrorKind
from .errors import (
    ClientClosedError,
    ClientConnectionError,
    LineClientError,
    ProxyError,
    TransportFault,
)

__all__ = [
    "AsyncLineClient",
    "CancellationScope",
    "ClientClosedError",
    "ClientConfig",
    "ClientConnectionError",
    "ConnectionState",
    "LineClientError",
    "ProxyError",
    "ProxyErrorKind",
    "TransportFault",
    "console",
    "log",
    "parse_args",
]

__version__ = version(__name__)
