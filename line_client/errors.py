"""Exception types raised by the line client."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .clients.line.types import ProxyErrorKind


class LineClientError(Exception):
    """Base class for line client errors, also raised on API misuse."""


class ClientConnectionError(LineClientError, ConnectionError):
    """A connect attempt failed during DNS resolution, TCP setup or proxy handshake."""

    def __init__(self, message: str, host: str | None = None, port: int | None = None) -> None:
        """Record the endpoint that could not be reached."""
        super().__init__(message)
        self.host = host
        self.port = port


class ProxyError(ClientConnectionError):
    """The SOCKS4 proxy answered with a status other than "request granted"."""

    MESSAGES: dict[str, str] = {
        "rejected": "Request rejected or failed",
        "identd-unreachable": "Request failed because client is not running identd (or not reachable from the server)",
        "identd-mismatch": "Request failed because client's identd could not confirm the user ID string in the request",
        "unknown": "Unknown error occurred",
    }

    def __init__(self, status: int, kind: ProxyErrorKind, host: str | None = None, port: int | None = None) -> None:
        """Build the message from the proxy status code."""
        super().__init__(f"{self.MESSAGES[kind]} (status 0x{status:02x})", host, port)
        self.status = status
        self.kind = kind


class TransportFault(LineClientError):
    """An unexpected I/O failure on a connection that had not been torn down."""


class ClientClosedError(LineClientError):
    """The client has been disconnected and can no longer be used."""
