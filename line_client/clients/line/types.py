"""Line client types module."""

from __future__ import annotations

from codecs import lookup as codecs_lookup
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from struct import pack as struct_pack
from typing import TYPE_CHECKING, NamedTuple, Self

from line_client.constants import (
    DEFAULT_ENCODING,
    DEFAULT_LINE_LIMIT,
    DEFAULT_NEWLINE,
    MAX_PORT,
    MIN_PORT,
    SOCKS4_CONNECT,
    SOCKS4_RESPONSE_LENGTH,
    SOCKS4_TERMINATOR,
    SOCKS4_VERSION,
)

if TYPE_CHECKING:
    from line_client.cancel import CancellationScope


class ConnectionState(IntEnum):
    """Lifecycle states of a client. DISCONNECTED is terminal."""

    UNCONNECTED = 0
    CONNECTING = 1
    CONNECTED = 2
    DISCONNECTED = 3


class ReadOutcome(StrEnum):
    """Why a read loop stopped without a fault."""

    EOF = "eof"
    CANCELLED = "cancelled"


class ProxyStatus(IntEnum):
    """SOCKS4 reply status codes."""

    GRANTED = 0x5A
    REJECTED = 0x5B
    IDENTD_UNREACHABLE = 0x5C
    IDENTD_MISMATCH = 0x5D


class ProxyErrorKind(StrEnum):
    """Failure categories for a SOCKS4 connect request."""

    REJECTED = "rejected"
    IDENTD_UNREACHABLE = "identd-unreachable"
    IDENTD_MISMATCH = "identd-mismatch"
    UNKNOWN = "unknown"

    @classmethod
    def from_status(cls, status: int) -> ProxyErrorKind:
        """Map a non-success reply status to its failure category.

        Returns:
            The matching kind, UNKNOWN for unrecognised codes
        """
        return {
            ProxyStatus.REJECTED: cls.REJECTED,
            ProxyStatus.IDENTD_UNREACHABLE: cls.IDENTD_UNREACHABLE,
            ProxyStatus.IDENTD_MISMATCH: cls.IDENTD_MISMATCH,
        }.get(status, cls.UNKNOWN)


class ProxyRequest(NamedTuple):
    """A SOCKS4 connect request."""

    port: int
    address: bytes  # packed IPv4, network byte order
    user_id: bytes = b""

    @classmethod
    def create(cls, port: int, address: bytes, user: str | None = None) -> Self:
        """Create a request, encoding the user ID as ASCII.

        Returns:
            The created request
        """
        return cls(port, address, (user or "").encode("ascii", errors="replace"))

    def to_bytes(self) -> bytes:
        """Serialise the request into its wire layout.

        The layout is version, command, port (big-endian), IPv4 address, user
        ID and a NUL terminator.

        Returns:
            The request bytes
        """
        header = struct_pack("!BBH4s", SOCKS4_VERSION, SOCKS4_CONNECT, self.port, self.address)
        return header + self.user_id + bytes([SOCKS4_TERMINATOR])


class ProxyResponse(NamedTuple):
    """A SOCKS4 reply. Only the status byte is meaningful."""

    status: int
    raw: bytes = b""

    @classmethod
    def from_bytes(cls, data: bytes) -> Self:
        """Parse the fixed-length reply.

        Returns:
            The parsed response

        Raises:
            ValueError: If the reply is not exactly 8 bytes
        """
        if len(data) != SOCKS4_RESPONSE_LENGTH:
            msg = f"SOCKS4 reply must be {SOCKS4_RESPONSE_LENGTH} bytes, got {len(data)}"
            raise ValueError(msg)
        return cls(status=data[1], raw=bytes(data))

    @property
    def granted(self) -> bool:
        """Check whether the proxy granted the request."""
        return self.status == ProxyStatus.GRANTED

    @property
    def error_kind(self) -> ProxyErrorKind | None:
        """Failure category, or None when granted."""
        return None if self.granted else ProxyErrorKind.from_status(self.status)


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Immutable settings for one client instance."""

    host: str
    port: int
    send_interval: float = field(default=0.0)  # seconds between end of one write and start of the next
    cancel_scope: CancellationScope | None = field(default=None, compare=False)
    encoding: str = field(default=DEFAULT_ENCODING)
    line_limit: int = field(default=DEFAULT_LINE_LIMIT)
    newline: str = field(default=DEFAULT_NEWLINE)

    def __post_init__(self) -> None:
        """Validate the settings.

        Raises:
            ValueError: If any setting is out of range or the encoding is unknown
        """
        if not self.host:
            msg = "Host must not be empty"
            raise ValueError(msg)
        if not MIN_PORT <= self.port <= MAX_PORT:
            msg = f"Port must be between {MIN_PORT} and {MAX_PORT}, got {self.port}"
            raise ValueError(msg)
        if self.send_interval < 0:
            msg = f"Send interval must not be negative, got {self.send_interval}"
            raise ValueError(msg)
        if self.line_limit <= 0:
            msg = f"Line limit must be positive, got {self.line_limit}"
            raise ValueError(msg)
        try:
            codecs_lookup(self.encoding)
        except LookupError as e:
            msg = f"Encoding must be a known codec, got {self.encoding!r}"
            raise ValueError(msg) from e
