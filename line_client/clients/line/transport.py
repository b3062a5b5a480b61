"""TCP transport for the line client.

Wraps the asyncio stream pair of one TCP connection, either direct to the
target or to a SOCKS4 proxy that relays to it.
"""

from __future__ import annotations

from asyncio import StreamReader, StreamWriter, open_connection
from dataclasses import dataclass, field
from socket import gaierror as socket_gaierror

from line_client.cli.console import log
from line_client.constants import DEFAULT_ENCODING, DEFAULT_LINE_LIMIT, DEFAULT_NEWLINE
from line_client.errors import ClientConnectionError


@dataclass(slots=True)
class Transport:
    """An open duplex byte stream and the endpoint it was opened to."""

    reader: StreamReader
    writer: StreamWriter
    host: str
    port: int
    closed: bool = field(default=False, init=False)

    @property
    def peername(self) -> tuple[str, int] | None:
        """Address of the remote socket, if still known."""
        peer = self.writer.get_extra_info("peername")
        return (peer[0], peer[1]) if peer else None

    async def write_line(
        self, message: str, encoding: str = DEFAULT_ENCODING, newline: str = DEFAULT_NEWLINE
    ) -> None:
        """Write one line in a single write call and wait for it to drain.

        Characters the encoding cannot represent are replaced.

        Raises:
            ConnectionError: If the connection is closed or reset
            OSError: On other socket failures
        """
        self.writer.write((message + newline).encode(encoding, errors="replace"))
        await self.writer.drain()

    def abort(self) -> None:
        """Drop the connection immediately without waiting."""
        if not self.closed:
            self.closed = True
            self.writer.transport.abort()

    async def close(self) -> BaseException | None:
        """Close the connection and wait for the socket to shut down.

        Returns:
            The error raised while closing, if any
        """
        if self.closed:
            return None
        self.closed = True
        try:
            self.writer.close()
            await self.writer.wait_closed()
        except OSError as e:
            log.debug("Error closing connection to %s:%d: %s", self.host, self.port, e)
            return e
        log.debug("Closed connection to %s:%d", self.host, self.port)
        return None


async def open_transport(host: str, port: int, limit: int = DEFAULT_LINE_LIMIT) -> Transport:
    """Open a TCP connection.

    Args:
        host: The hostname or IP address to connect to
        port: The TCP port to connect to
        limit: Stream buffer limit, which also bounds the length of one line

    Returns:
        The connected transport

    Raises:
        ClientConnectionError: If name resolution or the TCP handshake fails
    """
    log.info("Connecting to %s:%d", host, port)
    try:
        reader, writer = await open_connection(host, port, limit=limit)
    except socket_gaierror as e:
        msg = f"Failed to resolve {host}: {e}"
        raise ClientConnectionError(msg, host, port) from e
    except OSError as e:
        msg = f"Failed to connect to {host}:{port}: {e}"
        raise ClientConnectionError(msg, host, port) from e
    log.debug("Connected to %s:%d", host, port)
    return Transport(reader=reader, writer=writer, host=host, port=port)
