"""Asynchronous line client implementation module.

This module provides a client for line-oriented text protocols over raw TCP,
optionally tunnelled through a SOCKS4 proxy.

The AsyncLineClient class connects, runs a background task that delivers one
`message_received` notification per received line, throttles outgoing lines
to protect the server from floods, and tears everything down exactly once on
disconnect. It is built on Python's asyncio framework.
"""

from __future__ import annotations

from asyncio import (
    Task,
    create_task as asyncio_create_task,
    current_task as asyncio_current_task,
    wait as asyncio_wait,
)
from dataclasses import dataclass, field
from typing import Any, Self

from line_client.cancel import CancellationScope, ScopeCancelled
from line_client.cli.console import log
from line_client.errors import ClientClosedError, LineClientError, TransportFault

from .events import EventHook
from .reader import LineReader
from .socks4 import resolve_ipv4, socks4_handshake
from .throttle import SendThrottle
from .transport import Transport, open_transport
from .types import ClientConfig, ConnectionState, ProxyRequest, ReadOutcome


@dataclass(slots=True)
class AsyncLineClient:
    """Line protocol client with send throttling and one-shot teardown.

    This class implements the async context manager protocol for easy use in
    async with statements.

    Every path that ends the connection (an explicit disconnect, dispose, the
    server closing its side, external cancellation or a fatal read fault) runs
    the same teardown, so `connection_closed` fires exactly once per client.

    Examples:
        Basic usage with context manager:

        ```python
        config = ClientConfig("irc.example.com", 6667, send_interval=1.0)
        async with AsyncLineClient(config) as client:
            client.message_received.subscribe(print)
            await client.send("NICK example")
            await client.wait_closed()
        ```

        Manual connection management through a proxy:

        ```python
        client = AsyncLineClient(config)
        try:
            await client.connect_via_proxy("proxy.example.com", 1080, "user")
            await client.send("NICK example")
        finally:
            await client.aclose()
        ```
    """

    config: ClientConfig

    # Notifications
    message_received: EventHook = field(init=False, default_factory=lambda: EventHook("message_received"))
    connection_closed: EventHook = field(init=False, default_factory=lambda: EventHook("connection_closed"))

    state: ConnectionState = field(init=False, default=ConnectionState.UNCONNECTED)
    transport: Transport | None = field(init=False, default=None)
    read_task: Task[ReadOutcome] | None = field(init=False, default=None)
    fault: TransportFault | None = field(init=False, default=None)
    teardown_faults: list[BaseException] = field(init=False, default_factory=list)

    _scope: CancellationScope = field(init=False)
    _throttle: SendThrottle = field(init=False)
    _reader: LineReader | None = field(init=False, default=None)
    _closing: bool = field(init=False, default=False)
    _disposed: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        """Link the internal cancellation scope and create the send throttle."""
        name = f"{self.config.host}:{self.config.port}"
        external = self.config.cancel_scope
        self._scope = external.child(name) if external is not None else CancellationScope(name)
        self._throttle = SendThrottle(interval=self.config.send_interval, scope=self._scope)

    @classmethod
    async def connect_to(
        cls,
        host: str,
        port: int,
        send_interval: float = 0.0,
        proxy: tuple[str, int] | None = None,
        proxy_user: str | None = None,
        **kwargs: Any,
    ) -> Self:
        """Create and connect a client in one step.

        Args:
            host: The hostname or IP address of the server
            port: The port number of the server
            send_interval: Minimum seconds between consecutive sends
            proxy: Optional SOCKS4 proxy as (host, port)
            proxy_user: User ID sent to the proxy
            **kwargs: Additional parameters for ClientConfig

        Returns:
            A connected AsyncLineClient instance

        Raises:
            ClientConnectionError: If the connection attempt fails
            ClientClosedError: If cancelled before the connection completed
        """
        client = cls(ClientConfig(host=host, port=port, send_interval=send_interval, **kwargs))
        if proxy is None:
            connected = await client.connect()
        else:
            connected = await client.connect_via_proxy(proxy[0], proxy[1], proxy_user)
        if not connected:
            msg = f"Connection to {host}:{port} was cancelled"
            raise ClientClosedError(msg)
        return client

    async def __aenter__(self) -> Self:
        """Enter the async context manager, connecting directly if needed.

        Returns:
            The connected client instance

        Raises:
            ClientConnectionError: If the connection attempt fails
        """
        if self.state is ConnectionState.UNCONNECTED:
            await self.connect()
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        """Exit the async context manager, disposing of the client."""
        await self.aclose()

    @property
    def is_connected(self) -> bool:
        """Check if the client is currently connected."""
        return self.state is ConnectionState.CONNECTED

    @property
    def cancelled(self) -> bool:
        """Check if the client's cancellation scope has fired."""
        return self._scope.cancelled

    @property
    def lines_read(self) -> int:
        """Number of lines delivered so far."""
        return self._reader.lines_read if self._reader else 0

    def _begin_connect(self) -> None:
        """Move from UNCONNECTED to CONNECTING.

        Raises:
            ClientClosedError: If the client is already disconnected
            LineClientError: If a connection is in progress or established
        """
        if self.state is ConnectionState.DISCONNECTED:
            msg = f"Client for {self._scope.name} is closed"
            raise ClientClosedError(msg)
        if self.state is not ConnectionState.UNCONNECTED:
            msg = f"Client for {self._scope.name} is already {self.state.name.lower()}"
            raise LineClientError(msg)
        self.state = ConnectionState.CONNECTING

    async def connect(self) -> bool:
        """Connect directly to the server and start the read loop.

        Returns:
            True once connected, False if cancelled before the connection completed

        Raises:
            ClientConnectionError: If name resolution or the TCP handshake fails
        """
        self._begin_connect()
        try:
            transport = await self._scope.guard(
                open_transport(self.config.host, self.config.port, self.config.line_limit)
            )
        except ScopeCancelled:
            await self._connect_cancelled()
            return False
        except BaseException:
            self._connect_failed()
            raise
        return await self._promote(transport)

    async def connect_via_proxy(self, proxy_host: str, proxy_port: int, proxy_user: str | None = None) -> bool:
        """Connect through a SOCKS4 proxy and start the read loop.

        Args:
            proxy_host: The hostname or IP address of the proxy
            proxy_port: The port number of the proxy
            proxy_user: User ID sent in the request, empty if None

        Returns:
            True once connected, False if cancelled before the connection completed

        Raises:
            ProxyError: If the proxy refused the request
            ClientConnectionError: If resolution, the proxy connection or the handshake fails
        """
        self._begin_connect()
        transport = None
        try:
            address = await self._scope.guard(resolve_ipv4(self.config.host))
            request = ProxyRequest.create(self.config.port, address, proxy_user)
            transport = await self._scope.guard(open_transport(proxy_host, proxy_port, self.config.line_limit))
            await self._scope.guard(socks4_handshake(transport, request))
        except ScopeCancelled:
            if transport is not None:
                transport.abort()
            await self._connect_cancelled()
            return False
        except BaseException:
            if transport is not None:
                transport.abort()
            self._connect_failed()
            raise
        log.info("Connected to %s:%d via proxy %s:%d", self.config.host, self.config.port, proxy_host, proxy_port)
        return await self._promote(transport)

    def _connect_failed(self) -> None:
        """Return to UNCONNECTED after a failed attempt, unless disconnected meanwhile."""
        if self.state is ConnectionState.CONNECTING:
            self.state = ConnectionState.UNCONNECTED

    async def _connect_cancelled(self) -> None:
        """Finish a connect attempt interrupted by cancellation."""
        log.debug("Connect to %s cancelled", self._scope.name)
        await self.disconnect()

    async def _promote(self, transport: Transport) -> bool:
        """Adopt an established transport and start reading from it.

        Returns:
            True if the client is now connected
        """
        if self._scope.cancelled:
            transport.abort()
            await self._connect_cancelled()
            return False

        self.transport = transport
        self.state = ConnectionState.CONNECTED
        self._reader = LineReader(
            transport=transport,
            scope=self._scope,
            on_line=self.message_received.emit,
            encoding=self.config.encoding,
        )
        self.read_task = asyncio_create_task(self._read_loop(self._reader), name=f"line-reader {self._scope.name}")
        self.read_task.add_done_callback(self._retrieve_fault)
        return True

    async def _read_loop(self, reader: LineReader) -> ReadOutcome:
        """Run the line reader and tear down when it stops, however it stops.

        Returns:
            Why the loop stopped

        Raises:
            TransportFault: If the connection failed while live or the loop itself failed
        """
        try:
            return await reader.run()
        except TransportFault as e:
            log.exception("Fatal read error on %s", self._scope.name)
            self.fault = e
            raise
        except Exception as e:
            log.exception("Read loop on %s stopped unexpectedly", self._scope.name)
            msg = f"Read loop on {self._scope.name} failed: {e}"
            self.fault = TransportFault(msg)
            raise self.fault from e
        finally:
            if reader.teardown_fault is not None:
                self.teardown_faults.append(reader.teardown_fault)
            await self.disconnect()

    @staticmethod
    def _retrieve_fault(task: Task[ReadOutcome]) -> None:
        """Mark the read task's exception as seen; it is kept on `fault`."""
        if not task.cancelled():
            task.exception()

    async def send(self, message: str | None) -> bool:
        """Send one line, waiting for the throttle.

        Args:
            message: Line to send without terminator; None or empty is a no-op

        Returns:
            True if written, False if empty or dropped because the client is closing

        Raises:
            LineClientError: If called before connecting
            TransportFault: If the write failed on a live connection
        """
        if not message:
            return False
        if self.state in {ConnectionState.UNCONNECTED, ConnectionState.CONNECTING}:
            msg = f"Cannot send to {self._scope.name} before connecting"
            raise LineClientError(msg)
        return await self._throttle.submit(lambda: self._write_line(message))

    async def _write_line(self, message: str) -> bool:
        """Write a line, classifying faults by whether teardown has begun.

        Returns:
            True if written, False if the transport was already torn down

        Raises:
            TransportFault: If the write failed on a live connection
        """
        transport = self.transport
        if transport is None or self._scope.cancelled:
            return False
        try:
            await transport.write_line(message, self.config.encoding, self.config.newline)
        except OSError as e:
            if self._scope.cancelled:
                log.debug("Write to %s interrupted by teardown: %s", self._scope.name, e)
                self.teardown_faults.append(e)
                return False
            log.exception("Write to %s failed", self._scope.name)
            msg = f"Write to {self._scope.name} failed: {e}"
            raise TransportFault(msg) from e
        return True

    async def disconnect(self) -> None:
        """Tear the connection down.

        Safe to call any number of times from any state, including from event
        handlers. Only the first call does the work and emits
        `connection_closed`; errors during teardown are recorded, not raised.
        """
        if self._closing:
            return
        self._closing = True
        self.state = ConnectionState.DISCONNECTED
        self._scope.cancel()

        transport, self.transport = self.transport, None
        if transport is not None:
            error = await transport.close()
            if error is not None:
                self.teardown_faults.append(error)

        task = self.read_task
        if task is not None and task is not asyncio_current_task():
            # Waits without raising; the outcome stays on the task
            await asyncio_wait({task})

        log.debug("Disconnected from %s", self._scope.name)
        self.connection_closed.emit()

    async def aclose(self) -> None:
        """Dispose of the client. A second call does nothing."""
        if self._disposed:
            return
        self._disposed = True
        await self.disconnect()

    async def wait_closed(self) -> ReadOutcome | None:
        """Wait for the read loop to finish.

        Returns:
            Why the loop stopped, or None if it never started

        Raises:
            TransportFault: If the loop stopped on a fatal read error
        """
        if self.read_task is None:
            return None
        return await self.read_task
