"""Line Client Module.

This module provides an asyncio-based client for line-oriented text protocols
over raw TCP, with optional SOCKS4 proxy support, send throttling for flood
protection and a one-shot disconnect protocol.

Example usage:
    ```python
    import asyncio
    from line_client.clients.line import AsyncLineClient

    async def main():
        client = await AsyncLineClient.connect_to("chat.example.com", 6667, send_interval=1.0)
        client.message_received.subscribe(print)
        await client.send("NICK example")
        await client.wait_closed()

    asyncio.run(main())
    ```
"""

from __future__ import annotations

from .client import AsyncLineClient
from .types import ClientConfig, ConnectionState, ProxyErrorKind

__all__ = ["AsyncLineClient", "ClientConfig", "ConnectionState", "ProxyErrorKind"]
