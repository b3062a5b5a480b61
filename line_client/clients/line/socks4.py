"""SOCKS4 connect handshake.

See https://www.openssh.com/txt/socks4.protocol. Only the CONNECT command is
supported. SOCKS4 carries IPv4 addresses only, so the target host is resolved
locally before the request is built.
"""

from __future__ import annotations

from asyncio import IncompleteReadError, get_running_loop
from ipaddress import IPv4Address
from socket import AF_INET, SOCK_STREAM, gaierror as socket_gaierror
from typing import TYPE_CHECKING

from line_client.cli.console import log
from line_client.constants import SOCKS4_RESPONSE_LENGTH
from line_client.errors import ClientConnectionError, ProxyError

from .types import ProxyRequest, ProxyResponse

if TYPE_CHECKING:
    from .transport import Transport


async def resolve_ipv4(host: str) -> bytes:
    """Resolve a hostname to its first IPv4 address.

    Returns:
        The address as 4 packed bytes in network byte order

    Raises:
        ClientConnectionError: If the host has no IPv4 address
    """
    try:
        infos = await get_running_loop().getaddrinfo(host, None, family=AF_INET, type=SOCK_STREAM)
    except socket_gaierror as e:
        msg = f"Failed to resolve {host}: {e}"
        raise ClientConnectionError(msg, host) from e
    if not infos:
        msg = f"No IPv4 address found for {host}"
        raise ClientConnectionError(msg, host)
    address = infos[0][4][0]
    log.debug("Resolved %s to %s", host, address)
    return IPv4Address(address).packed


async def socks4_handshake(transport: Transport, request: ProxyRequest) -> ProxyResponse:
    """Send a connect request over a fresh proxy connection and check the reply.

    Args:
        transport: Connection to the proxy, nothing sent on it yet
        request: The connect request for the final destination

    Returns:
        The granted response

    Raises:
        ProxyError: If the proxy refused the request
        ClientConnectionError: If the proxy connection failed mid-handshake
    """
    try:
        transport.writer.write(request.to_bytes())
        await transport.writer.drain()
        data = await transport.reader.readexactly(SOCKS4_RESPONSE_LENGTH)
    except IncompleteReadError as e:
        msg = f"Proxy {transport.host}:{transport.port} closed the connection during the handshake"
        raise ClientConnectionError(msg, transport.host, transport.port) from e
    except OSError as e:
        msg = f"Proxy handshake with {transport.host}:{transport.port} failed: {e}"
        raise ClientConnectionError(msg, transport.host, transport.port) from e

    response = ProxyResponse.from_bytes(data)
    if not response.granted:
        log.warning("Proxy %s:%d refused request, status 0x%02x", transport.host, transport.port, response.status)
        raise ProxyError(response.status, response.error_kind, transport.host, transport.port)
    log.debug("Proxy %s:%d granted request", transport.host, transport.port)
    return response
