"""Main entry point for the line client CLI."""

from __future__ import annotations

import sys
from asyncio import StreamReader, StreamReaderProtocol, get_running_loop
from typing import TYPE_CHECKING

from line_client.cancel import CancellationScope, ScopeCancelled
from line_client.clients.line import AsyncLineClient, ClientConfig
from line_client.errors import ClientConnectionError, TransportFault

from .args import parse_args
from .console import log, print_line

if TYPE_CHECKING:
    from argparse import Namespace as Arguments


async def open_stdin() -> StreamReader:
    """Wrap standard input in an asyncio stream reader.

    Returns:
        A reader for lines typed on stdin
    """
    reader = StreamReader()
    await get_running_loop().connect_read_pipe(lambda: StreamReaderProtocol(reader), sys.stdin)
    return reader


async def interact(client: AsyncLineClient, stdin: StreamReader, session: CancellationScope) -> None:
    """Forward stdin lines to the client until input ends or the session stops.

    Args:
        client: A connected client
        stdin: Source of lines to send
        session: Fires when the connection closes
    """
    while client.is_connected:
        try:
            raw = await session.guard(stdin.readline())
        except ScopeCancelled:
            return
        if not raw:
            log.info("End of input")
            return
        line = raw.decode(client.config.encoding, errors="replace").rstrip("\r\n")
        if line:
            await client.send(line)


async def run_session(args: Arguments) -> int:
    """Connect, run an interactive session and disconnect.

    Returns:
        Process exit status
    """
    session = CancellationScope("session")
    client = AsyncLineClient(
        ClientConfig(
            host=args.host,
            port=args.port,
            send_interval=args.interval,
            cancel_scope=session,
            encoding=args.encoding,
        )
    )
    client.message_received.subscribe(print_line)
    client.connection_closed.subscribe(lambda: log.info("Connection to %s:%d closed", args.host, args.port))
    client.connection_closed.subscribe(session.cancel)

    try:
        if args.proxy is None:
            connected = await client.connect()
        else:
            connected = await client.connect_via_proxy(args.proxy[0], args.proxy[1], args.proxy_user)
    except ClientConnectionError as e:
        log.error("%s", e)  # noqa: TRY400
        return 1
    if not connected:
        return 1

    log.info("Connected to %s:%d, press Ctrl+D to exit", args.host, args.port)
    try:
        await interact(client, await open_stdin(), session)
    except TransportFault as e:
        log.error("%s", e)  # noqa: TRY400
        return 1
    finally:
        await client.aclose()

    if client.fault is not None:
        return 1
    return 0


async def main() -> int:
    """Main entry point for the line client CLI.

    Returns:
        Process exit status
    """
    args = parse_args()
    return await run_session(args)
