"""Unit tests for the background line reader."""

from __future__ import annotations

from asyncio import Event, create_task as asyncio_create_task, sleep as asyncio_sleep

import pytest

from line_client.cancel import CancellationScope
from line_client.clients.line.reader import LineReader, decode_line
from line_client.clients.line.transport import Transport
from line_client.clients.line.types import ReadOutcome
from line_client.errors import TransportFault


class MockStreamReader:
    """Mock StreamReader returning queued lines, then end of stream."""

    def __init__(self, lines: list[bytes]) -> None:
        """Initialise with sequence of lines to return."""
        self.lines = lines
        self.read_count = 0

    async def readline(self) -> bytes:
        """Return next line or empty bytes if exhausted."""
        if self.read_count < len(self.lines):
            line = self.lines[self.read_count]
            self.read_count += 1
            return line
        return b""


class BlockingStreamReader:
    """Mock StreamReader whose peer never sends anything."""

    async def readline(self) -> bytes:
        """Wait forever."""
        await Event().wait()
        return b""


class FailingStreamReader:
    """Mock StreamReader that fails on read, optionally firing a scope first."""

    def __init__(self, scope: CancellationScope | None = None) -> None:
        """Initialise with the scope to fire before failing."""
        self.scope = scope

    async def readline(self) -> bytes:
        """Raise a connection reset."""
        if self.scope is not None:
            self.scope.cancel()
        msg = "Connection reset by peer"
        raise ConnectionResetError(msg)


def make_reader(stream: object, scope: CancellationScope, lines: list[str]) -> LineReader:
    """Create a line reader collecting lines into a list."""
    transport = Transport(reader=stream, writer=None, host="test.example.com", port=23)
    return LineReader(transport=transport, scope=scope, on_line=lines.append)


def test_decode_line() -> None:
    """Test terminator stripping and decoding."""
    cases = {
        b"hello\n": "hello",
        b"hello\r\n": "hello",
        b"hello": "hello",
        b"\n": "",
        b"a\r\r\n": "a\r",
        "café\n".encode(): "café",
        b"bad \xff\n": "bad �",
    }
    for raw, expected in cases.items():
        if decode_line(raw) != expected:
            pytest.fail(f"decode_line({raw!r}) should be {expected!r}, got {decode_line(raw)!r}")


@pytest.mark.asyncio
async def test_lines_delivered_in_order() -> None:
    """Test one callback per line, in order, then EOF."""
    lines: list[str] = []
    reader = make_reader(
        MockStreamReader([b"first\r\n", b"second\n", b"\n", b"partial"]), CancellationScope(), lines
    )

    outcome = await reader.run()

    if outcome is not ReadOutcome.EOF:
        pytest.fail(f"Expected EOF outcome, got {outcome!r}")
    if lines != ["first", "second", "", "partial"]:
        pytest.fail(f"Unexpected lines: {lines!r}")
    if reader.lines_read != 4:  # noqa: PLR2004
        pytest.fail(f"Expected 4 lines read, got {reader.lines_read}")


@pytest.mark.asyncio
async def test_cancel_while_blocked() -> None:
    """Test that cancellation stops a blocked read without raising."""
    scope = CancellationScope()
    lines: list[str] = []
    task = asyncio_create_task(make_reader(BlockingStreamReader(), scope, lines).run())
    await asyncio_sleep(0.01)

    scope.cancel()

    if await task is not ReadOutcome.CANCELLED:
        pytest.fail("Cancelled read loop should report CANCELLED")
    if lines:
        pytest.fail(f"No lines expected, got {lines!r}")


@pytest.mark.asyncio
async def test_genuine_fault_raises() -> None:
    """Test that a read failure on a live connection is fatal."""
    reader = make_reader(FailingStreamReader(), CancellationScope(), [])
    with pytest.raises(TransportFault, match="Connection reset by peer"):
        await reader.run()
    if reader.teardown_fault is not None:
        pytest.fail("Genuine fault must not be recorded as teardown fault")


@pytest.mark.asyncio
async def test_fault_after_cancel_is_expected() -> None:
    """Test that a read failure caused by teardown is recorded, not raised."""
    scope = CancellationScope()
    reader = make_reader(FailingStreamReader(scope), scope, [])

    outcome = await reader.run()

    if outcome is not ReadOutcome.CANCELLED:
        pytest.fail(f"Expected CANCELLED outcome, got {outcome!r}")
    if not isinstance(reader.teardown_fault, ConnectionResetError):
        pytest.fail(f"Teardown fault not recorded: {reader.teardown_fault!r}")


@pytest.mark.asyncio
async def test_overlong_line_is_fatal() -> None:
    """Test that exceeding the stream limit is treated as a fault."""

    class OverrunStreamReader:
        async def readline(self) -> bytes:
            msg = "Separator is not found, and chunk exceed the limit"
            raise ValueError(msg)

    with pytest.raises(TransportFault, match="exceed the limit"):
        await make_reader(OverrunStreamReader(), CancellationScope(), []).run()
