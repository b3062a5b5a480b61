"""Background line reader."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from line_client.cancel import ScopeCancelled
from line_client.cli.console import log
from line_client.constants import DEFAULT_ENCODING
from line_client.errors import TransportFault

from .types import ReadOutcome

if TYPE_CHECKING:
    from collections.abc import Callable

    from line_client.cancel import CancellationScope

    from .transport import Transport


def decode_line(raw: bytes, encoding: str = DEFAULT_ENCODING) -> str:
    """Decode a received line and strip its terminator.

    Strips a trailing newline and one carriage return before it, if present.

    Returns:
        The line text
    """
    text = raw.decode(encoding, errors="replace")
    return text.removesuffix("\n").removesuffix("\r")


@dataclass(slots=True)
class LineReader:
    """Turns a transport's byte stream into one callback per line."""

    transport: Transport
    scope: CancellationScope
    on_line: Callable[[str], object]
    encoding: str = field(default=DEFAULT_ENCODING)
    lines_read: int = field(default=0, init=False)
    teardown_fault: BaseException | None = field(default=None, init=False)

    async def run(self) -> ReadOutcome:
        """Read lines until end of stream or cancellation.

        Returns:
            EOF when the peer closed its side, CANCELLED when the scope fired

        Raises:
            TransportFault: If reading fails while the scope is still live
        """
        reader = self.transport.reader
        while True:
            try:
                raw = await self.scope.guard(reader.readline())
            except ScopeCancelled:
                return ReadOutcome.CANCELLED
            except (OSError, ValueError) as e:
                # A fault after the scope fired is a side effect of teardown
                if self.scope.cancelled:
                    log.debug("Read interrupted by teardown: %s", e)
                    self.teardown_fault = e
                    return ReadOutcome.CANCELLED
                msg = f"Read from {self.transport.host}:{self.transport.port} failed: {e}"
                raise TransportFault(msg) from e

            if not raw:
                log.debug("End of stream from %s:%d", self.transport.host, self.transport.port)
                return ReadOutcome.EOF

            self.lines_read += 1
            self.on_line(decode_line(raw, self.encoding))
