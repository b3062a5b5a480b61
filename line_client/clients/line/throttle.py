"""Send throttle for flood protection.

Sends go through a single slot. A send holds the slot while it writes and then
for `interval` seconds afterwards, so consecutive writes are always at least
`interval` apart, measured from the end of one write to the start of the next.
"""

from __future__ import annotations

from asyncio import Semaphore, sleep as asyncio_sleep
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from line_client.cancel import ScopeCancelled
from line_client.cli.console import log

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from line_client.cancel import CancellationScope


@dataclass(slots=True)
class SendThrottle:
    """Serialises writes and spaces them at least `interval` seconds apart."""

    interval: float
    scope: CancellationScope
    _slot: Semaphore = field(init=False, default_factory=lambda: Semaphore(1))

    @property
    def busy(self) -> bool:
        """Check whether a send currently holds the slot."""
        return self._slot.locked()

    async def submit(self, write: Callable[[], Awaitable[bool]]) -> bool:
        """Run one write under the slot.

        Args:
            write: Performs the write, returning False if teardown dropped it

        Returns:
            True if the write happened, False if it was dropped by cancellation
        """
        try:
            await self.scope.guard(self._slot.acquire())
        except ScopeCancelled:
            log.debug("Send dropped while waiting for the send slot")
            return False

        written = False
        try:
            if self.scope.cancelled:
                return False
            try:
                written = await self.scope.guard(write())
            except ScopeCancelled:
                return False
            return written
        finally:
            try:
                # Faulted and dropped writes release straight away
                if written and self.interval > 0 and not self.scope.cancelled:
                    try:
                        await self.scope.guard(asyncio_sleep(self.interval))
                    except ScopeCancelled:
                        log.debug("Send throttle delay cut short by cancellation")
            finally:
                self._slot.release()
