"""Cancellation scopes for asyncio suspension points.

A CancellationScope is a one-shot signal. Client code wraps every awaitable
that may block (connecting, reading a line, waiting for the send slot,
sleeping between sends) in `scope.guard(...)`, so that firing the scope wakes
all of them at once. Scopes can be linked: a child created with
`parent.child()` fires when its parent fires, and can also be fired on its own
without affecting the parent.

Example usage:
    ```python
    external = CancellationScope("app")
    internal = external.child("client")

    try:
        line = await internal.guard(reader.readline())
    except ScopeCancelled:
        return
    ```
"""

from __future__ import annotations

from asyncio import (
    FIRST_COMPLETED,
    CancelledError as AsyncioCancelledError,
    Event,
    create_task as asyncio_create_task,
    ensure_future as asyncio_ensure_future,
    wait as asyncio_wait,
)
from dataclasses import dataclass, field
from inspect import iscoroutine
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


T = TypeVar("T")


class ScopeCancelled(Exception):  # noqa: N818
    """Raised at a suspension point when its cancellation scope has fired."""


@dataclass(slots=True, eq=False)
class CancellationScope:
    """A linked, idempotent cancellation signal."""

    name: str = field(default="scope")
    _event: Event = field(init=False, default_factory=Event)
    _callbacks: list[Callable[[], object]] = field(init=False, default_factory=list)

    def __repr__(self) -> str:
        """Show the scope name and whether it has fired."""
        return f"<CancellationScope {self.name!r} cancelled={self.cancelled}>"

    @property
    def cancelled(self) -> bool:
        """Check whether the scope has fired."""
        return self._event.is_set()

    def cancel(self) -> bool:
        """Fire the scope.

        Returns:
            True if this call fired the scope, False if it had already fired
        """
        if self._event.is_set():
            return False
        self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()
        return True

    def on_cancel(self, callback: Callable[[], object]) -> Callable[[], None]:
        """Register a callback to run once when the scope fires.

        The callback runs immediately if the scope has already fired.

        Returns:
            A function that unregisters the callback
        """
        if self.cancelled:
            callback()
            return lambda: None
        self._callbacks.append(callback)

        def unregister() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unregister

    def child(self, name: str | None = None) -> CancellationScope:
        """Create a scope that fires whenever this one does.

        Returns:
            The linked child scope
        """
        scope = CancellationScope(name=name or f"{self.name}.child")
        unlink = self.on_cancel(scope.cancel)
        # Once the child has fired the parent no longer needs to reach it
        scope.on_cancel(unlink)
        return scope

    async def wait(self) -> None:
        """Suspend until the scope fires."""
        await self._event.wait()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await an operation unless the scope fires first.

        If the operation finishes in the same loop iteration as the scope fires,
        its result wins so that acquired resources are never lost.

        Args:
            awaitable: The operation to wait for

        Returns:
            The result of the operation

        Raises:
            ScopeCancelled: If the scope fired before the operation completed
        """
        if self.cancelled:
            if iscoroutine(awaitable):
                awaitable.close()
            raise ScopeCancelled(self.name)

        task = asyncio_ensure_future(awaitable)
        waiter = asyncio_create_task(self._event.wait())
        try:
            await asyncio_wait({task, waiter}, return_when=FIRST_COMPLETED)
        except AsyncioCancelledError:
            task.cancel()
            waiter.cancel()
            raise
        waiter.cancel()

        if not task.done():
            task.cancel()
            await asyncio_wait({task})
        if task.cancelled():
            if not self.cancelled:
                # Cancelled from elsewhere, not by this scope
                raise AsyncioCancelledError
            raise ScopeCancelled(self.name)
        return task.result()
