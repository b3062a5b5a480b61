"""Observer hooks for client notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from line_client.cli.console import log

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(slots=True)
class EventHook:
    """A named notification with zero or more subscribers.

    Handlers are called synchronously in subscription order. A handler that
    raises is logged and skipped, so one faulty subscriber cannot starve the
    others or stop the read loop.
    """

    name: str
    _handlers: list[Callable[..., object]] = field(init=False, default_factory=list)

    def __len__(self) -> int:
        """Return the number of subscribed handlers."""
        return len(self._handlers)

    def subscribe(self, handler: Callable[..., object]) -> Callable[[], None]:
        """Add a handler.

        Returns:
            A function that removes the handler again
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def emit(self, *args: object) -> int:
        """Call every handler with the given arguments.

        Returns:
            Number of handlers that completed without raising
        """
        delivered = 0
        for handler in list(self._handlers):
            try:
                handler(*args)
            except Exception:
                log.exception("Error in %s handler %r", self.name, handler)
            else:
                delivered += 1
        return delivered
