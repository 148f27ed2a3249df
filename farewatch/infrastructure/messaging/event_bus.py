"""In-process event bus for repository lifecycle events.

Repositories emit "<entity_type>.<phase>" events (before_create, created,
before_update, updated, before_delete, deleted) and never wait on what
subscribers do with them. Handlers may be plain functions or coroutines;
a failing handler is logged and does not stop the others or the emitter.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

EventPayload = dict[str, Any]
EventHandler = Callable[[EventPayload], Awaitable[None] | None]


@runtime_checkable
class EventSinkProtocol(Protocol):
    """Anything that accepts fire-and-forget lifecycle events."""

    async def emit(self, event_name: str, payload: EventPayload | None = None) -> bool:
        """Deliver event; return True if at least one handler received it."""
        ...


class EventBus:
    """Synchronous in-process publish/subscribe keyed by event name."""

    def __init__(self, max_listeners: int = 100) -> None:
        self.max_listeners = max_listeners
        self._handlers: dict[str, list[EventHandler]] = {}
        self._once: set[tuple[str, int]] = set()

    def on(self, event_name: str, handler: EventHandler) -> None:
        """Register handler for every future emit of event_name."""
        handlers = self._handlers.setdefault(event_name, [])
        handlers.append(handler)
        if len(handlers) > self.max_listeners:
            logger.warning(
                "Event %s has %d listeners (max %d); possible listener leak",
                event_name,
                len(handlers),
                self.max_listeners,
            )

    def once(self, event_name: str, handler: EventHandler) -> None:
        """Register handler for the next emit of event_name only."""
        self.on(event_name, handler)
        self._once.add((event_name, id(handler)))

    def off(self, event_name: str, handler: EventHandler) -> None:
        """Remove one registration of handler (no-op if absent)."""
        handlers = self._handlers.get(event_name)
        if not handlers:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            return
        self._once.discard((event_name, id(handler)))
        if not handlers:
            del self._handlers[event_name]

    def remove_all_listeners(self, event_name: str | None = None) -> None:
        """Drop handlers for event_name, or for every event when None."""
        if event_name is None:
            self._handlers.clear()
            self._once.clear()
            return
        self._handlers.pop(event_name, None)
        self._once = {entry for entry in self._once if entry[0] != event_name}

    def listener_counts(self) -> dict[str, int]:
        """Number of handlers per event name."""
        return {name: len(handlers) for name, handlers in self._handlers.items()}

    async def emit(self, event_name: str, payload: EventPayload | None = None) -> bool:
        """Call every handler for event_name in registration order.

        Returns:
            True if at least one handler was registered.
        """
        handlers = list(self._handlers.get(event_name, ()))
        if not handlers:
            return False
        data = payload or {}
        for handler in handlers:
            if (event_name, id(handler)) in self._once:
                self.off(event_name, handler)
            try:
                result = handler(data)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Error in handler for event %s", event_name)
        return True
