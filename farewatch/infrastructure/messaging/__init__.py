"""Messaging: in-process event bus for lifecycle events."""

from farewatch.infrastructure.messaging.event_bus import (
    EventBus,
    EventHandler,
    EventPayload,
    EventSinkProtocol,
)

__all__ = [
    "EventBus",
    "EventHandler",
    "EventPayload",
    "EventSinkProtocol",
]
