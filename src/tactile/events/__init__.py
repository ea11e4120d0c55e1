"""
Tactile Events Module.

Provides the event bus and interaction event types.
"""

from tactile.events.bus import Event, EventBus
from tactile.events.types import (
    ContextDestroyedEvent,
    InteractionCompleted,
    InteractionStateChanged,
)

__all__ = [
    "Event",
    "EventBus",
    "ContextDestroyedEvent",
    "InteractionCompleted",
    "InteractionStateChanged",
]
