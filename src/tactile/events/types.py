"""
Event Types - interaction and context lifecycle events.
"""

from dataclasses import dataclass

from tactile.events.bus import Event


@dataclass
class InteractionStateChanged(Event):
    """An input interaction moved to a new state."""

    action: str = ""
    handle: str = ""
    state: str = ""
    attempt: int = 1
    error: str | None = None


@dataclass
class InteractionCompleted(Event):
    """An input interaction finished and the browser acknowledged all events."""

    action: str = ""
    handle: str = ""
    x: float = 0.0
    y: float = 0.0
    elapsed: float = 0.0


@dataclass
class ContextDestroyedEvent(Event):
    """An execution context (or all of them) went away."""

    execution_context_id: int | None = None
    reason: str = ""
    invalidated_handles: int = 0
