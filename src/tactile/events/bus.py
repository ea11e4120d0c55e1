"""
EventBus - small async pub/sub used to observe interactions.

Subscribers get notified of interaction state changes and context teardown.
Handler failures are logged and never break the interaction that emitted.
"""

import inspect
import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeVar
from uuid import uuid4

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Event:
    """Base class for all events."""

    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def event_type(self) -> str:
        return self.__class__.__name__


class EventBus:
    """
    Async event bus keyed by event class.

    Usage:
        bus = EventBus()

        async def on_state(event: InteractionStateChanged):
            print(event.state)

        bus.on(InteractionStateChanged, on_state)
        await bus.emit(InteractionStateChanged(state="Done"))
    """

    def __init__(self):
        self._handlers: dict[type, list[Callable]] = defaultdict(list)

    def on(self, event_type: type[T], handler: Callable[[T], Any]) -> Callable:
        """
        Register an event handler.

        Args:
            event_type: Event class to listen for (exact type match)
            handler: Async or sync callable

        Returns:
            The handler, so this can be used as a decorator helper
        """
        self._handlers[event_type].append(handler)
        logger.debug(f"Registered handler for {event_type.__name__}")
        return handler

    def off(self, event_type: type[T], handler: Callable[[T], Any]) -> None:
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)

    async def emit(self, event: Any) -> list[Any]:
        """
        Deliver an event to every handler of its type.

        Returns:
            Handler results, in registration order (failed handlers are skipped)
        """
        event_type = type(event)
        handlers = list(self._handlers.get(event_type, []))
        results = []

        for handler in handlers:
            try:
                if inspect.iscoroutinefunction(handler):
                    result = await handler(event)
                else:
                    result = handler(event)
                results.append(result)
            except Exception as e:
                logger.error(f"Error in handler for {event_type.__name__}: {e}")

        return results

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()

    @property
    def handler_count(self) -> int:
        return sum(len(h) for h in self._handlers.values())
