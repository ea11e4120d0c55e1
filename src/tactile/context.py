"""
Interaction context - the explicitly constructed entry point for one page.

Bundles the channel, input devices, geometry services and the cancellation
token of a page. Handles hold a reference to their context; nothing here is
process-wide.
"""

import logging
import weakref

from tactile.browser.cancellation import CancellationToken
from tactile.browser.handle import ElementHandle, RemoteHandle
from tactile.browser.protocol import NodeReference, RemoteChannel
from tactile.browser.stability import StabilityGate
from tactile.config import InteractionConfig
from tactile.events.bus import EventBus
from tactile.geometry.box_model import BoxModelResolver
from tactile.input.dispatcher import InputDispatcher
from tactile.input.keyboard import Keyboard
from tactile.input.mouse import Mouse
from tactile.input.touchscreen import TouchScreen

logger = logging.getLogger(__name__)


class InteractionContext:
    """
    Everything needed to resolve geometry and synthesize input on one page.

    Usage:
        context = InteractionContext(channel)
        element = context.element(reference)
        await element.click()
    """

    def __init__(
        self,
        channel: RemoteChannel,
        config: InteractionConfig | None = None,
        event_bus: EventBus | None = None,
    ):
        self.channel = channel
        self.config = config or InteractionConfig()
        self.event_bus = event_bus or EventBus()
        self.cancellation = CancellationToken()

        self.keyboard = Keyboard(channel)
        self.mouse = Mouse(channel, self.keyboard)
        self.touchscreen = TouchScreen(channel, self.keyboard)
        self.resolver = BoxModelResolver(channel)
        self.gate = StabilityGate(self.resolver, channel, self.config.stability_tolerance)
        self.dispatcher = InputDispatcher(
            channel,
            self.resolver,
            self.gate,
            self.mouse,
            self.keyboard,
            config=self.config,
            event_bus=self.event_bus,
            cancellation=self.cancellation,
            touchscreen=self.touchscreen,
        )

        self._handles: weakref.WeakSet[RemoteHandle] = weakref.WeakSet()

    def element(self, reference: NodeReference) -> ElementHandle:
        """Wrap a node reference in an ElementHandle bound to this context."""
        return ElementHandle(self, reference)

    def track(self, handle: RemoteHandle) -> None:
        self._handles.add(handle)

    @property
    def live_handles(self) -> list[RemoteHandle]:
        return [handle for handle in self._handles if not handle.disposed]

    def invalidate_context(self, execution_context_id: int | None = None) -> int:
        """
        Invalidate handles bound to a destroyed execution context.

        Args:
            execution_context_id: Context that went away; None invalidates all handles.

        Returns:
            Number of handles invalidated.
        """
        count = 0
        for handle in self.live_handles:
            if execution_context_id is None or handle.execution_context_id == execution_context_id:
                handle.invalidate()
                count += 1
        logger.debug(f"Invalidated {count} handles (context={execution_context_id})")
        return count

    def cancel(self, reason: str = "context destroyed") -> None:
        """
        Cancel in-flight interactions and start a fresh token for new ones.
        """
        self.cancellation.cancel(reason)
        self.cancellation = CancellationToken()
        self.dispatcher.cancellation = self.cancellation
