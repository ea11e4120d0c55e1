"""
Context Watchdog - turns execution-context teardown into cancellation.

When the page navigates or a frame's execution context is destroyed, handles
bound to it become invalid and in-flight interactions are cancelled.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from tactile.events.types import ContextDestroyedEvent
from tactile.watchdogs.base import BaseWatchdog

if TYPE_CHECKING:
    from tactile.browser.session import BrowserSession
    from tactile.context import InteractionContext
    from tactile.events.bus import EventBus

logger = logging.getLogger(__name__)


class ContextWatchdog(BaseWatchdog):
    """
    Watches Runtime/Page events for the session's target.

    Keeps the channel's map of frame main-world contexts current, so new
    handles record the context they belong to.

    Emits ContextDestroyedEvent when:
    - one execution context is destroyed
    - all execution contexts are cleared
    - the main frame navigates
    - the CDP connection goes away
    """

    def __init__(
        self,
        session: "BrowserSession",
        event_bus: "EventBus",
        context: "InteractionContext",
        poll_interval: float = 0.5,
    ):
        super().__init__(session, event_bus, poll_interval)
        self._context = context
        self._registered = False
        self._disconnected = False
        self._pending: set[asyncio.Task] = set()

    async def _initialize(self) -> None:
        """Register CDP event handlers."""
        if self._registered:
            return

        client = self._session.cdp_client
        client.register.Runtime.executionContextCreated(self._on_context_created)
        client.register.Runtime.executionContextDestroyed(self._on_context_destroyed)
        client.register.Runtime.executionContextsCleared(self._on_contexts_cleared)
        client.register.Page.frameNavigated(self._on_frame_navigated)

        self._registered = True
        logger.debug("ContextWatchdog registered CDP handlers")

    async def _check(self) -> None:
        """Cancel everything once the connection is lost."""
        if self._session.is_connected or self._disconnected:
            return
        self._disconnected = True
        self._teardown(None, "browser disconnected")

    def _is_own_session(self, session_id: str | None) -> bool:
        return session_id is None or session_id == self._session.session_id

    def _on_context_created(self, event: dict[str, Any], session_id: str | None = None) -> None:
        if not self._is_own_session(session_id):
            return
        self._session.channel.remember_context(event.get("context", {}))

    def _on_context_destroyed(self, event: dict[str, Any], session_id: str | None = None) -> None:
        if not self._is_own_session(session_id):
            return
        context_id = event.get("executionContextId")
        self._session.channel.forget_context(context_id)
        count = self._context.invalidate_context(context_id)
        self._publish(ContextDestroyedEvent(
            execution_context_id=context_id,
            reason="execution context destroyed",
            invalidated_handles=count,
        ))

    def _on_contexts_cleared(self, event: dict[str, Any], session_id: str | None = None) -> None:
        if not self._is_own_session(session_id):
            return
        self._session.channel.forget_context(None)
        self._teardown(None, "execution contexts cleared")

    def _on_frame_navigated(self, event: dict[str, Any], session_id: str | None = None) -> None:
        if not self._is_own_session(session_id):
            return
        frame = event.get("frame", {})
        # Only main-frame navigations tear down the whole page
        if frame.get("parentId"):
            return
        self._teardown(None, f"main frame navigated to {frame.get('url', '')[:60]}")

    def _teardown(self, context_id: int | None, reason: str) -> None:
        count = self._context.invalidate_context(context_id)
        self._context.cancel(reason)
        logger.debug(f"Context teardown: {reason} ({count} handles invalidated)")
        self._publish(ContextDestroyedEvent(
            execution_context_id=context_id,
            reason=reason,
            invalidated_handles=count,
        ))

    def _publish(self, event: ContextDestroyedEvent) -> None:
        task = asyncio.get_running_loop().create_task(self._bus.emit(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _cleanup(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
