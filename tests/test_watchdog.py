"""Unit tests for ContextWatchdog event handling."""

import asyncio

import pytest

from conftest import RecordingClient
from tactile.browser.channel import CDPChannel
from tactile.browser.protocol import NodeReference
from tactile.context import InteractionContext
from tactile.events.types import ContextDestroyedEvent
from tactile.watchdogs.context import ContextWatchdog


# ── Helpers ──────────────────────────────────────────────────────────────────


class FakeSession:
    def __init__(self):
        self.cdp_client = RecordingClient(
            {"DOM.resolveNode": {"object": {"objectId": "obj-42"}}}
        )
        self.session_id = "session-1"
        self.channel = CDPChannel(self.cdp_client, self.session_id, frame_id="main")
        self.is_connected = True


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def destroyed(context):
    events = []
    context.event_bus.on(ContextDestroyedEvent, events.append)
    return events


async def _watch(session, context) -> ContextWatchdog:
    watchdog = ContextWatchdog(session, context.event_bus, context, poll_interval=0.01)
    await watchdog._initialize()
    return watchdog


class TestContextWatchdog:
    @pytest.mark.asyncio
    async def test_registers_handlers(self, session, context):
        await _watch(session, context)
        assert set(session.cdp_client.handlers) == {
            "Runtime.executionContextCreated",
            "Runtime.executionContextDestroyed",
            "Runtime.executionContextsCleared",
            "Page.frameNavigated",
        }

    @pytest.mark.asyncio
    async def test_context_destroyed_invalidates_matching_handles(
        self, session, context, destroyed
    ):
        watchdog = await _watch(session, context)
        doomed = context.element(NodeReference("a", execution_context_id=3))
        survivor = context.element(NodeReference("b", execution_context_id=4))

        handler = session.cdp_client.handlers["Runtime.executionContextDestroyed"]
        handler({"executionContextId": 3}, "session-1")
        await watchdog._cleanup()

        assert doomed.disposed
        assert not survivor.disposed
        assert not context.cancellation.cancelled
        assert destroyed[0].execution_context_id == 3
        assert destroyed[0].invalidated_handles == 1

    @pytest.mark.asyncio
    async def test_main_frame_navigation_cancels(self, session, context, destroyed):
        watchdog = await _watch(session, context)
        handle = context.element(NodeReference("a", execution_context_id=1))
        token = context.cancellation

        handler = session.cdp_client.handlers["Page.frameNavigated"]
        handler({"frame": {"id": "main", "url": "https://example.com"}}, "session-1")
        await watchdog._cleanup()

        assert handle.disposed
        assert token.cancelled
        assert "navigated" in token.reason
        assert len(destroyed) == 1

    @pytest.mark.asyncio
    async def test_child_frame_navigation_is_ignored(self, session, context, destroyed):
        watchdog = await _watch(session, context)
        handler = session.cdp_client.handlers["Page.frameNavigated"]
        handler({"frame": {"id": "child", "parentId": "main"}}, "session-1")
        await watchdog._cleanup()
        assert not context.cancellation.cancelled
        assert destroyed == []

    @pytest.mark.asyncio
    async def test_other_session_events_are_ignored(self, session, context, destroyed):
        watchdog = await _watch(session, context)
        handler = session.cdp_client.handlers["Runtime.executionContextsCleared"]
        handler({}, "another-session")
        await watchdog._cleanup()
        assert not context.cancellation.cancelled

    @pytest.mark.asyncio
    async def test_disconnect_cancels_via_poll(self, session, context):
        watchdog = ContextWatchdog(session, context.event_bus, context, poll_interval=0.01)
        token = context.cancellation
        await watchdog.start()
        session.is_connected = False
        await asyncio.sleep(0.05)
        await watchdog.stop()
        assert token.cancelled
        assert token.reason == "browser disconnected"


def _created(context_id: int, frame_id: str = "main") -> dict:
    return {"context": {"id": context_id, "auxData": {"isDefault": True, "frameId": frame_id}}}


class TestContextBinding:
    @pytest.mark.asyncio
    async def test_created_context_is_tracked_by_channel(self, session, context):
        await _watch(session, context)
        session.cdp_client.handlers["Runtime.executionContextCreated"](_created(7), "session-1")
        assert session.channel.execution_context_for() == 7

    @pytest.mark.asyncio
    async def test_other_session_contexts_are_ignored(self, session, context):
        await _watch(session, context)
        session.cdp_client.handlers["Runtime.executionContextCreated"](_created(7), "other")
        assert session.channel.execution_context_for() is None

    @pytest.mark.asyncio
    async def test_destroyed_context_invalidates_resolved_handle(self, session):
        context = InteractionContext(session.channel)
        destroyed = []
        context.event_bus.on(ContextDestroyedEvent, destroyed.append)
        watchdog = await _watch(session, context)
        handlers = session.cdp_client.handlers

        handlers["Runtime.executionContextCreated"](_created(7), "session-1")
        handle = context.element(await session.channel.resolve_node(42))
        assert handle.execution_context_id == 7

        handlers["Runtime.executionContextDestroyed"]({"executionContextId": 7}, "session-1")
        await watchdog._cleanup()

        assert handle.disposed
        assert destroyed[-1].invalidated_handles == 1
        assert session.channel.execution_context_for() is None

    @pytest.mark.asyncio
    async def test_cleared_contexts_are_forgotten(self, session, context):
        watchdog = await _watch(session, context)
        handlers = session.cdp_client.handlers
        handlers["Runtime.executionContextCreated"](_created(7), "session-1")
        handlers["Runtime.executionContextsCleared"]({}, "session-1")
        await watchdog._cleanup()
        assert session.channel.execution_context_for() is None
