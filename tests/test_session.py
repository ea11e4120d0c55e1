"""Unit tests for BrowserConfig and BrowserSession state handling."""

import pytest

from conftest import RecordingClient
from tactile.browser.channel import CDPChannel
from tactile.browser.session import BrowserConfig, BrowserSession
from tactile.config import InteractionConfig
from tactile.context import InteractionContext
from tactile.exceptions import BrowserError, ConfigurationError


class TestBrowserConfig:
    def test_defaults(self):
        config = BrowserConfig()
        assert config.cdp_url is None
        assert config.connect_timeout == 30.0
        assert config.watch_contexts is True

    def test_interaction_config_inherits_action_timeout(self):
        config = BrowserConfig(action_timeout=2.5)
        assert config.interaction_config().action_timeout == 2.5

    def test_explicit_interaction_config_wins(self):
        interaction = InteractionConfig(action_timeout=1.0)
        config = BrowserConfig(action_timeout=2.5, interaction=interaction)
        assert config.interaction_config() is interaction

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValueError):
            BrowserConfig(action_timeout=-1)


class TestBrowserSession:
    def test_not_connected_before_start(self):
        session = BrowserSession()
        assert not session.is_connected
        with pytest.raises(BrowserError):
            _ = session.context
        with pytest.raises(BrowserError):
            _ = session.cdp_client

    @pytest.mark.asyncio
    async def test_start_without_url_raises(self):
        with pytest.raises(ConfigurationError):
            await BrowserSession().start()

    @pytest.mark.asyncio
    async def test_websocket_url_is_used_as_is(self):
        url = "ws://127.0.0.1:9222/devtools/browser/abc"
        assert await BrowserSession()._resolve_ws_url(url) == url

    @pytest.mark.asyncio
    async def test_unsupported_url_scheme(self):
        with pytest.raises(ConfigurationError):
            await BrowserSession()._resolve_ws_url("ftp://example.com")

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self):
        await BrowserSession().stop()


class TestFrameContext:
    @pytest.fixture
    def session(self):
        client = RecordingClient({"Target.attachToTarget": {"sessionId": "frame-session"}})
        session = BrowserSession()
        session._cdp_client = client
        session._session_id = "page"
        session._channel = CDPChannel(client, "page", frame_id="main")
        session._context = InteractionContext(session._channel)
        session._connected = True
        return session

    @pytest.mark.asyncio
    async def test_attaches_and_enables_frame_session(self, session):
        context = await session.frame_context("frame-1")

        calls = session.cdp_client.calls
        assert calls[0] == (
            "Target.attachToTarget",
            {"targetId": "frame-1", "flatten": True},
            None,
        )
        enabled = {(method, sid) for method, _, sid in calls[1:]}
        assert enabled == {("DOM.enable", "frame-session"), ("Runtime.enable", "frame-session")}

        assert context.channel.session_id == "frame-session"
        assert context.channel.frame_id == "frame-1"
        assert context.channel.parent is session.channel
        assert context.event_bus is session.context.event_bus

    @pytest.mark.asyncio
    async def test_stop_cancels_frame_contexts(self, session):
        context = await session.frame_context("frame-1")
        token = context.cancellation
        await session.stop()
        assert token.cancelled
        assert token.reason == "session stopped"
