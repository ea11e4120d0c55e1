"""
Browser Session - CDPClient wrapper for Tactile.

Connects to an already running Chrome over the DevTools Protocol via cdp-use,
attaches to a page target and exposes an InteractionContext for it.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, PrivateAttr

from tactile.browser.channel import CDPChannel
from tactile.config import DEFAULT_ACTION_TIMEOUT, DEFAULT_CONNECT_TIMEOUT, InteractionConfig
from tactile.exceptions import BrowserError, ConfigurationError

if TYPE_CHECKING:
    from tactile.browser.handle import ElementHandle
    from tactile.context import InteractionContext
    from tactile.watchdogs.context import ContextWatchdog

logger = logging.getLogger(__name__)


class BrowserConfig(BaseModel):
    """Configuration for browser session."""

    cdp_url: str | None = None
    watch_contexts: bool = True

    # Timeouts
    connect_timeout: float = Field(default=DEFAULT_CONNECT_TIMEOUT, gt=0)
    action_timeout: float = Field(default=DEFAULT_ACTION_TIMEOUT, ge=0)

    interaction: InteractionConfig | None = None

    def interaction_config(self) -> InteractionConfig:
        if self.interaction is not None:
            return self.interaction
        return InteractionConfig(action_timeout=self.action_timeout)


class BrowserSession(BaseModel):
    """
    Browser session wrapping cdp-use CDPClient.

    Usage:
        session = BrowserSession(config=BrowserConfig(cdp_url="ws://..."))
        await session.start()
        element = await session.element(backend_node_id)
        await element.click()
        await session.stop()
    """

    model_config = {"arbitrary_types_allowed": True}

    config: BrowserConfig = Field(default_factory=BrowserConfig)

    # Private state
    _cdp_client: Any = PrivateAttr(default=None)
    _ws_url: str | None = PrivateAttr(default=None)
    _session_id: str | None = PrivateAttr(default=None)
    _target_id: str | None = PrivateAttr(default=None)
    _connected: bool = PrivateAttr(default=False)
    _channel: CDPChannel | None = PrivateAttr(default=None)
    _context: Any = PrivateAttr(default=None)
    _watchdog: Any = PrivateAttr(default=None)
    _frame_contexts: list = PrivateAttr(default_factory=list)

    @property
    def is_connected(self) -> bool:
        """Check if session is connected to browser."""
        return self._connected and self._cdp_client is not None

    @property
    def cdp_client(self) -> Any:
        """Get the CDP client. Raises if not connected."""
        if not self._cdp_client:
            raise BrowserError("Browser session not started. Call start() first.")
        return self._cdp_client

    @property
    def session_id(self) -> str:
        """Get current session ID."""
        if not self._session_id:
            raise BrowserError("No active session.")
        return self._session_id

    @property
    def target_id(self) -> str:
        """Get current target ID."""
        if not self._target_id:
            raise BrowserError("No active target.")
        return self._target_id

    @property
    def channel(self) -> CDPChannel:
        if self._channel is None:
            raise BrowserError("Browser session not started. Call start() first.")
        return self._channel

    @property
    def context(self) -> "InteractionContext":
        """Interaction context for the attached page."""
        if self._context is None:
            raise BrowserError("Browser session not started. Call start() first.")
        return self._context

    @property
    def watchdog(self) -> "ContextWatchdog | None":
        return self._watchdog

    async def start(self, cdp_url: str | None = None) -> None:
        """
        Start browser session.

        Args:
            cdp_url: CDP WebSocket URL, or the http://host:port of the
                debugger endpoint. Falls back to config.cdp_url.

        Raises:
            ConfigurationError: If no CDP URL is given.
            BrowserError: If the browser cannot be reached in time.
        """
        from cdp_use import CDPClient

        from tactile.context import InteractionContext

        if self._connected:
            logger.warning("Session already started, skipping.")
            return

        url = cdp_url or self.config.cdp_url
        if not url:
            raise ConfigurationError("No CDP URL configured. Pass cdp_url or set TACTILE_CDP_URL.")

        self._ws_url = await self._resolve_ws_url(url)
        logger.info(f"Connecting to Chrome at {self._ws_url}")

        self._cdp_client = CDPClient(self._ws_url)
        try:
            await asyncio.wait_for(self._cdp_client.start(), timeout=self.config.connect_timeout)
        except asyncio.TimeoutError as e:
            self._cdp_client = None
            raise BrowserError(
                f"Chrome CDP not available after {self.config.connect_timeout}s"
            ) from e

        # Get initial target (first page)
        targets = await self._cdp_client.send.Target.getTargets()
        for target in targets.get("targetInfos", []):
            if target.get("type") == "page":
                self._target_id = target["targetId"]
                break

        if not self._target_id:
            # Create new page if none exists
            result = await self._cdp_client.send.Target.createTarget({"url": "about:blank"})
            self._target_id = result["targetId"]

        # Attach to target
        result = await self._cdp_client.send.Target.attachToTarget(
            {"targetId": self._target_id, "flatten": True}
        )
        self._session_id = result.get("sessionId")

        self._channel = CDPChannel(self._cdp_client, self._session_id)
        await self._channel.load_frame_tree()
        self._context = InteractionContext(self._channel, config=self.config.interaction_config())
        self._connected = True

        # The watchdog must be listening before Runtime.enable replays existing contexts
        if self.config.watch_contexts:
            await self._start_watchdog()

        await self._enable_session_domains()

        logger.info(f"Browser session started (target: {self._target_id[:8]}...)")

    async def stop(self) -> None:
        """Stop watchdog, cancel pending interactions and disconnect."""
        if not self._connected:
            return

        if self._watchdog:
            await self._watchdog.stop()

        if self._context:
            self._context.cancel("session stopped")
        for frame_context in self._frame_contexts:
            frame_context.cancel("session stopped")

        try:
            if self._cdp_client:
                await self._cdp_client.stop()
        except Exception as e:
            logger.warning(f"Error stopping CDP client: {e}")

        self._cdp_client = None
        self._ws_url = None
        self._session_id = None
        self._target_id = None
        self._channel = None
        self._context = None
        self._watchdog = None
        self._frame_contexts = []
        self._connected = False

        logger.info("Browser session stopped")

    async def element(self, backend_node_id: int) -> "ElementHandle":
        """
        Resolve a backend DOM node id into an ElementHandle.

        Args:
            backend_node_id: backendNodeId from DOM or accessibility snapshots

        Returns:
            Live handle bound to this session's interaction context
        """
        reference = await self.channel.resolve_node(backend_node_id)
        return self.context.element(reference)

    async def frame_context(self, frame_id: str) -> "InteractionContext":
        """
        Interaction context for an out-of-process iframe of the attached page.

        Chrome runs such an iframe as its own target (target id == frame id).
        Box models resolved through the returned context are shifted into the
        page's viewport and input is dispatched through the page session.

        Args:
            frame_id: Id of the out-of-process iframe.
        """
        from tactile.context import InteractionContext

        result = await self.cdp_client.send.Target.attachToTarget(
            {"targetId": frame_id, "flatten": True}
        )
        session_id = result["sessionId"]
        await asyncio.gather(
            self._cdp_client.send.DOM.enable(session_id=session_id),
            self._cdp_client.send.Runtime.enable(session_id=session_id),
        )

        context = InteractionContext(
            self.channel.child(session_id, frame_id),
            config=self.config.interaction_config(),
            event_bus=self.context.event_bus,
        )
        self._frame_contexts.append(context)
        logger.debug(f"Attached to frame {frame_id[:8]}... (session {session_id[:8]}...)")
        return context

    async def _resolve_ws_url(self, url: str) -> str:
        """Turn an http debugger endpoint into its browser WebSocket URL."""
        if url.startswith(("ws://", "wss://")):
            return url
        if not url.startswith(("http://", "https://")):
            raise ConfigurationError(f"Unsupported CDP URL: {url}")

        import httpx

        version_url = url.rstrip("/") + "/json/version"
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(version_url, timeout=self.config.connect_timeout)
                response.raise_for_status()
                return response.json()["webSocketDebuggerUrl"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise BrowserError(f"Could not read debugger URL from {version_url}: {e}") from e

    async def _enable_session_domains(self) -> None:
        """Enable CDP domains on the session."""
        session_id = self._session_id

        await asyncio.gather(
            self._cdp_client.send.Page.enable(session_id=session_id),
            self._cdp_client.send.DOM.enable(session_id=session_id),
            self._cdp_client.send.Runtime.enable(session_id=session_id),
        )

    async def _start_watchdog(self) -> None:
        from tactile.watchdogs.context import ContextWatchdog

        self._watchdog = ContextWatchdog(self, self._context.event_bus, self._context)
        await self._watchdog.start()

    # ===== Context Manager Support =====

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
