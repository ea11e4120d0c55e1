"""
Base Watchdog - background monitor attached to a browser session.

Watchdogs run a polling loop next to the session and turn browser state
changes into events and cancellations.
"""

import asyncio
import contextlib
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tactile.browser.session import BrowserSession
    from tactile.events.bus import EventBus

logger = logging.getLogger(__name__)


class BaseWatchdog(ABC):
    """
    Base class for session monitors.

    Subclasses implement ``_check``; ``_initialize`` and ``_cleanup`` are
    optional hooks around the loop.
    """

    def __init__(
        self,
        session: "BrowserSession",
        event_bus: "EventBus",
        poll_interval: float = 0.5,
    ):
        self._session = session
        self._bus = event_bus
        self._poll_interval = poll_interval
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @property
    def is_running(self) -> bool:
        return self._running and self._task is not None

    async def start(self) -> None:
        if self._running:
            logger.warning(f"{self.name} already running")
            return

        self._running = True
        await self._initialize()
        self._task = asyncio.create_task(self._run_loop())
        logger.debug(f"{self.name} started")

    async def stop(self) -> None:
        self._running = False

        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

        await self._cleanup()
        logger.debug(f"{self.name} stopped")

    async def _run_loop(self) -> None:
        while self._running:
            try:
                await self._check()
            except Exception as e:
                logger.error(f"{self.name} check error: {e}")

            await asyncio.sleep(self._poll_interval)

    async def _initialize(self) -> None:
        """Register handlers before the loop starts. Override in subclasses."""
        pass

    async def _cleanup(self) -> None:
        """Release resources after the loop stops. Override in subclasses."""
        pass

    @abstractmethod
    async def _check(self) -> None:
        """Called every poll_interval while the watchdog is running."""
        pass
