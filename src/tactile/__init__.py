"""
Tactile - element geometry and input synthesis for CDP-driven browsers.

Resolves where an element is on screen, waits for it to stop moving, and
turns clicks and key presses into DevTools Protocol input events.

Usage:
    from tactile import BrowserConfig, BrowserSession

    async with BrowserSession(config=BrowserConfig(cdp_url="http://localhost:9222")) as session:
        element = await session.element(backend_node_id)
        await element.click(offset={"x": 5, "y": 5})
        await element.press("Enter")
"""

__version__ = "0.1.0"

from tactile.browser import BrowserConfig, BrowserSession, ElementHandle, RemoteHandle
from tactile.config import InteractionConfig
from tactile.context import InteractionContext
from tactile.events import Event, EventBus
from tactile.exceptions import (
    ElementHandleCancelledError,
    ElementNotRenderedError,
    HandleDisposedError,
    TactileError,
    UnknownKeyError,
    WaitForStabilityTimeoutError,
)
from tactile.geometry import BoundingBox, BoxModel, Offset, Point
from tactile.input import InputDispatcher, key_description_for
from tactile.logging import logger, setup_logging

__all__ = [
    "__version__",
    "BrowserSession",
    "BrowserConfig",
    "ElementHandle",
    "RemoteHandle",
    "InteractionContext",
    "InteractionConfig",
    "InputDispatcher",
    "BoundingBox",
    "BoxModel",
    "Offset",
    "Point",
    "key_description_for",
    "TactileError",
    "HandleDisposedError",
    "ElementNotRenderedError",
    "WaitForStabilityTimeoutError",
    "ElementHandleCancelledError",
    "UnknownKeyError",
    "EventBus",
    "Event",
    "setup_logging",
    "logger",
]
