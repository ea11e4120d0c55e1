"""
Touchscreen - touch event synthesis.

Each touch is a TouchHandle that moves through start, move and end. The
screen keeps touches in start order; touch_move and touch_end act on the
oldest one.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tactile.exceptions import TouchError

if TYPE_CHECKING:
    from tactile.browser.protocol import RemoteChannel
    from tactile.input.keyboard import Keyboard

logger = logging.getLogger(__name__)

TOUCH_RADIUS = 0.5
TOUCH_FORCE = 0.5


@dataclass
class TouchPoint:
    """One contact point, in whole viewport pixels."""

    id: int
    x: int
    y: int

    def to_protocol(self) -> dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "radiusX": TOUCH_RADIUS,
            "radiusY": TOUCH_RADIUS,
            "force": TOUCH_FORCE,
            "id": self.id,
        }


class TouchHandle:
    """A single active touch."""

    def __init__(self, touchscreen: "TouchScreen", point: TouchPoint):
        self._touchscreen = touchscreen
        self._point = point
        self._ended = False

    @property
    def point(self) -> TouchPoint:
        return self._point

    @property
    def ended(self) -> bool:
        return self._ended

    async def start(self) -> None:
        await self._touchscreen._dispatch("touchStart", [self._point])

    async def move(self, x: float, y: float) -> None:
        if self._ended:
            raise TouchError(f"Touch {self._point.id} has already ended")
        self._point.x = round(x)
        self._point.y = round(y)
        await self._touchscreen._dispatch("touchMove", [self._point])

    async def end(self) -> None:
        if self._ended:
            return
        self._ended = True
        self._touchscreen._forget(self)
        # touchEnd carries no touch points
        await self._touchscreen._dispatch("touchEnd", [])


class TouchScreen:
    """
    Dispatches touch events for one page.

    Usage:
        touchscreen = TouchScreen(channel, keyboard)
        await touchscreen.tap(120, 48)

        touch = await touchscreen.touch_start(10, 10)
        await touch.move(10, 200)
        await touch.end()
    """

    def __init__(self, channel: "RemoteChannel", keyboard: "Keyboard"):
        self._channel = channel
        self._keyboard = keyboard
        self._touch_ids = 0
        self._touches: list[TouchHandle] = []

    @property
    def active_touches(self) -> list[TouchHandle]:
        return list(self._touches)

    async def tap(self, x: float, y: float) -> None:
        """Start and immediately end a touch at (x, y)."""
        touch = await self.touch_start(x, y)
        await touch.end()
        logger.debug(f"Tapped at ({touch.point.x}, {touch.point.y})")

    async def touch_start(self, x: float, y: float) -> TouchHandle:
        self._touch_ids += 1
        touch = TouchHandle(self, TouchPoint(id=self._touch_ids, x=round(x), y=round(y)))
        self._touches.append(touch)
        await touch.start()
        return touch

    async def touch_move(self, x: float, y: float) -> None:
        """Move the oldest active touch."""
        if not self._touches:
            raise TouchError("Must start a new Touch first")
        await self._touches[0].move(x, y)

    async def touch_end(self) -> None:
        """End the oldest active touch."""
        if not self._touches:
            raise TouchError("Must start a new Touch first")
        await self._touches[0].end()

    async def end_all(self, keep: frozenset[int] = frozenset()) -> None:
        """End every active touch whose id is not in ``keep``."""
        for touch in self.active_touches:
            if touch.point.id not in keep:
                await touch.end()

    def _forget(self, touch: TouchHandle) -> None:
        if touch in self._touches:
            self._touches.remove(touch)

    async def _dispatch(self, event_type: str, points: list[TouchPoint]) -> None:
        await self._channel.dispatch_touch_event(
            event_type,
            [point.to_protocol() for point in points],
            modifiers=self._keyboard.modifiers,
        )
