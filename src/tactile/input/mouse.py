"""
Mouse - pointer event synthesis with position and button state.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from tactile.config import MouseButton
from tactile.exceptions import InputError
from tactile.geometry.point import Point

if TYPE_CHECKING:
    from tactile.browser.protocol import RemoteChannel
    from tactile.input.keyboard import Keyboard

logger = logging.getLogger(__name__)

# Bits of the CDP "buttons" field
BUTTON_FLAGS: dict[str, int] = {
    "none": 0,
    "left": 1,
    "right": 1 << 1,
    "middle": 1 << 2,
    "back": 1 << 3,
    "forward": 1 << 4,
}


class Mouse:
    """
    Dispatches mouse events for one page.

    Usage:
        mouse = Mouse(channel, keyboard)
        await mouse.click(120, 48)
    """

    def __init__(self, channel: "RemoteChannel", keyboard: "Keyboard"):
        self._channel = channel
        self._keyboard = keyboard
        self._position = Point(x=0, y=0)
        self._buttons = 0
        self._lock = asyncio.Lock()

    @property
    def position(self) -> Point:
        return self._position

    @property
    def buttons(self) -> int:
        """Bitmask of pressed buttons."""
        return self._buttons

    def _pressed_button(self) -> str:
        for name in ("left", "right", "middle", "back", "forward"):
            if self._buttons & BUTTON_FLAGS[name]:
                return name
        return "none"

    @staticmethod
    def _flag(button: str) -> int:
        if button not in BUTTON_FLAGS:
            raise InputError(f"Unknown mouse button: {button!r}")
        return BUTTON_FLAGS[button]

    async def move(self, x: float, y: float, steps: int = 1) -> None:
        """Move the pointer in ``steps`` evenly spaced mouseMoved events."""
        start = self._position
        for i in range(1, steps + 1):
            self._position = Point(
                x=start.x + (x - start.x) * i / steps,
                y=start.y + (y - start.y) * i / steps,
            )
            await self._channel.dispatch_mouse_event(
                "mouseMoved",
                self._position,
                button=self._pressed_button(),
                buttons=self._buttons,
                modifiers=self._keyboard.modifiers,
            )

    async def down(self, button: MouseButton = "left", click_count: int = 1) -> None:
        self._buttons |= self._flag(button)
        await self._channel.dispatch_mouse_event(
            "mousePressed",
            self._position,
            button=button,
            buttons=self._buttons,
            click_count=click_count,
            modifiers=self._keyboard.modifiers,
        )

    async def up(self, button: MouseButton = "left", click_count: int = 1) -> None:
        self._buttons &= ~self._flag(button)
        await self._channel.dispatch_mouse_event(
            "mouseReleased",
            self._position,
            button=button,
            buttons=self._buttons,
            click_count=click_count,
            modifiers=self._keyboard.modifiers,
        )

    async def click(
        self,
        x: float,
        y: float,
        button: MouseButton = "left",
        click_count: int | None = None,
        count: int = 1,
        delay: float | None = None,
    ) -> None:
        """
        Move to (x, y) and click.

        Args:
            x: Viewport x coordinate.
            y: Viewport y coordinate.
            button: Mouse button to click with.
            click_count: Click count reported with the final press (defaults to count).
            count: Number of clicks; earlier clicks report increasing counts.
            delay: Seconds between press and release.
        """
        if count < 1:
            raise InputError("Click must occur a positive number of times.")
        if click_count is None:
            click_count = count

        async with self._lock:
            await self.move(x, y)
            if click_count == count:
                for i in range(1, count):
                    await self.down(button, click_count=i)
                    await self.up(button, click_count=i)
            await self.down(button, click_count=click_count)
            try:
                if delay:
                    await asyncio.sleep(delay)
            finally:
                await self.up(button, click_count=click_count)

        logger.debug(f"Clicked {button} at ({x}, {y}) x{count}")

    async def wheel(self, delta_x: float = 0, delta_y: float = 0) -> None:
        await self._channel.dispatch_mouse_event(
            "mouseWheel",
            self._position,
            delta_x=delta_x,
            delta_y=delta_y,
            modifiers=self._keyboard.modifiers,
        )

    # ===== Drag and drop =====

    async def drag(self, start: Point, target: Point) -> dict[str, Any]:
        """
        Press at ``start`` and move to ``target`` with drag interception on.

        The button stays pressed; finish with drag_enter/drag_over/drop and up,
        or use drag_and_drop.

        Returns:
            The DragData the browser intercepted.
        """
        async with self._lock:
            return await self._drag(start, target)

    async def _drag(self, start: Point, target: Point) -> dict[str, Any]:
        intercepted = await self._channel.intercept_drag()
        await self.move(start.x, start.y)
        await self.down()
        await self.move(target.x, target.y)
        data = await intercepted
        logger.debug(f"Drag intercepted with {len(data.get('items', []))} items")
        return data

    async def drag_enter(self, target: Point, data: dict[str, Any]) -> None:
        await self._channel.dispatch_drag_event(
            "dragEnter", target, data, modifiers=self._keyboard.modifiers
        )

    async def drag_over(self, target: Point, data: dict[str, Any]) -> None:
        await self._channel.dispatch_drag_event(
            "dragOver", target, data, modifiers=self._keyboard.modifiers
        )

    async def drop(self, target: Point, data: dict[str, Any]) -> None:
        await self._channel.dispatch_drag_event(
            "drop", target, data, modifiers=self._keyboard.modifiers
        )

    async def drag_and_drop(self, start: Point, target: Point, delay: float | None = None) -> None:
        """
        Drag from ``start`` and drop on ``target``.

        Args:
            start: Point to press at.
            target: Point to drop on.
            delay: Seconds to hover over the target before dropping.
        """
        async with self._lock:
            try:
                data = await self._drag(start, target)
                await self.drag_enter(target, data)
                await self.drag_over(target, data)
                if delay:
                    await asyncio.sleep(delay)
                await self.drop(target, data)
            finally:
                if self._buttons & BUTTON_FLAGS["left"]:
                    await self.up()

    # ===== State =====

    async def release_buttons(self, keep: int = 0) -> None:
        """
        Release pressed buttons where the pointer is.

        Args:
            keep: Button bitmask to leave pressed.
        """
        for name in ("right", "middle", "left", "forward", "back"):
            flag = BUTTON_FLAGS[name]
            if self._buttons & flag and not keep & flag:
                await self.up(name)

    async def reset(self) -> None:
        """Release pressed buttons and move back to the origin."""
        await self.release_buttons()
        if self._position != Point(x=0, y=0):
            await self.move(0, 0)
