"""
Keyboard - key event synthesis with per-session modifier state.
"""

import asyncio
import dataclasses
from typing import TYPE_CHECKING

from tactile.input.key_definitions import (
    KEY_DEFINITIONS,
    MODIFIER_BITS,
    KeyDescription,
    key_description_for,
)
from tactile.logging.config import TactileLogger

if TYPE_CHECKING:
    from tactile.browser.protocol import RemoteChannel

logger = TactileLogger(__name__)


class Keyboard:
    """
    Dispatches key events and tracks pressed keys and modifiers.

    Modifier state belongs to one input session. All mutations happen under a
    lock so concurrent presses cannot race on the modifier set.

    Usage:
        keyboard = Keyboard(channel)
        await keyboard.down("Shift")
        await keyboard.press("KeyA")   # sends "A"
        await keyboard.up("Shift")
    """

    def __init__(self, channel: "RemoteChannel"):
        self._channel = channel
        self._modifiers = 0
        self._pressed_keys: set[str] = set()
        self._lock = asyncio.Lock()

    @property
    def modifiers(self) -> int:
        """Bitmask of held modifiers (Alt=1, Control=2, Meta=4, Shift=8)."""
        return self._modifiers

    @property
    def pressed_keys(self) -> frozenset[str]:
        return frozenset(self._pressed_keys)

    def description_for(self, key: str) -> KeyDescription:
        """Key description under the current modifier state."""
        return key_description_for(key, self._modifiers)

    async def down(self, key: str, text: str | None = None) -> KeyDescription:
        """
        Dispatch a keyDown event.

        Args:
            key: Key name or single character.
            text: Text to insert instead of the key's own text.

        Returns:
            The description that was sent.
        """
        async with self._lock:
            description = self.description_for(key)
            pressed_id = description.code or description.key or key

            auto_repeat = pressed_id in self._pressed_keys
            self._pressed_keys.add(pressed_id)
            self._modifiers |= MODIFIER_BITS.get(description.key or "", 0)

            if text is not None:
                description = dataclasses.replace(description, text=text)

            await self._channel.dispatch_key_event(
                description, "down", self._modifiers, auto_repeat=auto_repeat
            )
            logger.key(key, "down", self._modifiers)
            return description

    async def up(self, key: str) -> KeyDescription:
        """Dispatch a keyUp event and release the key's modifier bit."""
        async with self._lock:
            description = self.description_for(key)
            pressed_id = description.code or description.key or key

            self._modifiers &= ~MODIFIER_BITS.get(description.key or "", 0)
            self._pressed_keys.discard(pressed_id)

            await self._channel.dispatch_key_event(description, "up", self._modifiers)
            logger.key(key, "up", self._modifiers)
            return description

    async def press(self, key: str, delay: float | None = None, text: str | None = None) -> None:
        """
        Press and release a key.

        Args:
            key: Key name or single character.
            delay: Seconds to hold the key between down and up.
            text: Text to insert instead of the key's own text.

        The key is released even when the hold is interrupted.
        """
        await self.down(key, text=text)
        try:
            if delay:
                await asyncio.sleep(delay)
        finally:
            await self.up(key)

    async def release_all(self, keep: frozenset[str] = frozenset()) -> None:
        """
        Send keyUp for every held key.

        Args:
            keep: Pressed-key ids (codes) to leave held.
        """
        for pressed_id in sorted(self._pressed_keys - keep):
            await self.up(pressed_id)

    async def send_character(self, char: str) -> None:
        """Insert text without key events (IME-style input)."""
        await self._channel.insert_text(char)

    async def type_text(self, text: str, delay: float | None = None) -> None:
        """
        Type text one character at a time.

        Characters in the keyboard layout are pressed as keys; anything else is
        inserted with send_character.
        """
        for char in text:
            if char in KEY_DEFINITIONS:
                await self.press(char, delay=delay)
            else:
                if delay:
                    await asyncio.sleep(delay)
                await self.send_character(char)
