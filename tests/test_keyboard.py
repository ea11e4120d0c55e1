"""Unit tests for Keyboard modifier state and key dispatch."""

import asyncio

import pytest

from conftest import FakeChannel
from tactile.exceptions import UnknownKeyError
from tactile.input.key_definitions import MODIFIER_CONTROL, MODIFIER_SHIFT
from tactile.input.keyboard import Keyboard


@pytest.fixture
def keyboard(channel):
    return Keyboard(channel)


class TestKeyboard:
    @pytest.mark.asyncio
    async def test_press_sends_down_then_up(self, keyboard, channel):
        await keyboard.press("Enter")
        assert [e["phase"] for e in channel.key_events] == ["down", "up"]
        assert channel.key_events[0]["text"] == "\r"
        assert channel.key_events[0]["key_code"] == 13

    @pytest.mark.asyncio
    async def test_shift_sets_modifier_bit(self, keyboard, channel):
        await keyboard.down("Shift")
        assert keyboard.modifiers == MODIFIER_SHIFT
        await keyboard.press("KeyA")
        assert channel.key_events[1]["key"] == "A"
        assert channel.key_events[1]["modifiers"] == MODIFIER_SHIFT
        await keyboard.up("Shift")
        assert keyboard.modifiers == 0

    @pytest.mark.asyncio
    async def test_modifier_held_suppresses_text(self, keyboard, channel):
        await keyboard.down("Control")
        await keyboard.press("a")
        assert keyboard.modifiers == MODIFIER_CONTROL
        assert channel.key_events[1]["text"] == ""

    @pytest.mark.asyncio
    async def test_second_down_is_auto_repeat(self, keyboard, channel):
        await keyboard.down("a")
        await keyboard.down("a")
        assert [e["auto_repeat"] for e in channel.key_events] == [False, True]
        await keyboard.up("a")
        assert keyboard.pressed_keys == frozenset()

    @pytest.mark.asyncio
    async def test_text_override(self, keyboard, channel):
        await keyboard.press("a", text="å")
        assert channel.key_events[0]["text"] == "å"

    @pytest.mark.asyncio
    async def test_unknown_key_sends_nothing(self, keyboard, channel):
        with pytest.raises(UnknownKeyError):
            await keyboard.press("NotAKey123")
        assert channel.key_events == []

    @pytest.mark.asyncio
    async def test_type_text_mixes_keys_and_inserted_text(self, keyboard, channel):
        await keyboard.type_text("a好")
        assert [e["key"] for e in channel.key_events] == ["a", "a"]
        assert channel.inserted == ["好"]

    @pytest.mark.asyncio
    async def test_concurrent_modifier_presses_are_serialized(self):
        channel = FakeChannel()
        keyboard = Keyboard(channel)
        await asyncio.gather(
            keyboard.down("Shift"),
            keyboard.down("Control"),
            keyboard.down("Alt"),
        )
        assert keyboard.modifiers == 0b1011
        assert [e["modifiers"] for e in channel.key_events] == [8, 10, 11]

    @pytest.mark.asyncio
    async def test_interrupted_press_releases_key(self, keyboard, channel):
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(keyboard.press("Shift", delay=1.0), 0.05)
        assert [e["phase"] for e in channel.key_events] == ["down", "up"]
        assert keyboard.modifiers == 0

    @pytest.mark.asyncio
    async def test_release_all_keeps_requested(self, keyboard, channel):
        await keyboard.down("Shift")
        await keyboard.down("Control")
        await keyboard.down("Enter")
        await keyboard.release_all(keep=frozenset({"ShiftLeft"}))
        assert keyboard.pressed_keys == frozenset({"ShiftLeft"})
        assert keyboard.modifiers == MODIFIER_SHIFT
        ups = [e["key"] for e in channel.key_events if e["phase"] == "up"]
        assert sorted(ups) == ["Control", "Enter"]
