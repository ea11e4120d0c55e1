"""Unit tests for the US key layout and key_description_for."""

import pytest

from tactile.exceptions import UnknownKeyError
from tactile.input.key_definitions import (
    KEY_DEFINITIONS,
    MODIFIER_ALT,
    MODIFIER_CONTROL,
    MODIFIER_META,
    MODIFIER_SHIFT,
    key_description_for,
)


# ── Table lookups ────────────────────────────────────────────────────────────


class TestKnownKeys:
    def test_enter(self):
        d = key_description_for("Enter")
        assert d.key_code == 13
        assert d.code == "Enter"
        assert d.key == "Enter"
        assert d.text == "\r"

    def test_letter(self):
        d = key_description_for("a")
        assert (d.key_code, d.code, d.key, d.text) == (65, "KeyA", "a", "a")

    def test_space(self):
        d = key_description_for(" ")
        assert (d.key_code, d.code, d.text) == (32, "Space", " ")

    def test_named_key_has_no_text(self):
        d = key_description_for("ArrowLeft")
        assert d.key_code == 37
        assert d.text is None

    def test_modifier_key_location(self):
        assert key_description_for("Shift").location == 1
        assert key_description_for("ShiftRight").location == 2

    def test_numpad_is_keypad(self):
        assert key_description_for("Numpad5").is_keypad
        assert not key_description_for("Digit5").is_keypad

    @pytest.mark.parametrize("n", [1, 12, 24])
    def test_function_keys(self, n):
        assert key_description_for(f"F{n}").key_code == 111 + n

    @pytest.mark.parametrize("name", ["Backspace", "Tab", "Escape", "Delete", "PageDown"])
    def test_common_keys_present(self, name):
        assert name in KEY_DEFINITIONS

    def test_lookup_is_case_sensitive(self):
        with pytest.raises(UnknownKeyError):
            key_description_for("enter")


# ── Modifiers ────────────────────────────────────────────────────────────────


class TestModifiers:
    def test_shift_selects_shifted_key(self):
        d = key_description_for("KeyA", MODIFIER_SHIFT)
        assert (d.key, d.text, d.key_code) == ("A", "A", 65)

    def test_shift_digit(self):
        d = key_description_for("Digit1", MODIFIER_SHIFT)
        assert (d.key, d.text, d.code) == ("!", "!", "Digit1")

    def test_shift_numpad_uses_shift_key_code(self):
        d = key_description_for("Numpad5", MODIFIER_SHIFT)
        assert (d.key, d.key_code) == ("5", 101)

    @pytest.mark.parametrize("modifier", [MODIFIER_ALT, MODIFIER_CONTROL, MODIFIER_META])
    def test_non_shift_modifier_suppresses_text(self, modifier):
        d = key_description_for("a", modifier)
        assert d.key == "a"
        assert d.text == ""

    def test_shift_with_control_still_suppresses_text(self):
        d = key_description_for("KeyA", MODIFIER_SHIFT | MODIFIER_CONTROL)
        assert d.key == "A"
        assert d.text == ""


# ── Characters outside the layout ────────────────────────────────────────────


class TestUnlistedKeys:
    def test_single_character_is_typed_as_text(self):
        d = key_description_for("好")
        assert d.key == "好"
        assert d.text == "好"
        assert d.code is None
        assert d.key_code is None

    def test_single_character_with_control_has_no_text(self):
        assert key_description_for("é", MODIFIER_CONTROL).text == ""

    def test_unknown_name_raises(self):
        with pytest.raises(UnknownKeyError) as exc_info:
            key_description_for("NotAKey123")
        assert str(exc_info.value) == 'Unknown key: "NotAKey123"'
        assert exc_info.value.key == "NotAKey123"

    def test_unknown_key_is_a_key_error(self):
        with pytest.raises(KeyError):
            key_description_for("NotAKey123")

    def test_control_character_is_not_a_character_key(self):
        with pytest.raises(UnknownKeyError):
            key_description_for("\x07")
