"""
Tactile Input Module.

Provides the US key layout, keyboard, mouse and touchscreen state, and the dispatcher
that drives element interactions.
"""

from tactile.input.dispatcher import InputDispatcher, Interaction, InteractionState
from tactile.input.key_definitions import (
    KEY_DEFINITIONS,
    MODIFIER_ALT,
    MODIFIER_CONTROL,
    MODIFIER_META,
    MODIFIER_SHIFT,
    KeyDefinition,
    KeyDescription,
    key_description_for,
)
from tactile.input.keyboard import Keyboard
from tactile.input.mouse import Mouse
from tactile.input.touchscreen import TouchHandle, TouchPoint, TouchScreen

__all__ = [
    "InputDispatcher",
    "Interaction",
    "InteractionState",
    "KEY_DEFINITIONS",
    "MODIFIER_ALT",
    "MODIFIER_CONTROL",
    "MODIFIER_META",
    "MODIFIER_SHIFT",
    "KeyDefinition",
    "KeyDescription",
    "Keyboard",
    "Mouse",
    "TouchHandle",
    "TouchPoint",
    "TouchScreen",
    "key_description_for",
]
