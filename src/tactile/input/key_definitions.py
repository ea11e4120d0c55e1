"""
Key definitions - US keyboard layout and key description lookup.

Maps logical key names ("Enter", "ArrowLeft", "a", "!") to the fields
``Input.dispatchKeyEvent`` needs: windowsVirtualKeyCode, code, key, text
and location.
"""

import string
from dataclasses import dataclass

from tactile.exceptions import UnknownKeyError

# Modifier bits as used by CDP Input events
MODIFIER_ALT = 1
MODIFIER_CONTROL = 2
MODIFIER_META = 4
MODIFIER_SHIFT = 8

MODIFIER_BITS = {
    "Alt": MODIFIER_ALT,
    "Control": MODIFIER_CONTROL,
    "Meta": MODIFIER_META,
    "Shift": MODIFIER_SHIFT,
}

# KeyboardEvent.location values
LOCATION_STANDARD = 0
LOCATION_LEFT = 1
LOCATION_RIGHT = 2
LOCATION_NUMPAD = 3
LOCATION_MOBILE = 4


@dataclass(frozen=True)
class KeyDefinition:
    """One entry of the keyboard layout table."""

    key_code: int | None = None
    shift_key_code: int | None = None
    key: str | None = None
    shift_key: str | None = None
    code: str | None = None
    text: str | None = None
    shift_text: str | None = None
    location: int | None = None


@dataclass(frozen=True)
class KeyDescription:
    """Exact payload needed to synthesize one key event."""

    key_code: int | None = None
    key: str | None = None
    text: str | None = None
    code: str | None = None
    location: int | None = None

    @property
    def is_keypad(self) -> bool:
        return self.location == LOCATION_NUMPAD


def _definition(
    key_code: int | None = None,
    key: str | None = None,
    code: str | None = None,
    **kwargs,
) -> KeyDefinition:
    return KeyDefinition(key_code=key_code, key=key, code=code, **kwargs)


KEY_DEFINITIONS: dict[str, KeyDefinition] = {
    "Power": _definition(key="Power", code="Power"),
    "Eject": _definition(key="Eject", code="Eject"),
    "Abort": _definition(3, "Cancel", "Abort"),
    "Help": _definition(6, "Help", "Help"),
    "Backspace": _definition(8, "Backspace", "Backspace"),
    "Tab": _definition(9, "Tab", "Tab"),
    "Numpad5": _definition(12, "Clear", "Numpad5", shift_key_code=101, shift_key="5", location=3),
    "NumpadEnter": _definition(13, "Enter", "NumpadEnter", text="\r", location=3),
    "Enter": _definition(13, "Enter", "Enter", text="\r"),
    "\r": _definition(13, "Enter", "Enter", text="\r"),
    "\n": _definition(13, "Enter", "Enter", text="\r"),
    "ShiftLeft": _definition(16, "Shift", "ShiftLeft", location=1),
    "ShiftRight": _definition(16, "Shift", "ShiftRight", location=2),
    "ControlLeft": _definition(17, "Control", "ControlLeft", location=1),
    "ControlRight": _definition(17, "Control", "ControlRight", location=2),
    "AltLeft": _definition(18, "Alt", "AltLeft", location=1),
    "AltRight": _definition(18, "Alt", "AltRight", location=2),
    "Pause": _definition(19, "Pause", "Pause"),
    "CapsLock": _definition(20, "CapsLock", "CapsLock"),
    "Escape": _definition(27, "Escape", "Escape"),
    "Convert": _definition(28, "Convert", "Convert"),
    "NonConvert": _definition(29, "NonConvert", "NonConvert"),
    "Space": _definition(32, " ", "Space"),
    "Numpad9": _definition(33, "PageUp", "Numpad9", shift_key_code=105, shift_key="9", location=3),
    "PageUp": _definition(33, "PageUp", "PageUp"),
    "Numpad3": _definition(34, "PageDown", "Numpad3", shift_key_code=99, shift_key="3", location=3),
    "PageDown": _definition(34, "PageDown", "PageDown"),
    "End": _definition(35, "End", "End"),
    "Numpad1": _definition(35, "End", "Numpad1", shift_key_code=97, shift_key="1", location=3),
    "Home": _definition(36, "Home", "Home"),
    "Numpad7": _definition(36, "Home", "Numpad7", shift_key_code=103, shift_key="7", location=3),
    "ArrowLeft": _definition(37, "ArrowLeft", "ArrowLeft"),
    "Numpad4": _definition(
        37, "ArrowLeft", "Numpad4", shift_key_code=100, shift_key="4", location=3
    ),
    "Numpad8": _definition(38, "ArrowUp", "Numpad8", shift_key_code=104, shift_key="8", location=3),
    "ArrowUp": _definition(38, "ArrowUp", "ArrowUp"),
    "ArrowRight": _definition(39, "ArrowRight", "ArrowRight"),
    "Numpad6": _definition(
        39, "ArrowRight", "Numpad6", shift_key_code=102, shift_key="6", location=3
    ),
    "Numpad2": _definition(
        40, "ArrowDown", "Numpad2", shift_key_code=98, shift_key="2", location=3
    ),
    "ArrowDown": _definition(40, "ArrowDown", "ArrowDown"),
    "Select": _definition(41, "Select", "Select"),
    "Open": _definition(43, "Execute", "Open"),
    "PrintScreen": _definition(44, "PrintScreen", "PrintScreen"),
    "Insert": _definition(45, "Insert", "Insert"),
    "Numpad0": _definition(45, "Insert", "Numpad0", shift_key_code=96, shift_key="0", location=3),
    "Delete": _definition(46, "Delete", "Delete"),
    "NumpadDecimal": _definition(
        46, "\u0000", "NumpadDecimal", shift_key_code=110, shift_key=".", location=3
    ),
    "MetaLeft": _definition(91, "Meta", "MetaLeft", location=1),
    "MetaRight": _definition(92, "Meta", "MetaRight", location=2),
    "ContextMenu": _definition(93, "ContextMenu", "ContextMenu"),
    "NumpadMultiply": _definition(106, "*", "NumpadMultiply", location=3),
    "NumpadAdd": _definition(107, "+", "NumpadAdd", location=3),
    "NumpadSubtract": _definition(109, "-", "NumpadSubtract", location=3),
    "NumpadDivide": _definition(111, "/", "NumpadDivide", location=3),
    "NumLock": _definition(144, "NumLock", "NumLock"),
    "ScrollLock": _definition(145, "ScrollLock", "ScrollLock"),
    "AudioVolumeMute": _definition(173, "AudioVolumeMute", "AudioVolumeMute"),
    "AudioVolumeDown": _definition(174, "AudioVolumeDown", "AudioVolumeDown"),
    "AudioVolumeUp": _definition(175, "AudioVolumeUp", "AudioVolumeUp"),
    "MediaTrackNext": _definition(176, "MediaTrackNext", "MediaTrackNext"),
    "MediaTrackPrevious": _definition(177, "MediaTrackPrevious", "MediaTrackPrevious"),
    "MediaStop": _definition(178, "MediaStop", "MediaStop"),
    "MediaPlayPause": _definition(179, "MediaPlayPause", "MediaPlayPause"),
    "Semicolon": _definition(186, ";", "Semicolon", shift_key=":"),
    "Equal": _definition(187, "=", "Equal", shift_key="+"),
    "NumpadEqual": _definition(187, "=", "NumpadEqual", location=3),
    "Comma": _definition(188, ",", "Comma", shift_key="<"),
    "Minus": _definition(189, "-", "Minus", shift_key="_"),
    "Period": _definition(190, ".", "Period", shift_key=">"),
    "Slash": _definition(191, "/", "Slash", shift_key="?"),
    "Backquote": _definition(192, "`", "Backquote", shift_key="~"),
    "BracketLeft": _definition(219, "[", "BracketLeft", shift_key="{"),
    "Backslash": _definition(220, "\\", "Backslash", shift_key="|"),
    "BracketRight": _definition(221, "]", "BracketRight", shift_key="}"),
    "Quote": _definition(222, "'", "Quote", shift_key='"'),
    "AltGraph": _definition(225, "AltGraph", "AltGraph"),
    "Props": _definition(247, "CrSel", "Props"),
    "Cancel": _definition(3, "Cancel", "Abort"),
    "Clear": _definition(12, "Clear", "Numpad5", location=3),
    "Shift": _definition(16, "Shift", "ShiftLeft", location=1),
    "Control": _definition(17, "Control", "ControlLeft", location=1),
    "Alt": _definition(18, "Alt", "AltLeft", location=1),
    "Accept": _definition(30, "Accept"),
    "ModeChange": _definition(31, "ModeChange"),
    " ": _definition(32, " ", "Space"),
    "Print": _definition(42, "Print"),
    "Execute": _definition(43, "Execute", "Open"),
    "\u0000": _definition(46, "\u0000", "NumpadDecimal", location=3),
    "Meta": _definition(91, "Meta", "MetaLeft", location=1),
    "*": _definition(106, "*", "NumpadMultiply", location=3),
    "+": _definition(107, "+", "NumpadAdd", location=3),
    "-": _definition(109, "-", "NumpadSubtract", location=3),
    "/": _definition(111, "/", "NumpadDivide", location=3),
    ";": _definition(186, ";", "Semicolon"),
    "=": _definition(187, "=", "Equal"),
    ",": _definition(188, ",", "Comma"),
    ".": _definition(190, ".", "Period"),
    "`": _definition(192, "`", "Backquote"),
    "[": _definition(219, "[", "BracketLeft"),
    "\\": _definition(220, "\\", "Backslash"),
    "]": _definition(221, "]", "BracketRight"),
    "'": _definition(222, "'", "Quote"),
    "Attn": _definition(246, "Attn"),
    "CrSel": _definition(247, "CrSel", "Props"),
    "ExSel": _definition(248, "ExSel"),
    "EraseEof": _definition(249, "EraseEof"),
    "Play": _definition(250, "Play"),
    "ZoomOut": _definition(251, "ZoomOut"),
    ")": _definition(48, ")", "Digit0"),
    "!": _definition(49, "!", "Digit1"),
    "@": _definition(50, "@", "Digit2"),
    "#": _definition(51, "#", "Digit3"),
    "$": _definition(52, "$", "Digit4"),
    "%": _definition(53, "%", "Digit5"),
    "^": _definition(54, "^", "Digit6"),
    "&": _definition(55, "&", "Digit7"),
    "(": _definition(57, "(", "Digit9"),
    ":": _definition(186, ":", "Semicolon"),
    "<": _definition(188, "<", "Comma"),
    "_": _definition(189, "_", "Minus"),
    ">": _definition(190, ">", "Period"),
    "?": _definition(191, "?", "Slash"),
    "~": _definition(192, "~", "Backquote"),
    "{": _definition(219, "{", "BracketLeft"),
    "|": _definition(220, "|", "Backslash"),
    "}": _definition(221, "}", "BracketRight"),
    '"': _definition(222, '"', "Quote"),
    "SoftLeft": _definition(key="SoftLeft", code="SoftLeft", location=4),
    "SoftRight": _definition(key="SoftRight", code="SoftRight", location=4),
    "Camera": _definition(44, "Camera", "Camera", location=4),
    "Call": _definition(key="Call", code="Call", location=4),
    "EndCall": _definition(95, "EndCall", "EndCall", location=4),
    "VolumeDown": _definition(182, "VolumeDown", "VolumeDown", location=4),
    "VolumeUp": _definition(183, "VolumeUp", "VolumeUp", location=4),
}

_DIGIT_SHIFT_KEYS = ")!@#$%^&*("

for _index, _digit in enumerate(string.digits):
    KEY_DEFINITIONS[_digit] = _definition(48 + _index, _digit, f"Digit{_digit}")
    KEY_DEFINITIONS[f"Digit{_digit}"] = _definition(
        48 + _index, _digit, f"Digit{_digit}", shift_key=_DIGIT_SHIFT_KEYS[_index]
    )

for _index, _letter in enumerate(string.ascii_lowercase):
    _code = f"Key{_letter.upper()}"
    KEY_DEFINITIONS[_code] = _definition(65 + _index, _letter, _code, shift_key=_letter.upper())
    KEY_DEFINITIONS[_letter] = _definition(65 + _index, _letter, _code)
    KEY_DEFINITIONS[_letter.upper()] = _definition(65 + _index, _letter.upper(), _code)

for _number in range(1, 25):
    KEY_DEFINITIONS[f"F{_number}"] = _definition(111 + _number, f"F{_number}", f"F{_number}")


def is_single_character(key: str) -> bool:
    """True for one printable character (any script), e.g. "a", "é", "好"."""
    return len(key) == 1 and key.isprintable()


def key_description_for(key: str, modifiers: int = 0) -> KeyDescription:
    """
    Resolve a key name into the description sent with key events.

    Lookup is exact and case-sensitive. Single printable characters missing
    from the layout are typed as text with no code or virtual key code.

    Args:
        key: Key name ("Enter", "ArrowLeft") or a single character.
        modifiers: Currently pressed modifier bits; Shift selects shifted values
            and any other modifier suppresses text.

    Raises:
        UnknownKeyError: If the name is neither in the layout nor a single character.
    """
    definition = KEY_DEFINITIONS.get(key)
    if definition is None:
        if not is_single_character(key):
            raise UnknownKeyError(key)
        text = "" if modifiers & ~MODIFIER_SHIFT else key
        return KeyDescription(key=key, text=text)

    shift = modifiers & MODIFIER_SHIFT

    description_key = definition.key
    if shift and definition.shift_key:
        description_key = definition.shift_key

    key_code = definition.key_code
    if shift and definition.shift_key_code:
        key_code = definition.shift_key_code

    text = None
    if description_key is not None and len(description_key) == 1:
        text = description_key
    if definition.text:
        text = definition.text
    if shift and definition.shift_text:
        text = definition.shift_text

    # Alt, Control or Meta held: the browser must not insert text
    if modifiers & ~MODIFIER_SHIFT:
        text = ""

    return KeyDescription(
        key_code=key_code,
        key=description_key,
        text=text,
        code=definition.code,
        location=definition.location,
    )
