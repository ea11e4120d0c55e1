"""
Tactile Exceptions.

Centralized exception hierarchy for geometry resolution and input synthesis.
"""

from typing import Any


class TactileError(Exception):
    """Base exception for all Tactile errors."""
    pass


class ConfigurationError(TactileError):
    """Raised when configuration is invalid or missing."""
    pass


class BrowserError(TactileError):
    """Raised when the browser session is unusable (not connected, no target)."""
    pass


class ProtocolError(TactileError):
    """Raised when a CDP command fails at the transport or protocol level."""

    def __init__(self, method: str, message: str):
        super().__init__(f"Protocol error ({method}): {message}")
        self.method = method


class InputError(TactileError):
    """Raised when an input request is invalid (bad click count, unknown button)."""
    pass


class TouchError(InputError):
    """Raised when a touch is moved or ended before one was started."""
    pass


# ===== Handle errors =====


class HandleDisposedError(TactileError):
    """Raised when an operation targets a disposed remote handle."""

    def __init__(self, handle: Any = None):
        super().__init__(f"Handle is disposed: {handle!r}")
        self.handle = handle


# ===== Geometry errors =====


class MalformedBoxModelError(TactileError):
    """Raised when the browser returns a box model that violates the quad contract."""
    pass


class GeometryError(TactileError):
    """Base for recoverable geometry/visibility failures tied to one element."""

    def __init__(self, message: str, handle: Any = None, elapsed: float = 0.0):
        super().__init__(f"{message} (handle={handle!r}, elapsed={elapsed:.3f}s)")
        self.handle = handle
        self.elapsed = elapsed


class ElementNotRenderedError(GeometryError):
    """Raised when the element is not part of the render tree."""

    def __init__(self, handle: Any = None, elapsed: float = 0.0):
        super().__init__("Element is not rendered", handle, elapsed)


class InteractionTimeoutError(TactileError, TimeoutError):
    """Raised when an interaction exceeds its overall time budget."""

    def __init__(self, message: str, handle: Any = None, elapsed: float = 0.0):
        super().__init__(f"{message} (handle={handle!r}, elapsed={elapsed:.3f}s)")
        self.handle = handle
        self.elapsed = elapsed


class WaitForStabilityTimeoutError(InteractionTimeoutError):
    """Raised when an element does not become stable and visible in time."""

    def __init__(self, handle: Any = None, elapsed: float = 0.0, last_sample: Any = None):
        super().__init__("Element did not become stable and visible", handle, elapsed)
        self.last_sample = last_sample


class ElementHandleCancelledError(TactileError):
    """Raised when the owning page or frame context is torn down mid-operation."""

    def __init__(self, handle: Any = None, reason: str | None = None):
        message = f"Operation on {handle!r} was cancelled"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.handle = handle
        self.reason = reason


class PointOutsideViewportError(TactileError):
    """Raised when the interaction point cannot be placed on the element inside the viewport."""

    def __init__(self, point: Any, viewport: Any):
        super().__init__(f"Point {point!r} is outside the viewport {viewport!r}")
        self.point = point
        self.viewport = viewport


class DivisionByZeroError(TactileError, ZeroDivisionError):
    """Raised when a point is divided by zero."""
    pass


# ===== Offset errors =====


class InvalidOffsetError(TactileError, ValueError):
    """Raised when an offset source lacks an x or y coordinate."""
    pass


class UnsupportedOffsetSourceError(TactileError, TypeError):
    """Raised when an offset is built from an unsupported kind of value."""
    pass


# ===== Keyboard errors =====


class UnknownKeyError(TactileError, KeyError):
    """Raised when a key name is not in the key table and is not a single character."""

    def __init__(self, key: str):
        super().__init__(f'Unknown key: "{key}"')
        self.key = key

    def __str__(self) -> str:
        return self.args[0]
