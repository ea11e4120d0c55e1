"""
Offset - relative (x, y) coordinates used to bias an interaction point.

Offsets are measured from the top-left corner of the element, not its center.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from tactile.exceptions import InvalidOffsetError, UnsupportedOffsetSourceError


@dataclass(frozen=True)
class Offset:
    """A class to represent (x, y)-offset coordinates."""

    x: float
    y: float

    @classmethod
    def from_source(cls, source: Any) -> "Offset | None":
        """
        Build an offset from the values callers pass around.

        Args:
            source: None, an existing Offset, or a mapping with ``x`` and ``y``.

        Returns:
            None when no offset was given, otherwise an Offset.

        Raises:
            InvalidOffsetError: Mapping without both coordinates.
            UnsupportedOffsetSourceError: Any other kind of value.
        """
        if source is None:
            return None

        if isinstance(source, Offset):
            return source

        if isinstance(source, Mapping):
            x = source.get("x")
            y = source.get("y")
            if x is None or y is None:
                raise InvalidOffsetError("offset parameter must have x, y coordinates")
            return cls(x=x, y=y)

        raise UnsupportedOffsetSourceError(
            f"Offset must be built from an Offset or a mapping, got {type(source).__name__}"
        )
