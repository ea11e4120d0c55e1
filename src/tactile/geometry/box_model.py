"""
BoxModel - structured view of the CDP ``DOM.getBoxModel`` payload.

The resolver turns a remote handle into a BoxModel snapshot. Snapshots are
not kept in sync with the browser; sample again when layout may have changed.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tactile.exceptions import MalformedBoxModelError
from tactile.geometry.point import BoundingBox, Point, Quad, offset_quad, quad_from_protocol

if TYPE_CHECKING:
    from tactile.browser.handle import RemoteHandle
    from tactile.browser.protocol import RemoteChannel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoxModel:
    """Content, padding, border and margin quads of one element."""

    content: Quad
    padding: Quad
    border: Quad
    margin: Quad
    width: float
    height: float

    @classmethod
    def from_protocol(cls, model: Mapping[str, Any], offset: Point | None = None) -> "BoxModel":
        """
        Parse the ``model`` object of a ``DOM.getBoxModel`` response.

        Args:
            model: Raw box model with flat 8-number quads.
            offset: Optional translation applied to every corner (frame offsets).

        Raises:
            MalformedBoxModelError: If any quad or dimension is missing or malformed.
        """
        if not isinstance(model, Mapping):
            raise MalformedBoxModelError(f"Box model must be an object, got {model!r}")

        try:
            content = quad_from_protocol(model["content"])
            padding = quad_from_protocol(model["padding"])
            border = quad_from_protocol(model["border"])
            margin = quad_from_protocol(model["margin"])
            width = model["width"]
            height = model["height"]
        except KeyError as e:
            raise MalformedBoxModelError(f"Box model is missing {e.args[0]!r}") from e

        if offset is not None:
            content = offset_quad(content, offset)
            padding = offset_quad(padding, offset)
            border = offset_quad(border, offset)
            margin = offset_quad(margin, offset)

        return cls(
            content=content,
            padding=padding,
            border=border,
            margin=margin,
            width=width,
            height=height,
        )

    @property
    def bounding_box(self) -> BoundingBox:
        """Axis-aligned box around the border quad."""
        return BoundingBox.from_quad(self.border)


class BoxModelResolver:
    """
    Resolves the box model of a remote DOM node.

    Never retries: a missing box model is reported as None and retry policy
    belongs to the caller. Quads are translated by the channel's frame offset,
    so nodes inside out-of-process iframes come back in top-level viewport
    coordinates.
    """

    def __init__(self, channel: "RemoteChannel"):
        self._channel = channel

    async def resolve(self, handle: "RemoteHandle") -> BoxModel | None:
        """
        Query the current box model of the node behind ``handle``.

        Returns:
            BoxModel, or None when the node is not rendered (``display: none``,
            detached).

        Raises:
            HandleDisposedError: If the handle is disposed before or during the query.
            MalformedBoxModelError: If the payload breaks the quad contract.
        """
        handle.ensure_alive()
        model = await self._channel.get_box_model(handle.reference)
        offset = await self._channel.get_frame_offset() if model is not None else None
        # A dispose that raced the query wins over the stale result
        handle.ensure_alive()

        if model is None:
            logger.debug(f"No box model for {handle!r}")
            return None

        return BoxModel.from_protocol(model, offset)
