"""
Interaction point - where a synthesized pointer event lands on an element.
"""

import logging

from tactile.config import DEFAULT_MIN_CLICKABLE_AREA
from tactile.exceptions import PointOutsideViewportError
from tactile.geometry.box_model import BoxModel
from tactile.geometry.offset import Offset
from tactile.geometry.point import BoundingBox, Point, Viewport, quad_area, quad_centroid

logger = logging.getLogger(__name__)


def compute_interaction_point(
    box_model: BoxModel,
    viewport: Viewport,
    offset: Offset | None = None,
    min_clickable_area: float = DEFAULT_MIN_CLICKABLE_AREA,
) -> Point:
    """
    Pick the point to click for a stable box model.

    Without an offset this is the centroid of the content quad. With an offset
    the point is the quad's top-left (min x, min y) shifted by the offset.
    Content quads too small to click into fall back to the border quad.

    Args:
        box_model: A box model judged stable.
        viewport: Current layout viewport size.
        offset: Optional offset relative to the element's top-left corner.
        min_clickable_area: Content quads at or below this area use the border quad.

    Returns:
        Point inside the viewport.

    Raises:
        PointOutsideViewportError: If clamping to the viewport would move the
            point off the element.
    """
    quad = box_model.content
    if quad_area(quad) <= min_clickable_area:
        logger.debug("Content quad too small, using border quad")
        quad = box_model.border

    if offset is not None:
        point = Point(
            x=min(p.x for p in quad) + offset.x,
            y=min(p.y for p in quad) + offset.y,
        )
    else:
        point = quad_centroid(quad)

    clamped = viewport.clamp(point)
    if clamped != point:
        if not BoundingBox.from_quad(quad).contains(clamped):
            raise PointOutsideViewportError(point, viewport)
        logger.debug(f"Clamped interaction point {point} to {clamped}")

    return clamped
