"""
Tactile Geometry Module.

Provides points, quads, box models and interaction point calculation.
"""

from tactile.geometry.box_model import BoxModel, BoxModelResolver
from tactile.geometry.interaction_point import compute_interaction_point
from tactile.geometry.offset import Offset
from tactile.geometry.point import (
    BoundingBox,
    Point,
    Quad,
    Viewport,
    quad_area,
    quad_centroid,
    quad_from_protocol,
    quads_close,
)

__all__ = [
    "BoundingBox",
    "BoxModel",
    "BoxModelResolver",
    "Offset",
    "Point",
    "Quad",
    "Viewport",
    "compute_interaction_point",
    "quad_area",
    "quad_centroid",
    "quad_from_protocol",
    "quads_close",
]
