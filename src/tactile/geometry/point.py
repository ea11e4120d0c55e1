"""
Geometry primitives - points, quads and axis-aligned boxes.

All coordinates are CSS pixels relative to the top-left of the layout viewport.
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from tactile.exceptions import DivisionByZeroError, MalformedBoxModelError


@dataclass(frozen=True, eq=False)
class Point:
    """
    Immutable (x, y) coordinate supporting + and / operators.

    Compares equal to another Point or to any mapping with the same
    ``x`` and ``y`` values.
    """

    x: float
    y: float

    @classmethod
    def from_mapping(cls, value: Mapping[str, Any]) -> "Point":
        return cls(x=value["x"], y=value["y"])

    def __add__(self, other: Any) -> "Point":
        if isinstance(other, Mapping):
            other = Point.from_mapping(other)
        if not isinstance(other, Point):
            return NotImplemented
        return Point(x=self.x + other.x, y=self.y + other.y)

    __radd__ = __add__

    def __truediv__(self, divisor: float) -> "Point":
        if divisor == 0:
            raise DivisionByZeroError(f"Cannot divide {self!r} by zero")
        return Point(x=self.x / divisor, y=self.y / divisor)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Point):
            return self.x == other.x and self.y == other.y
        if isinstance(other, Mapping):
            return other.get("x") == self.x and other.get("y") == self.y
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.x, self.y))

    def is_close(self, other: "Point", tolerance: float = 1e-6) -> bool:
        """Check equality within an absolute tolerance on each axis."""
        return math.isclose(self.x, other.x, abs_tol=tolerance) and math.isclose(
            self.y, other.y, abs_tol=tolerance
        )

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


# A quad is exactly four points, clockwise from the top-left corner.
Quad = tuple[Point, Point, Point, Point]


def quad_from_protocol(values: Sequence[float]) -> Quad:
    """
    Group a flat CDP quad [x1, y1, ..., x4, y4] into four points.

    Raises:
        MalformedBoxModelError: If the payload is not exactly 8 numbers.
    """
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise MalformedBoxModelError(f"Quad must be a sequence of 8 numbers, got {values!r}")
    if len(values) != 8:
        raise MalformedBoxModelError(f"Quad must have 8 numbers, got {len(values)}")
    for value in values:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise MalformedBoxModelError(f"Quad coordinate is not a number: {value!r}")

    points = [Point(x=values[i], y=values[i + 1]) for i in range(0, 8, 2)]
    return (points[0], points[1], points[2], points[3])


def quad_centroid(quad: Quad) -> Point:
    """Middle point of a quad: the sum of its corners divided by four."""
    total = quad[0]
    for point in quad[1:]:
        total = total + point
    return total / 4


def quad_area(quad: Quad) -> float:
    """Area of a (possibly skewed) quad using the shoelace formula."""
    area = 0.0
    for i, p1 in enumerate(quad):
        p2 = quad[(i + 1) % 4]
        area += (p1.x * p2.y - p2.x * p1.y) / 2
    return abs(area)


def quads_close(first: Quad, second: Quad, tolerance: float = 1e-6) -> bool:
    """Check that two quads match corner by corner within tolerance."""
    return all(a.is_close(b, tolerance) for a, b in zip(first, second, strict=True))


def offset_quad(quad: Quad, offset: Point) -> Quad:
    """Translate every corner of a quad by an offset."""
    return (quad[0] + offset, quad[1] + offset, quad[2] + offset, quad[3] + offset)


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned element bounding box."""

    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"BoundingBox size must be >= 0, got {self.width}x{self.height}")

    @classmethod
    def from_quad(cls, quad: Quad) -> "BoundingBox":
        """Minimal box enclosing all four corners of a quad."""
        xs = [p.x for p in quad]
        ys = [p.y for p in quad]
        x, y = min(xs), min(ys)
        return cls(x=x, y=y, width=max(xs) - x, height=max(ys) - y)

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def area(self) -> float:
        return self.width * self.height

    def contains(self, point: Point) -> bool:
        """Check whether a point lies inside the box, edges included."""
        return (
            self.x <= point.x <= self.x + self.width
            and self.y <= point.y <= self.y + self.height
        )


@dataclass(frozen=True)
class Viewport:
    """Size of the CSS layout viewport."""

    width: float
    height: float

    def as_bounding_box(self) -> BoundingBox:
        return BoundingBox(x=0, y=0, width=self.width, height=self.height)

    def clamp(self, point: Point) -> Point:
        """Move a point onto the nearest position inside the viewport."""
        return Point(
            x=min(max(point.x, 0), self.width),
            y=min(max(point.y, 0), self.height),
        )
