"""Planar geometry primitives for region containment and label boxes."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

Point = tuple[float, float]
Ring = Sequence[Point]
Polygon = Sequence[Ring]

_ON_SEGMENT_TOLERANCE = 0.001


class DegenerateGeometryError(ValueError):
    """Geometry that cannot be projected into a finite canvas."""


@dataclass(frozen=True, slots=True)
class _LabelBoxMetrics:
    char_width_ratio: float
    min_width: float
    width_padding: float
    height_padding: float
    baseline_drop: float


_LABEL_BOX_METRICS = _LabelBoxMetrics(
    char_width_ratio=0.72,
    min_width=14.0,
    width_padding=6.0,
    height_padding=3.0,
    baseline_drop=1.0,
)


@dataclass(frozen=True, slots=True)
class Bounds:
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Point:
        return ((self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0)

    @property
    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.min_x, self.max_x, self.min_y, self.max_y))


@dataclass(frozen=True, slots=True)
class LabelBox:
    """Axis-aligned label rectangle in canvas coordinates (y grows downward)."""

    left: float
    right: float
    top: float
    bottom: float

    @property
    def center(self) -> Point:
        return ((self.left + self.right) / 2.0, (self.top + self.bottom) / 2.0)

    def overlaps(self, other: LabelBox) -> bool:
        # Shared edges are not an overlap.
        return (
            self.left < other.right
            and self.right > other.left
            and self.top < other.bottom
            and self.bottom > other.top
        )

    def inside(self, *, left: float, top: float, right: float, bottom: float) -> bool:
        return (
            self.left >= left
            and self.right <= right
            and self.top >= top
            and self.bottom <= bottom
        )


def point_on_segment(p: Point, a: Point, b: Point) -> bool:
    """True if `p` lies on segment `a`-`b` within a small absolute tolerance."""
    px, py = p
    ax, ay = a
    bx, by = b
    cross = (px - ax) * (by - ay) - (py - ay) * (bx - ax)
    if abs(cross) > _ON_SEGMENT_TOLERANCE:
        return False
    dot = (px - ax) * (px - bx) + (py - ay) * (py - by)
    return dot <= 0


def point_in_ring(p: Point, ring: Ring) -> bool:
    """Even-odd ray casting; points on an edge count as inside."""
    x, y = p
    inside = False
    n = len(ring)
    j = n - 1
    for i in range(n):
        xi, yi = ring[i]
        xj, yj = ring[j]
        if point_on_segment(p, (xi, yi), (xj, yj)):
            return True
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def point_in_polygon(p: Point, polygon: Polygon) -> bool:
    if not polygon or not point_in_ring(p, polygon[0]):
        return False
    for hole in polygon[1:]:
        if point_in_ring(p, hole):
            return False
    return True


def point_in_polygon_set(p: Point, polygons: Iterable[Polygon]) -> bool:
    return any(point_in_polygon(p, polygon) for polygon in polygons)


def bounds_of_polygons(polygons: Iterable[Polygon]) -> Bounds | None:
    """Bounds over every ring point, or None when there are no points."""
    min_x = math.inf
    max_x = -math.inf
    min_y = math.inf
    max_y = -math.inf
    for polygon in polygons:
        for ring in polygon:
            for x, y in ring:
                if x < min_x:
                    min_x = x
                if x > max_x:
                    max_x = x
                if y < min_y:
                    min_y = y
                if y > max_y:
                    max_y = y
    if min_x > max_x:
        return None
    return Bounds(min_x=min_x, max_x=max_x, min_y=min_y, max_y=max_y)


def estimate_label_box(x: float, y: float, text: str, font_size: float) -> LabelBox:
    """Approximate the rendered extent of `text` anchored at its baseline point."""
    m = _LABEL_BOX_METRICS
    width = max(m.min_width, len(text) * (font_size * m.char_width_ratio) + m.width_padding)
    height = font_size + m.height_padding
    return LabelBox(
        left=x - width / 2.0,
        right=x + width / 2.0,
        top=y - height + m.baseline_drop,
        bottom=y + m.baseline_drop,
    )


def overlaps_any(box: LabelBox, placed: Iterable[LabelBox]) -> bool:
    return any(box.overlaps(other) for other in placed)
