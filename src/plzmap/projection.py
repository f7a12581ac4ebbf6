"""Mercator-style projection fitted into a fixed canvas."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from .config import CanvasConfig
from .geometry import Bounds, DegenerateGeometryError, Point, Polygon, Ring, bounds_of_polygons
from .models import Region

# Spans below this are clamped so a single point or a straight line still
# yields a finite scale.
MIN_SPAN = 1e-9


def project_geo_point(lon: float, lat: float) -> Point:
    """Web-Mercator style transform in radians; undefined at the poles."""
    lon_rad = math.radians(lon)
    lat_rad = math.radians(lat)
    return (lon_rad, math.log(math.tan(math.pi / 4 + lat_rad / 2)))


def compute_bounds(regions: Iterable[Region]) -> Bounds:
    """Projected bounds over every ring point of every region."""
    try:
        bounds = bounds_of_polygons(
            [[project_geo_point(lon, lat) for lon, lat in ring] for ring in polygon]
            for region in regions
            for polygon in region.polygons
        )
    except ValueError as exc:
        raise DegenerateGeometryError(f"Point outside the projectable domain: {exc}") from exc
    if bounds is None:
        raise DegenerateGeometryError("No ring points to project")
    if not bounds.is_finite:
        raise DegenerateGeometryError(
            "Projected bounds are not finite; polar latitudes are not supported"
        )
    return bounds


@dataclass(frozen=True, slots=True)
class FitProjector:
    """Uniform scale and centering offsets mapping projected space to a canvas."""

    scale: float
    offset_x: float
    offset_y: float
    bounds: Bounds

    @classmethod
    def fit(cls, bounds: Bounds, canvas: CanvasConfig) -> FitProjector:
        x_span = bounds.width
        y_span = bounds.height
        scale = min(
            canvas.usable_width / max(x_span, MIN_SPAN),
            canvas.usable_height / max(y_span, MIN_SPAN),
        )
        draw_width = x_span * scale
        draw_height = y_span * scale
        return cls(
            scale=scale,
            offset_x=(canvas.width - draw_width) / 2,
            offset_y=(canvas.height - draw_height) / 2,
            bounds=bounds,
        )

    def project(self, lon: float, lat: float) -> Point:
        x, y = project_geo_point(lon, lat)
        return (
            self.offset_x + (x - self.bounds.min_x) * self.scale,
            self.offset_y + (self.bounds.max_y - y) * self.scale,
        )

    def project_ring(self, ring: Ring) -> list[Point]:
        return [self.project(lon, lat) for lon, lat in ring]

    def project_polygon(self, polygon: Polygon) -> list[list[Point]]:
        return [self.project_ring(ring) for ring in polygon]
