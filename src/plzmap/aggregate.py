"""Merge municipality features into postal-code prefix regions."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .config import AggregationConfig
from .geometry import Polygon
from .models import Region

_LOGGER = logging.getLogger("plzmap.aggregate")

# Mercator diverges at the poles.
_LAT_LIMIT = 90.0


@dataclass(slots=True)
class _RegionBuilder:
    code: str
    polygons: list[Polygon] = field(default_factory=list)
    center_lons: list[float] = field(default_factory=list)
    center_lats: list[float] = field(default_factory=list)

    def freeze(self) -> Region:
        # fsum keeps the centroid independent of feature order.
        return Region(
            code=self.code,
            polygons=tuple(self.polygons),
            lon_sum=math.fsum(self.center_lons),
            lat_sum=math.fsum(self.center_lats),
            center_count=len(self.center_lons),
        )


@dataclass(frozen=True, slots=True)
class AggregationResult:
    regions: tuple[Region, ...]
    features_total: int
    skipped_identifier: int
    skipped_geometry: int

    @property
    def skipped_total(self) -> int:
        return self.skipped_identifier + self.skipped_geometry

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(region.code for region in self.regions)


def parse_coord(value: Any) -> float | None:
    """Parse a centroid hint; accepts numbers and `.` or `,` decimal strings."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", ".", 1))
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def is_projectable_lat(lat: float) -> bool:
    return -_LAT_LIMIT < lat < _LAT_LIMIT


def parse_group_code(identifier: Any, *, digits: int = 5, code_length: int = 2) -> str | None:
    if identifier is None or isinstance(identifier, bool):
        return None
    value = str(identifier).strip()
    if not re.fullmatch(rf"[0-9]{{{digits}}}", value):
        return None
    return value[:code_length]


def _coerce_ring(raw: Any) -> list[tuple[float, float]]:
    if not isinstance(raw, list):
        raise ValueError("ring must be a list")
    ring: list[tuple[float, float]] = []
    for point in raw:
        if not isinstance(point, (list, tuple)) or len(point) < 2:
            raise ValueError("ring point must be a [lon, lat] pair")
        lon, lat = point[0], point[1]
        if isinstance(lon, str) or isinstance(lat, str):
            raise ValueError("ring point must be numeric")
        lon_value = parse_coord(lon)
        lat_value = parse_coord(lat)
        if lon_value is None or lat_value is None:
            raise ValueError("ring point must be finite")
        if not is_projectable_lat(lat_value):
            raise ValueError("ring point latitude must lie strictly between -90 and 90")
        ring.append((lon_value, lat_value))
    return ring


def _coerce_polygon(raw: Any) -> list[list[tuple[float, float]]]:
    if not isinstance(raw, list):
        raise ValueError("polygon must be a list of rings")
    return [_coerce_ring(ring) for ring in raw]


def feature_polygons(geometry: Any) -> list[Polygon] | None:
    """Decompose a GeoJSON Polygon/MultiPolygon; None for anything else."""
    if not isinstance(geometry, Mapping):
        return None
    geom_type = geometry.get("type")
    coordinates = geometry.get("coordinates")
    try:
        if geom_type == "Polygon":
            return [_coerce_polygon(coordinates)]
        if geom_type == "MultiPolygon":
            if not isinstance(coordinates, list):
                return None
            return [_coerce_polygon(polygon) for polygon in coordinates]
    except ValueError:
        return None
    return None


def resolve_property(properties: Any, dotted_path: str) -> Any:
    current = properties
    for key in dotted_path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def aggregate_regions(
    features: Iterable[Any],
    cfg: AggregationConfig | None = None,
) -> AggregationResult:
    """Group features by identifier prefix and merge their polygons.

    Features without a conforming identifier or without polygon geometry are
    counted and skipped, as are rings reaching a pole. Centroid hints
    contribute only when both coordinates parse and the latitude lies
    strictly between the poles. Regions come back sorted by code.
    """
    cfg = cfg or AggregationConfig.default()
    groups: dict[str, _RegionBuilder] = {}
    total = 0
    skipped_identifier = 0
    skipped_geometry = 0

    for feature in features:
        total += 1
        properties = feature.get("properties") if isinstance(feature, Mapping) else None
        code = parse_group_code(
            resolve_property(properties, cfg.identifier_property),
            digits=cfg.identifier_digits,
            code_length=cfg.code_length,
        )
        if code is None:
            skipped_identifier += 1
            continue

        polygons = feature_polygons(feature.get("geometry"))
        if polygons is None:
            skipped_geometry += 1
            _LOGGER.debug("Skipping feature in %s without polygon geometry", code)
            continue

        group = groups.get(code)
        if group is None:
            group = _RegionBuilder(code=code)
            groups[code] = group
        group.polygons.extend(polygons)

        lon = parse_coord(resolve_property(properties, cfg.center_lon_property))
        lat = parse_coord(resolve_property(properties, cfg.center_lat_property))
        if lon is not None and lat is not None and is_projectable_lat(lat):
            group.center_lons.append(lon)
            group.center_lats.append(lat)

    regions = tuple(groups[code].freeze() for code in sorted(groups))
    if skipped_identifier or skipped_geometry:
        _LOGGER.info(
            "Aggregation skipped %d of %d features (identifier=%d, geometry=%d)",
            skipped_identifier + skipped_geometry,
            total,
            skipped_identifier,
            skipped_geometry,
        )
    return AggregationResult(
        regions=regions,
        features_total=total,
        skipped_identifier=skipped_identifier,
        skipped_geometry=skipped_geometry,
    )
