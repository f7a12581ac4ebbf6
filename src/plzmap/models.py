"""Domain models shared across pipeline modules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from .geometry import Point, Polygon


def _require_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Expected number for '{field_name}'")
    return float(value)


def _require_positive(value: Any, field_name: str) -> float:
    number = _require_number(value, field_name)
    if number <= 0:
        raise ValueError(f"'{field_name}' must be > 0")
    return number


class SearchStrategy(str, Enum):
    RADIAL_THEN_GRID = "radial_then_grid"
    GRID = "grid"


class Containment(str, Enum):
    STRICT = "strict"
    RELAXED = "relaxed"


@dataclass(frozen=True, slots=True)
class PlacementTier:
    """One rung of the label degradation ladder."""

    font_sizes: tuple[float, ...]
    strategy: SearchStrategy
    containment: Containment
    grid_step: float

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], field_name: str = "tier") -> PlacementTier:
        sizes_raw = data.get("font_sizes")
        if not isinstance(sizes_raw, list) or not sizes_raw:
            raise ValueError(f"Expected non-empty list for '{field_name}.font_sizes'")
        font_sizes = tuple(
            _require_positive(item, f"{field_name}.font_sizes[{idx}]")
            for idx, item in enumerate(sizes_raw)
        )
        try:
            strategy = SearchStrategy(str(data.get("strategy", "")).strip().casefold())
        except ValueError as exc:
            allowed = ", ".join(item.value for item in SearchStrategy)
            raise ValueError(f"'{field_name}.strategy' must be one of: {allowed}") from exc
        try:
            containment = Containment(str(data.get("containment", "")).strip().casefold())
        except ValueError as exc:
            allowed = ", ".join(item.value for item in Containment)
            raise ValueError(f"'{field_name}.containment' must be one of: {allowed}") from exc
        return cls(
            font_sizes=font_sizes,
            strategy=strategy,
            containment=containment,
            grid_step=_require_positive(data.get("grid_step"), f"{field_name}.grid_step"),
        )


DEFAULT_LABEL_TIERS: tuple[PlacementTier, ...] = (
    PlacementTier(
        font_sizes=(8.6, 8.0, 7.4, 6.8),
        strategy=SearchStrategy.RADIAL_THEN_GRID,
        containment=Containment.STRICT,
        grid_step=5.0,
    ),
    PlacementTier(
        font_sizes=(7.0, 6.6),
        strategy=SearchStrategy.RADIAL_THEN_GRID,
        containment=Containment.RELAXED,
        grid_step=5.0,
    ),
    PlacementTier(
        font_sizes=(6.2, 5.8, 5.2),
        strategy=SearchStrategy.GRID,
        containment=Containment.RELAXED,
        grid_step=3.0,
    ),
    PlacementTier(
        font_sizes=(4.8, 4.4, 4.0),
        strategy=SearchStrategy.GRID,
        containment=Containment.RELAXED,
        grid_step=2.0,
    ),
)


@dataclass(frozen=True, slots=True)
class RadialPattern:
    """Rings of candidate offsets searched around a label anchor."""

    max_radius: float = 72.0
    radius_step: float = 5.0
    angle_step_deg: float = 24.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], field_name: str = "radial") -> RadialPattern:
        angle_step = _require_positive(data.get("angle_step_deg"), f"{field_name}.angle_step_deg")
        if angle_step > 360.0:
            raise ValueError(f"'{field_name}.angle_step_deg' must be <= 360")
        return cls(
            max_radius=_require_number(data.get("max_radius"), f"{field_name}.max_radius"),
            radius_step=_require_positive(data.get("radius_step"), f"{field_name}.radius_step"),
            angle_step_deg=angle_step,
        )


@dataclass(frozen=True, slots=True)
class Region:
    """Merged postal-code region; immutable once aggregation finishes."""

    code: str
    polygons: tuple[Polygon, ...]
    lon_sum: float = 0.0
    lat_sum: float = 0.0
    center_count: int = 0

    @property
    def center(self) -> Point | None:
        if self.center_count <= 0:
            return None
        return (self.lon_sum / self.center_count, self.lat_sum / self.center_count)

    @property
    def point_count(self) -> int:
        return sum(len(ring) for polygon in self.polygons for ring in polygon)
