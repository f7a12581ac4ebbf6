"""Collision-free label placement inside region polygons.

Each label walks a fixed degradation ladder of tiers. A tier lists font
sizes (largest first), a search strategy and a containment strictness:

* the radial phase tries offsets on rings around the anchor, nearest first,
  and takes the first acceptable box;
* the grid phase scans the region's bounding box and takes the acceptable
  cell closest to the anchor.

A candidate box is acceptable when it stays inside the canvas padding, its
sample points fall inside the region polygons and it overlaps no label that
was placed earlier in the pass.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from .config import CanvasConfig
from .geometry import (
    Bounds,
    LabelBox,
    Point,
    Polygon,
    estimate_label_box,
    overlaps_any,
    point_in_polygon_set,
)
from .models import (
    DEFAULT_LABEL_TIERS,
    Containment,
    PlacementTier,
    RadialPattern,
    SearchStrategy,
)

_LOGGER = logging.getLogger("plzmap.placement")

PHASE_RADIAL = "radial"
PHASE_GRID = "grid"

_STRICT_SAMPLE_INSET = 1.0


@dataclass(frozen=True, slots=True)
class RegionShape:
    """Projected polygons of one region plus their canvas bounds."""

    polygons: Sequence[Polygon]
    bounds: Bounds


@dataclass(frozen=True, slots=True)
class Placement:
    x: float
    y: float
    font_size: float
    box: LabelBox
    tier_index: int
    phase: str


def build_candidate_offsets(pattern: RadialPattern | None = None) -> tuple[Point, ...]:
    """`(0, 0)` followed by rings of increasing radius around the anchor."""
    pattern = pattern or RadialPattern()
    offsets: list[Point] = [(0.0, 0.0)]
    ring_index = 1
    while pattern.radius_step * ring_index <= pattern.max_radius:
        radius = pattern.radius_step * ring_index
        step_index = 0
        while pattern.angle_step_deg * step_index < 360.0:
            angle = math.radians(pattern.angle_step_deg * step_index)
            offsets.append((math.cos(angle) * radius, math.sin(angle) * radius))
            step_index += 1
        ring_index += 1
    return tuple(offsets)


def box_sample_points(box: LabelBox, containment: Containment) -> tuple[Point, ...]:
    center_x, center_y = box.center
    if containment is Containment.RELAXED:
        return ((center_x, center_y),)
    return (
        (center_x, center_y),
        (box.left + _STRICT_SAMPLE_INSET, center_y),
        (box.right - _STRICT_SAMPLE_INSET, center_y),
        (center_x, box.top + _STRICT_SAMPLE_INSET),
        (center_x, box.bottom - _STRICT_SAMPLE_INSET),
    )


def box_inside_region(
    box: LabelBox,
    polygons: Sequence[Polygon],
    containment: Containment,
) -> bool:
    return all(
        point_in_polygon_set(point, polygons)
        for point in box_sample_points(box, containment)
    )


def _grid_axis(start: float, stop: float, step: float) -> list[float]:
    values: list[float] = []
    idx = 0
    while True:
        value = start + idx * step
        if value > stop:
            return values
        values.append(value)
        idx += 1


class LabelPlacer:
    """Search one label position per call against a shared list of placed boxes."""

    def __init__(
        self,
        canvas: CanvasConfig | None = None,
        *,
        tiers: Sequence[PlacementTier] = DEFAULT_LABEL_TIERS,
        pattern: RadialPattern | None = None,
    ) -> None:
        if not tiers:
            raise ValueError("LabelPlacer needs at least one placement tier")
        self.canvas = canvas or CanvasConfig.default()
        self.tiers = tuple(tiers)
        self.offsets = build_candidate_offsets(pattern)

    def place(
        self,
        anchor: Point,
        text: str,
        shape: RegionShape,
        placed_boxes: Sequence[LabelBox],
    ) -> Placement | None:
        for tier_index, tier in enumerate(self.tiers):
            for font_size in tier.font_sizes:
                if tier.strategy is SearchStrategy.RADIAL_THEN_GRID:
                    found = self._radial_search(
                        anchor, text, shape, placed_boxes, font_size, tier, tier_index
                    )
                    if found is not None:
                        return found
                found = self._grid_search(
                    anchor, text, shape, placed_boxes, font_size, tier, tier_index
                )
                if found is not None:
                    return found
        _LOGGER.debug("No label position found for %s", text)
        return None

    def fits_canvas(self, box: LabelBox) -> bool:
        pad = self.canvas.padding
        return box.inside(
            left=pad,
            top=pad,
            right=self.canvas.width - pad,
            bottom=self.canvas.height - pad,
        )

    def _accepts(
        self,
        box: LabelBox,
        shape: RegionShape,
        placed_boxes: Sequence[LabelBox],
        containment: Containment,
    ) -> bool:
        if not self.fits_canvas(box):
            return False
        if not box_inside_region(box, shape.polygons, containment):
            return False
        return not overlaps_any(box, placed_boxes)

    def _radial_search(
        self,
        anchor: Point,
        text: str,
        shape: RegionShape,
        placed_boxes: Sequence[LabelBox],
        font_size: float,
        tier: PlacementTier,
        tier_index: int,
    ) -> Placement | None:
        base_x, base_y = anchor
        for dx, dy in self.offsets:
            x = base_x + dx
            y = base_y + dy
            box = estimate_label_box(x, y, text, font_size)
            if self._accepts(box, shape, placed_boxes, tier.containment):
                return Placement(
                    x=x,
                    y=y,
                    font_size=font_size,
                    box=box,
                    tier_index=tier_index,
                    phase=PHASE_RADIAL,
                )
        return None

    def _grid_search(
        self,
        anchor: Point,
        text: str,
        shape: RegionShape,
        placed_boxes: Sequence[LabelBox],
        font_size: float,
        tier: PlacementTier,
        tier_index: int,
    ) -> Placement | None:
        pad = self.canvas.padding
        min_x = max(pad, math.floor(shape.bounds.min_x))
        max_x = min(self.canvas.width - pad, math.ceil(shape.bounds.max_x))
        min_y = max(pad, math.floor(shape.bounds.min_y))
        max_y = min(self.canvas.height - pad, math.ceil(shape.bounds.max_y))
        xs = _grid_axis(min_x, max_x, tier.grid_step)

        best: Placement | None = None
        best_distance = math.inf
        for y in _grid_axis(min_y, max_y, tier.grid_step):
            for x in xs:
                box = estimate_label_box(x, y, text, font_size)
                if not self._accepts(box, shape, placed_boxes, tier.containment):
                    continue
                dx = x - anchor[0]
                dy = y - anchor[1]
                distance = dx * dx + dy * dy
                if distance < best_distance:
                    best_distance = distance
                    best = Placement(
                        x=x,
                        y=y,
                        font_size=font_size,
                        box=box,
                        tier_index=tier_index,
                        phase=PHASE_GRID,
                    )
        return best
