"""Render-pass orchestration: projection, anchors, prioritized label placement."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from .config import CanvasConfig
from .geometry import Bounds, LabelBox, Point, Polygon, bounds_of_polygons, point_in_polygon_set
from .models import Region
from .placement import LabelPlacer, Placement, RegionShape
from .projection import FitProjector, compute_bounds

_LOGGER = logging.getLogger("plzmap.layout")


@dataclass(frozen=True, slots=True)
class LabelRecord:
    code: str
    x: float
    y: float
    font_size: float
    tier_index: int

    @property
    def text(self) -> str:
        return self.code

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "x": round(self.x, 2),
            "y": round(self.y, 2),
            "font_size": round(self.font_size, 1),
            "tier": self.tier_index,
        }


@dataclass(frozen=True, slots=True)
class RegionLayout:
    code: str
    polygons: tuple[Polygon, ...]
    path_data: str
    bounds: Bounds | None
    anchor: Point | None
    label: LabelRecord | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "path": self.path_data,
            "label": self.label.to_dict() if self.label is not None else None,
        }


@dataclass(frozen=True, slots=True)
class LayoutResult:
    canvas: CanvasConfig
    projector: FitProjector | None
    regions: tuple[RegionLayout, ...]
    labels: tuple[LabelRecord, ...]

    @property
    def unplaced_codes(self) -> tuple[str, ...]:
        return tuple(region.code for region in self.regions if region.label is None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "canvas": {
                "width": self.canvas.width,
                "height": self.canvas.height,
                "padding": self.canvas.padding,
            },
            "regions": [region.to_dict() for region in self.regions],
            "labels": [label.to_dict() for label in self.labels],
        }


@dataclass(frozen=True, slots=True)
class _LabelCandidate:
    code: str
    anchor: Point
    shape: RegionShape

    @property
    def priority(self) -> float:
        return self.shape.bounds.area


def ring_to_path(ring: Sequence[Point]) -> str:
    if not ring:
        return ""
    coords = [f"{x:.2f} {y:.2f}" for x, y in ring]
    return f"M {' L '.join(coords)} Z"


def polygon_to_path(polygon: Polygon) -> str:
    return " ".join(ring_to_path(ring) for ring in polygon)


def fallback_anchor(region: Region, projector: FitProjector, canvas: CanvasConfig) -> Point:
    """Projected mean of the first ring, or the canvas center without one."""
    if not region.polygons or not region.polygons[0] or not region.polygons[0][0]:
        return canvas.center
    ring = region.polygons[0][0]
    lon = sum(point[0] for point in ring) / len(ring)
    lat = sum(point[1] for point in ring) / len(ring)
    return projector.project(lon, lat)


def label_anchor(
    region: Region,
    projected: Sequence[Polygon],
    bounds: Bounds,
    projector: FitProjector,
    canvas: CanvasConfig,
) -> Point:
    center = region.center
    anchor = (
        projector.project(*center)
        if center is not None
        else fallback_anchor(region, projector, canvas)
    )
    if not point_in_polygon_set(anchor, projected):
        anchor = bounds.center
    return anchor


def build_layout(
    regions: Sequence[Region],
    canvas: CanvasConfig | None = None,
    placer: LabelPlacer | None = None,
) -> LayoutResult:
    """Lay out region paths and labels for one render pass.

    Labels are placed largest-region-first; every successful placement is
    added to the collision list seen by the regions that follow.
    """
    canvas = canvas or (placer.canvas if placer is not None else CanvasConfig.default())
    placer = placer or LabelPlacer(canvas)
    if not regions:
        return LayoutResult(canvas=canvas, projector=None, regions=(), labels=())

    projector = FitProjector.fit(compute_bounds(regions), canvas)

    projected_by_code: dict[str, tuple[Polygon, ...]] = {}
    bounds_by_code: dict[str, Bounds | None] = {}
    anchors: dict[str, Point] = {}
    candidates: list[_LabelCandidate] = []
    for region in regions:
        projected = tuple(projector.project_polygon(polygon) for polygon in region.polygons)
        region_bounds = bounds_of_polygons(projected)
        projected_by_code[region.code] = projected
        bounds_by_code[region.code] = region_bounds
        if region_bounds is None:
            _LOGGER.warning("Region %s has no drawable points; label skipped", region.code)
            continue
        anchor = label_anchor(region, projected, region_bounds, projector, canvas)
        anchors[region.code] = anchor
        candidates.append(
            _LabelCandidate(
                code=region.code,
                anchor=anchor,
                shape=RegionShape(polygons=projected, bounds=region_bounds),
            )
        )

    candidates.sort(key=lambda item: item.priority, reverse=True)
    placed_boxes: list[LabelBox] = []
    labels: list[LabelRecord] = []
    label_by_code: dict[str, LabelRecord] = {}
    for candidate in candidates:
        placement: Placement | None = placer.place(
            candidate.anchor, candidate.code, candidate.shape, placed_boxes
        )
        if placement is None:
            continue
        placed_boxes.append(placement.box)
        record = LabelRecord(
            code=candidate.code,
            x=placement.x,
            y=placement.y,
            font_size=placement.font_size,
            tier_index=placement.tier_index,
        )
        labels.append(record)
        label_by_code[candidate.code] = record

    region_layouts = tuple(
        RegionLayout(
            code=region.code,
            polygons=projected_by_code[region.code],
            path_data=" ".join(
                polygon_to_path(polygon) for polygon in projected_by_code[region.code]
            ),
            bounds=bounds_by_code[region.code],
            anchor=anchors.get(region.code),
            label=label_by_code.get(region.code),
        )
        for region in regions
    )
    _LOGGER.info(
        "Layout placed %d of %d labels (scale=%.2f)",
        len(labels),
        len(regions),
        projector.scale,
    )
    return LayoutResult(
        canvas=canvas,
        projector=projector,
        regions=region_layouts,
        labels=tuple(labels),
    )
