from __future__ import annotations

import math

import pytest

from plzmap.config import CanvasConfig
from plzmap.geometry import Bounds, DegenerateGeometryError
from plzmap.models import Region
from plzmap.projection import FitProjector, compute_bounds, project_geo_point


def _square_region(code: str, lon: float, lat: float, size: float) -> Region:
    ring = [(lon, lat), (lon, lat + size), (lon + size, lat + size), (lon + size, lat)]
    return Region(code=code, polygons=([ring],))


def test_project_geo_point_origin_and_longitude_is_linear() -> None:
    assert project_geo_point(0.0, 0.0) == pytest.approx((0.0, 0.0))
    assert project_geo_point(180.0, 0.0)[0] == pytest.approx(math.pi)
    assert project_geo_point(-90.0, 0.0)[0] == pytest.approx(-math.pi / 2)


def test_project_geo_point_is_symmetric_in_latitude() -> None:
    north = project_geo_point(10.0, 45.0)[1]
    south = project_geo_point(10.0, -45.0)[1]
    assert north == pytest.approx(-south)
    assert north == pytest.approx(math.log(math.tan(math.pi / 4 + math.radians(45.0) / 2)))


def test_compute_bounds_covers_all_regions() -> None:
    regions = [_square_region("01", 6.0, 47.0, 1.0), _square_region("02", 14.0, 54.0, 1.0)]

    bounds = compute_bounds(regions)

    assert bounds.min_x == pytest.approx(math.radians(6.0))
    assert bounds.max_x == pytest.approx(math.radians(15.0))
    assert bounds.min_y == pytest.approx(project_geo_point(0.0, 47.0)[1])
    assert bounds.max_y == pytest.approx(project_geo_point(0.0, 55.0)[1])


def test_compute_bounds_without_points_raises() -> None:
    with pytest.raises(DegenerateGeometryError):
        compute_bounds([Region(code="01", polygons=())])
    with pytest.raises(DegenerateGeometryError):
        compute_bounds([])


def test_compute_bounds_rejects_south_pole() -> None:
    region = _square_region("01", 0.0, -90.0, 1.0)
    with pytest.raises(DegenerateGeometryError):
        compute_bounds([region])


def test_fit_keeps_drawing_inside_padding_and_centered() -> None:
    canvas = CanvasConfig.default()
    regions = [_square_region("01", 6.0, 47.0, 3.0), _square_region("02", 9.0, 50.0, 5.0)]
    projector = FitProjector.fit(compute_bounds(regions), canvas)

    points = [
        projector.project(lon, lat)
        for region in regions
        for polygon in region.polygons
        for ring in polygon
        for lon, lat in ring
    ]
    xs = [x for x, _ in points]
    ys = [y for _, y in points]

    eps = 1e-9
    assert min(xs) >= canvas.padding - eps
    assert max(xs) <= canvas.width - canvas.padding + eps
    assert min(ys) >= canvas.padding - eps
    assert max(ys) <= canvas.height - canvas.padding + eps
    assert (min(xs) + max(xs)) / 2 == pytest.approx(canvas.width / 2)
    assert (min(ys) + max(ys)) / 2 == pytest.approx(canvas.height / 2)
    # The limiting axis fills its usable extent exactly.
    assert max(max(xs) - min(xs), max(ys) - min(ys)) > 0
    assert math.isclose(max(xs) - min(xs), canvas.usable_width) or math.isclose(
        max(ys) - min(ys), canvas.usable_height
    )


def test_fit_uses_uniform_scale() -> None:
    canvas = CanvasConfig(width=400.0, height=400.0, padding=10.0)
    bounds = Bounds(min_x=0.0, max_x=2.0, min_y=0.0, max_y=1.0)

    projector = FitProjector.fit(bounds, canvas)

    assert projector.scale == pytest.approx(190.0)
    assert projector.offset_x == pytest.approx(10.0)
    assert projector.offset_y == pytest.approx(105.0)


def test_projection_flips_latitude_and_preserves_longitude_order() -> None:
    region = _square_region("01", 5.0, 45.0, 10.0)
    projector = FitProjector.fit(compute_bounds([region]), CanvasConfig.default())

    lats = list(range(-80, 85, 7))
    ys = [projector.project(10.0, lat)[1] for lat in lats]
    assert all(a > b for a, b in zip(ys, ys[1:]))

    lons = list(range(-170, 175, 13))
    xs = [projector.project(lon, 50.0)[0] for lon in lons]
    assert all(a < b for a, b in zip(xs, xs[1:]))


def test_single_point_geometry_maps_to_canvas_center() -> None:
    canvas = CanvasConfig.default()
    region = Region(code="01", polygons=([[(10.0, 50.0), (10.0, 50.0), (10.0, 50.0)]],))

    projector = FitProjector.fit(compute_bounds([region]), canvas)
    x, y = projector.project(10.0, 50.0)

    assert math.isfinite(projector.scale)
    assert (x, y) == pytest.approx(canvas.center)


def test_horizontal_line_geometry_is_centered_vertically() -> None:
    canvas = CanvasConfig.default()
    region = Region(code="01", polygons=([[(5.0, 50.0), (15.0, 50.0), (10.0, 50.0)]],))

    projector = FitProjector.fit(compute_bounds([region]), canvas)
    left = projector.project(5.0, 50.0)
    right = projector.project(15.0, 50.0)

    assert left[0] == pytest.approx(canvas.padding)
    assert right[0] == pytest.approx(canvas.width - canvas.padding)
    assert left[1] == pytest.approx(canvas.height / 2)
