from __future__ import annotations

import pytest

from plzmap.geometry import (
    Bounds,
    LabelBox,
    bounds_of_polygons,
    estimate_label_box,
    overlaps_any,
    point_in_polygon,
    point_in_polygon_set,
    point_in_ring,
    point_on_segment,
)

SQUARE = [(0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (10.0, 0.0)]
HOLE = [(3.0, 3.0), (3.0, 7.0), (7.0, 7.0), (7.0, 3.0)]


def test_point_on_segment_accepts_points_between_endpoints() -> None:
    assert point_on_segment((5.0, 0.0), (0.0, 0.0), (10.0, 0.0)) is True
    assert point_on_segment((10.0, 0.0), (0.0, 0.0), (10.0, 0.0)) is True
    assert point_on_segment((5.0, 0.00005), (0.0, 0.0), (10.0, 0.0)) is True


def test_point_on_segment_rejects_collinear_points_past_endpoints() -> None:
    assert point_on_segment((11.0, 0.0), (0.0, 0.0), (10.0, 0.0)) is False
    assert point_on_segment((-0.5, 0.0), (0.0, 0.0), (10.0, 0.0)) is False


def test_point_on_segment_rejects_points_off_the_line() -> None:
    assert point_on_segment((5.0, 1.0), (0.0, 0.0), (10.0, 0.0)) is False


def test_point_in_ring_square() -> None:
    assert point_in_ring((5.0, 5.0), SQUARE) is True
    assert point_in_ring((-1.0, 5.0), SQUARE) is False
    assert point_in_ring((5.0, 11.0), SQUARE) is False


def test_point_in_ring_counts_edges_and_vertices_as_inside() -> None:
    assert point_in_ring((0.0, 5.0), SQUARE) is True
    assert point_in_ring((10.0, 10.0), SQUARE) is True


def test_point_in_ring_with_closing_point_repeated() -> None:
    closed = [*SQUARE, SQUARE[0]]
    assert point_in_ring((5.0, 5.0), closed) is True
    assert point_in_ring((12.0, 5.0), closed) is False


def test_point_in_ring_concave_notch() -> None:
    # U shape open to the top: notch spans x 4..6, y 4..10.
    u_shape = [(0, 0), (10, 0), (10, 10), (6, 10), (6, 4), (4, 4), (4, 10), (0, 10)]
    assert point_in_ring((2.0, 8.0), u_shape) is True
    assert point_in_ring((5.0, 8.0), u_shape) is False
    assert point_in_ring((5.0, 2.0), u_shape) is True


def test_degenerate_ring_contains_nothing_off_its_edges() -> None:
    assert point_in_ring((1.0, 5.0), [(0.0, 0.0), (10.0, 10.0)]) is False
    assert point_in_ring((1.0, 5.0), []) is False


def test_point_in_polygon_respects_holes() -> None:
    polygon = [SQUARE, HOLE]
    assert point_in_polygon((1.0, 1.0), polygon) is True
    assert point_in_polygon((5.0, 5.0), polygon) is False
    assert point_in_polygon((20.0, 20.0), polygon) is False


def test_point_in_polygon_empty_polygon() -> None:
    assert point_in_polygon((0.0, 0.0), []) is False


def test_point_in_polygon_set_any_member() -> None:
    far = [[(20.0, 20.0), (20.0, 30.0), (30.0, 30.0), (30.0, 20.0)]]
    polygons = [[SQUARE], far]
    assert point_in_polygon_set((25.0, 25.0), polygons) is True
    assert point_in_polygon_set((5.0, 5.0), polygons) is True
    assert point_in_polygon_set((15.0, 15.0), polygons) is False
    assert point_in_polygon_set((5.0, 5.0), []) is False


def test_bounds_of_polygons() -> None:
    bounds = bounds_of_polygons([[SQUARE], [[(20.0, -5.0), (21.0, 3.0), (22.0, 0.0)]]])
    assert bounds == Bounds(min_x=0.0, max_x=22.0, min_y=-5.0, max_y=10.0)
    assert bounds.width == 22.0
    assert bounds.height == 15.0
    assert bounds.area == 330.0
    assert bounds.center == (11.0, 2.5)


def test_bounds_of_polygons_without_points() -> None:
    assert bounds_of_polygons([]) is None
    assert bounds_of_polygons([[[]]]) is None


def test_estimate_label_box_dimensions() -> None:
    box = estimate_label_box(100.0, 100.0, "01", 8.6)

    width = 2 * 8.6 * 0.72 + 6
    assert box.right - box.left == pytest.approx(width)
    assert box.bottom - box.top == pytest.approx(11.6)
    assert box.left == pytest.approx(100.0 - width / 2)
    assert box.top == pytest.approx(89.4)
    assert box.bottom == pytest.approx(101.0)


def test_estimate_label_box_minimum_width() -> None:
    box = estimate_label_box(50.0, 50.0, "1", 4.0)
    assert box.right - box.left == pytest.approx(14.0)
    assert box.center[0] == pytest.approx(50.0)


def test_touching_boxes_do_not_overlap() -> None:
    a = LabelBox(left=0.0, right=10.0, top=0.0, bottom=10.0)
    right_neighbour = LabelBox(left=10.0, right=20.0, top=0.0, bottom=10.0)
    below = LabelBox(left=0.0, right=10.0, top=10.0, bottom=20.0)
    assert a.overlaps(right_neighbour) is False
    assert a.overlaps(below) is False


def test_boxes_overlap_symmetrically() -> None:
    a = LabelBox(left=0.0, right=10.0, top=0.0, bottom=10.0)
    b = LabelBox(left=9.5, right=20.0, top=5.0, bottom=15.0)
    assert a.overlaps(b) is True
    assert b.overlaps(a) is True


def test_overlaps_any() -> None:
    box = LabelBox(left=0.0, right=10.0, top=0.0, bottom=10.0)
    placed = [
        LabelBox(left=20.0, right=30.0, top=0.0, bottom=10.0),
        LabelBox(left=5.0, right=6.0, top=5.0, bottom=6.0),
    ]
    assert overlaps_any(box, placed) is True
    assert overlaps_any(box, placed[:1]) is False
    assert overlaps_any(box, []) is False


def test_label_box_inside_is_inclusive() -> None:
    box = LabelBox(left=22.0, right=50.0, top=22.0, bottom=40.0)
    assert box.inside(left=22.0, top=22.0, right=838.0, bottom=878.0) is True
    assert box.inside(left=22.5, top=22.0, right=838.0, bottom=878.0) is False
