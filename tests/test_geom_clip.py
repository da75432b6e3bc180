from __future__ import annotations

import numpy as np
import pytest

from svgcrop.errors import DegenerateBoundary
from svgcrop.geom import (
    AxisAlignedBox,
    ConvexBoundary,
    bbox_corners,
    bbox_vertices,
    canvas_boundary,
    clip_box,
    clip_convex,
    clip_line,
)
from svgcrop.types import Segment, Vector2


CANVAS = canvas_boundary(100, 100)
BOX = AxisAlignedBox.from_corners((0, 0), (100, 100))


def _coords(seg: Segment):
    return seg.as_tuple()


def test_canvas_boundary_corner_order():
    assert CANVAS.vertices == (
        Vector2(0.0, 0.0),
        Vector2(100.0, 0.0),
        Vector2(100.0, 100.0),
        Vector2(0.0, 100.0),
    )
    assert CANVAS.area > 0


@pytest.mark.parametrize(
    "points",
    [
        [],
        [(0, 0), (1, 1)],
        [(0, 0), (1, 1), (2, 2)],
        [(0, 0), (5, 0), (10, 0), (3, 0)],
    ],
)
def test_degenerate_polygons_are_rejected(points):
    with pytest.raises(DegenerateBoundary):
        ConvexBoundary.from_points(points)


@pytest.mark.parametrize(
    "lo, hi",
    [
        ((0, 0), (0, 10)),
        ((0, 0), (10, 0)),
        ((10, 10), (0, 0)),
    ],
)
def test_degenerate_boxes_are_rejected(lo, hi):
    with pytest.raises(DegenerateBoundary):
        AxisAlignedBox.from_corners(lo, hi)


def test_box_corners_match_bbox_vertices():
    assert bbox_corners(5, 5, 10, 20).corners() == bbox_vertices(5, 5, 10, 20)


@pytest.mark.parametrize("clip, bound", [(clip_convex, CANVAS), (clip_box, BOX)])
def test_segment_inside_is_returned_unchanged(clip, bound):
    seg = Segment.from_coords(10, 10, 90, 90)
    result = clip(seg, bound)
    assert result == seg
    assert seg == Segment.from_coords(10, 10, 90, 90)


@pytest.mark.parametrize("clip, bound", [(clip_convex, CANVAS), (clip_box, BOX)])
@pytest.mark.parametrize(
    "coords",
    [
        (200, 200, 300, 300),
        (-50, -10, -5, -60),
        (10, -10, 90, -10),
        (110, 10, 110, 90),
        (-10, 120, 120, 120),
    ],
)
def test_segment_outside_is_rejected(clip, bound, coords):
    assert clip(Segment.from_coords(*coords), bound) is None


@pytest.mark.parametrize("clip, bound", [(clip_convex, CANVAS), (clip_box, BOX)])
def test_horizontal_segment_crossing_left_edge(clip, bound):
    result = clip(Segment.from_coords(-10, 50, 50, 50), bound)
    assert _coords(result) == (0.0, 50.0, 50.0, 50.0)


@pytest.mark.parametrize("clip, bound", [(clip_convex, CANVAS), (clip_box, BOX)])
def test_diagonal_through_canvas(clip, bound):
    result = clip(Segment.from_coords(-50, -50, 150, 150), bound)
    assert _coords(result) == pytest.approx((0.0, 0.0, 100.0, 100.0))


def test_segment_on_boundary_edge_is_kept():
    result = clip_convex(Segment.from_coords(-10, 0, 50, 0), CANVAS)
    assert _coords(result) == pytest.approx((0.0, 0.0, 50.0, 0.0))


def test_corner_tangent_collapses_to_none_for_convex():
    assert clip_convex(Segment.from_coords(-10, 10, 10, -10), CANVAS) is None


def test_corner_tangent_is_a_point_for_box():
    result = clip_box(Segment.from_coords(-10, 10, 10, -10), BOX)
    assert result is not None
    assert result.is_degenerate()
    assert result.start == Vector2(0.0, 0.0)


def test_zero_length_segment():
    assert clip_convex(Segment.from_coords(5, 5, 5, 5), CANVAS) is None
    assert clip_convex(Segment.from_coords(500, 5, 500, 5), CANVAS) is None
    assert clip_box(Segment.from_coords(500, 5, 500, 5), BOX) is None


def test_winding_direction_does_not_matter():
    clockwise = ConvexBoundary(tuple(reversed(CANVAS.vertices)))
    assert clockwise.area < 0
    seg = Segment.from_coords(-10, 50, 50, 120)
    assert clip_convex(seg, clockwise) == clip_convex(seg, CANVAS)


def test_triangle_boundary():
    triangle = ConvexBoundary.from_points([(0, 0), (10, 0), (0, 10)])
    result = clip_convex(Segment.from_coords(-5, 2, 15, 2), triangle)
    assert _coords(result) == pytest.approx((0.0, 2.0, 8.0, 2.0))
    assert clip_convex(Segment.from_coords(6, 6, 12, 12), triangle) is None


def test_raw_boundaries_are_accepted():
    seg = Segment.from_coords(-10, 50, 50, 50)
    assert clip_convex(seg, [(0, 0), (100, 0), (100, 100), (0, 100)]) == clip_convex(seg, CANVAS)
    assert clip_box(seg, ((0, 0), (100, 100))) == clip_box(seg, BOX)
    assert clip_convex(seg, BOX) == clip_convex(seg, CANVAS)


def test_clip_line_flat_coordinates():
    assert clip_line(-10, 50, 50, 50) == (0.0, 50.0, 50.0, 50.0)
    assert clip_line(200, 200, 300, 300) is None
    assert clip_line(0, 5, 20, 5, bbox_vertices(0, 0, 10, 10)) == (0.0, 5.0, 10.0, 5.0)


def test_box_and_convex_agree_on_random_segments():
    rng = np.random.default_rng(1234)
    box = AxisAlignedBox.from_corners((-20.0, 10.0), (80.0, 60.0))
    corners = box.corners()
    coords = rng.uniform(-100.0, 150.0, size=(500, 4))
    kept = 0
    for x1, y1, x2, y2 in coords:
        seg = Segment.from_coords(x1, y1, x2, y2)
        via_box = clip_box(seg, box)
        via_convex = clip_convex(seg, corners)
        assert (via_box is None) == (via_convex is None)
        if via_box is not None:
            kept += 1
            assert _coords(via_box) == pytest.approx(_coords(via_convex), abs=1e-9)
    assert kept > 0
