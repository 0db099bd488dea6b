"""
Tests for the numerical primitives in intersection.py.

These cover line/line intersection, cubic Bezier evaluation, bounding,
splitting and flattening, curve intersection by subdivision and the
shoelace area helpers.  Everything here is pure Python plus numpy.
"""

from __future__ import annotations

import math
import sys
from pathlib import Path

import pytest

# Make the backend package importable when running tests directly via pytest
sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.services.intersection import (  # noqa: E402
    EPSILON,
    bezier_bezier_intersection,
    bezier_bounds,
    bezier_derivative,
    distance,
    evaluate_bezier,
    flatten_bezier,
    is_clockwise,
    line_bezier_intersection,
    line_line_intersection,
    points_bounds,
    points_equal,
    signed_area,
    solve_quadratic,
    split_bezier,
)

ARCH = ((0.0, 0.0), (10.0, 20.0), (30.0, 20.0), (40.0, 0.0))
CCW_SQUARE = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]


def test_line_line_crossing() -> None:
    hit = line_line_intersection((0, 0), (10, 10), (0, 10), (10, 0))
    assert hit is not None
    assert math.isclose(hit.point.x, 5.0)
    assert math.isclose(hit.point.y, 5.0)
    assert math.isclose(hit.t1, 0.5)
    assert math.isclose(hit.t2, 0.5)


def test_line_line_parallel_returns_none() -> None:
    assert line_line_intersection((0, 0), (10, 0), (0, 5), (10, 5)) is None


def test_line_line_collinear_disjoint_returns_none() -> None:
    assert line_line_intersection((0, 0), (5, 0), (10, 0), (15, 0)) is None


def test_line_line_outside_segment_returns_none() -> None:
    # The infinite lines cross at (5, 5) but the first segment stops at x=2
    assert line_line_intersection((0, 0), (2, 2), (0, 10), (10, 0)) is None


def test_line_line_endpoint_touch() -> None:
    hit = line_line_intersection((0, 0), (10, 0), (10, 0), (10, 10))
    assert hit is not None
    assert math.isclose(hit.point.x, 10.0)
    assert math.isclose(hit.point.y, 0.0, abs_tol=1e-12)
    assert hit.t1 == 1.0
    assert hit.t2 == 0.0


def test_evaluate_bezier_end_points_and_midpoint() -> None:
    start = evaluate_bezier(*ARCH, 0.0)
    end = evaluate_bezier(*ARCH, 1.0)
    assert start == (0.0, 0.0)
    assert end == (40.0, 0.0)
    mid = evaluate_bezier((0, 0), (0, 10), (10, 10), (10, 0), 0.5)
    assert math.isclose(mid.x, 5.0)
    assert math.isclose(mid.y, 7.5)


def test_bezier_derivative_is_horizontal_at_apex() -> None:
    d = bezier_derivative(*ARCH, 0.5)
    assert d.x > 0
    assert math.isclose(d.y, 0.0, abs_tol=1e-9)


def test_solve_quadratic_cases() -> None:
    assert sorted(solve_quadratic(1, -3, 2)) == pytest.approx([1.0, 2.0])
    assert solve_quadratic(1, 0, 1) == []
    assert solve_quadratic(1, -2, 1) == pytest.approx([1.0])
    # Degenerates to the linear equation 2x - 4 = 0
    assert solve_quadratic(0, 2, -4) == pytest.approx([2.0])
    assert solve_quadratic(0, 0, 3) == []


def test_bezier_bounds_includes_apex() -> None:
    bounds = bezier_bounds(*ARCH)
    assert math.isclose(bounds.min_x, 0.0)
    assert math.isclose(bounds.max_x, 40.0)
    assert math.isclose(bounds.min_y, 0.0)
    # Apex of the arch is at t=0.5, y = 0.75 * 20
    assert math.isclose(bounds.max_y, 15.0)


def test_split_bezier_halves_meet() -> None:
    left, right = split_bezier(*ARCH, 0.5)
    assert left[0] == (0.0, 0.0)
    assert right[3] == (40.0, 0.0)
    assert left[3] == right[0]
    on_curve = evaluate_bezier(*ARCH, 0.5)
    assert math.isclose(left[3].x, on_curve.x)
    assert math.isclose(left[3].y, on_curve.y)


def test_flatten_bezier_keeps_end_points() -> None:
    points = flatten_bezier(*ARCH)
    assert len(points) >= 2
    assert points[0] == (0.0, 0.0)
    assert points[-1] == (40.0, 0.0)


def test_flatten_bezier_tighter_tolerance_gives_more_points() -> None:
    curve = ((0, 0), (10, 50), (30, 50), (40, 0))
    coarse = flatten_bezier(*curve, tolerance=5)
    fine = flatten_bezier(*curve, tolerance=0.1)
    assert len(fine) > len(coarse)


def test_flatten_bezier_respects_depth_ceiling() -> None:
    # With depth 2 at most four pieces are emitted, whatever the tolerance
    points = flatten_bezier(*ARCH, tolerance=1e-9, max_depth=2)
    assert len(points) == 5
    assert points[-1] == (40.0, 0.0)


def test_line_bezier_intersection_finds_both_crossings() -> None:
    hits = line_bezier_intersection((0, 5), (40, 5), *ARCH)
    assert len(hits) == 2
    for hit in hits:
        assert math.isclose(hit.point.y, 5.0, abs_tol=1e-6)
        on_curve = evaluate_bezier(*ARCH, hit.t2)
        assert math.isclose(on_curve.y, 5.0, abs_tol=1e-3)
        assert math.isclose(hit.t1, hit.point.x / 40.0, abs_tol=1e-9)


def test_line_bezier_intersection_rejects_by_bounds() -> None:
    assert line_bezier_intersection((0, 30), (40, 30), *ARCH) == []


def test_bezier_bezier_intersection_mirrored_arches() -> None:
    mirrored = ((0, 10), (10, -10), (30, -10), (40, 10))
    hits = bezier_bezier_intersection(*ARCH, *mirrored, tolerance=1e-3)
    assert len(hits) == 2
    # Both curves share their x parametrisation, so they cross at equal t
    expected = sorted([(1 - math.sqrt(2 / 3)) / 2, (1 + math.sqrt(2 / 3)) / 2])
    ts = sorted(hit.t1 for hit in hits)
    assert ts == pytest.approx(expected, abs=1e-2)
    for hit in hits:
        assert math.isclose(hit.point.y, 5.0, abs_tol=1e-2)
        assert math.isclose(hit.t1, hit.t2, abs_tol=1e-2)


def test_signed_area_orientation_and_magnitude() -> None:
    assert signed_area(CCW_SQUARE) == pytest.approx(100.0)
    assert signed_area(list(reversed(CCW_SQUARE))) == pytest.approx(-100.0)
    assert signed_area(CCW_SQUARE[:2]) == 0.0


def test_is_clockwise() -> None:
    assert is_clockwise(CCW_SQUARE) is False
    assert is_clockwise(list(reversed(CCW_SQUARE))) is True


def test_points_equal_and_distance() -> None:
    assert points_equal((5, 5), (5, 5))
    assert points_equal((5, 5), (5 + EPSILON / 2, 5))
    assert not points_equal((5, 5), (10, 10))
    assert distance((0, 0), (3, 4)) == pytest.approx(5.0)
    assert distance((5, 5), (5, 5)) == 0.0


def test_points_bounds() -> None:
    bounds = points_bounds([(1, 2), (-3, 4), (5, -6)])
    assert bounds == (-3.0, -6.0, 5.0, 4.0)
