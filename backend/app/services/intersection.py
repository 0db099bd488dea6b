"""
Intersection primitives for the boolean-operations engine.

This module provides the numerical building blocks used by the
Greiner–Hormann clipper: line/line intersection, cubic Bezier evaluation,
splitting, bounding and flattening, and recursive line/curve and
curve/curve intersection by subdivision.  All functions operate on
:class:`~.vector_path.Point` tuples (any ``(x, y)`` pair works) and
return new values; nothing here mutates its inputs.

Curve intersection works by bounding box rejection followed by midpoint
subdivision until the pieces are flat enough to be treated as straight
segments.  The local parameter of a flat piece is then mapped back into
the ``[0, 1]`` range of the original curve.  Because neighbouring pieces
share their end points the same root can be reported twice; results are
deduplicated on their parameter pairs.

Recursion in flattening and subdivision is bounded by
``MAX_SUBDIVISION_DEPTH`` in addition to the flatness test so that
adversarial control points (for example NaN-free but huge coordinates)
still terminate.
"""

from __future__ import annotations

import math
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from .vector_path import Point

# Tolerance for floating point comparisons
EPSILON: float = 1e-10

# Hard ceiling on recursive subdivision.  2**24 pieces is far beyond any
# tolerance a caller could meaningfully request.
MAX_SUBDIVISION_DEPTH: int = 24


class Intersection(NamedTuple):
    """A crossing between two parametric segments.

    ``t1`` and ``t2`` are the parameters of ``point`` along the first and
    second segment respectively, both in ``[0, 1]``.
    """

    point: Point
    t1: float
    t2: float


class Bounds(NamedTuple):
    min_x: float
    min_y: float
    max_x: float
    max_y: float


Bezier = Tuple[Point, Point, Point, Point]


def line_line_intersection(a0, a1, b0, b1) -> Optional[Intersection]:
    """Compute the intersection of segments ``a0-a1`` and ``b0-b1``.

    Uses the parametric form ``P = P0 + t * (P1 - P0)`` for both
    segments.  Returns ``None`` when the segments are parallel (the cross
    product of their directions is below ``EPSILON``) or when the crossing
    lies outside either segment.  Parameters within ``EPSILON`` of the
    segment ends are accepted and clamped into ``[0, 1]``.
    """
    dx1 = a1[0] - a0[0]
    dy1 = a1[1] - a0[1]
    dx2 = b1[0] - b0[0]
    dy2 = b1[1] - b0[1]

    cross = dx1 * dy2 - dy1 * dx2
    if abs(cross) < EPSILON:
        return None

    dx = b0[0] - a0[0]
    dy = b0[1] - a0[1]
    t1 = (dx * dy2 - dy * dx2) / cross
    t2 = (dx * dy1 - dy * dx1) / cross

    if t1 < -EPSILON or t1 > 1 + EPSILON or t2 < -EPSILON or t2 > 1 + EPSILON:
        return None

    t1 = max(0.0, min(1.0, t1))
    t2 = max(0.0, min(1.0, t2))
    return Intersection(Point(a0[0] + t1 * dx1, a0[1] + t1 * dy1), t1, t2)


def points_equal(a, b, tolerance: float = EPSILON) -> bool:
    """Return True if ``a`` and ``b`` agree on both axes within ``tolerance``."""
    return abs(a[0] - b[0]) < tolerance and abs(a[1] - b[1]) < tolerance


def distance_squared(a, b) -> float:
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    return dx * dx + dy * dy


def distance(a, b) -> float:
    return math.sqrt(distance_squared(a, b))


def evaluate_bezier(p0, p1, p2, p3, t: float) -> Point:
    """Evaluate the cubic Bezier defined by ``p0..p3`` at parameter ``t``."""
    mt = 1.0 - t
    mt2 = mt * mt
    mt3 = mt2 * mt
    t2 = t * t
    t3 = t2 * t
    return Point(
        mt3 * p0[0] + 3 * mt2 * t * p1[0] + 3 * mt * t2 * p2[0] + t3 * p3[0],
        mt3 * p0[1] + 3 * mt2 * t * p1[1] + 3 * mt * t2 * p2[1] + t3 * p3[1],
    )


def bezier_derivative(p0, p1, p2, p3, t: float) -> Point:
    """Return the tangent vector ``B'(t)`` of a cubic Bezier."""
    mt = 1.0 - t
    # B'(t) = 3(1-t)^2(P1-P0) + 6(1-t)t(P2-P1) + 3t^2(P3-P2)
    return Point(
        3 * mt * mt * (p1[0] - p0[0]) + 6 * mt * t * (p2[0] - p1[0]) + 3 * t * t * (p3[0] - p2[0]),
        3 * mt * mt * (p1[1] - p0[1]) + 6 * mt * t * (p2[1] - p1[1]) + 3 * t * t * (p3[1] - p2[1]),
    )


def solve_quadratic(a: float, b: float, c: float) -> List[float]:
    """Return the real roots of ``a*x^2 + b*x + c = 0``.

    Falls back to the linear solution when ``a`` is negligible.  A
    discriminant within ``EPSILON`` of zero yields a single double root.
    """
    if abs(a) < EPSILON:
        if abs(b) < EPSILON:
            return []
        return [-c / b]
    disc = b * b - 4 * a * c
    if disc < -EPSILON:
        return []
    if disc < EPSILON:
        return [-b / (2 * a)]
    root = math.sqrt(disc)
    return [(-b - root) / (2 * a), (-b + root) / (2 * a)]


def bezier_bounds(p0, p1, p2, p3) -> Bounds:
    """Compute the tight axis-aligned bounding box of a cubic Bezier.

    The end points bound the curve except where the derivative vanishes
    inside ``(0, 1)``; those extrema are found with :func:`solve_quadratic`
    on each axis separately.
    """
    min_x = min(p0[0], p3[0])
    max_x = max(p0[0], p3[0])
    min_y = min(p0[1], p3[1])
    max_y = max(p0[1], p3[1])

    # Derivative / 3 expressed as a*t^2 + b*t + c per axis
    ax = -p0[0] + 3 * p1[0] - 3 * p2[0] + p3[0]
    bx = 2 * p0[0] - 4 * p1[0] + 2 * p2[0]
    cx = -p0[0] + p1[0]
    ay = -p0[1] + 3 * p1[1] - 3 * p2[1] + p3[1]
    by = 2 * p0[1] - 4 * p1[1] + 2 * p2[1]
    cy = -p0[1] + p1[1]

    for t in solve_quadratic(ax, bx, cx):
        if 0.0 < t < 1.0:
            x = evaluate_bezier(p0, p1, p2, p3, t).x
            min_x = min(min_x, x)
            max_x = max(max_x, x)
    for t in solve_quadratic(ay, by, cy):
        if 0.0 < t < 1.0:
            y = evaluate_bezier(p0, p1, p2, p3, t).y
            min_y = min(min_y, y)
            max_y = max(max_y, y)
    return Bounds(min_x, min_y, max_x, max_y)


def split_bezier(p0, p1, p2, p3, t: float) -> Tuple[Bezier, Bezier]:
    """Split a cubic Bezier at ``t`` using de Casteljau's algorithm.

    Returns the control points of the left and right halves.  The last
    point of the left half equals the first point of the right half.
    """

    def lerp(a, b) -> Point:
        return Point(a[0] + t * (b[0] - a[0]), a[1] + t * (b[1] - a[1]))

    p01 = lerp(p0, p1)
    p12 = lerp(p1, p2)
    p23 = lerp(p2, p3)
    p012 = lerp(p01, p12)
    p123 = lerp(p12, p23)
    p0123 = lerp(p012, p123)
    return (
        (Point(p0[0], p0[1]), p01, p012, p0123),
        (p0123, p123, p23, Point(p3[0], p3[1])),
    )


def _max_deviation(p0, p1, p2, p3) -> float:
    """Squared distance of the farthest control point from chord ``p0-p3``."""
    dx = p3[0] - p0[0]
    dy = p3[1] - p0[1]
    len_sq = dx * dx + dy * dy
    if len_sq < EPSILON:
        # Closed chord: measure the control points against the start point
        return max(distance_squared(p0, p1), distance_squared(p0, p2))

    worst = 0.0
    for p in (p1, p2):
        t = ((p[0] - p0[0]) * dx + (p[1] - p0[1]) * dy) / len_sq
        px = p0[0] + t * dx
        py = p0[1] + t * dy
        worst = max(worst, (p[0] - px) ** 2 + (p[1] - py) ** 2)
    return worst


def flatten_bezier(
    p0,
    p1,
    p2,
    p3,
    tolerance: float = 0.5,
    max_depth: int = MAX_SUBDIVISION_DEPTH,
) -> List[Point]:
    """Approximate a cubic Bezier by a polyline.

    The curve is split at ``t = 0.5`` until every piece deviates from its
    chord by at most ``tolerance``.  The returned list starts with ``p0``
    and ends with ``p3``.

    Args:
        p0, p1, p2, p3: Control points.
        tolerance: Maximum allowed deviation in document units.
        max_depth: Recursion ceiling; pieces at this depth are emitted as
            is regardless of flatness.

    Returns:
        List of points along the curve.
    """
    result: List[Point] = [Point(p0[0], p0[1])]
    _flatten_recursive(p0, p1, p2, p3, tolerance * tolerance, 0, max_depth, result)
    return result


def _flatten_recursive(p0, p1, p2, p3, tolerance_sq, depth, max_depth, result) -> None:
    if depth >= max_depth or _max_deviation(p0, p1, p2, p3) <= tolerance_sq:
        result.append(Point(p3[0], p3[1]))
        return
    left, right = split_bezier(p0, p1, p2, p3, 0.5)
    _flatten_recursive(*left, tolerance_sq, depth + 1, max_depth, result)
    _flatten_recursive(*right, tolerance_sq, depth + 1, max_depth, result)


def _boxes_overlap(a: Bounds, b: Bounds, pad: float = 0.0) -> bool:
    return not (
        a.max_x < b.min_x - pad
        or a.min_x > b.max_x + pad
        or a.max_y < b.min_y - pad
        or a.min_y > b.max_y + pad
    )


def line_bezier_intersection(
    line_start,
    line_end,
    p0,
    p1,
    p2,
    p3,
    tolerance: float = 1e-6,
) -> List[Intersection]:
    """Find crossings between segment ``line_start-line_end`` and a cubic Bezier.

    ``t1`` of each result is the parameter along the line, ``t2`` the
    parameter along the curve.
    """
    results: List[Intersection] = []
    _line_bezier_recursive(line_start, line_end, (p0, p1, p2, p3), 0.0, 1.0, tolerance, 0, results)
    return _deduplicate(results, tolerance)


def _line_bezier_recursive(line_start, line_end, curve, t_min, t_max, tolerance, depth, results) -> None:
    line_box = Bounds(
        min(line_start[0], line_end[0]),
        min(line_start[1], line_end[1]),
        max(line_start[0], line_end[0]),
        max(line_start[1], line_end[1]),
    )
    if not _boxes_overlap(bezier_bounds(*curve), line_box, tolerance):
        return

    if depth >= MAX_SUBDIVISION_DEPTH or _max_deviation(*curve) <= tolerance * tolerance:
        hit = line_line_intersection(line_start, line_end, curve[0], curve[3])
        if hit is not None:
            results.append(Intersection(hit.point, hit.t1, t_min + hit.t2 * (t_max - t_min)))
        return

    t_mid = (t_min + t_max) / 2
    left, right = split_bezier(*curve, 0.5)
    _line_bezier_recursive(line_start, line_end, left, t_min, t_mid, tolerance, depth + 1, results)
    _line_bezier_recursive(line_start, line_end, right, t_mid, t_max, tolerance, depth + 1, results)


def bezier_bezier_intersection(
    a0,
    a1,
    a2,
    a3,
    b0,
    b1,
    b2,
    b3,
    tolerance: float = 1e-6,
) -> List[Intersection]:
    """Find crossings between two cubic Bezier curves.

    Both curves are subdivided (always the less flat one first) until
    each piece is flat within ``tolerance``; flat pairs are intersected
    as straight segments.
    """
    results: List[Intersection] = []
    _bezier_bezier_recursive(
        (a0, a1, a2, a3), 0.0, 1.0, (b0, b1, b2, b3), 0.0, 1.0, tolerance, 0, results
    )
    return _deduplicate(results, tolerance)


def _bezier_bezier_recursive(a, a_min, a_max, b, b_min, b_max, tolerance, depth, results) -> None:
    if not _boxes_overlap(bezier_bounds(*a), bezier_bounds(*b), tolerance):
        return

    tol_sq = tolerance * tolerance
    a_dev = _max_deviation(*a)
    b_dev = _max_deviation(*b)
    if depth >= MAX_SUBDIVISION_DEPTH or (a_dev <= tol_sq and b_dev <= tol_sq):
        hit = line_line_intersection(a[0], a[3], b[0], b[3])
        if hit is not None:
            results.append(
                Intersection(
                    hit.point,
                    a_min + hit.t1 * (a_max - a_min),
                    b_min + hit.t2 * (b_max - b_min),
                )
            )
        return

    if a_dev >= b_dev:
        a_mid = (a_min + a_max) / 2
        left, right = split_bezier(*a, 0.5)
        _bezier_bezier_recursive(left, a_min, a_mid, b, b_min, b_max, tolerance, depth + 1, results)
        _bezier_bezier_recursive(right, a_mid, a_max, b, b_min, b_max, tolerance, depth + 1, results)
    else:
        b_mid = (b_min + b_max) / 2
        left, right = split_bezier(*b, 0.5)
        _bezier_bezier_recursive(a, a_min, a_max, left, b_min, b_mid, tolerance, depth + 1, results)
        _bezier_bezier_recursive(a, a_min, a_max, right, b_mid, b_max, tolerance, depth + 1, results)


def _deduplicate(intersections: List[Intersection], tolerance: float) -> List[Intersection]:
    """Drop results whose ``(t1, t2)`` pair matches an earlier one within tolerance."""
    if len(intersections) <= 1:
        return intersections
    unique: List[Intersection] = []
    for hit in intersections:
        if not any(
            abs(seen.t1 - hit.t1) < tolerance and abs(seen.t2 - hit.t2) < tolerance
            for seen in unique
        ):
            unique.append(hit)
    return unique


def signed_area(points: Sequence) -> float:
    """Compute the signed area of a closed polygon with the shoelace formula.

    The result is positive for counter-clockwise and negative for
    clockwise vertex order (in a y-up coordinate system).  Polygons with
    fewer than three points have zero area.
    """
    if len(points) < 3:
        return 0.0
    pts = np.asarray(points, dtype=float)
    x = pts[:, 0]
    y = pts[:, 1]
    return float(0.5 * np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))


def is_clockwise(points: Sequence) -> bool:
    return signed_area(points) < 0


def points_bounds(points: Sequence) -> Bounds:
    """Axis-aligned bounds of a non-empty point sequence."""
    pts = np.asarray(points, dtype=float)
    mins = pts.min(axis=0)
    maxs = pts.max(axis=0)
    return Bounds(float(mins[0]), float(mins[1]), float(maxs[0]), float(maxs[1]))
