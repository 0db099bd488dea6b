"""
Point and ring classification helpers.

``classify_point`` is the workhorse of the clipper: the entry/exit marker
uses it to decide whether a ring starts inside or outside the other
ring, and the containment shortcuts use it to test whole rings.  It is a
classic even-odd ray cast towards +X with an explicit boundary test so
that points lying on an edge are reported as such instead of being
assigned to an arbitrary side.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Tuple

from .intersection import EPSILON, distance, line_line_intersection
from .polygon import Polygon

# Default distance within which a point counts as lying on an edge
ON_SEGMENT_TOLERANCE: float = 1e-6


class PointClassification(str, Enum):
    INSIDE = "inside"
    OUTSIDE = "outside"
    ON_BOUNDARY = "on_boundary"


def is_left(p0, p1, p2) -> float:
    """Cross product of ``p0->p1`` and ``p0->p2``.

    Positive when ``p2`` lies left of the directed line ``p0->p1``,
    negative when right and zero when the three points are collinear.
    """
    return (p1[0] - p0[0]) * (p2[1] - p0[1]) - (p2[0] - p0[0]) * (p1[1] - p0[1])


def is_point_on_segment(point, a, b, tolerance: float = ON_SEGMENT_TOLERANCE) -> bool:
    """Return True if ``point`` is within ``tolerance`` of segment ``a-b``."""
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    len_sq = dx * dx + dy * dy
    if len_sq < EPSILON:
        return distance(point, a) <= tolerance
    t = ((point[0] - a[0]) * dx + (point[1] - a[1]) * dy) / len_sq
    if t < 0.0:
        return distance(point, a) <= tolerance
    if t > 1.0:
        return distance(point, b) <= tolerance
    return abs(is_left(a, b, point)) / len_sq ** 0.5 <= tolerance


def classify_point(point, polygon: Polygon, tolerance: float = ON_SEGMENT_TOLERANCE) -> PointClassification:
    """Classify ``point`` against ``polygon`` using an even-odd ray cast.

    A ray is cast from the point towards +X and the edge crossings
    strictly to its right are counted.  When the ray passes exactly
    through an edge end point the crossing is counted only if the other
    end point of that edge lies above the ray, so a vertex shared by two
    edges is counted once for a pass-through and zero or two times for a
    touch.

    Returns:
        ``ON_BOUNDARY`` if the point lies on an edge within ``tolerance``,
        otherwise ``INSIDE`` for an odd crossing count and ``OUTSIDE`` for
        an even one.
    """
    px, py = point[0], point[1]
    crossings = 0
    for va, vb in polygon.edges():
        a, b = va.point, vb.point
        if is_point_on_segment(point, a, b, tolerance):
            return PointClassification.ON_BOUNDARY

        if py < min(a.y, b.y) - EPSILON or py > max(a.y, b.y) + EPSILON:
            continue
        if abs(a.y - b.y) < EPSILON:
            continue

        if abs(py - a.y) < EPSILON:
            if b.y > py and a.x > px:
                crossings += 1
        elif abs(py - b.y) < EPSILON:
            if a.y > py and b.x > px:
                crossings += 1
        else:
            x_hit = a.x + (py - a.y) * (b.x - a.x) / (b.y - a.y)
            if x_hit > px:
                crossings += 1

    return PointClassification.INSIDE if crossings % 2 == 1 else PointClassification.OUTSIDE


def winding_number(point, polygon: Polygon) -> int:
    """Signed number of times ``polygon`` winds around ``point``.

    Upward edges with the point on their left add one, downward edges
    with the point on their right subtract one.  Zero means outside under
    the nonzero rule.
    """
    py = point[1]
    wn = 0
    for va, vb in polygon.edges():
        a, b = va.point, vb.point
        if a.y <= py:
            if b.y > py and is_left(a, b, point) > 0:
                wn += 1
        elif b.y <= py and is_left(a, b, point) < 0:
            wn -= 1
    return wn


def is_simple_polygon(polygon: Polygon) -> bool:
    """Return False if two non-adjacent edges cross away from their end points.

    Brute force over all edge pairs, quadratic in the vertex count.
    """
    edges: List[Tuple] = [(a.point, b.point) for a, b in polygon.edges()]
    n = len(edges)
    for i in range(n):
        for j in range(i + 2, n):
            if i == 0 and j == n - 1:
                # First and last edge share the start vertex
                continue
            hit = line_line_intersection(edges[i][0], edges[i][1], edges[j][0], edges[j][1])
            if hit is None:
                continue
            if EPSILON < hit.t1 < 1 - EPSILON or EPSILON < hit.t2 < 1 - EPSILON:
                return False
    return True


def is_polygon_fully_inside(inner: Polygon, outer: Polygon, tolerance: float = ON_SEGMENT_TOLERANCE) -> bool:
    """Return True if every original vertex of ``inner`` lies strictly inside ``outer``."""
    vertices = list(inner.original_vertices())
    if not vertices:
        return False
    return all(
        classify_point(v.point, outer, tolerance) is PointClassification.INSIDE for v in vertices
    )
