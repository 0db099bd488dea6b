"""
Degenerate-configuration detection and set-theoretic shortcuts.

Greiner–Hormann assumes that the two rings cross transversally.  Shared
vertices, collinear overlapping edges, vertices lying on the other
ring's edges and zero-area rings break that assumption: intersections
are reported twice, once or not at all and the entry/exit toggling goes
out of step.  Before inserting intersections the clipper therefore asks
``is_degenerate_case`` and, if it answers yes, tries to resolve the pair
directly with ``handle_degenerate_cases``:

- zero-area rings act as the empty set,
- identical rings (same points up to rotation or reflection) follow
  ``A∪A=A``, ``A∩A=A``, ``A−A=∅`` and ``A⊕A=∅``,
- full containment returns the outer or inner ring.

When none of those apply the orchestrator nudges the subject with
``perturb_polygon``, by well over the boundary tolerance so the nudged
rings no longer touch, and runs the normal pipeline again.

``containment_result`` is also used by the contour builder when two rings
have no crossings at all.  Subtracting a contained ring returns the outer
ring unchanged and EXCLUDE returns both rings; neither produces a ring
with a hole.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional

import numpy as np

from .classify import (
    ON_SEGMENT_TOLERANCE,
    PointClassification,
    classify_point,
    is_left,
    is_polygon_fully_inside,
)
from .entry_exit import Operation
from .intersection import EPSILON, points_bounds, points_equal, signed_area
from .polygon import Polygon, create_polygon_from_points

logger = logging.getLogger(__name__)

# Distance under which two vertices of different rings count as shared
SHARED_VERTEX_TOLERANCE: float = 10 * EPSILON

# Perpendicular distance under which an edge end point counts as collinear
COLLINEAR_TOLERANCE: float = 1e-9

# Smallest nudge relative to the ring's largest extent
PERTURBATION_SCALE: float = 1e-7

# Smallest nudge as a multiple of the boundary tolerance.  A nudge within
# the tolerance leaves the rings touching for the classifier.
PERTURBATION_TOLERANCE_FACTOR: float = 100.0


def _copy(ring: Polygon) -> Polygon:
    return create_polygon_from_points(ring.get_original_points(), ring.source)


def is_zero_area(polygon: Polygon) -> bool:
    return abs(signed_area(polygon.get_original_points())) < EPSILON


def has_shared_vertices(a: Polygon, b: Polygon, tolerance: float = SHARED_VERTEX_TOLERANCE) -> bool:
    b_points = b.get_original_points()
    return any(points_equal(p, q, tolerance) for p in a.get_original_points() for q in b_points)


def _edges_overlap(a0, a1, b0, b1) -> bool:
    dx = a1[0] - a0[0]
    dy = a1[1] - a0[1]
    length = (dx * dx + dy * dy) ** 0.5
    if length < EPSILON:
        return False
    if abs(is_left(a0, a1, b0)) / length > COLLINEAR_TOLERANCE:
        return False
    if abs(is_left(a0, a1, b1)) / length > COLLINEAR_TOLERANCE:
        return False
    # Project b onto a and compare parameter ranges
    tb0 = ((b0[0] - a0[0]) * dx + (b0[1] - a0[1]) * dy) / (length * length)
    tb1 = ((b1[0] - a0[0]) * dx + (b1[1] - a0[1]) * dy) / (length * length)
    lo = max(0.0, min(tb0, tb1))
    hi = min(1.0, max(tb0, tb1))
    return (hi - lo) * length > EPSILON


def has_coincident_edges(a: Polygon, b: Polygon) -> bool:
    """Return True if some edge of ``a`` and some edge of ``b`` are collinear and overlap."""
    b_edges = [(u.point, v.point) for u, v in b.edges()]
    for u, v in a.edges():
        for b0, b1 in b_edges:
            if _edges_overlap(u.point, v.point, b0, b1):
                return True
    return False


def are_polygons_identical(a: Polygon, b: Polygon, tolerance: float = SHARED_VERTEX_TOLERANCE) -> bool:
    """Return True if both rings visit the same points, up to start point and direction."""
    pa = a.get_original_points()
    pb = b.get_original_points()
    n = len(pa)
    if n != len(pb) or n == 0:
        return False
    for offset in range(n):
        if not points_equal(pa[0], pb[offset], tolerance):
            continue
        if all(points_equal(pa[i], pb[(offset + i) % n], tolerance) for i in range(n)):
            return True
        if all(points_equal(pa[i], pb[(offset - i) % n], tolerance) for i in range(n)):
            return True
    return False


def has_boundary_contacts(a: Polygon, b: Polygon, tolerance: float = ON_SEGMENT_TOLERANCE) -> bool:
    """Return True if an original vertex of either ring lies on the other's boundary.

    Such a vertex touches or passes through the other ring without a
    transversal crossing, so the intersection pass reports an odd number
    of crossings.
    """
    for ring, other in ((a, b), (b, a)):
        for v in ring.original_vertices():
            if classify_point(v.point, other, tolerance) is PointClassification.ON_BOUNDARY:
                return True
    return False


def degenerate_reason(
    subject: Polygon,
    clip: Polygon,
    tolerance: float = ON_SEGMENT_TOLERANCE,
) -> Optional[str]:
    """Name the first degenerate condition found, or ``None``.

    ``tolerance`` is the classifier's boundary tolerance used for the
    vertex-on-edge test.
    """
    if is_zero_area(subject) or is_zero_area(clip):
        return "zero_area"
    if has_shared_vertices(subject, clip):
        return "shared_vertex"
    if has_coincident_edges(subject, clip):
        return "coincident_edges"
    if has_boundary_contacts(subject, clip, tolerance):
        return "vertex_on_edge"
    return None


def is_degenerate_case(subject: Polygon, clip: Polygon, tolerance: float = ON_SEGMENT_TOLERANCE) -> bool:
    return degenerate_reason(subject, clip, tolerance) is not None


def containment_result(
    subject: Polygon,
    clip: Polygon,
    operation: Operation,
    tolerance: float = ON_SEGMENT_TOLERANCE,
) -> List[Polygon]:
    """Resolve a pair of rings that do not cross.

    Either one ring lies inside the other or they are disjoint.  The
    returned rings are fresh copies of the inputs.
    """
    operation = Operation(operation)
    subject_inside = is_polygon_fully_inside(subject, clip, tolerance)
    clip_inside = not subject_inside and is_polygon_fully_inside(clip, subject, tolerance)

    if operation is Operation.UNION:
        if subject_inside:
            return [_copy(clip)]
        if clip_inside:
            return [_copy(subject)]
        return [_copy(subject), _copy(clip)]
    if operation is Operation.INTERSECT:
        if subject_inside:
            return [_copy(subject)]
        if clip_inside:
            return [_copy(clip)]
        return []
    if operation is Operation.SUBTRACT:
        if subject_inside:
            return []
        # A contained clip would be a hole; the outer ring is returned as is
        return [_copy(subject)]
    return [_copy(subject), _copy(clip)]


def handle_degenerate_cases(
    subject: Polygon,
    clip: Polygon,
    operation: Operation,
    tolerance: float = ON_SEGMENT_TOLERANCE,
) -> Optional[List[Polygon]]:
    """Answer a degenerate pair directly when set semantics allow it.

    Returns:
        The resulting rings, or ``None`` when the pair needs the regular
        pipeline (after perturbation).
    """
    operation = Operation(operation)
    subject_empty = is_zero_area(subject)
    clip_empty = is_zero_area(clip)
    if subject_empty or clip_empty:
        if subject_empty and clip_empty:
            result: List[Polygon] = []
        elif subject_empty:
            keep_clip = operation in (Operation.UNION, Operation.EXCLUDE)
            result = [_copy(clip)] if keep_clip else []
        else:
            keep_subject = operation is not Operation.INTERSECT
            result = [_copy(subject)] if keep_subject else []
        _debug("zero_area", operation, result)
        return result

    if are_polygons_identical(subject, clip):
        result = [_copy(subject)] if operation in (Operation.UNION, Operation.INTERSECT) else []
        _debug("identical", operation, result)
        return result

    if is_polygon_fully_inside(subject, clip, tolerance) or is_polygon_fully_inside(clip, subject, tolerance):
        result = containment_result(subject, clip, operation, tolerance)
        _debug("containment", operation, result)
        return result

    return None


def perturbation_magnitude(polygon: Polygon, tolerance: float = ON_SEGMENT_TOLERANCE) -> float:
    """Size of the nudge applied to ``polygon``.

    The larger of ``PERTURBATION_TOLERANCE_FACTOR`` times the boundary
    tolerance and ``PERTURBATION_SCALE`` times the ring's largest extent.
    """
    bounds = points_bounds(polygon.get_original_points())
    extent = max(bounds.max_x - bounds.min_x, bounds.max_y - bounds.min_y, 1.0)
    return max(PERTURBATION_TOLERANCE_FACTOR * tolerance, PERTURBATION_SCALE * extent)


def perturb_polygon(polygon: Polygon, rng: np.random.Generator, magnitude: float) -> Polygon:
    """Return a copy of ``polygon`` with every vertex nudged by a small random offset.

    The offset is uniform in ``[-magnitude, magnitude]`` on each axis.
    """
    points = np.asarray(polygon.get_original_points(), dtype=float)
    nudged = points + rng.uniform(-magnitude, magnitude, size=points.shape)
    return create_polygon_from_points([(float(x), float(y)) for x, y in nudged], polygon.source)


def _debug(case: str, operation: Operation, result: List[Polygon]) -> None:
    if os.getenv("BOOLEAN_DEBUG"):
        logger.debug("degenerate %s: %s -> %d ring(s)", case, operation.value, len(result))
