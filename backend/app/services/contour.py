"""
Contour extraction for the Greiner–Hormann clipper.

Once both rings carry linked intersection vertices with entry/exit
flags, output contours are traced by starting at an unvisited entry
intersection and walking the current ring until the next intersection,
then hopping to its neighbour on the other ring.  From an entry vertex
the walk continues forward, from an exit vertex it continues backward,
so the walk always stays on the part of the ring the operation keeps.
A contour is closed when the walk gets back to its starting vertex.

Every loop here is bounded by ``MAX_TRAVERSAL_ITERATIONS``.  Numerical
trouble can produce a vertex graph whose walk never returns to the start;
the cap turns that into a truncated contour and a warning in the log
instead of a hang.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional

from .classify import ON_SEGMENT_TOLERANCE
from .degenerate import containment_result
from .entry_exit import Operation, mark_entry_exit
from .intersection import EPSILON, points_equal
from .polygon import SUBJECT, Polygon, Vertex, create_polygon_from_points

logger = logging.getLogger(__name__)

MAX_TRAVERSAL_ITERATIONS: int = 10_000


def _next_start(subject: Polygon, clip: Polygon) -> Optional[Vertex]:
    for ring in (subject, clip):
        for v in ring.unvisited_intersections():
            if v.is_entry:
                return v
    return None


def _mark(v: Vertex) -> None:
    v.visited = True
    if v.neighbor is not None:
        v.neighbor.visited = True


def _trace(start: Vertex) -> List:
    points: List = []
    current = start
    steps = 0
    while True:
        _mark(current)
        forward = current.is_entry
        while True:
            points.append(current.point)
            current = current.next if forward else current.prev
            steps += 1
            if current.is_intersection or steps >= MAX_TRAVERSAL_ITERATIONS:
                break
        if steps >= MAX_TRAVERSAL_ITERATIONS:
            logger.warning(
                "contour trace hit %d iterations; truncating contour with %d points",
                MAX_TRAVERSAL_ITERATIONS,
                len(points),
            )
            return points
        _mark(current)
        current = current.neighbor
        if current is start or current.neighbor is start or points_equal(current.point, start.point):
            return points


def _clean(points: List) -> List:
    """Drop consecutive duplicates and a closing point equal to the first."""
    cleaned: List = []
    for p in points:
        if not cleaned or not points_equal(cleaned[-1], p, EPSILON):
            cleaned.append(p)
    if len(cleaned) > 1 and points_equal(cleaned[0], cleaned[-1], EPSILON):
        cleaned.pop()
    return cleaned


def extract_contours(subject: Polygon, clip: Polygon) -> List[Polygon]:
    """Trace all output contours of two marked rings.

    Visited flags are reset first.  Contours with fewer than three
    distinct points are dropped.
    """
    subject.reset_visited()
    clip.reset_visited()
    contours: List[Polygon] = []
    for _ in range(MAX_TRAVERSAL_ITERATIONS):
        start = _next_start(subject, clip)
        if start is None:
            break
        points = _clean(_trace(start))
        if len(points) >= 3:
            contours.append(create_polygon_from_points(points, SUBJECT))
    else:
        logger.warning("contour extraction stopped after %d contours", MAX_TRAVERSAL_ITERATIONS)

    if os.getenv("BOOLEAN_DEBUG"):
        logger.debug("extract_contours: %d contour(s)", len(contours))
    return contours


def build_contours(
    subject: Polygon,
    clip: Polygon,
    operation: Operation,
    tolerance: float = ON_SEGMENT_TOLERANCE,
) -> List[Polygon]:
    """Produce the result rings for a pair whose intersections are inserted.

    Pairs without any intersection vertex are resolved by containment.
    EXCLUDE with crossings is assembled from ``subject - clip`` and
    ``clip - subject``, traced over the same vertex graph with the
    roles of the rings swapped for the second pass.
    """
    operation = Operation(operation)
    if not subject.has_intersections() and not clip.has_intersections():
        return containment_result(subject, clip, operation, tolerance)

    if operation is Operation.EXCLUDE:
        mark_entry_exit(subject, clip, Operation.SUBTRACT, tolerance)
        outside_clip = extract_contours(subject, clip)
        mark_entry_exit(clip, subject, Operation.SUBTRACT, tolerance)
        outside_subject = extract_contours(clip, subject)
        return outside_clip + outside_subject

    mark_entry_exit(subject, clip, operation, tolerance)
    return extract_contours(subject, clip)
