"""
Intersection insertion and entry/exit marking.

These are the two Greiner–Hormann phases that run between flattening
and contour extraction:

1. ``insert_intersections`` computes every crossing between the original
   edges of the subject and clip rings and inserts a linked pair of
   intersection vertices, one per ring, keeping each edge sorted by
   ``alpha``.
2. ``mark_entry_exit`` walks each ring from a known-classified vertex,
   toggling an inside/outside state at every intersection and setting
   ``is_entry`` according to the operation.

The marking table decides which side of each crossing the contour
builder keeps and is the heart of the algorithm::

    operation   subject is_entry   clip is_entry
    UNION       not inside         not inside
    INTERSECT   inside             inside
    SUBTRACT    not inside         inside
    EXCLUDE     not inside         not inside

``inside`` is the state *after* crossing the intersection, i.e. whether
the ring continues inside the other ring.
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from typing import Dict, Tuple

from .classify import ON_SEGMENT_TOLERANCE, PointClassification, classify_point
from .intersection import EPSILON, line_line_intersection
from .polygon import Polygon, Vertex

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    UNION = "UNION"
    SUBTRACT = "SUBTRACT"
    INTERSECT = "INTERSECT"
    EXCLUDE = "EXCLUDE"


# For each operation: (subject entry when inside, clip entry when inside)
_ENTRY_WHEN_INSIDE: Dict[Operation, Tuple[bool, bool]] = {
    Operation.UNION: (False, False),
    Operation.INTERSECT: (True, True),
    Operation.SUBTRACT: (False, True),
    # Unused by build_contours, which marks EXCLUDE as two SUBTRACT passes
    Operation.EXCLUDE: (False, False),
}


def insert_intersections(subject: Polygon, clip: Polygon) -> int:
    """Insert linked intersection vertices for every edge crossing.

    Only the original edges are intersected; the edge lists are captured
    before any insertion.  A crossing reported at the far end of an edge
    (``t`` within ``EPSILON`` of 1) is skipped because the following edge
    reports the same point at ``t = 0``.

    Returns:
        The number of intersection pairs inserted.
    """
    subject_edges = [(v, subject.get_next_original(v)) for v in list(subject.original_vertices())]
    clip_edges = [(v, clip.get_next_original(v)) for v in list(clip.original_vertices())]

    inserted = 0
    for s0, s1 in subject_edges:
        for c0, c1 in clip_edges:
            hit = line_line_intersection(s0.point, s1.point, c0.point, c1.point)
            if hit is None or hit.t1 >= 1 - EPSILON or hit.t2 >= 1 - EPSILON:
                continue
            vs = Vertex(hit.point.x, hit.point.y)
            vc = Vertex(hit.point.x, hit.point.y)
            vs.is_intersection = vc.is_intersection = True
            vs.alpha = hit.t1
            vc.alpha = hit.t2
            vs.neighbor = vc
            vc.neighbor = vs
            subject.insert_intersection(s0, vs)
            clip.insert_intersection(c0, vc)
            inserted += 1

    if os.getenv("BOOLEAN_DEBUG"):
        logger.debug(
            "insert_intersections: subject=%d clip=%d edges, %d crossings",
            len(subject_edges),
            len(clip_edges),
            inserted,
        )
    return inserted


def _starts_inside(start: Vertex, other: Polygon, tolerance: float) -> bool:
    """Decide whether the ring starting at ``start`` begins inside ``other``.

    A vertex on the other ring's boundary is ambiguous, so the midpoint
    of the following edge is tried instead, then subsequent vertices.
    Falls back to outside if every probe is on the boundary.
    """
    v = start
    while True:
        result = classify_point(v.point, other, tolerance)
        if result is PointClassification.ON_BOUNDARY:
            nxt = v.next.point
            mid = ((v.point.x + nxt.x) / 2, (v.point.y + nxt.y) / 2)
            result = classify_point(mid, other, tolerance)
        if result is not PointClassification.ON_BOUNDARY:
            return result is PointClassification.INSIDE
        v = v.next
        if v is start:
            return False


def mark_entry_exit(
    subject: Polygon,
    clip: Polygon,
    operation: Operation,
    tolerance: float = ON_SEGMENT_TOLERANCE,
) -> None:
    """Assign ``is_entry`` to every intersection vertex of both rings."""
    subject_rule, clip_rule = _ENTRY_WHEN_INSIDE[Operation(operation)]
    for ring, other, entry_when_inside in ((subject, clip, subject_rule), (clip, subject, clip_rule)):
        start = next(ring.original_vertices(), None)
        if start is None:
            continue
        inside = _starts_inside(start, other, tolerance)
        v = start
        while True:
            if v.is_intersection:
                inside = not inside
                v.is_entry = inside if entry_when_inside else not inside
            v = v.next
            if v is start:
                break
