"""
Ring representation for the Greiner–Hormann clipper.

Each ring (one closed sub-path after curve flattening) is stored as a
circular doubly-linked list of :class:`Vertex` objects.  The clipper
inserts intersection vertices into two rings at once and links each pair
through ``Vertex.neighbor``; traversal later hops between the rings
through those links.  ``neighbor`` is a cross reference, not ownership:
each ring owns only the vertices reachable through its ``next`` chain.

All iteration helpers walk from ``first`` back to ``first`` and are
therefore finite and restartable even while flags on the vertices are
being changed.  Inserting or removing vertices while a generator is
suspended is not supported.

The module also converts between :class:`~.vector_path.VectorPath`
commands and rings: ``create_polygons_from_path`` flattens curves into
straight segments, ``polygons_to_vector_path`` serialises rings back into
straight-line commands.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .errors import InvalidPathError
from .intersection import EPSILON, flatten_bezier
from .vector_path import (
    ClosePath,
    CubicCurveTo,
    LineTo,
    MoveTo,
    PathCommand,
    Point,
    VectorPath,
    WindingRule,
)

logger = logging.getLogger(__name__)

SUBJECT = "subject"
CLIP = "clip"


class Vertex:
    """A node of a ring.

    Attributes:
        point: Position of the vertex.
        next, prev: Ring links.  ``None`` only while detached.
        neighbor: Matching vertex in the other ring, set for intersection
            vertices only.
        is_intersection: True for vertices inserted by the clipper.
        is_entry: Direction flag assigned by the entry/exit marker.
        visited: Set while extracting contours.
        alpha: Parameter in ``[0, 1]`` along the original edge at which an
            intersection vertex was inserted.
        source: ``"subject"`` or ``"clip"``.
    """

    __slots__ = (
        "point",
        "next",
        "prev",
        "neighbor",
        "is_intersection",
        "is_entry",
        "visited",
        "alpha",
        "source",
    )

    def __init__(self, x: float, y: float) -> None:
        self.point = Point(float(x), float(y))
        self.next: Optional[Vertex] = None
        self.prev: Optional[Vertex] = None
        self.neighbor: Optional[Vertex] = None
        self.is_intersection = False
        self.is_entry = False
        self.visited = False
        self.alpha = 0.0
        self.source = SUBJECT

    def __repr__(self) -> str:
        kind = "I" if self.is_intersection else "V"
        return f"<{kind} {self.source} ({self.point.x:g}, {self.point.y:g}) alpha={self.alpha:g}>"

    def clone(self) -> "Vertex":
        """Copy position, flags and alpha but none of the links."""
        v = Vertex(self.point.x, self.point.y)
        v.is_intersection = self.is_intersection
        v.is_entry = self.is_entry
        v.visited = self.visited
        v.alpha = self.alpha
        v.source = self.source
        return v

    def insert_after(self, v: "Vertex") -> None:
        v.prev = self
        v.next = self.next
        if self.next is not None:
            self.next.prev = v
        self.next = v

    def insert_intersection(self, v: "Vertex") -> None:
        """Insert intersection vertex ``v`` on the edge starting at this vertex.

        Intersections already inserted on the edge are skipped while
        their ``alpha`` is smaller, which keeps the edge sorted.
        """
        current = self
        while (
            current.next is not None
            and current.next is not self
            and current.next.is_intersection
            and not current.next.visited
            and current.next.alpha < v.alpha
        ):
            current = current.next
        current.insert_after(v)


class Polygon:
    """A ring stored as a circular doubly-linked list of vertices."""

    def __init__(self, source: str = SUBJECT) -> None:
        self.first: Optional[Vertex] = None
        self.source = source
        self._count = 0

    def __repr__(self) -> str:
        return f"<Polygon {self.source} count={self._count}>"

    def __len__(self) -> int:
        return self._count

    @property
    def count(self) -> int:
        return self._count

    def add_vertex(self, v: Vertex) -> None:
        """Append ``v`` at the end of the ring (just before ``first``)."""
        v.source = self.source
        if self.first is None:
            self.first = v
            v.next = v
            v.prev = v
        else:
            last = self.first.prev
            last.next = v
            v.prev = last
            v.next = self.first
            self.first.prev = v
        self._count += 1

    def add_point(self, x: float, y: float) -> Vertex:
        v = Vertex(x, y)
        self.add_vertex(v)
        return v

    def insert_intersection(self, anchor: Vertex, v: Vertex) -> None:
        """Insert intersection ``v`` on the edge that starts at ``anchor``."""
        v.source = self.source
        anchor.insert_intersection(v)
        self._count += 1

    def remove_vertex(self, v: Vertex) -> None:
        if self._count == 1:
            self.first = None
        else:
            v.prev.next = v.next
            v.next.prev = v.prev
            if self.first is v:
                self.first = v.next
        v.next = v.prev = None
        self._count -= 1

    def vertices(self) -> Iterator[Vertex]:
        if self.first is None:
            return
        current = self.first
        while True:
            yield current
            current = current.next
            if current is None or current is self.first:
                return

    def edges(self) -> Iterator[Tuple[Vertex, Vertex]]:
        if self.first is None or self._count < 2:
            return
        for v in self.vertices():
            yield v, v.next

    def original_vertices(self) -> Iterator[Vertex]:
        return (v for v in self.vertices() if not v.is_intersection)

    def intersection_vertices(self) -> Iterator[Vertex]:
        return (v for v in self.vertices() if v.is_intersection)

    def unvisited_intersections(self) -> Iterator[Vertex]:
        return (v for v in self.vertices() if v.is_intersection and not v.visited)

    def get_next_original(self, v: Vertex) -> Vertex:
        """Return the first non-intersection vertex after ``v``."""
        current = v.next
        while current.is_intersection and current is not v:
            current = current.next
        return current

    def get_points(self) -> List[Point]:
        return [v.point for v in self.vertices()]

    def get_original_points(self) -> List[Point]:
        return [v.point for v in self.original_vertices()]

    def reset_visited(self) -> None:
        for v in self.vertices():
            v.visited = False

    def has_unvisited_intersections(self) -> bool:
        return next(self.unvisited_intersections(), None) is not None

    def has_intersections(self) -> bool:
        return next(self.intersection_vertices(), None) is not None

    def clone(self) -> "Polygon":
        """Deep copy of the ring.

        ``neighbor`` links are dropped because their targets belong to
        another ring; use :func:`clone_pair` to copy a linked pair.
        """
        mapping = {v: v.clone() for v in self.vertices()}
        return self._relinked(mapping)

    def _relinked(self, mapping: Dict[Vertex, Vertex]) -> "Polygon":
        copy = Polygon(self.source)
        for v in self.vertices():
            new = mapping[v]
            new.next = mapping.get(v.next)
            new.prev = mapping.get(v.prev)
            new.neighbor = mapping.get(v.neighbor) if v.neighbor is not None else None
        copy.first = mapping.get(self.first) if self.first is not None else None
        copy._count = self._count
        return copy


def clone_pair(subject: Polygon, clip: Polygon) -> Tuple[Polygon, Polygon]:
    """Copy two rings together, relinking ``neighbor`` across the copies."""
    mapping: Dict[Vertex, Vertex] = {}
    for ring in (subject, clip):
        for v in ring.vertices():
            mapping[v] = v.clone()
    return subject._relinked(mapping), clip._relinked(mapping)


def create_polygon_from_points(points: Sequence, source: str = SUBJECT) -> Polygon:
    polygon = Polygon(source)
    for x, y in points:
        polygon.add_point(x, y)
    return polygon


def _differs(v: Optional[Vertex], x: float, y: float) -> bool:
    return v is None or abs(v.point.x - x) > EPSILON or abs(v.point.y - y) > EPSILON


def create_polygons_from_path(
    path: VectorPath,
    source: str = SUBJECT,
    flatten_tolerance: float = 0.5,
) -> List[Polygon]:
    """Flatten a vector path into one ring per sub-path.

    Curves are replaced by polylines within ``flatten_tolerance``.
    Consecutive duplicate points are skipped, an explicit closing point
    equal to the start is dropped, and rings with fewer than three
    vertices are discarded.  Drawing commands that appear before any
    ``MoveTo`` are ignored.

    Raises:
        InvalidPathError: If a command is not one of the four path
            command types.
    """
    polygons: List[Polygon] = []
    current: Optional[Polygon] = None
    current_point = Point(0.0, 0.0)
    start_point = Point(0.0, 0.0)

    def finish() -> None:
        if current is not None and current.count >= 3:
            polygons.append(current)

    for cmd in path.commands:
        if isinstance(cmd, MoveTo):
            finish()
            current = Polygon(source)
            current_point = start_point = Point(cmd.x, cmd.y)
            current.add_point(cmd.x, cmd.y)
        elif isinstance(cmd, LineTo):
            current_point = Point(cmd.x, cmd.y)
            if current is not None and _differs(current.first.prev, cmd.x, cmd.y):
                current.add_point(cmd.x, cmd.y)
        elif isinstance(cmd, CubicCurveTo):
            if current is not None:
                flat = flatten_bezier(
                    current_point,
                    (cmd.x1, cmd.y1),
                    (cmd.x2, cmd.y2),
                    (cmd.x, cmd.y),
                    flatten_tolerance,
                )
                # The first flattened point is the current point
                for x, y in flat[1:]:
                    if _differs(current.first.prev, x, y):
                        current.add_point(x, y)
            current_point = Point(cmd.x, cmd.y)
        elif isinstance(cmd, ClosePath):
            current_point = start_point
            if current is not None:
                first = current.first
                last = first.prev
                if last is not first and not _differs(first, last.point.x, last.point.y):
                    current.remove_vertex(last)
            finish()
            current = None
        else:
            raise InvalidPathError(f"Unsupported path command: {cmd!r}")
    finish()
    return polygons


def polygon_to_path_commands(polygon: Polygon) -> List[PathCommand]:
    """Serialise a ring as ``MoveTo``, ``LineTo``..., ``ClosePath``."""
    points = polygon.get_points()
    if not points:
        return []
    commands: List[PathCommand] = [MoveTo(points[0].x, points[0].y)]
    commands.extend(LineTo(p.x, p.y) for p in points[1:])
    commands.append(ClosePath())
    return commands


def polygons_to_vector_path(
    polygons: Sequence[Polygon],
    winding_rule: WindingRule = WindingRule.NONZERO,
) -> VectorPath:
    """Combine several rings into one straight-line path."""
    commands: List[PathCommand] = []
    for polygon in polygons:
        commands.extend(polygon_to_path_commands(polygon))
    return VectorPath(commands=commands, winding_rule=winding_rule)
