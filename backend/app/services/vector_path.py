"""
Plain data types describing vector paths.

A :class:`VectorPath` is an ordered list of drawing commands plus a
winding rule.  It mirrors the path representation used by the design
document model: ``MoveTo`` starts a new sub-path, ``LineTo`` and
``CubicCurveTo`` extend it and ``ClosePath`` closes it.  A single path
may therefore describe several rings.

These types are intentionally free of any pydantic or numpy dependency
so the geometry services can be used and tested without the API layer.
The HTTP schemas in ``app.api.models`` convert to and from them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Union


class Point(NamedTuple):
    """A 2D point in document space."""

    x: float
    y: float


class WindingRule(str, Enum):
    NONZERO = "NONZERO"
    EVENODD = "EVENODD"


@dataclass(frozen=True)
class MoveTo:
    x: float
    y: float


@dataclass(frozen=True)
class LineTo:
    x: float
    y: float


@dataclass(frozen=True)
class CubicCurveTo:
    """Cubic Bezier segment from the current point to ``(x, y)``.

    ``(x1, y1)`` and ``(x2, y2)`` are the two control points.
    """

    x1: float
    y1: float
    x2: float
    y2: float
    x: float
    y: float


@dataclass(frozen=True)
class ClosePath:
    pass


PathCommand = Union[MoveTo, LineTo, CubicCurveTo, ClosePath]


@dataclass
class VectorPath:
    """Sequence of path commands with the rule used to fill them."""

    commands: List[PathCommand] = field(default_factory=list)
    winding_rule: WindingRule = WindingRule.NONZERO


def path_from_points(points: List[Point], winding_rule: WindingRule = WindingRule.NONZERO) -> VectorPath:
    """Build a closed straight-line path through ``points``."""
    commands: List[PathCommand] = []
    if points:
        commands.append(MoveTo(points[0][0], points[0][1]))
        for x, y in points[1:]:
            commands.append(LineTo(x, y))
        commands.append(ClosePath())
    return VectorPath(commands=commands, winding_rule=winding_rule)
