"""
Tests for the public boolean-operation entry points in boolean_ops.py.

These exercise whole paths end to end: flattening, the degenerate
shortcuts, the clipper and serialisation back into a single path.  Ring
equality is checked up to start point and direction.
"""

from __future__ import annotations

import logging
import math
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.services import boolean_ops  # noqa: E402
from app.services.boolean_ops import (  # noqa: E402
    BooleanConfig,
    BooleanOperationResult,
    Operation,
    compute_boolean_operation,
    compute_ring_operation,
    exclude,
    intersect,
    subtract,
    union,
)
from app.services.degenerate import are_polygons_identical  # noqa: E402
from app.services.errors import InvalidConfigError  # noqa: E402
from app.services.intersection import signed_area  # noqa: E402
from app.services.polygon import CLIP, create_polygon_from_points, create_polygons_from_path  # noqa: E402
from app.services.vector_path import (  # noqa: E402
    ClosePath,
    CubicCurveTo,
    MoveTo,
    VectorPath,
    WindingRule,
    path_from_points,
)

# Circle approximation constant for four cubic arcs
KAPPA = 0.5522847498


def rect(x0: float, y0: float, x1: float, y1: float) -> VectorPath:
    return path_from_points([(x0, y0), (x1, y0), (x1, y1), (x0, y1)])


def circle(r: float) -> VectorPath:
    k = KAPPA * r
    return VectorPath(
        commands=[
            MoveTo(r, 0),
            CubicCurveTo(r, k, k, r, 0, r),
            CubicCurveTo(-k, r, -r, k, -r, 0),
            CubicCurveTo(-r, -k, -k, -r, 0, -r),
            CubicCurveTo(k, -r, r, -k, r, 0),
            ClosePath(),
        ]
    )


def rings_of(result: BooleanOperationResult):
    assert result.success, result.error
    return [ring for path in result.paths for ring in create_polygons_from_path(path)]


def areas(result: BooleanOperationResult):
    return sorted(abs(signed_area(r.get_points())) for r in rings_of(result))


SQUARE_A = rect(0, 0, 1, 1)
SQUARE_B = rect(0.5, 0.5, 1.5, 1.5)
PENTAGON = path_from_points(
    [
        (math.cos(2 * math.pi * i / 5 + math.pi / 2), math.sin(2 * math.pi * i / 5 + math.pi / 2))
        for i in range(5)
    ]
)


# ---------------------------------------------------------------------------
# Concrete scenarios
# ---------------------------------------------------------------------------


def test_overlapping_squares_union() -> None:
    result = union([SQUARE_A], [SQUARE_B])
    rings = rings_of(result)
    assert len(result.paths) == 1
    assert len(rings) == 1
    assert rings[0].count == 8
    assert areas(result) == pytest.approx([1.75])


def test_overlapping_squares_intersect() -> None:
    rings = rings_of(intersect([SQUARE_A], [SQUARE_B]))
    assert len(rings) == 1
    expected = create_polygon_from_points([(0.5, 0.5), (1, 0.5), (1, 1), (0.5, 1)])
    assert are_polygons_identical(rings[0], expected)


def test_overlapping_squares_subtract() -> None:
    result = subtract([SQUARE_A], [SQUARE_B])
    assert len(rings_of(result)) == 1
    assert areas(result) == pytest.approx([0.75])


def test_overlapping_squares_exclude() -> None:
    result = exclude([SQUARE_A], [SQUARE_B])
    assert len(result.paths) == 1
    assert areas(result) == pytest.approx([0.75, 0.75])


def test_nested_squares() -> None:
    outer = rect(0, 0, 2, 2)
    inner = rect(0.5, 0.5, 1.5, 1.5)
    outer_ring = create_polygons_from_path(outer)[0]
    inner_ring = create_polygons_from_path(inner)[0]

    (ring,) = rings_of(union([outer], [inner]))
    assert are_polygons_identical(ring, outer_ring)
    (ring,) = rings_of(intersect([outer], [inner]))
    assert are_polygons_identical(ring, inner_ring)
    assert rings_of(subtract([inner], [outer])) == []


def test_disjoint_triangles() -> None:
    first = path_from_points([(0, 0), (1, 0), (0, 1)])
    second = path_from_points([(2, 2), (3, 2), (2, 3)])
    rings = rings_of(union([first], [second]))
    assert len(rings) == 2
    assert are_polygons_identical(rings[0], create_polygons_from_path(first)[0])
    assert are_polygons_identical(rings[1], create_polygons_from_path(second)[0])
    assert intersect([first], [second]).paths == []
    (ring,) = rings_of(subtract([first], [second]))
    assert are_polygons_identical(ring, create_polygons_from_path(first)[0])


def test_concentric_circles_subtract_returns_outer_ring_only() -> None:
    config = BooleanConfig(flatten_tolerance=0.05)
    outer = circle(2)
    result = subtract([outer], [circle(1)], config)
    rings = rings_of(result)
    # No annulus: the contained ring would need a hole
    assert len(rings) == 1
    outer_ring = create_polygons_from_path(outer, flatten_tolerance=0.05)[0]
    assert are_polygons_identical(rings[0], outer_ring)
    assert 12.0 < areas(result)[0] < 4 * math.pi


def test_pentagon_subtracted_from_itself_is_empty() -> None:
    result = subtract([PENTAGON], [PENTAGON])
    assert result.success
    assert result.paths == []


# ---------------------------------------------------------------------------
# Algebraic properties
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "operation, expected_rings",
    [
        (Operation.UNION, 1),
        (Operation.INTERSECT, 1),
        (Operation.SUBTRACT, 0),
        (Operation.EXCLUDE, 0),
    ],
)
def test_identity_with_itself(operation, expected_rings) -> None:
    result = compute_boolean_operation(operation, [PENTAGON], [PENTAGON])
    rings = rings_of(result)
    assert len(rings) == expected_rings
    if rings:
        assert are_polygons_identical(rings[0], create_polygons_from_path(PENTAGON)[0])


@pytest.mark.parametrize("operation", [Operation.UNION, Operation.INTERSECT])
def test_commutative_operations(operation) -> None:
    forward = compute_boolean_operation(operation, [SQUARE_A], [SQUARE_B])
    backward = compute_boolean_operation(operation, [SQUARE_B], [SQUARE_A])
    (ring_f,) = rings_of(forward)
    (ring_b,) = rings_of(backward)
    assert are_polygons_identical(ring_f, ring_b, tolerance=1e-9)


@pytest.mark.parametrize("operation", list(Operation))
def test_idempotent_with_empty_clip(operation) -> None:
    first = subtract([SQUARE_A], [SQUARE_B])
    again = compute_boolean_operation(operation, first.paths, [])
    assert again.success
    if operation is Operation.INTERSECT:
        assert again.paths == []
    else:
        assert again.paths == first.paths


# ---------------------------------------------------------------------------
# Empty inputs
# ---------------------------------------------------------------------------


def test_empty_inputs_short_circuit() -> None:
    assert union([], []).paths == []
    assert union([SQUARE_A], []).paths == [SQUARE_A]
    assert union([], [SQUARE_B]).paths == [SQUARE_B]
    assert exclude([], [SQUARE_B]).paths == [SQUARE_B]
    assert intersect([SQUARE_A], []).paths == []
    assert subtract([SQUARE_A], []).paths == [SQUARE_A]
    assert subtract([], [SQUARE_B]).paths == []


def test_paths_without_rings_count_as_empty() -> None:
    open_line = VectorPath(commands=[MoveTo(0, 0), MoveTo(1, 1)])
    result = union([SQUARE_A], [open_line])
    assert result.success
    assert result.paths == [SQUARE_A]


# ---------------------------------------------------------------------------
# Folding and bookkeeping
# ---------------------------------------------------------------------------


def test_multiple_clip_rings_are_folded() -> None:
    subject = rect(0, 0, 4, 4)
    clips = [rect(3, 1, 5, 2), rect(-1, 2.5, 1, 3.5)]
    result = subtract([subject], clips)
    assert areas(result) == pytest.approx([14.0])


def test_single_clip_path_with_two_subpaths() -> None:
    two_rects = VectorPath(commands=rect(3, 1, 5, 2).commands + rect(-1, 2.5, 1, 3.5).commands)
    result = subtract([rect(0, 0, 4, 4)], [two_rects])
    assert areas(result) == pytest.approx([14.0])


def test_duplicate_rings_are_reported_once() -> None:
    result = union([SQUARE_A, SQUARE_A], [rect(5, 5, 6, 6)])
    # Each copy of the subject yields itself plus the disjoint clip
    assert areas(result) == pytest.approx([1.0, 1.0])


def test_result_keeps_subject_winding_rule() -> None:
    subject = path_from_points([(0, 0), (1, 0), (1, 1), (0, 1)], WindingRule.EVENODD)
    result = union([subject], [SQUARE_B])
    assert result.paths[0].winding_rule is WindingRule.EVENODD


def test_operation_names_are_case_insensitive() -> None:
    by_name = compute_boolean_operation("intersect", [SQUARE_A], [SQUARE_B])
    assert areas(by_name) == pytest.approx([0.25])


def test_compute_ring_operation_does_not_mutate_inputs() -> None:
    subject = create_polygon_from_points([(0, 0), (1, 0), (1, 1), (0, 1)])
    clip = create_polygon_from_points([(0.5, 0.5), (1.5, 0.5), (1.5, 1.5), (0.5, 1.5)], source=CLIP)
    rings = compute_ring_operation(subject, clip, Operation.UNION, BooleanConfig())
    assert len(rings) == 1
    assert subject.count == 4 and clip.count == 4
    assert not subject.has_intersections()


# ---------------------------------------------------------------------------
# Degenerate input
# ---------------------------------------------------------------------------


def total_area(result: BooleanOperationResult) -> float:
    return sum(areas(result))


@pytest.mark.parametrize("seed", range(8))
def test_union_with_shared_corner_and_edge(seed) -> None:
    config = BooleanConfig(perturbation_seed=seed)
    result = union([rect(0, 0, 1, 1)], [rect(0, 0, 0.5, 2)], config)
    assert total_area(result) == pytest.approx(1.5, abs=1e-2)


def test_union_with_shared_edge_adds_areas() -> None:
    config = BooleanConfig(perturbation_seed=42)
    result = union([rect(0, 0, 1, 1)], [rect(1, 0, 2, 1)], config)
    assert total_area(result) == pytest.approx(2.0, abs=1e-2)


def test_union_with_covered_half() -> None:
    config = BooleanConfig(perturbation_seed=42)
    result = union([rect(0, 0, 100, 100)], [rect(50, 0, 100, 100)], config)
    assert total_area(result) == pytest.approx(10000.0, abs=0.1)


def test_subtract_with_shared_vertices() -> None:
    config = BooleanConfig(perturbation_seed=42)
    result = subtract([rect(0, 0, 2, 2)], [rect(1, 0, 2, 1)], config)
    assert total_area(result) == pytest.approx(3.0, abs=1e-2)


def test_perturbation_is_reproducible_with_seed() -> None:
    config = BooleanConfig(perturbation_seed=42)
    first = union([rect(0, 0, 100, 100)], [rect(50, 0, 150, 100)], config)
    second = union([rect(0, 0, 100, 100)], [rect(50, 0, 150, 100)], config)
    assert first.paths == second.paths
    assert total_area(first) == pytest.approx(15000.0, abs=0.1)


@pytest.mark.parametrize("seed", range(4))
def test_union_with_triangle_touching_edge(seed) -> None:
    config = BooleanConfig(perturbation_seed=seed)
    triangle = path_from_points([(0.5, 1), (1, 2), (0, 2)])
    result = union([SQUARE_A], [triangle], config)
    assert result.paths
    assert total_area(result) == pytest.approx(1.5, abs=1e-2)


@pytest.mark.parametrize("seed", range(4))
def test_union_with_triangle_passing_through_edge(seed) -> None:
    config = BooleanConfig(perturbation_seed=seed)
    triangle = path_from_points([(0.5, 1), (1, 2), (0.5, 0.5)])
    result = union([SQUARE_A], [triangle], config)
    assert total_area(result) == pytest.approx(1 + 1 / 12, abs=1e-2)


def test_odd_crossing_count_is_retried(monkeypatch) -> None:
    # Skip the pre-check so the touching vertex reaches intersection insertion
    monkeypatch.setattr(boolean_ops, "degenerate_reason", lambda *args: None)
    subject = create_polygon_from_points([(0, 0), (1, 0), (1, 1), (0, 1)])
    clip = create_polygon_from_points([(0.5, 1), (1, 2), (0, 2)], source=CLIP)
    rings = compute_ring_operation(subject, clip, Operation.UNION, BooleanConfig(perturbation_seed=3))
    assert sum(abs(signed_area(r.get_points())) for r in rings) == pytest.approx(1.5, abs=1e-2)


def test_degenerate_handling_can_be_disabled() -> None:
    config = BooleanConfig(handle_degenerates=False)
    result = subtract([PENTAGON], [PENTAGON], config)
    # Without the identity shortcut the rings never cross and the subject is kept
    (ring,) = rings_of(result)
    assert are_polygons_identical(ring, create_polygons_from_path(PENTAGON)[0])
    assert total_area(result) == pytest.approx(2.5 * math.sin(2 * math.pi / 5))


# ---------------------------------------------------------------------------
# Failures and configuration
# ---------------------------------------------------------------------------


def test_invalid_config_reports_failure() -> None:
    result = union([SQUARE_A], [SQUARE_B], BooleanConfig(flatten_tolerance=0))
    assert result.success is False
    assert "flatten_tolerance" in result.error
    assert result.paths == []


def test_invalid_operation_reports_failure() -> None:
    result = compute_boolean_operation("xor", [SQUARE_A], [SQUARE_B])
    assert result.success is False
    assert result.error


def test_invalid_command_reports_failure(caplog) -> None:
    bad = VectorPath(commands=[MoveTo(0, 0), "arc"])  # type: ignore[list-item]
    with caplog.at_level(logging.ERROR, logger="app.services.boolean_ops"):
        result = union([bad], [SQUARE_B])
    assert result.success is False
    assert "Unsupported path command" in result.error
    assert "boolean operation" in caplog.text


def test_config_validate() -> None:
    assert BooleanConfig().validate().flatten_tolerance == 0.5
    with pytest.raises(InvalidConfigError):
        BooleanConfig(intersection_tolerance=-1).validate()


def test_config_from_env(monkeypatch) -> None:
    monkeypatch.setenv("BOOLEAN_FLATTEN_TOLERANCE", "0.25")
    monkeypatch.setenv("BOOLEAN_INTERSECTION_TOLERANCE", "1e-4")
    monkeypatch.setenv("BOOLEAN_HANDLE_DEGENERATES", "false")
    monkeypatch.setenv("BOOLEAN_PERTURB_DEGENERATES", "0")
    monkeypatch.setenv("BOOLEAN_PERTURBATION_SEED", "7")
    config = BooleanConfig.from_env()
    assert config.flatten_tolerance == 0.25
    assert config.intersection_tolerance == 1e-4
    assert config.handle_degenerates is False
    assert config.perturb_degenerates is False
    assert config.perturbation_seed == 7


def test_config_from_env_defaults(monkeypatch) -> None:
    for name in (
        "BOOLEAN_FLATTEN_TOLERANCE",
        "BOOLEAN_INTERSECTION_TOLERANCE",
        "BOOLEAN_HANDLE_DEGENERATES",
        "BOOLEAN_PERTURB_DEGENERATES",
        "BOOLEAN_PERTURBATION_SEED",
    ):
        monkeypatch.delenv(name, raising=False)
    assert BooleanConfig.from_env() == BooleanConfig()
