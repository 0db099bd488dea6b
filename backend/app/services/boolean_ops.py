"""
Boolean operations on vector paths.

This is the public entry point of the engine.  ``compute_boolean_operation``
takes two collections of :class:`~.vector_path.VectorPath` objects,
flattens them into rings, combines every subject ring with every clip
ring using the Greiner–Hormann clipper and serialises the resulting
rings back into a single straight-line path.  Curvature is not
reconstructed.

Clip rings are folded over the subject: each subject ring is combined
with the first clip ring, the resulting rings with the second clip ring
and so on.  Rings that come out identical are reported once.

The orchestrator never raises.  Any exception is logged and turned into
a :class:`BooleanOperationResult` with ``success=False``.

Configuration is carried by :class:`BooleanConfig`.  ``BooleanConfig.from_env``
reads overrides from ``BOOLEAN_*`` environment variables; verbose
tracing of the individual phases is enabled by setting ``BOOLEAN_DEBUG``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

import numpy as np

from .contour import build_contours
from .degenerate import (
    are_polygons_identical,
    degenerate_reason,
    handle_degenerate_cases,
    is_degenerate_case,
    perturb_polygon,
    perturbation_magnitude,
)
from .entry_exit import Operation, insert_intersections
from .errors import InvalidConfigError
from .polygon import CLIP, SUBJECT, Polygon, create_polygons_from_path, polygons_to_vector_path
from .vector_path import VectorPath, WindingRule

logger = logging.getLogger(__name__)

__all__ = [
    "Operation",
    "BooleanConfig",
    "BooleanOperationResult",
    "compute_ring_operation",
    "compute_boolean_operation",
    "union",
    "subtract",
    "intersect",
    "exclude",
]

# Number of random nudges tried before running the pipeline on a
# still-degenerate pair
MAX_PERTURBATION_ATTEMPTS: int = 3

_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUTHY


@dataclass
class BooleanConfig:
    """Tuning parameters for a boolean operation.

    Attributes:
        flatten_tolerance: Maximum deviation, in document units, between a
            Bezier segment and its polyline approximation.
        intersection_tolerance: Distance within which a point counts as
            lying on a ring's boundary during classification.
        handle_degenerates: Run the degenerate-case pre-check and shortcuts.
        perturb_degenerates: Allow the random nudge fallback for degenerate
            pairs no shortcut can resolve.  Disable for fully deterministic
            runs without a seed.
        perturbation_seed: Seed for the nudge generator.  ``None`` draws
            fresh entropy.
    """

    flatten_tolerance: float = 0.5
    intersection_tolerance: float = 1e-6
    handle_degenerates: bool = True
    perturb_degenerates: bool = True
    perturbation_seed: Optional[int] = None

    def validate(self) -> "BooleanConfig":
        if not self.flatten_tolerance > 0:
            raise InvalidConfigError(f"flatten_tolerance must be positive, got {self.flatten_tolerance}")
        if not self.intersection_tolerance > 0:
            raise InvalidConfigError(
                f"intersection_tolerance must be positive, got {self.intersection_tolerance}"
            )
        return self

    @classmethod
    def from_env(cls) -> "BooleanConfig":
        """Build a configuration from ``BOOLEAN_*`` environment variables.

        Unset variables keep the dataclass defaults.
        """
        defaults = cls()
        seed = os.getenv("BOOLEAN_PERTURBATION_SEED")
        return cls(
            flatten_tolerance=float(os.getenv("BOOLEAN_FLATTEN_TOLERANCE", defaults.flatten_tolerance)),
            intersection_tolerance=float(
                os.getenv("BOOLEAN_INTERSECTION_TOLERANCE", defaults.intersection_tolerance)
            ),
            handle_degenerates=_env_bool("BOOLEAN_HANDLE_DEGENERATES", defaults.handle_degenerates),
            perturb_degenerates=_env_bool("BOOLEAN_PERTURB_DEGENERATES", defaults.perturb_degenerates),
            perturbation_seed=int(seed) if seed else None,
        )


@dataclass
class BooleanOperationResult:
    paths: List[VectorPath] = field(default_factory=list)
    success: bool = True
    error: Optional[str] = None


def compute_ring_operation(
    subject: Polygon,
    clip: Polygon,
    operation: Operation,
    config: BooleanConfig,
    rng: Optional[np.random.Generator] = None,
) -> List[Polygon]:
    """Combine a single subject ring with a single clip ring.

    The input rings are copied before intersections are inserted, so the
    same clip ring can be reused against several subject rings.
    """
    operation = Operation(operation)
    subject = subject.clone()
    tolerance = config.intersection_tolerance
    nudge = config.handle_degenerates and config.perturb_degenerates
    if nudge and rng is None:
        rng = np.random.default_rng(config.perturbation_seed)

    if config.handle_degenerates:
        reason = degenerate_reason(subject, clip, tolerance)
        if reason is not None:
            shortcut = handle_degenerate_cases(subject, clip, operation, tolerance)
            if shortcut is not None:
                return shortcut
            if nudge:
                subject = _perturbed(subject, clip, reason, tolerance, rng)
            if os.getenv("BOOLEAN_DEBUG"):
                logger.debug("degenerate %s pair sent through the regular pipeline", reason)

    marked_subject = subject.clone()
    marked_clip = clip.clone()
    crossings = insert_intersections(marked_subject, marked_clip)
    if crossings % 2 == 1 and nudge:
        # Closed rings in general position cross an even number of times
        subject = _perturbed(subject, clip, "odd_crossings", tolerance, rng)
        marked_subject = subject.clone()
        marked_clip = clip.clone()
        insert_intersections(marked_subject, marked_clip)
    return build_contours(marked_subject, marked_clip, operation, tolerance)


def _perturbed(
    subject: Polygon,
    clip: Polygon,
    reason: str,
    tolerance: float,
    rng: np.random.Generator,
) -> Polygon:
    """Nudge ``subject`` until it no longer touches ``clip``.

    The nudge is well above ``tolerance`` so the classifier sees the
    nudged rings as apart.  After ``MAX_PERTURBATION_ATTEMPTS`` the last
    candidate is returned even if it is still degenerate.
    """
    magnitude = perturbation_magnitude(subject, tolerance)
    candidate = subject
    for _ in range(MAX_PERTURBATION_ATTEMPTS):
        candidate = perturb_polygon(subject, rng, magnitude)
        if not is_degenerate_case(candidate, clip, tolerance):
            return candidate
    logger.warning(
        "%s pair still degenerate after %d perturbations; continuing",
        reason,
        MAX_PERTURBATION_ATTEMPTS,
    )
    return candidate


def _short_circuit(
    operation: Operation,
    subject_paths: Sequence[VectorPath],
    clip_paths: Sequence[VectorPath],
    subject_empty: bool,
    clip_empty: bool,
) -> List[VectorPath]:
    if subject_empty and clip_empty:
        return []
    if operation is Operation.INTERSECT:
        return []
    if subject_empty:
        return [] if operation is Operation.SUBTRACT else list(clip_paths)
    return list(subject_paths)


def _unique_rings(rings: List[Polygon]) -> List[Polygon]:
    unique: List[Polygon] = []
    for ring in rings:
        if not any(are_polygons_identical(ring, seen) for seen in unique):
            unique.append(ring)
    return unique


def compute_boolean_operation(
    operation: Union[Operation, str],
    subject_paths: Sequence[VectorPath],
    clip_paths: Sequence[VectorPath],
    config: Optional[BooleanConfig] = None,
) -> BooleanOperationResult:
    """Apply a boolean operation to two collections of paths.

    Args:
        operation: An :class:`Operation` or its name (case insensitive).
        subject_paths: Paths of the shape being edited.
        clip_paths: Paths of the shape applied to the subject.
        config: Tuning parameters; defaults to :class:`BooleanConfig`.

    Returns:
        A result holding at most one combined path on success.  When one
        side flattens to no rings the other side's input paths are
        returned as given (or nothing, depending on the operation).
    """
    try:
        op = operation if isinstance(operation, Operation) else Operation(str(operation).upper())
        config = (config or BooleanConfig()).validate()

        subject_rings: List[Polygon] = []
        for path in subject_paths:
            subject_rings.extend(create_polygons_from_path(path, SUBJECT, config.flatten_tolerance))
        clip_rings: List[Polygon] = []
        for path in clip_paths:
            clip_rings.extend(create_polygons_from_path(path, CLIP, config.flatten_tolerance))

        if os.getenv("BOOLEAN_DEBUG"):
            logger.debug(
                "boolean %s: %d subject ring(s), %d clip ring(s)",
                op.value,
                len(subject_rings),
                len(clip_rings),
            )

        if not subject_rings or not clip_rings:
            paths = _short_circuit(op, subject_paths, clip_paths, not subject_rings, not clip_rings)
            return BooleanOperationResult(paths=paths, success=True)

        rng = np.random.default_rng(config.perturbation_seed)
        results: List[Polygon] = []
        for subject in subject_rings:
            current = [subject]
            for clip in clip_rings:
                current = [
                    ring
                    for part in current
                    for ring in compute_ring_operation(part, clip, op, config, rng)
                ]
                if not current:
                    break
            results.extend(current)

        results = _unique_rings(results)
        winding_rule = subject_paths[0].winding_rule if subject_paths else WindingRule.NONZERO
        paths = [polygons_to_vector_path(results, winding_rule)] if results else []
        return BooleanOperationResult(paths=paths, success=True)
    except Exception as exc:
        logger.exception("boolean operation %s failed: %s", operation, exc)
        return BooleanOperationResult(paths=[], success=False, error=str(exc))


def union(subject_paths, clip_paths, config: Optional[BooleanConfig] = None) -> BooleanOperationResult:
    return compute_boolean_operation(Operation.UNION, subject_paths, clip_paths, config)


def subtract(subject_paths, clip_paths, config: Optional[BooleanConfig] = None) -> BooleanOperationResult:
    return compute_boolean_operation(Operation.SUBTRACT, subject_paths, clip_paths, config)


def intersect(subject_paths, clip_paths, config: Optional[BooleanConfig] = None) -> BooleanOperationResult:
    return compute_boolean_operation(Operation.INTERSECT, subject_paths, clip_paths, config)


def exclude(subject_paths, clip_paths, config: Optional[BooleanConfig] = None) -> BooleanOperationResult:
    return compute_boolean_operation(Operation.EXCLUDE, subject_paths, clip_paths, config)
