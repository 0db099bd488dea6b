"""
Pydantic data models for the boolean-operations API.

These models define the shapes of requests and responses used by the
backend.  Path commands use the compact single-letter encoding of the
design document model (``M``, ``L``, ``C``, ``Z``).  Conversion helpers
translate between these wire schemas and the plain dataclasses used by
the geometry services so that the services stay independent of pydantic.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from ..services.boolean_ops import BooleanConfig, Operation
from ..services.vector_path import (
    ClosePath,
    CubicCurveTo,
    LineTo,
    MoveTo,
    PathCommand,
    VectorPath,
    WindingRule,
)


class PathCommandModel(BaseModel):
    """Single path command."""

    type: Literal["M", "L", "C", "Z"] = Field(..., description="Command type: M, L, C or Z")
    x: Optional[float] = Field(default=None, description="End point x (M, L, C)")
    y: Optional[float] = Field(default=None, description="End point y (M, L, C)")
    x1: Optional[float] = Field(default=None, description="First control point x (C)")
    y1: Optional[float] = Field(default=None, description="First control point y (C)")
    x2: Optional[float] = Field(default=None, description="Second control point x (C)")
    y2: Optional[float] = Field(default=None, description="Second control point y (C)")

    @model_validator(mode="after")
    def _check_coordinates(self) -> "PathCommandModel":
        required = {
            "M": ("x", "y"),
            "L": ("x", "y"),
            "C": ("x1", "y1", "x2", "y2", "x", "y"),
            "Z": (),
        }[self.type]
        missing = [name for name in required if getattr(self, name) is None]
        if missing:
            raise ValueError(f"command '{self.type}' is missing {', '.join(missing)}")
        return self


class VectorPathModel(BaseModel):
    """A vector path: ordered commands plus a fill rule."""

    windingRule: WindingRule = Field(
        default=WindingRule.NONZERO, description="Fill rule of the path (NONZERO or EVENODD)"
    )
    commands: List[PathCommandModel] = Field(default_factory=list, description="Ordered path commands")


class BooleanConfigModel(BaseModel):
    """Optional tuning parameters for a boolean operation."""

    flattenTolerance: float = Field(
        default=0.5, gt=0.0, description="Maximum curve flattening deviation in document units"
    )
    intersectionTolerance: float = Field(
        default=1e-6, gt=0.0, description="Distance within which a point counts as on a boundary"
    )
    handleDegenerates: bool = Field(
        default=True, description="Detect shared vertices, coincident edges and zero-area rings"
    )
    perturbDegenerates: bool = Field(
        default=True, description="Allow the random nudge fallback for unresolved degenerate pairs"
    )
    perturbationSeed: Optional[int] = Field(
        default=None, description="Seed for the nudge generator, for reproducible results"
    )


class BooleanOperandsRequest(BaseModel):
    """Request body for the per-operation endpoint."""

    subjectPaths: List[VectorPathModel] = Field(default_factory=list, description="Paths of the subject shape")
    clipPaths: List[VectorPathModel] = Field(default_factory=list, description="Paths of the clip shape")
    config: Optional[BooleanConfigModel] = Field(
        default=None, description="Tuning parameters; server defaults apply when omitted"
    )


class BooleanRequest(BooleanOperandsRequest):
    """Request body for the generic boolean endpoint."""

    operation: Operation = Field(..., description="UNION, SUBTRACT, INTERSECT or EXCLUDE")


class BooleanResponse(BaseModel):
    """Response returned after a boolean operation."""

    paths: List[VectorPathModel] = Field(default_factory=list, description="Resulting paths")
    success: bool = Field(..., description="Whether the operation completed")
    error: Optional[str] = Field(default=None, description="Failure message when success is false")
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description="Ring count, total area and timing information"
    )


def command_from_model(cmd: PathCommandModel) -> PathCommand:
    if cmd.type == "M":
        return MoveTo(cmd.x, cmd.y)
    if cmd.type == "L":
        return LineTo(cmd.x, cmd.y)
    if cmd.type == "C":
        return CubicCurveTo(cmd.x1, cmd.y1, cmd.x2, cmd.y2, cmd.x, cmd.y)
    return ClosePath()


def command_to_model(cmd: PathCommand) -> PathCommandModel:
    if isinstance(cmd, MoveTo):
        return PathCommandModel(type="M", x=cmd.x, y=cmd.y)
    if isinstance(cmd, LineTo):
        return PathCommandModel(type="L", x=cmd.x, y=cmd.y)
    if isinstance(cmd, CubicCurveTo):
        return PathCommandModel(type="C", x1=cmd.x1, y1=cmd.y1, x2=cmd.x2, y2=cmd.y2, x=cmd.x, y=cmd.y)
    return PathCommandModel(type="Z")


def path_from_model(model: VectorPathModel) -> VectorPath:
    return VectorPath(
        commands=[command_from_model(c) for c in model.commands],
        winding_rule=WindingRule(model.windingRule),
    )


def path_to_model(path: VectorPath) -> VectorPathModel:
    return VectorPathModel(
        windingRule=path.winding_rule,
        commands=[command_to_model(c) for c in path.commands],
    )


def config_from_model(model: Optional[BooleanConfigModel]) -> BooleanConfig:
    """Translate the wire config, falling back to the environment defaults."""
    if model is None:
        return BooleanConfig.from_env()
    return BooleanConfig(
        flatten_tolerance=model.flattenTolerance,
        intersection_tolerance=model.intersectionTolerance,
        handle_degenerates=model.handleDegenerates,
        perturb_degenerates=model.perturbDegenerates,
        perturbation_seed=model.perturbationSeed,
    )
