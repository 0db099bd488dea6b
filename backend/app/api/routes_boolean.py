"""
API routes for boolean path operations.

This router is the collaborator surface of the engine: an editor sends
the vector paths of the selected shapes and receives the resulting
path(s) to install as new nodes.  Two endpoints are exposed:

- ``POST /boolean`` takes the operation in the body.
- ``POST /boolean/{operation}`` takes it from the URL
  (``union``, ``subtract``, ``intersect`` or ``exclude``).

Handlers are plain ``def`` functions so FastAPI runs the CPU-bound
engine in its threadpool instead of on the event loop.  The engine never
raises; a failed operation is reported with ``success: false`` and an
error message in an HTTP 200 response.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException

from .models import (
    BooleanOperandsRequest,
    BooleanRequest,
    BooleanResponse,
    config_from_model,
    path_from_model,
    path_to_model,
)
from ..services.boolean_ops import BooleanOperationResult, Operation, compute_boolean_operation
from ..services.intersection import signed_area
from ..services.polygon import create_polygons_from_path

logger = logging.getLogger(__name__)

router = APIRouter()


def _summarise(result: BooleanOperationResult, elapsed_ms: float) -> Dict[str, Any]:
    ring_count = 0
    total_area = 0.0
    for path in result.paths:
        for ring in create_polygons_from_path(path):
            ring_count += 1
            total_area += abs(signed_area(ring.get_points()))
    return {
        "ringCount": ring_count,
        "totalArea": total_area,
        "elapsedMs": round(elapsed_ms, 3),
    }


def _run(operation: Operation, body: BooleanOperandsRequest) -> BooleanResponse:
    subject = [path_from_model(p) for p in body.subjectPaths]
    clip = [path_from_model(p) for p in body.clipPaths]
    config = config_from_model(body.config)

    start = time.perf_counter()
    result = compute_boolean_operation(operation, subject, clip, config)
    elapsed_ms = (time.perf_counter() - start) * 1000.0

    if not result.success:
        logger.warning("boolean %s failed: %s", operation.value, result.error)
    meta = _summarise(result, elapsed_ms)
    meta["operation"] = operation.value
    return BooleanResponse(
        paths=[path_to_model(p) for p in result.paths],
        success=result.success,
        error=result.error,
        metadata=meta,
    )


@router.post("/boolean", response_model=BooleanResponse)
def run_boolean(body: BooleanRequest) -> BooleanResponse:
    """Apply the operation named in the request body."""
    return _run(body.operation, body)


@router.post("/boolean/{operation}", response_model=BooleanResponse)
def run_named_boolean(operation: str, body: BooleanOperandsRequest) -> BooleanResponse:
    """Apply the operation named in the URL path."""
    try:
        op = Operation(operation.strip().upper())
    except ValueError:
        valid: List[str] = [o.value.lower() for o in Operation]
        raise HTTPException(
            status_code=400,
            detail=f"Invalid operation '{operation}'. Must be one of {', '.join(valid)}.",
        )
    return _run(op, body)
