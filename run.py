"""
Entry point for the path boolean-operations service.

Running this script with ``python run.py`` will start the FastAPI
server that exposes the boolean engine over HTTP.  The application
defined in ``backend/app/main.py`` is imported after adjusting the
Python path to include the repository root.

Environment variables:

- ``BOOLEAN_HOST`` / ``BOOLEAN_PORT``: bind address (default 0.0.0.0:8000).
- ``BOOLEAN_DEBUG``: emit detailed traces of the clipping phases.
- ``BOOLEAN_FLATTEN_TOLERANCE``, ``BOOLEAN_INTERSECTION_TOLERANCE``,
  ``BOOLEAN_HANDLE_DEGENERATES``, ``BOOLEAN_PERTURB_DEGENERATES``,
  ``BOOLEAN_PERTURBATION_SEED``: defaults for requests without a config.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import logging
import uvicorn

logging.basicConfig(
    level=logging.DEBUG if os.getenv("BOOLEAN_DEBUG") else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def main() -> None:
    """Run the Uvicorn server hosting the boolean-operations API."""
    # Determine the repository root relative to this file and ensure it is on
    # sys.path so that ``backend`` can be imported as a package.
    repo_root = Path(__file__).resolve().parent
    if str(repo_root) not in sys.path:
        sys.path.append(str(repo_root))

    from backend.app.main import app  # type: ignore

    host = os.getenv("BOOLEAN_HOST", "0.0.0.0")
    port = int(os.getenv("BOOLEAN_PORT", "8000"))
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
