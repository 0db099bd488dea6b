"""
Main application module for the boolean-operations backend.

This file sets up the FastAPI application, configures CORS so an editor
frontend can make cross-origin requests, and exposes a simple health
check endpoint.  The boolean router is included under the ``/api``
namespace.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes_boolean import router as boolean_router


def create_app() -> FastAPI:
    """Factory to create and configure the FastAPI application.

    Returns:
        FastAPI: The configured FastAPI application instance.
    """
    app = FastAPI(title="Path boolean operations")

    # Allow all origins by default.  In production you should restrict
    # this to the domains that are allowed to access your API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoint for monitoring and deployment probes.
    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(boolean_router, prefix="/api", tags=["boolean"])

    return app


# Instantiate the app for ASGI servers
app = create_app()
