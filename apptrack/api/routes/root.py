"""
Root endpoint and not-found handling.
"""

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from apptrack.api.dependencies.database_dependencies import get_connection_manager

router = APIRouter(tags=["Root"])


@router.get("/")
async def root(request: Request) -> dict[str, Any]:
    """Service banner with a coarse database indicator."""
    manager = get_connection_manager(request)
    connected = manager is not None and manager.is_connected
    return {
        "message": "App Tracking System API",
        "status": "running",
        "database": "connected" if connected else "disconnected",
    }


async def not_found_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """
    404 handler.

    Unmatched routes get a uniform body; a 404 raised by a route with its own
    detail keeps that detail.
    """
    if exc.detail and exc.detail != "Not Found":
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    return JSONResponse(
        status_code=404,
        content={
            "error": "Route not found",
            "message": "The requested endpoint does not exist",
        },
    )
