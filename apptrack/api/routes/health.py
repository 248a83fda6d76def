"""
Health check endpoints.

Health checks answer even while the database is down: they report the
connection state instead of failing.
"""

import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request

from apptrack.api.dependencies.database_dependencies import get_connection_manager
from apptrack.core.config.settings import settings
from apptrack.core.logging.logger import get_api_logger
from apptrack.database.connection_state import ConnectionState

logger = get_api_logger()
router = APIRouter(tags=["Health"])


def _database_state(request: Request) -> ConnectionState:
    manager = get_connection_manager(request)
    if manager is None:
        return ConnectionState.DISCONNECTED
    return manager.status()


@router.get("/health")
async def health_check(request: Request) -> dict[str, Any]:
    """
    Basic health check.

    The server is "ok" whenever it can answer; `database` carries the
    connection state (disconnected, connected, connecting, disconnecting).
    """
    return {
        "status": "ok",
        "server": "running",
        "database": _database_state(request).value,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/detailed")
async def detailed_health_check(request: Request) -> dict[str, Any]:
    """
    Detailed health check with connection lifecycle and configuration.

    Useful for debugging and monitoring.
    """
    start_time = time.time()

    manager = get_connection_manager(request)
    if manager is None:
        database: dict[str, Any] = {
            "state": ConnectionState.DISCONNECTED.value,
            "error": "Database plugin not installed",
        }
    else:
        database = manager.get_status()
    database["configured"] = settings.has_mongodb

    response_time = time.time() - start_time

    detailed_data = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "response_time_ms": round(response_time * 1000, 2),
        "application": {
            "name": "App Tracking System API",
            "version": settings.version,
            "environment": settings.environment,
            "is_development": settings.is_development,
        },
        "configuration": {
            "log_level": settings.log_level,
            "port": settings.port,
        },
        "database": database,
    }

    logger.info(
        f"Detailed health check completed - database: {database['state']}"
    )

    return detailed_data
