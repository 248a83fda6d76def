"""
Database dependency injection for API routes.

Route handlers that touch MongoDB depend on `require_database` (or
`get_database`), which consults the connection manager on every request and
short-circuits with a structured 503 while the database is unavailable.
"""

from typing import TYPE_CHECKING

from fastapi import Request

from apptrack.api.utils.error_helpers import DatabaseUnavailableError
from apptrack.core.logging.logger import get_logger
from apptrack.database.connection_manager import ConnectionManager
from apptrack.database.connection_state import ConnectionState

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorDatabase

logger = get_logger(__name__)


def get_connection_manager(request: Request) -> ConnectionManager | None:
    """
    Get the process connection manager published by DatabasePlugin.

    Returns:
        The manager, or None when the database plugin is not installed
    """
    return getattr(request.app.state, "db_manager", None)


async def require_database(request: Request) -> ConnectionManager:
    """
    Ensure the database is connected before the route runs.

    Raises:
        DatabaseUnavailableError: If the database is connecting or disconnected
    """
    manager = get_connection_manager(request)
    if manager is None:
        raise DatabaseUnavailableError(ConnectionState.DISCONNECTED)

    state = manager.status()
    if state is not ConnectionState.CONNECTED:
        logger.warning(
            f"Rejecting {request.method} {request.url.path}: database {state.value}"
        )
        raise DatabaseUnavailableError(state)

    return manager


async def get_database(request: Request) -> "AsyncIOMotorDatabase":
    """
    Get the default MongoDB database for the request.

    Raises:
        DatabaseUnavailableError: If the database is not connected
    """
    manager = await require_database(request)
    return manager.transport.get_database()
