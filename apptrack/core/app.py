"""
Application factory.
"""

from fastapi import FastAPI

from ..database.connection_manager import ConnectionManager
from ..database.transport import DatabaseTransport
from .config.settings import settings
from .factory.app_builder import AppBuilder
from .plugins.core_plugin import CorePlugin
from .plugins.database_plugin import DatabasePlugin


def create_app(
    transport: DatabaseTransport | None = None,
    manager: ConnectionManager | None = None,
) -> FastAPI:
    """
    Build the App Tracking System API.

    Args:
        transport: Database transport (defaults to MotorTransport)
        manager: Prebuilt connection manager, mainly for tests

    Returns:
        FastAPI application; the database connection starts in the lifespan
    """
    return (
        AppBuilder()
        .add_plugin(CorePlugin())
        .add_plugin(DatabasePlugin(transport=transport, manager=manager))
        .configure(
            version=settings.version,
            docs_url="/docs" if settings.is_development else None,
            redoc_url="/redoc" if settings.is_development else None,
        )
        .build()
    )
