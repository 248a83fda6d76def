"""
Database Plugin

Connects the MongoDB connection manager to the application lifespan. The
initial connection is triggered in the background so the server starts
answering (degraded) immediately.
"""

from typing import TYPE_CHECKING

from ...database.connection_manager import ConnectionManager
from ...database.transport import DatabaseTransport, MotorTransport
from ..config.settings import settings
from ..logging.logger import get_app_logger

if TYPE_CHECKING:
    from fastapi import FastAPI

    from ..factory.app_builder import AppBuilder


class DatabasePlugin:
    """
    MongoDB plugin.

    Publishes the process-wide ConnectionManager as `app.state.db_manager`,
    where route dependencies read it.

    Example:
        # Production: Motor transport, settings from the environment
        builder.add_plugin(DatabasePlugin())

        # Tests: inject a fake transport or a prepared manager
        builder.add_plugin(DatabasePlugin(transport=FakeTransport()))
    """

    def __init__(
        self,
        transport: DatabaseTransport | None = None,
        manager: ConnectionManager | None = None,
    ):
        """
        Args:
            transport: Transport for a manager built at startup
            manager: Ready-made manager; takes precedence over transport
        """
        self.transport = transport
        self.manager = manager

    def configure(self, builder: "AppBuilder") -> None:
        """
        Register lifecycle hooks.

        Priority 20: after core startup (10) has initialized logging.
        """
        builder.add_startup_hook(self._database_startup, priority=20)
        builder.add_shutdown_hook(self._database_shutdown, priority=20)

    async def startup(self, app: "FastAPI") -> None:
        await self._database_startup(app)

    async def shutdown(self, app: "FastAPI") -> None:
        await self._database_shutdown(app)

    async def _database_startup(self, app: "FastAPI") -> None:
        logger = get_app_logger()

        if self.manager is None:
            self.manager = ConnectionManager(self.transport or MotorTransport())

        app.state.db_manager = self.manager

        logger.info("=== DATABASE CONNECTION ===")
        url = settings.mongodb_url
        if url:
            logger.info(f"🍃 MongoDB target: {mask_connection_string(url)}")
        logger.info(
            f"🔁 Retry policy: {self.manager.max_retry_attempts} attempts, "
            f"base delay {self.manager.base_delay:g}s"
        )

        # Not awaited: the server must start serving while this runs
        self.manager.trigger_connect()
        logger.info("===========================")

    async def _database_shutdown(self, app: "FastAPI") -> None:
        logger = get_app_logger()

        try:
            if self.manager is not None:
                await self.manager.close()
        except Exception as e:
            logger.error(f"❌ Error during database shutdown: {e}", exc_info=True)

        if hasattr(app.state, "db_manager"):
            del app.state.db_manager


def mask_connection_string(connection_string: str) -> str:
    """
    Mask the password in a connection string for logging.

    Returns:
        Connection string with password masked
    """
    if "://" not in connection_string:
        return connection_string

    scheme, rest = connection_string.split("://", 1)
    if "@" not in rest:
        return connection_string

    user_part, host_part = rest.rsplit("@", 1)
    if ":" in user_part:
        user, _ = user_part.split(":", 1)
        masked_user_part = f"{user}:***"
    else:
        masked_user_part = user_part

    return f"{scheme}://{masked_user_part}@{host_part}"
