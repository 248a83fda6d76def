"""
Core Plugin

Foundation of every application: logging, process fault handlers, CORS,
core middleware, health/root routes and the not-found handler.
"""

from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apptrack.api.middleware.error_handler import ErrorHandlerMiddleware
from apptrack.api.middleware.request_logging import RequestLoggingMiddleware
from apptrack.api.routes.health import router as health_router
from apptrack.api.routes.root import not_found_handler
from apptrack.api.routes.root import router as root_router

from ..config.settings import settings
from ..faults import install_fault_handlers
from ..logging.logger import get_app_logger, setup_app_logging

if TYPE_CHECKING:
    from ..factory.app_builder import AppBuilder


class CorePlugin:
    """
    Core functionality as a plugin.

    - Application logging setup
    - Process-level fault logging (loop exception handler, sys.excepthook)
    - Middleware stack (CORS, ErrorHandler, RequestLogging)
    - Routes (health, root) and the 404 handler
    """

    def __init__(self, cors_origins: list[str] | None = None):
        """
        Args:
            cors_origins: Allowed CORS origins (defaults to all)
        """
        self.cors_origins = cors_origins or ["*"]

    def configure(self, builder: "AppBuilder") -> None:
        """Register core middleware, routes and lifespan hooks."""
        logger = get_app_logger()
        logger.debug("🏗️ Configuring CorePlugin...")

        # Higher priority numbers run closer to routes (inner middleware)
        builder.add_middleware(
            CORSMiddleware,
            priority=10,
            allow_origins=self.cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        builder.add_middleware(RequestLoggingMiddleware, priority=70)
        builder.add_middleware(ErrorHandlerMiddleware, priority=80)

        builder.add_router(health_router)
        builder.add_router(root_router)
        builder.add_exception_handler(404, not_found_handler)

        builder.add_startup_hook(self._core_startup, priority=10)
        builder.add_shutdown_hook(self._core_shutdown, priority=90)

    async def startup(self, app: FastAPI) -> None:
        await self._core_startup(app)

    async def shutdown(self, app: FastAPI) -> None:
        await self._core_shutdown(app)

    async def _core_startup(self, app: FastAPI) -> None:
        """
        Runs first (priority 10): everything after it can log.
        """
        logger = None
        try:
            setup_app_logging()
            logger = get_app_logger()

            install_fault_handlers()

            logger.info(f"🚀 Starting App Tracking System API v{settings.version}")
            logger.info(f"📊 Environment: {settings.environment}")
            logger.info(f"📝 Log level: {settings.log_level}")

            base_url = f"http://localhost:{settings.port}"
            logger.info(f"📍 Health check: {base_url}/health")
            if settings.is_development:
                logger.info(f"📖 API Documentation: {base_url}/docs")

        except Exception as e:
            if logger:
                logger.error(f"❌ Error during core startup: {e}", exc_info=True)
            else:
                print(f"💥 Critical error during logging setup: {e}")
            raise

    async def _core_shutdown(self, app: FastAPI) -> None:
        """Runs last (priority 90)."""
        logger = get_app_logger()
        logger.info("✅ App Tracking System API shutdown completed")
