"""
AppBuilder - Extensible FastAPI Application Factory

Builds the service's FastAPI application from plugins, prioritized
middleware, routers, exception handlers and lifespan hooks.
"""

from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI

from ..logging.logger import get_app_logger

if TYPE_CHECKING:
    from .plugin import AppPlugin


class AppBuilder:
    """
    Fluent builder for the App Tracking System API.

    Example:
        app = (AppBuilder()
            .add_plugin(CorePlugin())
            .add_plugin(DatabasePlugin())
            .configure(title="App Tracking System API")
            .build())
    """

    def __init__(self):
        self.plugins: list[AppPlugin] = []
        self.middlewares: list[tuple[type, dict, int]] = []  # (class, kwargs, priority)
        self.routers: list[tuple[Any, dict]] = []  # (router, include_kwargs)
        self.exception_handlers: dict[int | type[Exception], Callable] = {}
        self.startup_hooks: list[tuple[Callable, int]] = []  # (hook, priority)
        self.shutdown_hooks: list[tuple[Callable, int]] = []  # (hook, priority)
        self.config_overrides: dict[str, Any] = {}

    def add_plugin(self, plugin: "AppPlugin") -> "AppBuilder":
        """
        Add a plugin to extend functionality.

        Args:
            plugin: AppPlugin instance to add

        Returns:
            Self for method chaining
        """
        self.plugins.append(plugin)
        return self

    def add_middleware(
        self, middleware_class: type, priority: int = 50, **kwargs: Any
    ) -> "AppBuilder":
        """
        Add middleware to the application with priority ordering.

        Priority determines execution order:
        - Lower numbers run first (outer middleware)
        - Higher numbers run last (inner middleware)

        Args:
            middleware_class: Middleware class to add
            priority: Execution priority (lower = outer, higher = inner)
            **kwargs: Middleware configuration parameters

        Returns:
            Self for method chaining
        """
        self.middlewares.append((middleware_class, kwargs, priority))
        return self

    def add_router(self, router: Any, **kwargs: Any) -> "AppBuilder":
        """Add a router; kwargs are passed to app.include_router()."""
        self.routers.append((router, kwargs))
        return self

    def add_exception_handler(
        self, exc_class_or_status_code: int | type[Exception], handler: Callable
    ) -> "AppBuilder":
        """Register an exception handler by exception class or status code."""
        self.exception_handlers[exc_class_or_status_code] = handler
        return self

    def add_startup_hook(self, hook: Callable, priority: int = 50) -> "AppBuilder":
        """
        Add a startup hook to unified lifespan management.

        Lower priority numbers execute first.

        Priority Guidelines:
        - 10: Core system initialization (logging, fault handlers)
        - 20: Infrastructure (database)
        - 50: User hooks (default)

        Args:
            hook: Async callable that takes (app: FastAPI) -> None
            priority: Execution priority (lower = runs first)

        Returns:
            Self for method chaining
        """
        self.startup_hooks.append((hook, priority))
        return self

    def add_shutdown_hook(self, hook: Callable, priority: int = 50) -> "AppBuilder":
        """
        Add a shutdown hook to unified lifespan management.

        Higher priority numbers execute first during shutdown.

        Args:
            hook: Async callable that takes (app: FastAPI) -> None
            priority: Execution priority (higher = runs first in shutdown)

        Returns:
            Self for method chaining
        """
        self.shutdown_hooks.append((hook, priority))
        return self

    def configure(self, **overrides: Any) -> "AppBuilder":
        """Override default FastAPI constructor arguments."""
        self.config_overrides.update(overrides)
        return self

    def build(self) -> FastAPI:
        """
        Build the configured FastAPI application.

        1. Configure plugins (sync registration only)
        2. Create FastAPI app with lifespan and config
        3. Add middleware in priority order
        4. Include routers

        Returns:
            FastAPI application with configured plugins
        """
        logger = get_app_logger()
        logger.debug(f"🏗️ Building FastAPI app with {len(self.plugins)} plugins")

        for plugin in self.plugins:
            plugin.configure(self)

        @asynccontextmanager
        async def unified_lifespan(app: FastAPI):
            try:
                logger.debug("🚀 Starting unified lifespan startup phase...")
                await self._execute_all_startup_hooks(app)
                logger.info("✅ All startup hooks completed successfully")
                yield
            except Exception as e:
                logger.error(f"❌ Error during startup phase: {e}", exc_info=True)
                raise
            finally:
                logger.debug("🛑 Starting unified lifespan shutdown phase...")
                await self._execute_all_shutdown_hooks(app)
                logger.info("✅ All shutdown hooks completed")

        default_config = {
            "title": "App Tracking System API",
            "description": "Job-application tracker backed by MongoDB",
            "version": "1.0.0",
            "lifespan": unified_lifespan,
        }
        default_config.update(self.config_overrides)
        if self.exception_handlers:
            default_config["exception_handlers"] = {
                **default_config.get("exception_handlers", {}),
                **self.exception_handlers,
            }

        app = FastAPI(**default_config)

        # FastAPI wraps middleware in reverse order of addition
        sorted_middlewares = sorted(self.middlewares, key=lambda x: x[2], reverse=True)
        for middleware_class, kwargs, priority in sorted_middlewares:
            app.add_middleware(middleware_class, **kwargs)
            logger.debug(
                f"Added middleware {middleware_class.__name__} (priority: {priority})"
            )

        for router, kwargs in self.routers:
            app.include_router(router, **kwargs)

        logger.info(
            f"🎉 AppBuilder created FastAPI app: {len(self.plugins)} plugins, "
            f"{len(self.middlewares)} middlewares, {len(self.routers)} routers"
        )

        return app

    async def _execute_all_startup_hooks(self, app: FastAPI) -> None:
        """Execute startup hooks in priority order, failing fast."""
        logger = get_app_logger()

        sorted_hooks = sorted(self.startup_hooks, key=lambda x: x[1])
        for hook, priority in sorted_hooks:
            hook_name = getattr(hook, "__name__", "anonymous_hook")
            logger.debug(f"⚡ Executing startup hook: {hook_name} (priority: {priority})")
            try:
                await hook(app)
            except Exception as e:
                logger.error(f"❌ Startup hook {hook_name} failed: {e}", exc_info=True)
                raise

    async def _execute_all_shutdown_hooks(self, app: FastAPI) -> None:
        """Execute shutdown hooks in reverse priority order, isolating errors."""
        logger = get_app_logger()

        sorted_hooks = sorted(self.shutdown_hooks, key=lambda x: x[1], reverse=True)
        for hook, priority in sorted_hooks:
            hook_name = getattr(hook, "__name__", "anonymous_hook")
            try:
                logger.debug(
                    f"🛑 Executing shutdown hook: {hook_name} (priority: {priority})"
                )
                await hook(app)
            except Exception as e:
                # Keep shutting down the remaining hooks
                logger.error(
                    f"❌ Error in shutdown hook {hook_name}: {e}", exc_info=True
                )
