"""
Plugin Protocol

Interface implemented by every plugin registered with AppBuilder.
"""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from fastapi import FastAPI

    from .app_builder import AppBuilder


class AppPlugin(Protocol):
    """
    Plugin lifecycle:
    1. configure: register middleware, routes and hooks with the builder
    2. startup: called during FastAPI application startup
    3. shutdown: called during FastAPI application shutdown
    """

    def configure(self, builder: "AppBuilder") -> None:
        """
        Configure the plugin with the AppBuilder.

        Synchronous: only registers components. Async initialization belongs
        in startup().
        """
        ...

    async def startup(self, app: "FastAPI") -> None: ...

    async def shutdown(self, app: "FastAPI") -> None: ...
