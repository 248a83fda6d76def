"""Dependency injection for API routes."""

from .database_dependencies import (
    get_connection_manager,
    get_database,
    require_database,
)

__all__ = ["get_connection_manager", "get_database", "require_database"]
