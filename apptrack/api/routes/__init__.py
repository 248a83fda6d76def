"""API routes."""

from .health import router as health_router
from .root import not_found_handler
from .root import router as root_router

__all__ = ["health_router", "not_found_handler", "root_router"]
