"""
Core Plugins Module

- CorePlugin: logging, fault handlers, middleware, health/root routes
- DatabasePlugin: MongoDB connection lifecycle
"""

from .core_plugin import CorePlugin
from .database_plugin import DatabasePlugin

__all__ = [
    "CorePlugin",
    "DatabasePlugin",
]
