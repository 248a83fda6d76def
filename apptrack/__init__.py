"""
App Tracking System API

Backend for a job-application tracker backed by MongoDB. The database
connection is owned by a single ConnectionManager that connects in the
background, repairs the connection on failure and tells request handlers
whether the database is usable.
"""

from .core.app import create_app
from .core.config.settings import settings
from .database import ConnectionManager, ConnectionState

__version__ = settings.version

__all__ = [
    "ConnectionManager",
    "ConnectionState",
    "create_app",
]
