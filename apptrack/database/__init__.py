"""
Database connection lifecycle for the App Tracking System API.

Clean Architecture:
- ConnectionManager: attempt guard, retry policy and timer discipline
- DatabaseTransport: driver abstraction with explicit listener registration
- MotorTransport: MongoDB implementation on top of Motor/PyMongo
"""

from .connection_manager import ConnectionManager
from .connection_state import ConnectionState, TransportEvent
from .errors import ClassifiedFailure, FailureKind, classify_failure
from .reconnection import ReconnectionConfig, ReconnectionStrategy
from .timer import RetryTimer
from .transport import (
    BaseTransport,
    ConnectionOptions,
    DatabaseTransport,
    MotorTransport,
)

__all__ = [
    "BaseTransport",
    "ClassifiedFailure",
    "ConnectionManager",
    "ConnectionOptions",
    "ConnectionState",
    "DatabaseTransport",
    "FailureKind",
    "MotorTransport",
    "ReconnectionConfig",
    "ReconnectionStrategy",
    "RetryTimer",
    "TransportEvent",
    "classify_failure",
]
