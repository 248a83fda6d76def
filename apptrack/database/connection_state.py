"""
Connection states reported by a database transport.
"""

from enum import Enum


class ConnectionState(Enum):
    """
    Readiness of the database connection, as reported by the transport.

    The numeric ready-state codes follow the MongoDB driver convention used by
    the health endpoint: 0 disconnected, 1 connected, 2 connecting,
    3 disconnecting.
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"

    @property
    def ready_state(self) -> int:
        return _READY_STATES[self]


_READY_STATES = {
    ConnectionState.DISCONNECTED: 0,
    ConnectionState.CONNECTED: 1,
    ConnectionState.CONNECTING: 2,
    ConnectionState.DISCONNECTING: 3,
}


class TransportEvent(Enum):
    """Connectivity notifications a transport delivers to its listeners."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"
