"""
Error response helpers for API routes.

Centralizes the "service degraded" payloads so every route reports database
unavailability the same way.
"""

from typing import Any

from fastapi.responses import JSONResponse

from apptrack.database.connection_state import ConnectionState


class DatabaseUnavailableError(Exception):
    """Raised by route dependencies when the database is not connected."""

    def __init__(self, state: ConnectionState):
        self.state = state
        super().__init__(f"Database is {state.value}")


def degraded_payload(state: ConnectionState) -> dict[str, Any]:
    """
    Build the 503 body for a request that needs the database.

    Args:
        state: Current connection state (anything but CONNECTED)

    Returns:
        Body distinguishing "connecting" from "disconnected"
    """
    if state is ConnectionState.CONNECTING:
        return {
            "error": "Database is connecting. Please try again in a moment.",
            "status": "connecting",
        }

    return {
        "error": "Database connection is not available. Please try again later.",
        "status": "disconnected",
        "message": (
            "The server is running but cannot connect to the database. "
            "This may be temporary."
        ),
    }


def degraded_response(state: ConnectionState) -> JSONResponse:
    """503 JSONResponse for the given connection state."""
    return JSONResponse(status_code=503, content=degraded_payload(state))
