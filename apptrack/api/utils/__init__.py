"""API utilities."""

from .error_helpers import DatabaseUnavailableError, degraded_payload, degraded_response

__all__ = ["DatabaseUnavailableError", "degraded_payload", "degraded_response"]
