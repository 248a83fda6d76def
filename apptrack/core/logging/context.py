"""
Request context management using contextvars for automatic propagation.

The request id is set once by the request logging middleware and is then
available to every logger created during that request.
"""

from contextvars import ContextVar

_request_context: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_context(request_id: str | None = None) -> None:
    """
    Set the request context for the current async context.

    Args:
        request_id: Identifier of the request being processed
    """
    if request_id is not None:
        _request_context.set(request_id)


def get_current_request_context() -> str | None:
    """Get the current request id, or None outside of a request."""
    return _request_context.get()

