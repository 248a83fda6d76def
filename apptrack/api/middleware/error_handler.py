"""
Global error handling middleware.

Turns exceptions escaping route handlers into structured JSON responses and
never exposes raw driver errors to clients.
"""

from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from apptrack.api.utils.error_helpers import DatabaseUnavailableError, degraded_response
from apptrack.core.config.settings import settings
from apptrack.core.logging.logger import get_logger


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Catches unhandled exceptions and maps them to responses:

    - DatabaseUnavailableError → 503 "service degraded" (connecting/disconnected)
    - PyMongo errors → 503 "Database connection error"
    - anything else → 500 "Internal server error"

    Exception text is included as `details` in development only.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)

        except HTTPException as http_exc:
            self._log_http_exception(request, http_exc)
            raise

        except DatabaseUnavailableError as exc:
            return degraded_response(exc.state)

        except Exception as exc:
            return self._handle_unexpected_exception(request, exc)

    def _log_http_exception(self, request: Request, exc: HTTPException) -> None:
        logger = get_logger(__name__)
        logger.warning(
            f"HTTP {exc.status_code} - {request.method} {request.url.path} - "
            f"Detail: {exc.detail}"
        )

    def _handle_unexpected_exception(
        self, request: Request, exc: Exception
    ) -> JSONResponse:
        logger = get_logger(__name__)
        logger.error(
            f"❌ Unhandled error in {request.method} {request.url.path}: {exc}",
            exc_info=True,
        )

        if isinstance(exc, PyMongoError):
            content: dict[str, Any] = {
                "error": "Database connection error",
                "message": "The database is currently unavailable. Please try again later.",
            }
            status_code = 503
        else:
            content = {
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later.",
            }
            status_code = 500

        if settings.is_development:
            content["details"] = str(exc)

        return JSONResponse(status_code=status_code, content=content)
