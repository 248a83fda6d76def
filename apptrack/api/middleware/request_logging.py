"""
Request and response logging middleware.

Assigns each request an id, makes it available to every logger through the
request context, and logs method, path, status and timing.
"""

import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from apptrack.core.config.settings import settings
from apptrack.core.logging.context import set_request_context
from apptrack.core.logging.logger import get_logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs HTTP requests and responses with request-id context."""

    def __init__(self, app, log_requests: bool = True, log_responses: bool = True):
        super().__init__(app)
        self.log_requests = log_requests
        self.log_responses = log_responses

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.time()

        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        set_request_context(request_id=request_id)
        logger = get_logger(__name__)

        skip = self._should_skip_logging(request.url.path)
        if self.log_requests and not skip:
            client_host = request.client.host if request.client else "unknown"
            logger.info(f"Incoming {request.method} {request.url.path} from {client_host}")

        response = await call_next(request)

        process_time_ms = round((time.time() - start_time) * 1000, 2)
        response.headers["X-Request-ID"] = request_id
        if settings.is_development:
            response.headers["X-Process-Time"] = str(process_time_ms)

        if self.log_responses and not skip:
            status_code = response.status_code
            if status_code >= 500:
                log = logger.error
            elif status_code >= 400:
                log = logger.warning
            else:
                log = logger.info
            log(
                f"Response {status_code} for {request.method} {request.url.path} "
                f"({process_time_ms}ms)"
            )

        return response

    def _should_skip_logging(self, path: str) -> bool:
        """Skip health checks and docs to reduce noise."""
        skip_paths = ["/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico"]
        return any(path.startswith(skip_path) for skip_path in skip_paths)
