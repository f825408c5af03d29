"""Middleware for logging API requests."""
import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log every API request with its status and duration."""

    async def dispatch(self, request: Request, call_next):
        """Process the request and log it."""
        start_time = time.perf_counter()
        response = await call_next(request)

        try:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            client_host = request.client.host if request.client else "unknown"
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"({elapsed_ms:.1f}ms, client={client_host})"
            )
        except Exception as e:
            # Don't break the app if logging fails
            logger.error(f"Failed to log API request: {e}")

        return response
