"""Request logging middleware: one log line per state-changing request.

Business-level audit entries are written by the services inside the request's
transaction; this only records timing and outcome for operators.
"""


import logging
import time
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Methods that mutate state
_WRITE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration of every write request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000)

        if request.method in _WRITE_METHODS:
            client = request.client.host if request.client else "-"
            level = logging.WARNING if response.status_code >= 500 else logging.INFO
            logger.log(
                level,
                "%s %s -> %d (%dms) from %s",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                client,
            )

        return response
