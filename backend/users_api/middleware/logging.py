"""
Users API: Request Logging Middleware
======================================

What:  One access log line per HTTP request.
How:   Times the downstream call and logs method, route, status, duration,
       request ID and client address. The route is the matched template
       (`/api/users/{user_id}`) when one exists, so lines for different ids
       group together; the concrete path is kept in `extra`.

Level by status class: 5xx → ERROR, 4xx → WARNING, otherwise INFO.
Request bodies are never logged (they carry names and email addresses).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from users_api.middleware.request_id import request_id_var

logger = logging.getLogger("users_api.access")

# Probed every few seconds by orchestrators
SILENT_PATHS = frozenset({"/health"})


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with its response status and duration."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in SILENT_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        route = request.scope.get("route")
        route_path = getattr(route, "path", request.url.path)
        client = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        logger.log(
            _level_for(response.status_code),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            route_path,
            response.status_code,
            duration_ms,
            rid,
            client,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client,
            },
        )
        return response
