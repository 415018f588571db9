"""
Users API: Request ID Middleware
=================================

What:  Tags each request with a correlation ID, returned in X-Request-ID.
How:   A client-supplied X-Request-ID is reused when it is short and printable;
       otherwise an 8-character ID is generated. The value is kept in a
       ContextVar so the access logger and exception handlers of the same
       request can read it.

Unexpected errors:
    Exceptions with no registered handler escape the route and would reach
    Starlette's outermost ServerErrorMiddleware, outside this middleware.
    They are converted to the 500 envelope here instead, so the response
    still carries X-Request-ID.
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
MAX_CLIENT_ID_LENGTH = 64
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"

# Coroutine-local: concurrent requests share a thread but not this value
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def resolve_request_id(candidate: Optional[str]) -> str:
    """Client ID if usable (it ends up in log lines), else a fresh one."""
    if candidate and len(candidate) <= MAX_CLIENT_ID_LENGTH and candidate.isprintable():
        return candidate
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns the request ID, echoes it in the response header, and turns
    unhandled exceptions into a 500 JSON response carrying that ID.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request_id_var.set(rid)
        request.state.request_id = rid

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("[%s] Unexpected error: %s", rid, str(e), exc_info=True)
            response = JSONResponse(
                status_code=500,
                content={"error": UNEXPECTED_ERROR_MESSAGE, "request_id": rid},
            )

        response.headers[REQUEST_ID_HEADER] = rid
        return response
