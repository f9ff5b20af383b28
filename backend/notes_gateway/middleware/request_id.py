"""
Notes Gateway - Request ID Middleware
=======================================

What:  Assigns a correlation ID to each request and echoes it as X-Request-ID.
Why:   Every log line and every error body for one request shares the same ID,
       so a user-reported 401 can be found in the logs.
How:   Reuses a well-formed client-supplied X-Request-ID, otherwise generates a
       short UUID; stores it in a ContextVar and on request.state.
When:  Runs before RequestLoggingMiddleware and AuthMiddleware.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one thread each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Client IDs end up in logs and headers; anything else is replaced
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def resolve_request_id(incoming: str) -> str:
    if incoming and _VALID_REQUEST_ID.match(incoming):
        return incoming
    # Why 8 chars: enough to correlate one request, short enough to read in logs
    return str(uuid.uuid4())[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Take X-Request-ID from the client if it is short and log-safe
        2. Otherwise generate an 8-character UUID prefix
        3. Store it in request_id_var and request.state.request_id
        4. Add it to the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get("X-Request-ID", ""))

        # Why both: the ContextVar serves loggers and error bodies, request.state serves handlers
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)

        response.headers["X-Request-ID"] = rid
        return response
