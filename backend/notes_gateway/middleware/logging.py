"""
Notes Gateway - Request Logging Middleware
============================================

What:  One access-log line per request: method, path, status, duration,
       request id, client IP, and whether the path was protected.
When:  After RequestIDMiddleware (uses its ID), around AuthMiddleware (so 401s
       produced there are logged too).

What we log vs what we DON'T log:
    Log:        method, path, status, duration, IP, request ID, protected verdict
    Never log:  Authorization / X-API-Key headers, request bodies, tokens
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notes_gateway.middleware.request_id import request_id_var
from notes_gateway.security.route_protection import is_protected_route

logger = logging.getLogger("notes_gateway.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log level follows the status code: 5xx ERROR, 4xx WARNING, else INFO.
    /health is skipped (polled by load balancers).
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path

        if path == "/health":
            return await call_next(request)

        # Why recompute: AuthMiddleware runs inside this one and may short-circuit
        # before anything records its verdict
        protected = method != "OPTIONS" and is_protected_route(path)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s protected=%s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            protected,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "protected": protected,
            },
        )

        return response
