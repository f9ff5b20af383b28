"""
Notes Gateway - Authentication Middleware
===========================================

What:  Enforces "no credential, no access" on every protected path.
How:   Classifies the path with is_protected_route(); protected requests need
       either a bearer token the CredentialVerifier accepts or the admin
       X-API-Key. Rejections are 401 JSON in the same shape as the global
       exception handlers, with `WWW-Authenticate: Bearer`. A verifier that
       raises anything other than InvalidCredentialError (provider down,
       network error) is answered with 503 JSON.
When:  Innermost middleware: runs after RequestIDMiddleware (so the 401 body
       carries the request id) and inside CORSMiddleware (so browsers can read
       the 401).

Request state set for downstream handlers:
    request.state.identity   VerifiedIdentity or None
    request.state.admin      True when the admin key was presented and matched
"""

import logging
from typing import Optional, Sequence

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from notes_gateway.exceptions import InvalidCredentialError
from notes_gateway.middleware.request_id import request_id_var
from notes_gateway.security.guards import api_key_matches
from notes_gateway.security.route_protection import (
    PRIVATE_PREFIXES,
    PUBLIC_PATHS,
    is_protected_route,
)
from notes_gateway.security.verifier import CredentialVerifier

logger = logging.getLogger(__name__)


def parse_bearer(header_value: Optional[str]) -> Optional[str]:
    """Extract the token from `Authorization: Bearer <token>`; None if absent or malformed."""
    if not header_value:
        return None
    scheme, _, token = header_value.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        return None
    return token


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. OPTIONS and public paths pass untouched
        2. A matching X-API-Key marks the request as admin and passes
        3. Otherwise a bearer token must be present and verified
        4. Rejections are 401; a verifier that fails outright is 503

    Why 503 and not a bare 500:
        An uncaught exception here escapes below CORSMiddleware's header
        injection and above the request-id echo, so the browser sees an
        opaque network error with nothing to report. Answering here keeps
        the error JSON, the request id and the CORS headers intact.
    """

    def __init__(
        self,
        app: ASGIApp,
        verifier: Optional[CredentialVerifier] = None,
        admin_api_key: str = "",
        public_paths: Sequence[str] = PUBLIC_PATHS,
        private_prefixes: Sequence[str] = PRIVATE_PREFIXES,
    ):
        super().__init__(app)
        self.verifier = verifier
        self.admin_api_key = admin_api_key
        self.public_paths = tuple(public_paths)
        self.private_prefixes = tuple(private_prefixes)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Handlers read these unconditionally; public routes see them unset
        request.state.identity = None
        request.state.admin = False

        # Why: CORS preflight never carries credentials, and rejecting it
        # would block the real request that follows
        if request.method == "OPTIONS":
            return await call_next(request)

        path = request.url.path
        if not is_protected_route(path, self.public_paths, self.private_prefixes):
            return await call_next(request)

        # Why here and not only in the route guard: admin routes sit under
        # /api/, which is protected, so the key has to get past this layer
        if api_key_matches(request.headers.get("X-API-Key"), self.admin_api_key):
            request.state.admin = True
            return await call_next(request)

        token = parse_bearer(request.headers.get("Authorization"))
        if token is None:
            return self._unauthorized("Unauthorized - Authentication required")

        # Fail closed: no verifier means no token can be trusted
        if self.verifier is None:
            logger.error("No credential verifier configured; rejecting %s %s", request.method, path)
            return self._unauthorized("Unauthorized - Authentication required")

        try:
            identity = await self.verifier.verify(token)
        except InvalidCredentialError as e:
            logger.info("Rejected credential for %s %s: %s", request.method, path, e.message)
            return self._unauthorized(e.message)
        except Exception:
            logger.error("Credential verifier failed for %s %s", request.method, path, exc_info=True)
            return self._error_response(
                503,
                "auth_unavailable",
                "Authentication service unavailable, please retry",
            )

        request.state.identity = identity
        return await call_next(request)

    @classmethod
    def _unauthorized(cls, message: str) -> JSONResponse:
        return cls._error_response(
            401, "unauthorized", message, headers={"WWW-Authenticate": "Bearer"}
        )

    @staticmethod
    def _error_response(
        status_code: int, error: str, message: str, headers: Optional[dict] = None
    ) -> JSONResponse:
        # Same body shape as the global exception handlers in main.py
        return JSONResponse(
            status_code=status_code,
            content={
                "error": error,
                "message": message,
                "request_id": request_id_var.get(""),
            },
            headers=headers,
        )
