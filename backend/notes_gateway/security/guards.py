"""
Notes Gateway - Route Guards
==============================

FastAPI dependencies that sit behind AuthMiddleware and decide what a given
credential may reach:

    require_identity   a verified user with a user id AND an email claim
    require_api_key    the admin X-API-Key

Both raise; the global exception handlers in main.py render the 401.
"""

import hmac
from typing import Optional

from fastapi import Header, Request

from notes_gateway.exceptions import AuthenticationRequiredError, InvalidApiKeyError
from notes_gateway.security.verifier import VerifiedIdentity


def api_key_matches(provided: Optional[str], expected: Optional[str]) -> bool:
    """Constant-time comparison. An unset expected key matches nothing."""
    # Why: an unset ADMIN_API_KEY must not be matched by an empty header
    if not expected or not provided:
        return False
    # Why compare_digest: == short-circuits and leaks the key prefix through timing
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


async def require_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
) -> None:
    # Settings come from the app instance, not the module-level singleton
    app_settings = request.app.state.settings
    if not api_key_matches(x_api_key, app_settings.admin_api_key):
        raise InvalidApiKeyError()
    request.state.admin = True


async def require_identity(request: Request) -> VerifiedIdentity:
    # A verified user id without an email claim is still not an identity
    identity: Optional[VerifiedIdentity] = getattr(request.state, "identity", None)
    if identity is None or not identity.user_id or not identity.email:
        raise AuthenticationRequiredError()
    return identity
