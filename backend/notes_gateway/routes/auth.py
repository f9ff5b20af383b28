"""
Notes Gateway - Credential Example Routes
===========================================

What:  Minimal endpoints that demonstrate each kind of credential.

    GET /auth-example          verified user with an email claim (require_identity)
    GET /api/api-key-example   admin X-API-Key (require_api_key)

Both paths are protected, so AuthMiddleware has already rejected requests
carrying neither credential before these handlers run.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from notes_gateway.schemas.auth import ApiKeyExampleResponse, ErrorResponse
from notes_gateway.security.guards import require_api_key, require_identity

router = APIRouter(tags=["Auth"])


@router.get(
    "/auth-example",
    response_class=PlainTextResponse,
    dependencies=[Depends(require_identity)],
    responses={401: {"model": ErrorResponse, "description": "No verified user"}},
    summary="Requires a signed-in user",
)
async def auth_example() -> str:
    return "This route requires authentication"


@router.get(
    "/api/api-key-example",
    response_model=ApiKeyExampleResponse,
    dependencies=[Depends(require_api_key)],
    responses={401: {"model": ErrorResponse, "description": "Invalid API key"}},
    summary="Requires the admin API key",
)
async def api_key_example() -> ApiKeyExampleResponse:
    return ApiKeyExampleResponse(timestamp=datetime.now(timezone.utc))
