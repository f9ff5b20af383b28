"""
Notes Gateway - Root and Health Routes
========================================

What:  Liveness endpoints: GET/HEAD "/" and GET /health.
Who:   Load balancers, uptime monitors, and humans checking the server is up.
When:  Public paths: AuthMiddleware never asks these for a credential.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

from notes_gateway import __version__
from notes_gateway.schemas.auth import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get("/", response_class=PlainTextResponse, summary="Root greeting")
async def root() -> str:
    return "Hello World"


@router.head("/", summary="Root liveness check")
async def root_head() -> Response:
    return Response(status_code=200)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Reports that the gateway is serving requests and whether a credential "
        "verifier is configured. Without one, every protected route answers 401."
    ),
)
async def health_check(request: Request) -> HealthResponse:
    verifier = getattr(request.app.state, "verifier", None)
    if verifier is None:
        logger.debug("Health check: no credential verifier configured")

    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        credential_verifier="configured" if verifier is not None else "missing",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
