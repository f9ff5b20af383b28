"""
Notes Gateway - FastAPI Application Factory
=============================================

What:  Creates and configures the gateway's FastAPI application.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`uvicorn notes_gateway.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain (outermost first):                     │
    │  ┌──────┐ ┌────────────┐ ┌───────────┐ ┌──────────────┐  │
    │  │ CORS │→│ Request ID │→│  Logging  │→│     Auth     │  │
    │  └──────┘ └────────────┘ └───────────┘ └──────────────┘  │
    │                                                          │
    │  Routes:                                                 │
    │    GET|HEAD /   GET /health   GET /vanilla-js/env.js     │
    │    GET /auth-example          GET /api/api-key-example   │
    │                                                          │
    │  Exception Handlers:                                     │
    │    AuthenticationRequired→401  InvalidApiKey→401         │
    │    NotesGatewayError→500       Exception→500             │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  setup logging, report missing production settings, log the
              CORS allowlist and whether a credential verifier is present.
    Shutdown: log shutdown complete.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notes_gateway import __version__
from notes_gateway.config import Settings, settings
from notes_gateway.exceptions import (
    AuthenticationRequiredError,
    InvalidApiKeyError,
    NotesGatewayError,
)
from notes_gateway.middleware.auth import AuthMiddleware
from notes_gateway.middleware.logging import RequestLoggingMiddleware
from notes_gateway.middleware.request_id import RequestIDMiddleware, request_id_var
from notes_gateway.routes import auth, client_env, health
from notes_gateway.security.verifier import CredentialVerifier, load_verifier

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once at startup, before anything else logs.
    """
    log_format = (
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    logging.basicConfig(
        level=getattr(logging, level or settings.log_level, logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Per-request noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    app_settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(app_settings.log_level)
    logger.info("=" * 60)
    logger.info("Notes Gateway starting up...")

    missing = app_settings.missing_for_production()
    if missing:
        # Not fatal: the gateway fails closed on whatever is missing
        logger.warning("Unset settings: %s", ", ".join(missing))

    if app.state.verifier is None:
        logger.warning("No credential verifier: protected routes will answer 401")

    logger.info("CORS allowlist: %s", ", ".join(app_settings.allowed_origins))
    logger.info("Server ready at http://%s:%d", app_settings.backend_host, app_settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Notes Gateway shutting down...")
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to JSON error responses.

    Handler hierarchy:
        AuthenticationRequiredError → 401 (+ WWW-Authenticate: Bearer)
        InvalidApiKeyError          → 401
        NotesGatewayError (base)    → 500
        Exception (fallback)        → 500

    Response bodies never include exception context or stack traces; those
    are logged server-side only.
    """

    @app.exception_handler(AuthenticationRequiredError)
    async def handle_authentication_required(request: Request, exc: AuthenticationRequiredError):
        rid = request_id_var.get("")
        logger.info("[%s] Authentication required: %s", rid, exc.message)
        return JSONResponse(
            status_code=401,
            content={
                "error": "unauthorized",
                "message": exc.message,
                "request_id": rid,
            },
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(InvalidApiKeyError)
    async def handle_invalid_api_key(request: Request, exc: InvalidApiKeyError):
        rid = request_id_var.get("")
        logger.warning("[%s] Invalid API key for %s", rid, request.url.path)
        return JSONResponse(
            status_code=401,
            content={
                "error": "invalid_api_key",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(NotesGatewayError)
    async def handle_gateway_error(request: Request, exc: NotesGatewayError):
        rid = request_id_var.get("")
        logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error(
            "[%s] Unexpected error: %s",
            rid,
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    verifier: Optional[CredentialVerifier] = None,
    app_settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        verifier:     Credential verifier to use. When None, the one named by
                      CREDENTIAL_VERIFIER is loaded (or none, failing closed).
        app_settings: Settings to use instead of the module-level `settings`.
    """
    app_settings = app_settings or settings
    if verifier is None:
        verifier = load_verifier(app_settings.credential_verifier)

    app = FastAPI(
        title="Notes Gateway",
        description=(
            "Access control gateway for the notes service: route protection, "
            "CORS allowlisting and credential checks in front of the notes API."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url=None,
        # Under the public /docs prefix
        openapi_url="/docs/json",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.verifier = verifier

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = first to execute. Execution order:
    # CORS → RequestID → Logging → Auth → route

    app.add_middleware(
        AuthMiddleware,
        verifier=verifier,
        admin_api_key=app_settings.admin_api_key,
    )

    app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(RequestIDMiddleware)

    # Outermost, so 401s from AuthMiddleware still carry CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(client_env.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `notes_gateway.main:app` to be importable
app = create_app()
