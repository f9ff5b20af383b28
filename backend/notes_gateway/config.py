"""
Notes Gateway - Application Configuration
===========================================

What:  Centralized configuration using Pydantic Settings.
How:   Reads environment variables (or a .env file), validates types and ranges,
       and exposes a module-level `settings` object.
Who:   Imported by main.py, the middleware, the routes and the client package.

Groups:
    CORS / origins      CORS_ORIGINS, CLERK_AUTHORIZED_PARTIES, APP_URL,
                        VITE_APP_URL, VERCEL_URL
    Identity (client)   CLERK_PUBLISHABLE_KEY, CLERK_FRONTEND_API,
                        IDENTITY_SDK_FACTORY, TOKEN_* fetch bounds
    Identity (server)   CREDENTIAL_VERIFIER, ADMIN_API_KEY
    Server              BACKEND_HOST, BACKEND_PORT, LOG_LEVEL
"""

from typing import Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from notes_gateway.security.origins import get_allowed_origins


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults are for local development. A deployment sets at least
    CREDENTIAL_VERIFIER, ADMIN_API_KEY and its public origin (APP_URL or VERCEL_URL).
    """

    # ── CORS ──────────────────────────────────────────────────────────────
    # Raw, comma-separated values; normalization happens in security/origins.py
    cors_origins: Optional[str] = Field(default=None)
    clerk_authorized_parties: Optional[str] = Field(default=None)
    app_url: Optional[str] = Field(default=None)
    vite_app_url: Optional[str] = Field(default=None)
    vercel_url: Optional[str] = Field(default=None)

    # ── Identity SDK (client side) ────────────────────────────────────────
    clerk_publishable_key: str = Field(default="")
    clerk_frontend_api: str = Field(default="")

    # Dotted path ("package.module:factory") of the identity SDK factory
    identity_sdk_factory: str = Field(default="")

    # Bounds for session.get_token(); there is no other network wait in the client
    token_fetch_timeout: float = Field(default=10.0, gt=0, le=120)
    token_retry_attempts: int = Field(default=3, ge=1, le=10)
    token_retry_min_wait: float = Field(default=0.5, ge=0, le=30)
    token_retry_max_wait: float = Field(default=5.0, ge=0, le=120)

    # ── Identity (server side) ────────────────────────────────────────────
    # Dotted path of a zero-argument factory returning a CredentialVerifier
    credential_verifier: str = Field(default="")

    # Empty means every X-API-Key request is rejected
    admin_api_key: str = Field(default="")

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=3000, ge=1024, le=65535)

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def origin_environment(self) -> Dict[str, Optional[str]]:
        """The origin-related settings keyed by their environment variable names."""
        return {
            "CORS_ORIGINS": self.cors_origins,
            "CLERK_AUTHORIZED_PARTIES": self.clerk_authorized_parties,
            "APP_URL": self.app_url,
            "VITE_APP_URL": self.vite_app_url,
            "VERCEL_URL": self.vercel_url,
        }

    @property
    def allowed_origins(self) -> List[str]:
        """Normalized CORS allowlist (always includes the local dev origins)."""
        return get_allowed_origins(self.origin_environment())

    def missing_for_production(self) -> List[str]:
        """Names of settings a deployed server should not leave empty."""
        missing = []
        if not self.credential_verifier:
            missing.append("CREDENTIAL_VERIFIER")
        if not self.admin_api_key:
            missing.append("ADMIN_API_KEY")
        if not self.clerk_publishable_key:
            missing.append("CLERK_PUBLISHABLE_KEY")
        if not self.clerk_frontend_api:
            missing.append("CLERK_FRONTEND_API")
        return missing


settings = Settings()
