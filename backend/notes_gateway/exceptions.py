"""
Notes Gateway - Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for the access control gateway and its clients.
How:   Each exception carries a human-readable message and an optional context dict.
       Global handlers in main.py turn the HTTP-facing ones into JSON responses;
       the client-side ones are caught and logged by the Session Manager.

Exception Hierarchy:
    NotesGatewayError (base)
    ├── ConfigurationError           client: publishable key / frontend API missing
    ├── ScriptLoadError              client: identity SDK could not be loaded
    ├── TokenRefreshError            client: credential fetch failed after retries
    ├── AuthenticationRequiredError  → 401 (no usable credential on a protected route)
    │   └── InvalidCredentialError   → 401 (verifier rejected the bearer token)
    ├── InvalidApiKeyError           → 401 (X-API-Key missing or wrong)
    └── ApiRequestError              client: API call returned a non-2xx status

Malformed origin tokens and malformed paths are NOT exceptions:
the origin is left out of the allowlist and the path is treated as protected.
"""

from typing import Any, Dict, Optional


class NotesGatewayError(Exception):
    """
    Base exception for all Notes Gateway errors.

    Attributes:
        message:  Description safe to show to API consumers
        context:  Extra debug info (logged, never returned to the client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ConfigurationError(NotesGatewayError):
    """
    Raised when the client is missing the identity SDK configuration.

    The Session Manager catches this during initialize(), logs it and stays
    unauthenticated.
    """

    def __init__(
        self,
        setting: str,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["setting"] = setting
        super().__init__(
            message=message or f"Missing identity configuration: {setting} is not set",
            context=ctx,
        )
        self.setting = setting


class ScriptLoadError(NotesGatewayError):
    """Raised when the identity SDK cannot be loaded or fails to start."""

    def __init__(
        self,
        message: str = "Failed to load the identity SDK",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class TokenRefreshError(NotesGatewayError):
    """Raised internally when a credential fetch fails after all retries."""

    def __init__(
        self,
        message: str = "Could not obtain a session token",
        attempts: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if attempts:
            ctx["attempts"] = attempts
        super().__init__(message=message, context=ctx)
        self.attempts = attempts


class AuthenticationRequiredError(NotesGatewayError):
    """
    Raised when a protected route is called without a usable credential.

    HTTP: 401 Unauthorized, with a WWW-Authenticate: Bearer header.
    """

    def __init__(
        self,
        message: str = "Unauthorized - Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialError(AuthenticationRequiredError):
    """Raised by a CredentialVerifier when the bearer token is invalid or expired."""

    def __init__(
        self,
        message: str = "Unauthorized - Invalid or expired credential",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidApiKeyError(NotesGatewayError):
    """Raised when an admin route is called without the right X-API-Key header."""

    def __init__(
        self,
        message: str = "Unauthorized - Invalid API Key",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ApiRequestError(NotesGatewayError):
    """Raised by NotesApiClient when the backend answers with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        message: str = "API request failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code
