"""
Notes Gateway - Pydantic Response Schemas
===========================================

What:  The JSON contracts of the gateway's own endpoints.
Who:   Route handlers (response_model) and the OpenAPI document at /docs/json.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error body for every 4xx/5xx the gateway produces itself.

    Example:
        {
            "error": "unauthorized",
            "message": "Unauthorized - Authentication required",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable description")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Extra context")
    request_id: Optional[str] = Field(default=None, description="Correlation ID for log lookup")


class HealthResponse(BaseModel):
    status: str = Field(description="Always 'ok' while the process serves requests")
    timestamp: datetime = Field(description="Server time (UTC)")
    version: str = Field(description="Application version")
    credential_verifier: str = Field(description="configured or missing")
    uptime_seconds: float = Field(description="Seconds since service started")


class ApiKeyExampleResponse(BaseModel):
    success: bool = True
    message: str = "API Key authentication successful"
    timestamp: datetime
    is_admin: bool = Field(default=True, serialization_alias="isAdmin")
