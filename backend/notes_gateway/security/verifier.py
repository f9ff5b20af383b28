"""
Notes Gateway - Credential Verifier Interface
===============================================

What:  Abstract contract for checking a bearer credential on the server.
Why:   Verification is the identity provider's job (signature, expiry,
       authorized parties). The gateway only needs the verdict.
How:   AuthMiddleware calls `await verifier.verify(token)` for protected paths.
       The concrete verifier is named by CREDENTIAL_VERIFIER or passed to
       create_app(); without one, protected paths reject every request.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from notes_gateway.plugins import import_string

logger = logging.getLogger(__name__)


class VerifiedIdentity(BaseModel):
    """What a verifier learned from a valid credential."""

    user_id: str
    email: Optional[str] = None
    session_id: Optional[str] = None
    claims: Dict[str, Any] = Field(default_factory=dict)


class CredentialVerifier(ABC):
    @abstractmethod
    async def verify(self, token: str) -> VerifiedIdentity:
        """
        Check `token` and return the identity it carries.

        Raises:
            InvalidCredentialError: token is malformed, expired or not trusted
        """
        ...


def load_verifier(dotted_path: str) -> Optional[CredentialVerifier]:
    """
    Build the verifier named by `dotted_path` (a class or zero-argument factory).

    Returns None when no path is configured. A path that cannot be imported, or
    that does not produce a CredentialVerifier, raises so startup fails loudly.
    """
    if not dotted_path:
        logger.warning("CREDENTIAL_VERIFIER is not set; protected routes will reject all requests")
        return None

    # Why raise here: a typo in CREDENTIAL_VERIFIER must stop startup, not
    # silently turn every protected route into a 401
    factory = import_string(dotted_path)
    verifier = factory()
    if not isinstance(verifier, CredentialVerifier):
        raise TypeError(f"{dotted_path} did not produce a CredentialVerifier (got {type(verifier).__name__})")
    logger.info("Credential verifier loaded from %s", dotted_path)
    return verifier
