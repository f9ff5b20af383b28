# Client package init
"""
Notes Gateway - Client Package
================================

What:  Everything an application embedding the identity SDK needs.

Module Inventory:
    - sdk.py:      IdentitySDK / IdentitySession / SDKLoader interfaces, ImportSDKLoader
    - session.py:  SessionManager, AuthState, SessionStatus
    - api.py:      NotesApiClient (httpx) that attaches the cached credential
"""

from notes_gateway.client.api import NotesApiClient
from notes_gateway.client.sdk import IdentitySDK, IdentitySession, ImportSDKLoader, SDKLoader
from notes_gateway.client.session import AuthState, SessionManager, SessionStatus

__all__ = [
    "AuthState",
    "IdentitySDK",
    "IdentitySession",
    "ImportSDKLoader",
    "NotesApiClient",
    "SDKLoader",
    "SessionManager",
    "SessionStatus",
]
