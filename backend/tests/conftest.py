"""
Notes Gateway - Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures and in-memory fakes for the whole suite.
How:   The identity SDK, its loader and the server-side credential verifier
       are replaced by small fakes implementing the real ABCs, so no test
       touches the network.

Fixture Hierarchy:
    Fakes:
    ├── fake_session:     IdentitySession with scripted get_token() results
    ├── fake_sdk:         IdentitySDK with a signed-in user
    ├── fake_loader:      SDKLoader returning fake_sdk
    ├── make_manager:     SessionManager factory with zero retry waits
    └── fake_verifier:    CredentialVerifier accepting VALID_TOKEN

    HTTP:
    ├── gateway_settings: Settings for the app under test
    └── test_client:      HTTPX AsyncClient over ASGITransport
"""

import asyncio
import os
from typing import Any, Callable, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Set BEFORE any notes_gateway import: main.py builds `app` at import time
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("CLERK_PUBLISHABLE_KEY", "pk_test_123")
os.environ.setdefault("CLERK_FRONTEND_API", "clerk.notes.test")

from notes_gateway.client.sdk import IdentitySDK, IdentitySession, SDKLoader  # noqa: E402
from notes_gateway.client.session import SessionManager  # noqa: E402
from notes_gateway.config import Settings  # noqa: E402
from notes_gateway.exceptions import InvalidCredentialError  # noqa: E402
from notes_gateway.security.verifier import CredentialVerifier, VerifiedIdentity  # noqa: E402

VALID_TOKEN = "valid-token"
NO_EMAIL_TOKEN = "no-email-token"
ADMIN_KEY = "test-admin-key"


# ══════════════════════════════════════════════════════════════════════════
# Fakes
# ══════════════════════════════════════════════════════════════════════════

class FakeIdentitySession(IdentitySession):
    """
    get_token() pops scripted results: strings are returned, exceptions raised.
    With a `gate`, every call waits for the gate before answering.
    """

    def __init__(self, results: Optional[List[Any]] = None, gate: Optional[asyncio.Event] = None):
        self.results = list(results or ["token-1"])
        self.gate = gate
        self.calls = 0

    async def get_token(self) -> Optional[str]:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, BaseException):
            raise result
        return result


class FakeIdentitySDK(IdentitySDK):
    def __init__(self, user: Optional[Any] = None, session: Optional[IdentitySession] = None,
                 load_error: Optional[Exception] = None):
        self._user = user
        self._session = session
        self.load_error = load_error
        self.load_calls: List[str] = []
        self.listeners: List[Callable] = []
        self.sign_in_calls = 0
        self.sign_out_calls = 0

    @property
    def user(self):
        return self._user

    @property
    def session(self):
        return self._session

    async def load(self, publishable_key: str) -> None:
        self.load_calls.append(publishable_key)
        if self.load_error is not None:
            raise self.load_error

    def add_listener(self, listener):
        self.listeners.append(listener)

        def remove() -> None:
            if listener in self.listeners:
                self.listeners.remove(listener)

        return remove

    async def open_sign_in(self) -> None:
        self.sign_in_calls += 1

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        self._user = None
        self._session = None

    async def emit(self, user: Optional[Any], session: Optional[IdentitySession] = None) -> None:
        """Simulate the provider reporting an identity change."""
        self._user = user
        self._session = session
        for listener in list(self.listeners):
            await listener(user)


class FakeSDKLoader(SDKLoader):
    def __init__(self, sdk: IdentitySDK, error: Optional[Exception] = None):
        self.sdk = sdk
        self.error = error
        self.calls: List[tuple] = []

    async def load(self, publishable_key: str, frontend_api: str) -> IdentitySDK:
        self.calls.append((publishable_key, frontend_api))
        if self.error is not None:
            raise self.error
        return self.sdk


class FakeVerifier(CredentialVerifier):
    def __init__(self, identities: Optional[Dict[str, VerifiedIdentity]] = None):
        self.identities = identities if identities is not None else {
            VALID_TOKEN: VerifiedIdentity(user_id="user_1", email="ada@example.com"),
            NO_EMAIL_TOKEN: VerifiedIdentity(user_id="user_2"),
        }
        self.seen: List[str] = []

    async def verify(self, token: str) -> VerifiedIdentity:
        self.seen.append(token)
        try:
            return self.identities[token]
        except KeyError:
            raise InvalidCredentialError(context={"token_length": len(token)})


# ══════════════════════════════════════════════════════════════════════════
# Client-side Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def signed_in_user():
    return {"id": "user_1", "email": "ada@example.com"}


@pytest.fixture
def fake_session():
    return FakeIdentitySession(["token-1"])


@pytest.fixture
def fake_sdk(signed_in_user, fake_session):
    return FakeIdentitySDK(user=signed_in_user, session=fake_session)


@pytest.fixture
def fake_loader(fake_sdk):
    return FakeSDKLoader(fake_sdk)


@pytest.fixture
def make_manager(fake_loader):
    """
    Factory for SessionManager wired to the fake loader.

    Usage:
        manager = make_manager(host_ready=event, publishable_key="")
    """
    def _make(**overrides) -> SessionManager:
        options = {
            "loader": fake_loader,
            "publishable_key": "pk_test_123",
            "frontend_api": "clerk.notes.test",
            "token_fetch_timeout": 1.0,
            "token_retry_attempts": 3,
            "token_retry_min_wait": 0,
            "token_retry_max_wait": 0,
        }
        options.update(overrides)
        return SessionManager(**options)

    return _make


# ══════════════════════════════════════════════════════════════════════════
# Server-side Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_verifier():
    return FakeVerifier()


@pytest.fixture
def gateway_settings():
    return Settings(
        admin_api_key=ADMIN_KEY,
        clerk_publishable_key="pk_test_123",
        clerk_frontend_api="clerk.notes.test",
        cors_origins="https://notes.example.com",
        credential_verifier="",
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def test_client(fake_verifier, gateway_settings):
    """
    HTTPX AsyncClient talking to a fresh app built with the fake verifier.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from notes_gateway.main import create_app

    app = create_app(verifier=fake_verifier, app_settings=gateway_settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
