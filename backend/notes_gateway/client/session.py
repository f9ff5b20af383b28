"""
Notes Gateway - Client Session Manager
========================================

What:  Owns the client's identity SDK, its cached bearer credential, and the
       list of callbacks that want to hear about auth-state changes.
How:   An explicitly constructed object (no module-level singleton) with the
       lifecycle create -> initialize() -> dispose(). All waiting happens on the
       asyncio event loop.
Who:   Created once by the host application's root; NotesApiClient reads
       credentials from it; UI code subscribes to it.

Initialization protocol:
    UNINITIALIZED
        │  await host_ready            (skipped when already set or not given)
        │  check publishable key / frontend API   → ConfigurationError
        ▼
    SCRIPT_LOADING
        │  await loader.load(...)       → ScriptLoadError
        ▼
    SDK_LOADED
        │  await sdk.load(key)          → ScriptLoadError
        │  fetch credential if a user is present
        ▼
    READY  ── notify subscribers, then attach the SDK listener

    Any error returns the manager to UNINITIALIZED, is logged, and is NOT raised
    to the caller: the application simply behaves as signed out.

State consistency:
    AuthState(user, credential) is immutable and replaced in a single
    assignment before subscribers are notified. Every identity change (an SDK
    listener event, sign-out, dispose) bumps a generation counter; a credential
    fetch that finishes after a newer identity change is discarded instead of
    committed. A token refresh never bumps the counter, so it cannot shadow a
    pending account switch, and it is skipped while one is in flight.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from notes_gateway.client.sdk import IdentitySDK, IdentitySession, ImportSDKLoader, SDKLoader
from notes_gateway.exceptions import ConfigurationError, ScriptLoadError, TokenRefreshError

logger = logging.getLogger(__name__)

# Errors from session.get_token() worth another attempt
TRANSIENT_TOKEN_ERRORS = (asyncio.TimeoutError, TimeoutError, ConnectionError)


class SessionStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    SCRIPT_LOADING = "script_loading"
    SDK_LOADED = "sdk_loaded"
    READY = "ready"


@dataclass(frozen=True)
class AuthState:
    """Snapshot delivered to subscribers. `user` is whatever the SDK reports."""

    user: Optional[Any] = None
    credential: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


Subscriber = Callable[[AuthState], None]


class SessionManager:
    """
    Client-side session owner.

    Args:
        loader:              Brings the identity SDK into the process.
        publishable_key:     Public key the SDK is started with.
        frontend_api:        Identity provider frontend host.
        host_ready:          Set by the host once it has finished loading.
                             None means "already loaded".
        token_fetch_timeout: Seconds allowed for one session.get_token() call.
        token_retry_*:       tenacity bounds for transient token fetch failures.
    """

    def __init__(
        self,
        loader: SDKLoader,
        publishable_key: str,
        frontend_api: str,
        host_ready: Optional[asyncio.Event] = None,
        token_fetch_timeout: float = 10.0,
        token_retry_attempts: int = 3,
        token_retry_min_wait: float = 0.5,
        token_retry_max_wait: float = 5.0,
    ):
        self._loader = loader
        self.publishable_key = publishable_key or ""
        self.frontend_api = frontend_api or ""
        self._host_ready = host_ready

        self.token_fetch_timeout = token_fetch_timeout
        self.token_retry_attempts = token_retry_attempts
        self.token_retry_min_wait = token_retry_min_wait
        self.token_retry_max_wait = token_retry_max_wait

        self._status = SessionStatus.UNINITIALIZED
        self._state = AuthState()
        self._generation = 0
        self._identity_updates_pending = 0
        self._started = False

        self._sdk: Optional[IdentitySDK] = None
        self._remove_listener: Optional[Callable[[], None]] = None

        self._subscribers: Dict[int, Subscriber] = {}
        self._next_subscriber_id = 0

    @classmethod
    def from_settings(
        cls,
        app_settings=None,
        loader: Optional[SDKLoader] = None,
        host_ready: Optional[asyncio.Event] = None,
    ) -> "SessionManager":
        """Build a manager from Settings (defaults to the module-level settings)."""
        if app_settings is None:
            from notes_gateway.config import settings as app_settings

        return cls(
            loader=loader or ImportSDKLoader(app_settings.identity_sdk_factory),
            publishable_key=app_settings.clerk_publishable_key,
            frontend_api=app_settings.clerk_frontend_api,
            host_ready=host_ready,
            token_fetch_timeout=app_settings.token_fetch_timeout,
            token_retry_attempts=app_settings.token_retry_attempts,
            token_retry_min_wait=app_settings.token_retry_min_wait,
            token_retry_max_wait=app_settings.token_retry_max_wait,
        )

    # ── Read-only views ───────────────────────────────────────────────────

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._status is SessionStatus.READY

    @property
    def is_authenticated(self) -> bool:
        return self.is_ready and self._state.is_authenticated

    # ── Subscribers ───────────────────────────────────────────────────────

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register `callback` for every future AuthState change.

        Nothing is delivered immediately; the first delivery happens when
        initialize() reaches READY. Returns a function that unsubscribes.
        """
        subscriber_id = self._next_subscriber_id
        self._next_subscriber_id += 1
        self._subscribers[subscriber_id] = callback

        def unsubscribe() -> None:
            self._subscribers.pop(subscriber_id, None)

        return unsubscribe

    def _notify(self) -> None:
        state = self._state
        for callback in list(self._subscribers.values()):
            try:
                callback(state)
            except Exception:
                logger.exception("Auth state subscriber %r raised", callback)

    def _commit(self, user: Optional[Any], credential: Optional[str]) -> None:
        self._state = AuthState(user=user, credential=credential)
        self._notify()

    # ── Initialization ────────────────────────────────────────────────────

    async def initialize(self) -> None:
        """
        Run the initialization protocol once.

        Never raises: configuration and SDK failures are logged and leave the
        manager UNINITIALIZED and signed out. Calls made after the first one has
        started return immediately.
        """
        if self._started:
            logger.debug("initialize() already started (status=%s)", self._status.value)
            return
        self._started = True
        generation = self._generation

        await self._wait_for_host()

        try:
            self._require_configuration()
            sdk = await self._load_sdk()
        except (ConfigurationError, ScriptLoadError) as e:
            logger.error("Session initialization aborted: %s | Context: %s", e.message, e.context)
            self._abort_initialization()
            return

        user = sdk.user
        credential = await self._fetch_credential_or_none(sdk) if user is not None else None

        if generation != self._generation:
            logger.info("Session manager disposed during initialization; not going READY")
            if not self._started:
                self._status = SessionStatus.UNINITIALIZED
            return

        self._sdk = sdk
        self._status = SessionStatus.READY
        logger.info("Identity SDK ready (signed_in=%s)", user is not None)
        self._commit(user, credential)

        self._remove_listener = sdk.add_listener(self._on_identity_change)

    async def _wait_for_host(self) -> None:
        if self._host_ready is None or self._host_ready.is_set():
            return
        logger.debug("Waiting for host to finish loading before starting the identity SDK")
        await self._host_ready.wait()

    def _require_configuration(self) -> None:
        if not self.publishable_key:
            raise ConfigurationError(
                "CLERK_PUBLISHABLE_KEY",
                message="Missing identity publishable key. Ensure CLERK_PUBLISHABLE_KEY is set on the server.",
            )
        if not self.frontend_api:
            raise ConfigurationError(
                "CLERK_FRONTEND_API",
                message="Missing identity frontend API host. Ensure CLERK_FRONTEND_API is set on the server.",
            )

    async def _load_sdk(self) -> IdentitySDK:
        self._status = SessionStatus.SCRIPT_LOADING
        try:
            sdk = await self._loader.load(self.publishable_key, self.frontend_api)
        except ScriptLoadError:
            raise
        except Exception as e:
            raise ScriptLoadError(
                message="Identity SDK loader failed",
                context={"error_type": type(e).__name__, "error": str(e)},
            ) from e

        self._status = SessionStatus.SDK_LOADED
        try:
            await sdk.load(self.publishable_key)
        except Exception as e:
            raise ScriptLoadError(
                message="Identity SDK failed to start",
                context={"error_type": type(e).__name__, "error": str(e)},
            ) from e
        return sdk

    def _abort_initialization(self) -> None:
        self._status = SessionStatus.UNINITIALIZED
        self._sdk = None
        self._started = False

    async def _on_identity_change(self, user: Optional[Any]) -> None:
        """SDK listener: re-fetch (or clear) the credential and re-notify."""
        sdk = self._sdk
        if sdk is None:
            return
        # A newer identity event supersedes this one and any refresh in flight.
        self._generation += 1
        generation = self._generation

        credential = None
        if user is not None:
            self._identity_updates_pending += 1
            try:
                credential = await self._fetch_credential_or_none(sdk)
            finally:
                self._identity_updates_pending -= 1

        if generation != self._generation:
            logger.debug("Discarding identity update superseded while fetching a token")
            return
        self._commit(user, credential)

    # ── Credentials ───────────────────────────────────────────────────────

    async def _get_token(self, session: IdentitySession) -> Optional[str]:
        """session.get_token() bounded by a timeout and retried on transient errors."""
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(TRANSIENT_TOKEN_ERRORS),
            stop=stop_after_attempt(self.token_retry_attempts),
            wait=wait_exponential_jitter(
                initial=self.token_retry_min_wait,
                max=self.token_retry_max_wait,
                jitter=self.token_retry_min_wait,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await asyncio.wait_for(session.get_token(), timeout=self.token_fetch_timeout)
        except TRANSIENT_TOKEN_ERRORS as e:
            raise TokenRefreshError(
                message="Timed out or lost connection while fetching a session token",
                attempts=self.token_retry_attempts,
                context={"error_type": type(e).__name__},
            ) from e
        except Exception as e:
            raise TokenRefreshError(
                message="Identity SDK failed to issue a session token",
                context={"error_type": type(e).__name__, "error": str(e)},
            ) from e
        return None

    async def _fetch_credential_or_none(self, sdk: IdentitySDK) -> Optional[str]:
        session = sdk.session
        if session is None:
            return None
        try:
            return await self._get_token(session)
        except TokenRefreshError as e:
            logger.error("%s | Context: %s", e.message, e.context)
            return None

    def current_token(self) -> Optional[str]:
        """The last cached credential. Never suspends, never refreshes."""
        return self._state.credential

    async def refresh_token(self) -> Optional[str]:
        """
        Ask the SDK for a fresh credential and cache it.

        Returns the new credential, or None when there is no session or the
        fetch failed (the cached value is left as it was). Subscribers are
        notified when the credential actually changes.
        """
        sdk = self._sdk
        if not self.is_ready or sdk is None or sdk.session is None:
            return None
        if not self._state.is_authenticated:
            return None
        if self._identity_updates_pending:
            # The cached user is about to be replaced; its token must not be.
            logger.debug("Skipping token refresh while an identity update is pending")
            return None

        generation = self._generation
        try:
            credential = await self._get_token(sdk.session)
        except TokenRefreshError as e:
            logger.warning("Token refresh failed: %s | Context: %s", e.message, e.context)
            return None

        if generation != self._generation:
            # Identity moved on while we were waiting; report what is current.
            return self._state.credential

        if credential != self._state.credential:
            self._commit(self._state.user, credential)
        return credential

    # ── Sign in / sign out ────────────────────────────────────────────────

    async def sign_in(self) -> None:
        if not self.is_ready or self._sdk is None:
            logger.warning("sign_in called but the identity SDK is not ready")
            return
        await self._sdk.open_sign_in()

    async def sign_out(self) -> None:
        """
        Sign out through the SDK, then clear the credential and notify.

        If the provider call fails the local credential is still cleared, so the
        client never keeps using a token it tried to give up.
        """
        if not self.is_ready or self._sdk is None:
            logger.warning("sign_out called but the identity SDK is not ready")
            return
        try:
            await self._sdk.sign_out()
        except Exception:
            logger.error("Identity SDK sign_out failed; clearing local credential anyway", exc_info=True)
        self._generation += 1
        self._commit(None, None)

    # ── Teardown ──────────────────────────────────────────────────────────

    def dispose(self) -> None:
        """Detach from the SDK, drop subscribers and forget the credential."""
        if self._remove_listener is not None:
            try:
                self._remove_listener()
            except Exception:
                logger.warning("Failed to remove identity SDK listener", exc_info=True)
            self._remove_listener = None

        self._subscribers.clear()
        self._sdk = None
        self._state = AuthState()
        self._generation += 1
        self._status = SessionStatus.UNINITIALIZED
        self._started = False
