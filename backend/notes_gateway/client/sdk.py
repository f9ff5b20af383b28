"""
Notes Gateway - Identity SDK Capability Interface
===================================================

What:  Abstract contract for the identity provider SDK that issues credentials,
       and for the loader that brings the SDK into the process.
How:   The Session Manager only talks to these ABCs. Production plugs in a real
       SDK through ImportSDKLoader; tests plug in in-memory fakes.

Contract summary:
    SDKLoader.load(publishable_key, frontend_api) -> IdentitySDK
        May be called more than once; must not create a second SDK.
        Raises ScriptLoadError when the SDK cannot be obtained.

    IdentitySDK
        load(publishable_key)   start the SDK; raises on failure
        user                    current user object, or None
        session                 current IdentitySession, or None
        add_listener(cb)        cb(user) is awaited on every identity change;
                                returns a zero-argument remover
        open_sign_in()          start the provider's sign-in flow
        sign_out()              end the session; returns once the provider confirms

    IdentitySession
        get_token()             fresh bearer token (may hit the network)
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

from notes_gateway.exceptions import ScriptLoadError
from notes_gateway.plugins import import_string

logger = logging.getLogger(__name__)

IdentityListener = Callable[[Optional[Any]], Awaitable[None]]


class IdentitySession(ABC):
    """An active session with the identity provider."""

    @abstractmethod
    async def get_token(self) -> Optional[str]:
        """Return a fresh bearer token, or None when the provider has none to give."""
        ...


class IdentitySDK(ABC):
    """The identity provider SDK as seen by the Session Manager."""

    @property
    @abstractmethod
    def user(self) -> Optional[Any]:
        ...

    @property
    @abstractmethod
    def session(self) -> Optional[IdentitySession]:
        ...

    @abstractmethod
    async def load(self, publishable_key: str) -> None:
        """Start the SDK. Resolves once it is ready to report the current user."""
        ...

    @abstractmethod
    def add_listener(self, listener: IdentityListener) -> Callable[[], None]:
        """Register `listener`; return a callable that removes it."""
        ...

    @abstractmethod
    async def open_sign_in(self) -> None:
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        ...


class SDKLoader(ABC):
    """Brings an IdentitySDK into the process (the analogue of injecting its script)."""

    @abstractmethod
    async def load(self, publishable_key: str, frontend_api: str) -> IdentitySDK:
        ...


class ImportSDKLoader(SDKLoader):
    """
    Loads the SDK from a factory named by a dotted path.

    The factory is called once as `factory(frontend_api=..., publishable_key=...)`
    and the resulting SDK is cached; later calls return the same instance.

    Example:
        loader = ImportSDKLoader("acme_identity.client:create_sdk")
        sdk = await loader.load("pk_test_123", "clerk.example.com")
    """

    def __init__(self, factory_path: str):
        self.factory_path = factory_path
        self._sdk: Optional[IdentitySDK] = None

    @property
    def loaded(self) -> bool:
        return self._sdk is not None

    async def load(self, publishable_key: str, frontend_api: str) -> IdentitySDK:
        if self._sdk is not None:
            logger.debug("Identity SDK already loaded; reusing instance")
            return self._sdk

        if not self.factory_path:
            raise ScriptLoadError(
                message="No identity SDK factory configured (IDENTITY_SDK_FACTORY)",
            )

        try:
            factory = import_string(self.factory_path)
        except ImportError as e:
            logger.error("Failed to import identity SDK factory %s: %s", self.factory_path, e)
            raise ScriptLoadError(
                message="Failed to load the identity SDK",
                context={"factory": self.factory_path, "error": str(e)},
            ) from e

        try:
            sdk = factory(frontend_api=frontend_api, publishable_key=publishable_key)
        except Exception as e:
            logger.error("Identity SDK factory %s raised: %s", self.factory_path, e)
            raise ScriptLoadError(
                message="Identity SDK factory failed",
                context={"factory": self.factory_path, "error_type": type(e).__name__},
            ) from e

        if not isinstance(sdk, IdentitySDK):
            raise ScriptLoadError(
                message="Identity SDK factory did not return an IdentitySDK",
                context={"factory": self.factory_path, "returned": type(sdk).__name__},
            )

        logger.info("Identity SDK loaded from %s (frontend API %s)", self.factory_path, frontend_api)
        self._sdk = sdk
        return sdk
