"""
The session provider: the single holder of the signed-in identity.

Views never reach for a global; they receive a SessionProvider and subscribe
to it. Listeners run after every identity change, in subscription order.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

from planner.errors import AuthError
from planner.identity import IdentityService
from shared.types import Identity

logger = logging.getLogger(__name__)

Listener = Callable[[Optional[Identity]], Union[None, Awaitable[None]]]


@dataclass
class AuthResult:
    identity: Optional[Identity] = None
    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SessionProvider:
    def __init__(self, identity_service: IdentityService):
        self.identity_service = identity_service
        self._identity: Optional[Identity] = None
        self._listeners: list[Listener] = []

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; the returned callable removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _set_identity(self, identity: Optional[Identity]) -> None:
        if identity is None and self._identity is None:
            return
        self._identity = identity
        for listener in list(self._listeners):
            result = listener(identity)
            if inspect.isawaitable(result):
                await result

    async def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            identity = await self.identity_service.sign_in(email, password)
        except AuthError as exc:
            logger.info("Sign-in rejected for %s: %s", email, exc.message)
            return AuthResult(error=exc)
        await self._set_identity(identity)
        return AuthResult(identity=identity)

    async def sign_up(self, email: str, password: str, full_name: str) -> AuthResult:
        """Register a new account.

        The caller validates the display name. When the backend requires
        email verification the result is ok but no identity is set.
        """
        try:
            identity = await self.identity_service.sign_up(email, password, full_name)
        except AuthError as exc:
            logger.info("Sign-up rejected for %s: %s", email, exc.message)
            return AuthResult(error=exc)
        if identity is not None and identity.access_token:
            await self._set_identity(identity)
        return AuthResult(identity=identity)

    async def sign_out(self) -> None:
        identity = self._identity
        if identity is None:
            return
        if identity.access_token:
            try:
                await self.identity_service.sign_out(identity.access_token)
            except AuthError as exc:
                # The local session ends regardless of what the backend says.
                logger.warning("Sign-out request failed: %s", exc.message)
        await self._set_identity(None)

    async def restore(self, access_token: str | None) -> Optional[Identity]:
        """Resume a session from a previously issued access token.

        An expired or unknown token leaves the provider signed out.
        """
        if not access_token:
            await self._set_identity(None)
            return None
        try:
            identity = await self.identity_service.get_user(access_token)
        except AuthError as exc:
            logger.info("Could not restore session: %s", exc.message)
            await self._set_identity(None)
            return None
        await self._set_identity(identity)
        return identity
