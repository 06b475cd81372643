"""Access gate in front of the dashboard.

Only a signed-in account with a verified email reaches the dashboard. An
unverified sign-in is signed straight back out, and registration never
leaves a session open: both end on the pending-verification state that
tells the user to check their inbox.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from models.user_models import IdentityUser
from services.identity.identity_client import IdentityClient

LOGGER = logging.getLogger(__name__)

UNAUTHENTICATED = "unauthenticated"
PENDING_VERIFICATION = "pending-verification"
AUTHENTICATED_UNVERIFIED = "authenticated-unverified"
AUTHENTICATED_VERIFIED = "authenticated-verified"


class AuthGate:
    """Track the gate state for one identity client."""

    def __init__(
        self,
        identity: IdentityClient,
        on_verified: Optional[Callable[[IdentityUser], Awaitable[None]]] = None,
    ) -> None:
        """
        Args:
            identity: Client whose user changes drive the gate.
            on_verified: Optional coroutine run each time a verified user is seen.
        """
        self.identity = identity
        self.state = UNAUTHENTICATED
        self.verification_email: Optional[str] = None
        self._on_verified = on_verified
        self._unsubscribe = None

    async def start(self) -> "AuthGate":
        """Subscribe to the identity client's user changes."""
        self._unsubscribe = await self.identity.on_auth_state_changed(self._on_user_changed)
        return self

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def dashboard_allowed(self) -> bool:
        return self.state == AUTHENTICATED_VERIFIED

    async def _on_user_changed(self, user: Optional[IdentityUser]) -> None:
        if user is None:
            # a forced sign-out keeps the "check your inbox" screen
            if self.state != PENDING_VERIFICATION:
                self.state = UNAUTHENTICATED
            return
        self.verification_email = None
        if not user.email_verified:
            self.state = AUTHENTICATED_UNVERIFIED
            return
        self.state = AUTHENTICATED_VERIFIED
        if self._on_verified is not None:
            await self._on_verified(user)

    async def login(self, email: str, password: str) -> Optional[IdentityUser]:
        """Sign in; returns the user only when the dashboard may open.

        Raises:
            IdentityError: If the provider rejects the credentials.
        """
        user = await self.identity.sign_in(email, password)
        if not user.email_verified:
            LOGGER.info("Sign-in for unverified account %s; signing out", user.uid)
            await self._hold_for_verification(user)
            return None
        return user

    async def register(self, email: str, password: str) -> None:
        """Create an account, send the verification email and sign out."""
        user = await self.identity.register(email, password)
        await self.identity.send_verification(user)
        await self._hold_for_verification(user)

    async def federated_login(self, provider_id: str, id_token: str, request_uri: str = "http://localhost") -> IdentityUser:
        return await self.identity.federated_sign_in(provider_id, id_token, request_uri)

    async def logout(self) -> None:
        self.verification_email = None
        await self.identity.sign_out()
        self.state = UNAUTHENTICATED

    async def reset_password(self, email: str) -> None:
        await self.identity.send_password_reset(email)

    async def _hold_for_verification(self, user: IdentityUser) -> None:
        self.state = PENDING_VERIFICATION
        self.verification_email = user.email
        await self.identity.sign_out()
