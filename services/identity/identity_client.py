"""Async client for the hosted identity provider's REST API.

Wraps email/password sign-in and registration, verification and
password-reset emails, federated (IdP token) sign-in and account deletion.
Provider error strings are normalized to `auth/...` codes on `IdentityError`.

The client tracks one current user and notifies subscribers on every
transition, so a caller can react to sign-in and sign-out the same way a
browser SDK's auth-state listener would.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
from urllib.parse import urlencode

import httpx

from models.user_models import IdentityUser
from utils.errors import IdentityError
from utils.settings import DEFAULT_IDENTITY_BASE_URL

LOGGER = logging.getLogger(__name__)

AuthListener = Callable[[Optional[IdentityUser]], Union[None, Awaitable[None]]]

# Provider error strings -> normalized codes.
PROVIDER_ERROR_CODES = {
    "EMAIL_EXISTS": "auth/email-already-in-use",
    "EMAIL_NOT_FOUND": "auth/user-not-found",
    "INVALID_PASSWORD": "auth/wrong-password",
    "INVALID_LOGIN_CREDENTIALS": "auth/invalid-credential",
    "INVALID_IDP_RESPONSE": "auth/invalid-credential",
    "INVALID_EMAIL": "auth/invalid-email",
    "WEAK_PASSWORD": "auth/weak-password",
    "USER_DISABLED": "auth/user-disabled",
    "USER_NOT_FOUND": "auth/user-not-found",
    "INVALID_ID_TOKEN": "auth/invalid-user-token",
    "CREDENTIAL_TOO_OLD_LOGIN_AGAIN": "auth/requires-recent-login",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "auth/too-many-requests",
    "UNAUTHORIZED_DOMAIN": "auth/unauthorized-domain",
    "OPERATION_NOT_ALLOWED": "auth/operation-not-allowed",
}


def normalize_error(payload: Any, status_code: int) -> IdentityError:
    """Build an IdentityError from a provider error body."""
    message = ""
    if isinstance(payload, dict):
        error = payload.get("error") or {}
        if isinstance(error, dict):
            message = str(error.get("message") or "")
    # e.g. "WEAK_PASSWORD : Password should be at least 6 characters"
    raw_code, _, detail = message.partition(" : ")
    raw_code = raw_code.strip()
    code = PROVIDER_ERROR_CODES.get(raw_code, f"auth/{raw_code.lower().replace('_', '-')}" if raw_code else "auth/internal-error")
    return IdentityError(code, detail.strip() or message or f"Identity request failed with status {status_code}")


class IdentityClient:
    """Email/password and federated authentication against the identity REST API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str,
        base_url: str = DEFAULT_IDENTITY_BASE_URL,
    ) -> None:
        if http is None:
            raise ValueError("An httpx.AsyncClient is required.")
        self._http = http
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._current_user: Optional[IdentityUser] = None
        self._listeners: List[AuthListener] = []

    @property
    def current_user(self) -> Optional[IdentityUser]:
        return self._current_user

    async def on_auth_state_changed(self, listener: AuthListener) -> Callable[[], None]:
        """Subscribe to current-user changes.

        The listener is called right away with the current user and then on
        every sign-in or sign-out. Returns a callable that unsubscribes.
        """
        self._listeners.append(listener)
        await self._call(listener, self._current_user)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def sign_in(self, email: str, password: str) -> IdentityUser:
        """Sign in with email and password and return the signed-in user."""
        data = await self._post(
            "accounts:signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        user = await self._lookup(data)
        await self._set_user(user)
        return user

    async def register(self, email: str, password: str) -> IdentityUser:
        """Create an account; the new account is signed in and unverified."""
        data = await self._post(
            "accounts:signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        user = self._user_from(data, email_verified=False)
        await self._set_user(user)
        return user

    async def sign_out(self) -> None:
        await self._set_user(None)

    async def send_verification(self, user: Optional[IdentityUser] = None) -> None:
        """Send the email verification message to `user` (default: current user)."""
        target = user or self._require_user()
        await self._post("accounts:sendOobCode", {"requestType": "VERIFY_EMAIL", "idToken": target.id_token})

    async def send_password_reset(self, email: str) -> None:
        await self._post("accounts:sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})

    async def federated_sign_in(self, provider_id: str, id_token: str, request_uri: str = "http://localhost") -> IdentityUser:
        """Sign in with an identity token issued by a federated provider (e.g. google.com).

        Federated accounts are treated as verified by their provider.
        """
        data = await self._post(
            "accounts:signInWithIdp",
            {
                "postBody": urlencode({"id_token": id_token, "providerId": provider_id}),
                "requestUri": request_uri,
                "returnSecureToken": True,
                "returnIdpCredential": True,
            },
        )
        user = self._user_from(data, email_verified=True, provider_id=provider_id)
        user.email_verified = True
        await self._set_user(user)
        return user

    async def delete_current_user(self) -> None:
        """Delete the signed-in account, then sign out locally."""
        user = self._require_user()
        await self._post("accounts:delete", {"idToken": user.id_token})
        await self._set_user(None)

    async def _lookup(self, data: Dict[str, Any]) -> IdentityUser:
        """Fetch verification status and profile fields for a fresh sign-in."""
        lookup = await self._post("accounts:lookup", {"idToken": data.get("idToken")})
        users = lookup.get("users") or [{}]
        info = users[0]
        merged = dict(data)
        merged.update({k: v for k, v in info.items() if k in ("emailVerified", "displayName", "photoUrl", "email")})
        return self._user_from(merged, email_verified=bool(info.get("emailVerified", False)))

    @staticmethod
    def _user_from(data: Dict[str, Any], *, email_verified: bool, provider_id: str = "password") -> IdentityUser:
        return IdentityUser(
            uid=str(data["localId"]),
            email=data.get("email"),
            email_verified=bool(data.get("emailVerified", email_verified)),
            display_name=data.get("displayName") or None,
            photo_url=data.get("photoUrl") or None,
            id_token=data.get("idToken"),
            refresh_token=data.get("refreshToken"),
            provider_id=provider_id,
        )

    def _require_user(self) -> IdentityUser:
        if self._current_user is None:
            raise IdentityError("auth/no-current-user", "No user is signed in.")
        return self._current_user

    async def _post(self, endpoint: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """POST to an identity endpoint and return its JSON body, raising IdentityError on failure."""
        url = f"{self._base_url}/{endpoint}"
        try:
            response = await self._http.post(url, params={"key": self._api_key}, json=body)
        except httpx.HTTPError as exc:
            LOGGER.error("Identity request %s failed: %s", endpoint, exc)
            raise IdentityError("auth/network-request-failed", str(exc)) from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code >= 400:
            error = normalize_error(payload, response.status_code)
            LOGGER.error("Identity request %s rejected: %s", endpoint, error)
            raise error
        if not isinstance(payload, dict):
            raise IdentityError("auth/internal-error", f"Unexpected response from {endpoint}")
        return payload

    async def _set_user(self, user: Optional[IdentityUser]) -> None:
        self._current_user = user
        for listener in list(self._listeners):
            await self._call(listener, user)

    @staticmethod
    async def _call(listener: AuthListener, user: Optional[IdentityUser]) -> None:
        result = listener(user)
        if inspect.isawaitable(result):
            await result
