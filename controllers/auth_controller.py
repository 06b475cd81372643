"""Sign-up, sign-in and sign-out flows behind the identity gate."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request

from controllers.profile_controller import load_profile, sync_user_profile
from dal.profile_dal import ProfileDAL
from models.user_models import IdentityUser
from services.identity.auth_gate import AuthGate
from services.identity.identity_client import IdentityClient
from services.session_registry import DriveSession, SessionRegistry
from utils.errors import IdentityError

LOGGER = logging.getLogger(__name__)


async def _new_gate(request: Request) -> AuthGate:
    """Build an identity client and gate that sync the profile on verified sign-in."""
    state = request.app.state
    settings = state.settings
    identity = IdentityClient(state.http_client, settings.identity_api_key, settings.identity_base_url)
    profile_dal = ProfileDAL(state.db_initializer)

    async def on_verified(user: IdentityUser) -> None:
        await sync_user_profile(profile_dal, user)

    return await AuthGate(identity, on_verified=on_verified).start()


async def _open_session(request: Request, gate: AuthGate, user: IdentityUser) -> Dict[str, Any]:
    registry: SessionRegistry = request.app.state.session_registry
    session = await registry.open(user, gate.identity, gate)
    session.profile = await load_profile(ProfileDAL(request.app.state.db_initializer), user.uid)
    return {
        "state": gate.state,
        "session_token": session.token,
        "user": {"uid": user.uid, "email": user.email, "email_verified": user.email_verified},
        "profile": session.profile.to_dict() if session.profile else None,
    }


def _identity_http_error(exc: IdentityError, message: Optional[str] = None) -> HTTPException:
    return HTTPException(status_code=400, detail={"code": exc.code, "message": message or exc.friendly_message()})


async def register(request: Request, email: str, password: str) -> Dict[str, Any]:
    """Create an account and send the verification email; no session is opened."""
    gate = await _new_gate(request)
    try:
        await gate.register(email, password)
    except IdentityError as exc:
        raise _identity_http_error(exc) from exc
    finally:
        gate.close()
    return {"state": gate.state, "verification_email": gate.verification_email}


async def login(request: Request, email: str, password: str) -> Dict[str, Any]:
    """Sign in with email and password; opens a session only for verified accounts."""
    gate = await _new_gate(request)
    try:
        user = await gate.login(email, password)
    except IdentityError as exc:
        gate.close()
        raise _identity_http_error(exc) from exc

    if user is None:
        gate.close()
        return {"state": gate.state, "verification_email": gate.verification_email}
    return await _open_session(request, gate, user)


async def federated_login(request: Request, provider_id: str, id_token: str, request_uri: str) -> Dict[str, Any]:
    """Sign in with a federated provider token (treated as verified)."""
    gate = await _new_gate(request)
    try:
        user = await gate.federated_login(provider_id, id_token, request_uri)
    except IdentityError as exc:
        gate.close()
        raise _identity_http_error(exc) from exc
    return await _open_session(request, gate, user)


async def logout(request: Request, session: DriveSession) -> Dict[str, Any]:
    registry: SessionRegistry = request.app.state.session_registry
    await session.gate.logout()
    registry.close(session.token)
    return {"state": session.gate.state}


async def password_reset(request: Request, email: str) -> Dict[str, Any]:
    gate = await _new_gate(request)
    try:
        await gate.reset_password(email)
    except IdentityError as exc:
        raise _identity_http_error(exc, exc.password_reset_message()) from exc
    finally:
        gate.close()
    return {"sent": True, "email": email}
