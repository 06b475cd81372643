"""FastAPI routes for sign-up, sign-in and sign-out."""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from controllers import auth_controller
from routes.deps import require_session
from services.session_registry import DriveSession

router = APIRouter(prefix="/auth", tags=["auth"])


class CredentialsPayload(BaseModel):
	email: str
	password: str


class FederatedPayload(BaseModel):
	id_token: str
	provider_id: str = "google.com"
	request_uri: str = "http://localhost"


class ResetPayload(BaseModel):
	email: str


@router.post("/register")
async def register_route(request: Request, payload: CredentialsPayload):
	try:
		return await auth_controller.register(request, payload.email, payload.password)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/login")
async def login_route(request: Request, payload: CredentialsPayload):
	"""Sign in; unverified accounts get the pending-verification state and no token."""
	try:
		return await auth_controller.login(request, payload.email, payload.password)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/federated")
async def federated_route(request: Request, payload: FederatedPayload):
	try:
		return await auth_controller.federated_login(request, payload.provider_id, payload.id_token, payload.request_uri)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/logout")
async def logout_route(request: Request, session: DriveSession = Depends(require_session)):
	try:
		return await auth_controller.logout(request, session)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/password-reset")
async def password_reset_route(request: Request, payload: ResetPayload):
	try:
		return await auth_controller.password_reset(request, payload.email)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/state")
async def auth_state_route(session: DriveSession = Depends(require_session)):
	"""Return the gate state and user for the current session token."""
	user = session.user
	return {
		"state": session.gate.state,
		"user": {"uid": user.uid, "email": user.email, "email_verified": user.email_verified},
	}
