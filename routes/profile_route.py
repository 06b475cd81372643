"""FastAPI routes for the signed-in user's profile."""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from controllers.profile_controller import delete_account, load_profile, update_profile
from dal.profile_dal import ProfileDAL
from routes.deps import get_session_registry, require_session
from services.session_registry import DriveSession
from utils.errors import ConfirmationRequired, ProfileStoreError

router = APIRouter(prefix="/profile", tags=["profile"])


class ProfilePayload(BaseModel):
    display_name: str
    photo_name: str = ""


def _profile_dal(request: Request) -> ProfileDAL:
    return ProfileDAL(request.app.state.db_initializer)


@router.get("")
async def get_profile_route(request: Request, session: DriveSession = Depends(require_session)):
    """Return the profile, refreshing the session cache from the store."""
    profile = await load_profile(_profile_dal(request), session.user.uid)
    if profile is not None:
        session.profile = profile
    cached = session.profile
    return {"profile": cached.to_dict() if cached else None}


@router.patch("")
async def update_profile_route(
    request: Request,
    payload: ProfilePayload,
    session: DriveSession = Depends(require_session),
):
    try:
        profile = await update_profile(_profile_dal(request), session, payload.display_name, payload.photo_name)
    except ProfileStoreError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"profile": profile.to_dict() if profile else None}


@router.delete("")
async def delete_profile_route(
    request: Request,
    confirm: bool = False,
    session: DriveSession = Depends(require_session),
):
    """Delete the account; requires `confirm=true`."""
    try:
        await delete_account(_profile_dal(request), get_session_registry(request), session, confirmed=confirm)
    except ConfirmationRequired as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ProfileStoreError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"deleted": True}
