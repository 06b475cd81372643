"""Profile lifecycle: sync on verified sign-in, edits and account deletion."""

from __future__ import annotations

import logging
import time
from typing import Optional

from dal.profile_dal import ProfileDAL
from models.user_models import IdentityUser, UserProfile
from services.session_registry import DriveSession, SessionRegistry
from utils.errors import ConfirmationRequired, ProfileStoreError

LOGGER = logging.getLogger(__name__)

UPDATE_FAILED_MESSAGE = "Failed to update profile"
DELETE_FAILED_MESSAGE = "Failed to delete account. You may need to re-login to perform this action."


def _now_ms() -> int:
    return int(time.time() * 1000)


async def sync_user_profile(profile_dal: ProfileDAL, user: IdentityUser) -> None:
    """Create the profile on first verified sighting, otherwise refresh last_login.

    Failures are logged and never block sign-in.
    """
    now = _now_ms()
    try:
        existing = await profile_dal.get(user.uid)
        if existing is None:
            email = user.email or ""
            await profile_dal.create(
                UserProfile(
                    uid=user.uid,
                    email=user.email,
                    display_name=user.display_name or email.split("@")[0],
                    photo_url=user.photo_url,
                    created_at=now,
                    last_login=now,
                )
            )
        else:
            await profile_dal.update(user.uid, last_login=now)
    except Exception as exc:
        LOGGER.error("Error syncing user %s to profile store: %s", user.uid, exc)


async def load_profile(profile_dal: ProfileDAL, uid: str) -> Optional[UserProfile]:
    """Fetch a profile; a read failure degrades to no profile."""
    try:
        return await profile_dal.get(uid)
    except Exception as exc:
        LOGGER.error("Error fetching profile for %s: %s", uid, exc)
        return None


async def update_profile(
    profile_dal: ProfileDAL,
    session: DriveSession,
    display_name: str,
    photo_name: str,
) -> Optional[UserProfile]:
    """Change display name and photo identifier.

    The session's cached profile is updated first and is what the user
    sees; the store write follows.

    Raises:
        ProfileStoreError: If the store write fails. The cached copy keeps the edit.
    """
    if session.profile is not None:
        session.profile.display_name = display_name
        session.profile.photo_name = photo_name
    try:
        await profile_dal.update(session.user.uid, display_name=display_name, photo_name=photo_name)
    except Exception as exc:
        LOGGER.error("Failed to update profile for %s: %s", session.user.uid, exc)
        raise ProfileStoreError(UPDATE_FAILED_MESSAGE) from exc
    return session.profile


async def delete_account(
    profile_dal: ProfileDAL,
    registry: SessionRegistry,
    session: DriveSession,
    confirmed: bool = False,
) -> None:
    """Delete the profile document, then the identity account.

    If the identity deletion fails the profile is already gone and is not
    restored; the failure is reported to the caller.

    Raises:
        ConfirmationRequired: If `confirmed` is not set.
        ProfileStoreError: If either deletion fails.
    """
    if not confirmed:
        raise ConfirmationRequired("Deleting the account requires confirmation.")
    uid = session.user.uid
    try:
        await profile_dal.delete(uid)
        await session.identity.delete_current_user()
    except Exception as exc:
        LOGGER.error("Failed to delete account %s: %s", uid, exc)
        raise ProfileStoreError(DELETE_FAILED_MESSAGE) from exc

    session.profile = None
    registry.close(session.token)
    await session.catalog.clear()
