"""Async Data Access Layer for the USERS profile collection.

Provides ProfileDAL with get/create/update/delete keyed by user id,
compatible with `utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

from typing import Optional, Sequence

from models.user_models import UserProfile
from utils.database_init import AsyncDatabaseInitializer


class ProfileDAL:
    """Data access layer for user profile documents."""

    _COLUMNS = (
        "uid",
        "email",
        "display_name",
        "photo_url",
        "photo_name",
        "created_at",
        "last_login",
    )
    _COLUMN_LIST = ", ".join(_COLUMNS)
    # Fields a client may write after creation; the rest are assigned once.
    _UPDATABLE = ("display_name", "photo_name", "last_login")

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def get(self, uid: str) -> Optional[UserProfile]:
        """Return the profile for `uid`, or None if not found."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM USERS WHERE uid = ?",
                (uid,),
            )
            row = await cur.fetchone()
            return self._row_to_profile(row) if row else None

    async def create(self, profile: UserProfile) -> None:
        """Insert a new profile document.

        Raises:
            aiosqlite.IntegrityError: If a profile already exists for the uid.
        """
        async with self._db.connection() as conn:
            await conn.execute(
                f"INSERT INTO USERS ({self._COLUMN_LIST}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    profile.uid,
                    profile.email,
                    profile.display_name,
                    profile.photo_url,
                    profile.photo_name,
                    profile.created_at,
                    profile.last_login,
                ),
            )
            await conn.commit()

    async def update(self, uid: str, **fields: object) -> bool:
        """Update the given fields of a profile. Returns True if a row was changed.

        Raises:
            ValueError: If a field outside the updatable set is supplied.
        """
        unknown = set(fields) - set(self._UPDATABLE)
        if unknown:
            raise ValueError(f"Fields not updatable: {', '.join(sorted(unknown))}")
        if not fields:
            return False

        assignments = ", ".join(f"{col} = ?" for col in fields)
        params = list(fields.values())
        params.append(uid)

        async with self._db.connection() as conn:
            await conn.execute(f"UPDATE USERS SET {assignments} WHERE uid = ?", tuple(params))
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    async def delete(self, uid: str) -> bool:
        """Delete the profile for `uid`. Returns True if a row was deleted."""
        async with self._db.connection() as conn:
            await conn.execute("DELETE FROM USERS WHERE uid = ?", (uid,))
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    @staticmethod
    def _row_to_profile(row: Sequence[object]) -> UserProfile:
        """Convert a DB row tuple into a UserProfile."""
        return UserProfile(
            uid=row[0],
            email=row[1],
            display_name=row[2] or "",
            photo_url=row[3],
            photo_name=row[4],
            created_at=int(row[5] or 0),
            last_login=int(row[6] or 0),
        )
