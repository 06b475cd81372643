"""Async key-value store over the LOCAL_STORAGE table.

Mirrors the browser's localStorage contract (string keys, string values)
on top of `utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

import time
from typing import Optional

from utils.database_init import AsyncDatabaseInitializer


class LocalStorageDAL:
    """Data access layer for durable per-key string values."""

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def get_item(self, key: str) -> Optional[str]:
        """Return the stored value for `key`, or None if absent."""
        async with self._db.connection() as conn:
            cur = await conn.execute("SELECT value FROM LOCAL_STORAGE WHERE key = ?", (key,))
            row = await cur.fetchone()
            return row[0] if row else None

    async def set_item(self, key: str, value: str) -> None:
        """Insert or replace the value stored under `key`."""
        async with self._db.connection() as conn:
            await conn.execute(
                """
                INSERT INTO LOCAL_STORAGE (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, int(time.time())),
            )
            await conn.commit()

    async def remove_item(self, key: str) -> bool:
        """Delete the entry for `key`. Returns True if a row was deleted."""
        async with self._db.connection() as conn:
            await conn.execute("DELETE FROM LOCAL_STORAGE WHERE key = ?", (key,))
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)
