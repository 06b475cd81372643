import os
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiosqlite


class AsyncDatabaseInitializer:
    """
    Manage the async SQLite database backing local storage and profiles.

    - The database file is located at: <db_dir>/app.db, where db_dir is the
      constructor argument or, when omitted, the DATABASE_DIR environment
      variable. A RuntimeError is raised if neither is usable.
    - `ensure_database()` creates the LOCAL_STORAGE and USERS tables if they
      are missing. Existing data is kept; the store is durable across restarts.
    - Subsequent calls to `ensure_database()` on the same instance are no-ops,
      so it is safe for `connection()` to call it.
    """

    def __init__(self, db_dir: Optional[Path | str] = None) -> None:
        raw_dir = str(db_dir) if db_dir is not None else os.getenv("DATABASE_DIR")

        if raw_dir is None or not raw_dir.strip():
            raise RuntimeError(
                "DATABASE_DIR environment variable must be set to a writable "
                "directory path where the SQLite database file will be stored."
            )

        path = Path(raw_dir).expanduser()

        # If the path exists but is not a directory, that's a configuration error.
        if path.exists() and not path.is_dir():
            raise RuntimeError(
                f"DATABASE_DIR={raw_dir!r} points to a file, not a directory "
                f"({path}). Please set DATABASE_DIR to a directory path."
            )

        try:
            path.mkdir(parents=True, exist_ok=True)
        except Exception as exc:
            raise RuntimeError(
                f"Failed to create or access database directory at {path}"
            ) from exc

        self.db_dir = path
        self.db_path = self.db_dir / "app.db"

        self._initialized = False

    async def ensure_database(self) -> None:
        """
        Ensure the SQLite database and its tables exist at `self.db_path`.

        Subsequent calls on the same instance are no-ops.
        """
        if self._initialized:
            return

        max_attempts = 3
        for attempt in range(1, max_attempts + 1):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    await db.execute(
                        """
                        CREATE TABLE IF NOT EXISTS LOCAL_STORAGE (
                            key TEXT PRIMARY KEY,
                            value TEXT NOT NULL,
                            updated_at INTEGER
                        )
                        """
                    )
                    await db.execute(
                        """
                        CREATE TABLE IF NOT EXISTS USERS (
                            uid TEXT PRIMARY KEY,
                            email TEXT,
                            display_name TEXT,
                            photo_url TEXT,
                            photo_name TEXT,
                            created_at INTEGER,
                            last_login INTEGER
                        )
                        """
                    )

                    # Older databases may predate the photo_name column.
                    cur = await db.execute("PRAGMA table_info(USERS)")
                    cols = await cur.fetchall()
                    col_names = {col[1] for col in cols}
                    if "photo_name" not in col_names:
                        await db.execute("ALTER TABLE USERS ADD COLUMN photo_name TEXT")

                    await db.commit()
                break
            except FileNotFoundError:
                # On some platforms a transient missing file error may occur; retry a few times.
                if attempt >= max_attempts:
                    raise
                await asyncio.sleep(0.1 * attempt)

        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager yielding an `aiosqlite.Connection`.

        The tables are created on first use via `ensure_database()`.
        """
        await self.ensure_database()
        conn = await aiosqlite.connect(self.db_path)
        try:
            yield conn
        finally:
            await conn.close()
