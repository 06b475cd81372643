"""Per-user file catalog persisted to durable local storage.

The catalog is an ordered list of `DriveFile` records, most recent first by
insertion. It is scoped to one signed-in user: the storage key is built from
the user id passed to the constructor, so two accounts never share entries.
Every mutation writes the whole catalog back as a JSON array.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import List, Optional

from dal.local_storage_dal import LocalStorageDAL
from models.drive_file import AIAnalysis, DriveFile

LOGGER = logging.getLogger(__name__)
DEFAULT_KEY_PREFIX = "drive-files-"


class FileCatalog:
    """Session-scoped collection of file records for one user."""

    def __init__(self, user_id: str, storage: LocalStorageDAL, key_prefix: str = DEFAULT_KEY_PREFIX) -> None:
        if not user_id:
            raise ValueError("A user id is required to scope the catalog.")
        self.user_id = user_id
        self.storage_key = f"{key_prefix}{user_id}"
        self._storage = storage
        self._files: List[DriveFile] = []
        # one write at a time, snapshot taken under the lock
        self._write_lock = asyncio.Lock()

    @property
    def files(self) -> List[DriveFile]:
        """Return a shallow copy of the records in catalog order."""
        return list(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def get(self, file_id: str) -> Optional[DriveFile]:
        for record in self._files:
            if record.id == file_id:
                return record
        return None

    async def load(self) -> List[DriveFile]:
        """Hydrate the catalog from storage.

        Missing or unreadable data yields an empty catalog; individual
        malformed entries are skipped. Records still marked as analyzing
        belong to a session that is gone, so they are settled as failed and
        written back.
        """
        raw = await self._storage.get_item(self.storage_key)
        self._files = self._decode(raw)
        orphaned = [r for r in self._files if r.ai_data is not None and r.ai_data.is_analyzing]
        for record in orphaned:
            record.ai_data = AIAnalysis.failed()
        if orphaned:
            LOGGER.warning("Settled %d orphaned analyses for %s as failed", len(orphaned), self.user_id)
            await self.persist()
        return self.files

    def _decode(self, raw: Optional[str]) -> List[DriveFile]:
        if not raw:
            return []
        try:
            entries = json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.warning("Stored catalog for %s is not valid JSON; starting empty", self.user_id)
            return []
        if not isinstance(entries, list):
            LOGGER.warning("Stored catalog for %s is not a list; starting empty", self.user_id)
            return []

        records: List[DriveFile] = []
        seen = set()
        for entry in entries:
            try:
                record = DriveFile.from_dict(entry)
            except (KeyError, TypeError, ValueError) as exc:
                LOGGER.warning("Dropping malformed catalog entry for %s: %s", self.user_id, exc)
                continue
            if record.id in seen:
                continue
            seen.add(record.id)
            records.append(record)
        return records

    async def persist(self) -> None:
        """Write the full catalog to storage.

        Writes are serialized and each one snapshots the catalog as it is when
        the write starts, so the last write to commit carries the latest state.
        """
        async with self._write_lock:
            payload = json.dumps([record.to_dict() for record in self._files])
            await self._storage.set_item(self.storage_key, payload)

    async def insert_first(self, record: DriveFile) -> DriveFile:
        """Prepend a new record and persist.

        Raises:
            ValueError: If a record with the same id already exists.
        """
        if self.get(record.id) is not None:
            raise ValueError(f"Duplicate file id {record.id}")
        self._files.insert(0, record)
        await self.persist()
        return record

    async def remove(self, file_id: str) -> bool:
        """Remove the record with `file_id`. Returns False if it was absent."""
        remaining = [record for record in self._files if record.id != file_id]
        if len(remaining) == len(self._files):
            return False
        self._files = remaining
        await self.persist()
        return True

    async def update_details(self, file_id: str, name: str, notes: str) -> Optional[DriveFile]:
        """Replace the name and notes of a record. Returns None if absent."""
        record = self.get(file_id)
        if record is None:
            return None
        record.name = name
        record.notes = notes
        await self.persist()
        return record

    async def patch_analysis(self, file_id: str, analysis: AIAnalysis) -> bool:
        """Replace a record's enrichment. A missing record is a no-op returning False."""
        record = self.get(file_id)
        if record is None:
            return False
        record.ai_data = analysis
        await self.persist()
        return True

    async def clear(self) -> None:
        """Drop every record and remove the storage entry."""
        self._files = []
        async with self._write_lock:
            await self._storage.remove_item(self.storage_key)
