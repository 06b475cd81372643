"""Tests for the per-user file catalog and its durable storage."""

import asyncio
import json

import pytest

from conftest import make_record
from models.drive_file import ANALYSIS_FAILED_SUMMARY, AIAnalysis, DriveFile
from services.catalog.file_catalog import FileCatalog


async def stored(storage, catalog):
    raw = await storage.get_item(catalog.storage_key)
    return json.loads(raw) if raw is not None else None


class TestCatalogPersistence:
    """Every mutation writes the whole catalog back."""

    @pytest.mark.asyncio
    async def test_load_missing_entry_is_empty(self, storage):
        catalog = FileCatalog("user-1", storage)
        assert await catalog.load() == []

    @pytest.mark.asyncio
    async def test_persisted_catalog_matches_memory_after_each_mutation(self, storage):
        catalog = FileCatalog("user-1", storage)
        await catalog.load()

        await catalog.insert_first(make_record("a", upload_date=1))
        assert await stored(storage, catalog) == [f.to_dict() for f in catalog.files]

        await catalog.insert_first(make_record("b", upload_date=2))
        assert [f["id"] for f in await stored(storage, catalog)] == ["b", "a"]

        await catalog.update_details("a", "renamed.txt", "some notes")
        assert await stored(storage, catalog) == [f.to_dict() for f in catalog.files]

        await catalog.patch_analysis("b", AIAnalysis(False, "done", ["t"]))
        assert await stored(storage, catalog) == [f.to_dict() for f in catalog.files]

        await catalog.remove("b")
        assert await stored(storage, catalog) == [f.to_dict() for f in catalog.files]
        assert [f.id for f in catalog.files] == ["a"]

    @pytest.mark.asyncio
    async def test_reload_round_trips_records(self, storage):
        catalog = FileCatalog("user-1", storage)
        await catalog.insert_first(make_record("a", notes="n", summary="s", tags=["t1", "t2"]))

        reloaded = FileCatalog("user-1", storage)
        records = await reloaded.load()
        assert records == catalog.files

    @pytest.mark.asyncio
    async def test_users_do_not_share_entries(self, storage):
        alice = FileCatalog("alice", storage)
        await alice.insert_first(make_record("a"))

        bob = FileCatalog("bob", storage)
        assert await bob.load() == []
        assert alice.storage_key != bob.storage_key


class TestMalformedStorage:
    """Stored data from another shape degrades to an empty or partial catalog."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["not json", "{\"id\": 1}", "42", "null"])
    async def test_unreadable_payload_yields_empty_catalog(self, storage, raw):
        catalog = FileCatalog("user-1", storage)
        await storage.set_item(catalog.storage_key, raw)
        assert await catalog.load() == []

    @pytest.mark.asyncio
    async def test_malformed_entries_are_dropped(self, storage):
        catalog = FileCatalog("user-1", storage)
        good = make_record("good").to_dict()
        await storage.set_item(
            catalog.storage_key,
            json.dumps([good, {"name": "no id"}, {"id": "x", "name": "y", "type": "weird", "uploadDate": 1}, "str"]),
        )
        records = await catalog.load()
        assert [r.id for r in records] == ["good"]


class TestCatalogMutations:

    @pytest.mark.asyncio
    async def test_insert_rejects_duplicate_ids(self, storage):
        catalog = FileCatalog("user-1", storage)
        await catalog.insert_first(make_record("a"))
        with pytest.raises(ValueError):
            await catalog.insert_first(make_record("a"))

    @pytest.mark.asyncio
    async def test_missing_ids_are_no_ops(self, storage):
        catalog = FileCatalog("user-1", storage)
        await catalog.insert_first(make_record("a"))
        assert await catalog.remove("missing") is False
        assert await catalog.update_details("missing", "n", "n") is None
        assert await catalog.patch_analysis("missing", AIAnalysis(False, "s", [])) is False
        assert [f.id for f in catalog.files] == ["a"]

    @pytest.mark.asyncio
    async def test_update_details_touches_only_name_and_notes(self, storage):
        catalog = FileCatalog("user-1", storage)
        original = make_record("a", name="old.txt", upload_date=7, summary="kept")
        before = DriveFile.from_dict(original.to_dict())
        await catalog.insert_first(original)

        updated = await catalog.update_details("a", "new.txt", "fresh notes")

        assert updated.name == "new.txt"
        assert updated.notes == "fresh notes"
        assert (updated.kind, updated.mime_type, updated.size, updated.upload_date, updated.data) == (
            before.kind, before.mime_type, before.size, before.upload_date, before.data,
        )
        assert updated.ai_data == before.ai_data

    @pytest.mark.asyncio
    async def test_clear_removes_storage_entry(self, storage):
        catalog = FileCatalog("user-1", storage)
        await catalog.insert_first(make_record("a"))
        await catalog.clear()
        assert len(catalog) == 0
        assert await storage.get_item(catalog.storage_key) is None

    def test_user_id_is_required(self, storage):
        with pytest.raises(ValueError):
            FileCatalog("", storage)


class SlowFirstWriteStorage:
    """Storage wrapper whose first write stalls before committing."""

    def __init__(self, storage, delay=0.05):
        self._storage = storage
        self._delay = delay
        self._writes = 0

    async def get_item(self, key):
        return await self._storage.get_item(key)

    async def set_item(self, key, value):
        self._writes += 1
        if self._writes == 1:
            await asyncio.sleep(self._delay)
        await self._storage.set_item(key, value)

    async def remove_item(self, key):
        return await self._storage.remove_item(key)


class TestConcurrentMutations:
    """Writes commit in mutation order, so storage never lags memory."""

    @pytest.mark.asyncio
    async def test_gathered_mutations_leave_storage_equal_to_memory(self, storage):
        catalog = FileCatalog("user-1", storage)
        for index in range(10):
            await catalog.insert_first(make_record(f"f{index}", upload_date=index))

        await asyncio.gather(
            *(catalog.update_details(f"f{i}", f"renamed-{i}.txt", "edited") for i in range(0, 10, 3)),
            *(catalog.remove(f"f{i}") for i in range(1, 10, 3)),
            *(catalog.patch_analysis(f"f{i}", AIAnalysis(False, f"summary {i}", ["t"])) for i in range(2, 10, 3)),
        )

        assert await stored(storage, catalog) == [f.to_dict() for f in catalog.files]

    @pytest.mark.asyncio
    async def test_slow_patch_write_does_not_restore_removed_record(self, storage):
        catalog = FileCatalog("user-1", storage)
        await catalog.insert_first(make_record("a"))
        catalog._storage = SlowFirstWriteStorage(storage)

        await asyncio.gather(
            catalog.patch_analysis("a", AIAnalysis(False, "late", ["t"])),
            catalog.remove("a"),
        )

        assert catalog.files == []
        assert await stored(storage, catalog) == []


class TestOrphanedAnalyses:

    @pytest.mark.asyncio
    async def test_load_settles_records_left_analyzing(self, storage):
        catalog = FileCatalog("user-1", storage)
        pending = make_record("a")
        pending.ai_data = AIAnalysis.pending()
        await catalog.insert_first(make_record("b", summary="done", tags=["t"]))
        await catalog.insert_first(pending)

        reloaded = FileCatalog("user-1", storage)
        records = await reloaded.load()

        assert records[0].ai_data == AIAnalysis(False, ANALYSIS_FAILED_SUMMARY, [])
        assert records[1].ai_data.summary == "done"
        assert (await stored(storage, reloaded))[0]["aiData"]["isAnalyzing"] is False
