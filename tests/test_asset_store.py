"""
Integration tests for the SQLite asset store and the allocator running on it.
"""

import aiosqlite
import pytest

from database import get_db
from services import asset_allocator
from services.asset_allocator import AssetIdAllocator
from services.asset_store import SqliteAssetStore


async def _insert_raw_asset(asset_id, deleted=False):
    async with get_db() as db:
        await db.execute("""
            INSERT INTO lab_assets (asset_id, job_id, name, file_url, created_at, deleted_at)
            VALUES (?, 'job-1', 'seed', 'report:/seed', '2026-10-01T08:00:00', ?)
        """, (asset_id, "2026-10-02T08:00:00" if deleted else None))
        await db.commit()


class TestSqliteAssetStore:

    @pytest.mark.asyncio
    async def test_list_asset_ids_by_prefix(self, db_path):
        for asset_id in ["42-1", "42-10", "42-3", "4-2", "420-1"]:
            await _insert_raw_asset(asset_id)

        async with get_db() as db:
            ids = await SqliteAssetStore(db).list_asset_ids("42-")

        assert sorted(ids) == ["42-1", "42-10", "42-3"]

    @pytest.mark.asyncio
    async def test_counter_roundtrip(self, db_path):
        async with get_db() as db:
            store = SqliteAssetStore(db)
            assert await store.get_counter("42") is None

            await store.insert_counter("42", 2)
            await store.update_counter("42", 5)
            counter = await store.get_counter("42")

        assert counter.next_counter == 5
        assert counter.updated_at is not None

    @pytest.mark.asyncio
    async def test_duplicate_asset_id_rejected(self, db_path):
        await _insert_raw_asset("42-1")

        async with get_db() as db:
            store = SqliteAssetStore(db)
            with pytest.raises(aiosqlite.IntegrityError):
                await store.insert_asset(job_id="job-2", name="dup",
                                         file_url="report:/dup", asset_id="42-1")

    @pytest.mark.asyncio
    async def test_transaction_rolls_back_on_error(self, db_path):
        async with get_db() as db:
            store = SqliteAssetStore(db)
            with pytest.raises(RuntimeError):
                async with store.transaction():
                    await store.insert_asset(job_id="job-1", name="A",
                                             file_url="report:/a", asset_id="42-1")
                    raise RuntimeError("abort")

            assert await store.list_asset_ids("42-") == []


class TestAllocatorOnSqlite:

    @pytest.mark.asyncio
    async def test_sequential_assets_for_customer(self, db_path):
        created = []
        for n in range(3):
            record = await asset_allocator.create_calibration_asset(
                "job-1", "cust-uuid", f"Sleeve {n}", f"report:/s/{n}", "tech-1",
                customer_id_for_asset="42",
            )
            created.append(record.asset_id)

        assert created == ["42-1", "42-2", "42-3"]
        assert await asset_allocator.get_next_asset_id("42") == "42-4"

    @pytest.mark.asyncio
    async def test_soft_deleted_assets_keep_their_number(self, db_path):
        await _insert_raw_asset("5-1")
        await _insert_raw_asset("5-3", deleted=True)

        assert await asset_allocator.get_next_asset_id("5") == "5-4"

    @pytest.mark.asyncio
    async def test_counter_tracks_allocations(self, db_path):
        await _insert_raw_asset("42-7")

        assert await asset_allocator.get_next_asset_id("42") == "42-8"

        async with get_db() as db:
            counter = await SqliteAssetStore(db).get_counter("42")
        assert counter.next_counter == 9

    @pytest.mark.asyncio
    async def test_falls_back_to_counter_without_assets_table(self, db_path):
        async with get_db() as db:
            await db.execute("DROP TABLE lab_assets")
            await db.commit()

            allocator = AssetIdAllocator(SqliteAssetStore(db))
            first = await allocator.allocate_next_id("7")
            second = await allocator.allocate_next_id("7")

        assert (first, second) == ("7-1", "7-2")

    @pytest.mark.asyncio
    async def test_uuid_customer_shares_code_1(self, db_path):
        record = await asset_allocator.create_calibration_asset(
            "job-1", None, "Meter", "report:/m", "tech-1",
            customer_id_for_asset="3f2b8c1e-9d4a-4c11-8f0e-2a7d5b6c9e01",
        )

        assert record.asset_id == "1-1"
