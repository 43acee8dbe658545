"""
Calibration Lab Records - Asset Store
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): transaction() context so allocation and insert share one
                      write lock (BEGIN IMMEDIATE)
v1.0.0 (2026-10-05): Initial SQLite store for lab_assets and
                      customer_asset_counters

Thin persistence layer the asset ID allocator talks to. Every method works on
an already open aiosqlite connection. Writes commit immediately unless they
run inside transaction(), in which case they commit or roll back together.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

import aiosqlite
from models.asset import AssetRecord, CustomerAssetCounter

logger = logging.getLogger(__name__)


class SqliteAssetStore:
    """lab_assets / customer_asset_counters access over one connection"""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db
        self.db.row_factory = aiosqlite.Row
        self._in_transaction = False

    @asynccontextmanager
    async def transaction(self):
        """
        Run the enclosed reads and writes under SQLite's RESERVED lock.

        BEGIN IMMEDIATE blocks other writers until commit, so a max-suffix
        scan followed by an insert cannot interleave with another client's.
        """
        if self._in_transaction:
            yield self
            return

        await self.db.execute("BEGIN IMMEDIATE")
        self._in_transaction = True
        try:
            yield self
        except BaseException:
            await self.db.rollback()
            raise
        else:
            await self.db.commit()
        finally:
            self._in_transaction = False

    async def _commit(self):
        if not self._in_transaction:
            await self.db.commit()

    # -- lab_assets --

    async def list_asset_ids(self, prefix: str) -> List[str]:
        """All asset_id values starting with prefix, highest first"""
        cursor = await self.db.execute(
            "SELECT asset_id FROM lab_assets WHERE asset_id LIKE ? "
            "ORDER BY asset_id DESC",
            (f"{prefix}%",)
        )
        rows = await cursor.fetchall()
        return [row["asset_id"] for row in rows if row["asset_id"]]

    async def insert_asset(self, *, job_id: str, name: str, file_url: str,
                           customer_id: Optional[str] = None,
                           user_id: Optional[str] = None,
                           asset_id: Optional[str] = None,
                           report_id: Optional[int] = None) -> AssetRecord:
        cursor = await self.db.execute("""
            INSERT INTO lab_assets
                (asset_id, customer_id, job_id, user_id, name, file_url,
                 report_id, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            asset_id, customer_id, job_id, user_id, name, file_url,
            report_id, datetime.now().isoformat()
        ))
        row_id = cursor.lastrowid
        await self._commit()

        record = await self.get_asset(row_id)
        if record is None:
            raise aiosqlite.DatabaseError(f"Inserted asset row {row_id} not found")
        return record

    async def get_asset(self, row_id: int) -> Optional[AssetRecord]:
        cursor = await self.db.execute(
            "SELECT * FROM lab_assets WHERE id = ?", (row_id,))
        row = await cursor.fetchone()
        return AssetRecord(**dict(row)) if row else None

    # -- customer_asset_counters --

    async def get_counter(self, customer_id: str) -> Optional[CustomerAssetCounter]:
        cursor = await self.db.execute(
            "SELECT * FROM customer_asset_counters WHERE customer_id = ?",
            (customer_id,)
        )
        row = await cursor.fetchone()
        return CustomerAssetCounter(**dict(row)) if row else None

    async def insert_counter(self, customer_id: str, next_counter: int):
        now = datetime.now().isoformat()
        await self.db.execute("""
            INSERT INTO customer_asset_counters
                (customer_id, next_counter, created_at, updated_at)
            VALUES (?, ?, ?, ?)
        """, (customer_id, next_counter, now, now))
        await self._commit()

    async def update_counter(self, customer_id: str, next_counter: int):
        await self.db.execute("""
            UPDATE customer_asset_counters
            SET next_counter = ?, updated_at = ?
            WHERE customer_id = ?
        """, (next_counter, datetime.now().isoformat(), customer_id))
        await self._commit()
