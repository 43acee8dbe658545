"""
Pytest configuration and fixtures for the Calibration Lab Records tests.
"""

import asyncio
import os
import tempfile
from contextlib import asynccontextmanager

import aiosqlite
import pytest

# Keep logs and the default database out of the source tree
_scratch = tempfile.mkdtemp(prefix="calibration-lab-tests-")
os.environ["LOGS_DIR"] = os.path.join(_scratch, "logs")
os.environ["DATA_DIR"] = os.path.join(_scratch, "data")
os.environ["SQLITE_DB_PATH"] = os.path.join(_scratch, "data", "default.db")
os.environ.pop("CALIBRATION_LAB_DB", None)

from config import settings  # noqa: E402
from models.asset import AssetRecord, CustomerAssetCounter  # noqa: E402


class FakeAssetStore:
    """In-memory store with switchable failures for each operation"""

    def __init__(self, asset_ids=None, counters=None):
        self.assets = [
            {"id": i + 1, "asset_id": asset_id} for i, asset_id in enumerate(asset_ids or [])
        ]
        self.counters = dict(counters or {})
        self.calls = []
        self.fail = set()
        self.integrity_failures = 0
        self.transactions = 0

    def _check(self, operation):
        self.calls.append(operation)
        if operation in self.fail:
            raise aiosqlite.OperationalError(f"{operation} unavailable")

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        yield self

    async def list_asset_ids(self, prefix):
        self._check("list_asset_ids")
        ids = [a["asset_id"] for a in self.assets
               if a["asset_id"] and a["asset_id"].startswith(prefix)]
        return sorted(ids, reverse=True)

    async def insert_asset(self, *, job_id, name, file_url, customer_id=None,
                           user_id=None, asset_id=None, report_id=None):
        self._check("insert_asset")
        if self.integrity_failures:
            self.integrity_failures -= 1
            raise aiosqlite.IntegrityError("UNIQUE constraint failed: lab_assets.asset_id")
        row = {
            "id": len(self.assets) + 1,
            "asset_id": asset_id,
            "customer_id": customer_id,
            "job_id": job_id,
            "user_id": user_id,
            "name": name,
            "file_url": file_url,
            "report_id": report_id,
            "created_at": "2026-10-19T09:30:00",
        }
        self.assets.append(row)
        return AssetRecord(**row)

    async def get_counter(self, customer_id):
        self._check("get_counter")
        if customer_id not in self.counters:
            return None
        return CustomerAssetCounter(customer_id=customer_id,
                                    next_counter=self.counters[customer_id])

    async def insert_counter(self, customer_id, next_counter):
        self._check("insert_counter")
        if customer_id in self.counters:
            raise aiosqlite.IntegrityError("UNIQUE constraint failed")
        self.counters[customer_id] = next_counter

    async def update_counter(self, customer_id, next_counter):
        self._check("update_counter")
        if customer_id in self.counters:
            self.counters[customer_id] = next_counter


@pytest.fixture
def make_store():
    """Factory: make_store(asset_ids=[...], counters={...})"""
    return FakeAssetStore


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Fresh, initialized SQLite database for one test"""
    path = str(tmp_path / "calibration_lab.db")
    monkeypatch.setattr(settings, "SQLITE_DB_PATH", path)
    monkeypatch.delenv("CALIBRATION_LAB_DB", raising=False)

    from models import init_db
    asyncio.run(init_db())
    return path


@pytest.fixture
def client(db_path):
    """Test client bound to the scratch database"""
    from fastapi.testclient import TestClient
    from main import app

    with TestClient(app) as test_client:
        yield test_client
