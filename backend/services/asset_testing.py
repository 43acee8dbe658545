"""
Calibration Lab Records - Asset Testing History Service
Version: 1.2.0

Changelog:
v1.2.0 (2026-10-26): Per-asset test results with edit/delete, search, stats
                      and a job view of assets with their latest test

Report test history is an append-only log per certificate. This module keeps
the equipment-side record: every test an asset went through, editable by the
lab, with summary statistics used to spot degrading equipment.
"""

import logging
from datetime import datetime
from typing import List, Dict

from database import (
    get_db, execute_one, execute_all, execute_insert, execute_update,
    json_col, from_json,
)
from models.asset_testing import (
    PassFailStatus, DegradationTrend, AssetTestRecordCreate,
    AssetTestRecordUpdate, AssetTestRecord, AssetTestingStats,
    AssetWithTestingHistory, AssetTestSearch,
)

logger = logging.getLogger(__name__)

# Rating change (oldest to newest) needed before a trend is called
TREND_THRESHOLD = 0.5


class AssetNotFoundError(LookupError):
    pass


class AssetTestRecordNotFoundError(LookupError):
    pass


def _row_to_record(row: dict) -> AssetTestRecord:
    row = dict(row)
    row["test_measurements"] = from_json(row.get("test_measurements")) or {}
    return AssetTestRecord(**row)


def degradation_trend(history: List[AssetTestRecord]) -> DegradationTrend:
    """Compare the oldest and newest condition ratings"""
    rated = sorted(
        (r for r in history if r.condition_rating is not None),
        key=lambda r: (r.test_date, r.id)
    )
    if len(rated) < 2:
        return DegradationTrend.UNKNOWN

    difference = rated[-1].condition_rating - rated[0].condition_rating
    if difference > TREND_THRESHOLD:
        return DegradationTrend.IMPROVING
    if difference < -TREND_THRESHOLD:
        return DegradationTrend.DECLINING
    return DegradationTrend.STABLE


def calculate_testing_stats(history: List[AssetTestRecord]) -> AssetTestingStats:
    if not history:
        return AssetTestingStats()

    total = len(history)
    passed = sum(1 for r in history if r.pass_fail_status == PassFailStatus.PASS)
    ratings = [r.condition_rating for r in history if r.condition_rating is not None]
    dates = sorted(r.test_date for r in history)

    # Whole days between first and last test
    years = (dates[-1] - dates[0]).days / 365.25

    return AssetTestingStats(
        total_tests=total,
        pass_rate=passed / total * 100,
        average_condition_rating=sum(ratings) / len(ratings) if ratings else 0.0,
        latest_test_date=dates[-1],
        degradation_trend=degradation_trend(history),
        tests_per_year=total / years if years > 0 else float(total),
    )


class AssetTestingService:
    """Per-asset test records keyed by the lab_assets row id"""

    async def get_history(self, asset_row_id: int) -> List[AssetTestRecord]:
        """Test records for one asset, newest first"""
        async with get_db() as db:
            await self._require_asset(db, asset_row_id)
            rows = await execute_all(db, """
                SELECT * FROM asset_testing_history
                WHERE asset_row_id = ?
                ORDER BY test_date DESC, id DESC
            """, (asset_row_id,))
        return [_row_to_record(row) for row in rows]

    async def add_record(self, asset_row_id: int,
                         data: AssetTestRecordCreate) -> AssetTestRecord:
        now = datetime.now().isoformat()
        test_date = data.test_date.isoformat() if data.test_date else now

        async with get_db() as db:
            await self._require_asset(db, asset_row_id)
            record_id = await execute_insert(db, """
                INSERT INTO asset_testing_history
                    (asset_row_id, test_date, test_type, pass_fail_status,
                     condition_rating, test_measurements, notes,
                     test_performed_by, created_by, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                asset_row_id, test_date, data.test_type,
                data.pass_fail_status.value, data.condition_rating,
                json_col(data.test_measurements), data.notes,
                data.performed_by, data.performed_by, now, now
            ))
            row = await execute_one(
                db, "SELECT * FROM asset_testing_history WHERE id = ?",
                (record_id,))

        logger.info(f"Recorded {data.pass_fail_status.value} test {record_id} "
                    f"for asset {asset_row_id}")
        return _row_to_record(row)

    async def update_record(self, record_id: int,
                            data: AssetTestRecordUpdate) -> AssetTestRecord:
        updates = []
        params = []
        for field_name, value in data.model_dump(exclude_none=True).items():
            if field_name == "test_measurements":
                value = json_col(value)
            elif isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, PassFailStatus):
                value = value.value
            updates.append(f"{field_name} = ?")
            params.append(value)

        updates.append("updated_at = ?")
        params.append(datetime.now().isoformat())
        params.append(record_id)

        async with get_db() as db:
            count = await execute_update(
                db,
                f"UPDATE asset_testing_history SET {', '.join(updates)} WHERE id = ?",
                params
            )
            if count == 0:
                raise AssetTestRecordNotFoundError(
                    f"Test record {record_id} not found")
            row = await execute_one(
                db, "SELECT * FROM asset_testing_history WHERE id = ?",
                (record_id,))

        logger.info(f"Updated asset test record {record_id}")
        return _row_to_record(row)

    async def delete_record(self, record_id: int):
        async with get_db() as db:
            count = await execute_update(
                db, "DELETE FROM asset_testing_history WHERE id = ?",
                (record_id,))
        if count == 0:
            raise AssetTestRecordNotFoundError(f"Test record {record_id} not found")
        logger.info(f"Deleted asset test record {record_id}")

    async def get_stats(self, asset_row_id: int) -> AssetTestingStats:
        return calculate_testing_stats(await self.get_history(asset_row_id))

    async def get_job_assets(self, job_id: str,
                             include_deleted: bool = False
                             ) -> List[AssetWithTestingHistory]:
        """Assets of a job, each with its history, stats and latest test"""
        query = "SELECT * FROM lab_assets WHERE job_id = ?"
        if not include_deleted:
            query += " AND deleted_at IS NULL"
        query += " ORDER BY created_at DESC, id DESC"

        async with get_db() as db:
            assets = await execute_all(db, query, (job_id,))
            history = await self._history_by_asset(
                db, [asset["id"] for asset in assets])

        result = []
        for asset in assets:
            records = history.get(asset["id"], [])
            latest = records[0] if records else None
            result.append(AssetWithTestingHistory(
                **asset,
                testing_history=records,
                testing_stats=calculate_testing_stats(records),
                latest_test=latest,
                latest_condition_rating=latest.condition_rating if latest else None,
                latest_pass_fail=latest.pass_fail_status if latest else None,
            ))
        return result

    async def get_summary(self, asset_row_ids: List[int]
                          ) -> Dict[int, AssetTestingStats]:
        """Stats per asset; assets without tests get empty stats"""
        if not asset_row_ids:
            return {}
        async with get_db() as db:
            history = await self._history_by_asset(db, asset_row_ids)
        return {
            asset_row_id: calculate_testing_stats(history.get(asset_row_id, []))
            for asset_row_id in asset_row_ids
        }

    async def search(self, criteria: AssetTestSearch) -> List[AssetTestRecord]:
        query = "SELECT * FROM asset_testing_history"
        conditions = []
        params = []

        if criteria.asset_row_ids:
            placeholders = ", ".join("?" for _ in criteria.asset_row_ids)
            conditions.append(f"asset_row_id IN ({placeholders})")
            params.extend(criteria.asset_row_ids)
        if criteria.test_type:
            conditions.append("test_type = ?")
            params.append(criteria.test_type)
        if criteria.pass_fail_status:
            conditions.append("pass_fail_status = ?")
            params.append(criteria.pass_fail_status.value)
        if criteria.date_from:
            conditions.append("test_date >= ?")
            params.append(criteria.date_from.isoformat())
        if criteria.date_to:
            conditions.append("test_date <= ?")
            params.append(criteria.date_to.isoformat())
        if criteria.condition_rating_min is not None:
            conditions.append("condition_rating >= ?")
            params.append(criteria.condition_rating_min)
        if criteria.condition_rating_max is not None:
            conditions.append("condition_rating <= ?")
            params.append(criteria.condition_rating_max)

        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY test_date DESC, id DESC"

        async with get_db() as db:
            rows = await execute_all(db, query, params)
        return [_row_to_record(row) for row in rows]

    async def _require_asset(self, db, asset_row_id: int):
        row = await execute_one(
            db, "SELECT id FROM lab_assets WHERE id = ?", (asset_row_id,))
        if not row:
            raise AssetNotFoundError(f"Asset {asset_row_id} not found")

    async def _history_by_asset(self, db, asset_row_ids: List[int]
                                ) -> Dict[int, List[AssetTestRecord]]:
        if not asset_row_ids:
            return {}
        placeholders = ", ".join("?" for _ in asset_row_ids)
        rows = await execute_all(db, f"""
            SELECT * FROM asset_testing_history
            WHERE asset_row_id IN ({placeholders})
            ORDER BY test_date DESC, id DESC
        """, list(asset_row_ids))

        grouped: Dict[int, List[AssetTestRecord]] = {}
        for row in rows:
            grouped.setdefault(row["asset_row_id"], []).append(_row_to_record(row))
        return grouped


_service = AssetTestingService()


async def get_history(asset_row_id: int) -> List[AssetTestRecord]:
    return await _service.get_history(asset_row_id)


async def add_record(asset_row_id: int,
                     data: AssetTestRecordCreate) -> AssetTestRecord:
    return await _service.add_record(asset_row_id, data)


async def update_record(record_id: int,
                        data: AssetTestRecordUpdate) -> AssetTestRecord:
    return await _service.update_record(record_id, data)


async def delete_record(record_id: int):
    await _service.delete_record(record_id)


async def get_stats(asset_row_id: int) -> AssetTestingStats:
    return await _service.get_stats(asset_row_id)


async def get_job_assets(job_id: str, include_deleted: bool = False
                         ) -> List[AssetWithTestingHistory]:
    return await _service.get_job_assets(job_id, include_deleted)


async def get_summary(asset_row_ids: List[int]) -> Dict[int, AssetTestingStats]:
    return await _service.get_summary(asset_row_ids)


async def search(criteria: AssetTestSearch) -> List[AssetTestRecord]:
    return await _service.search(criteria)
