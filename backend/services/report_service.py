"""
Calibration Lab Records - Report Service
Version: 1.2.0

Changelog:
v1.2.0 (2026-10-26): Report type checked on update; test history listing
                      requires an existing report
v1.1.0 (2026-10-12): Test history row appended on every save; asset failures
                      returned as warnings instead of failing the save
v1.0.0 (2026-10-05): Initial save/load of calibration certificate reports
"""

import logging
from datetime import datetime
from typing import Optional, List

from config import settings
from database import get_db, execute_one, execute_all, json_col, from_json
from models.report import (
    ReportType, ReportSave, CalibrationReport, TestHistoryCreate,
    TestHistoryEntry, ReportSaveResult,
)
from services.asset_allocator import AssetIdAllocator, normalize_customer_code
from services.asset_store import SqliteAssetStore

logger = logging.getLogger(__name__)

ASSET_WARNING = "Report saved, but there was an issue creating the asset record"


class ReportNotFoundError(LookupError):
    pass


def _row_to_report(row: dict) -> CalibrationReport:
    row = dict(row)
    row["report_info"] = from_json(row.get("report_info")) or {}
    return CalibrationReport(**row)


def asset_name(report_type: ReportType, data: ReportSave) -> str:
    """e.g. "Glove Report - Salisbury - 10/19/2026" """
    manufacturer = data.report_info.get("manufacturer") or ""
    return (f"{report_type.label} Report - {manufacturer} - "
            f"{datetime.now().strftime('%m/%d/%Y')}")


def asset_url(report_type: ReportType, job_id: str, report_id: int) -> str:
    return (f"{settings.ASSET_URL_SCHEME}/jobs/{job_id}/"
            f"calibration-{report_type.url_slug}/{report_id}")


class ReportService:
    """Saves calibration certificates and their linked asset records"""

    async def save_report(self, report_type: ReportType, data: ReportSave,
                          report_id: Optional[int] = None) -> ReportSaveResult:
        """
        Create or update a report.

        New reports get an asset ID (unless the form already carries one), a
        test history row and a lab_assets record. Updates only rewrite the
        report and append history. If the asset record cannot be created the
        report stays saved and the result carries a warning.
        """
        if report_id is not None:
            return await self._update_report(report_type, data, report_id)

        code = normalize_customer_code(
            data.customer_code or settings.ASSET_ID_FALLBACK_CODE)
        now = datetime.now().isoformat()

        async with get_db() as db:
            allocator = AssetIdAllocator(SqliteAssetStore(db))

            asset_id = data.asset_id
            if not asset_id:
                asset_id = await allocator.allocate_next_id(code)
                logger.info(f"Generated asset ID {asset_id} for new "
                            f"{report_type.value} report")

            report_info = dict(data.report_info)
            report_info["asset_id"] = asset_id
            report_info["status"] = data.status.value

            cursor = await db.execute("""
                INSERT INTO calibration_reports
                    (report_type, job_id, user_id, customer_id, customer_code,
                     asset_id, status, report_info, parent_report_id,
                     created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                report_type.value, data.job_id, data.user_id, data.customer_id,
                code, asset_id, data.status.value, json_col(report_info),
                data.parent_report_id, now, now
            ))
            saved_id = cursor.lastrowid
            await self._append_history(db, saved_id, TestHistoryCreate(
                test_result=data.status,
                tested_by=data.user_id,
                test_notes=data.test_notes,
            ))
            await db.commit()
            logger.info(f"Created {report_type.value} report {saved_id} "
                        f"for job {data.job_id}")

            result = ReportSaveResult(report_id=saved_id, created=True,
                                      asset_id=asset_id)
            try:
                result.asset = await allocator.create_asset(
                    data.job_id,
                    data.customer_id,
                    asset_name(report_type, data),
                    asset_url(report_type, data.job_id, saved_id),
                    data.user_id,
                    customer_id_for_asset=code,
                    parent_report_id=data.parent_report_id,
                )
            except Exception as e:
                logger.error(f"Error creating asset for report {saved_id}: {e}")
                result.warnings.append(ASSET_WARNING)

        return result

    async def _update_report(self, report_type: ReportType, data: ReportSave,
                             report_id: int) -> ReportSaveResult:
        async with get_db() as db:
            existing = await execute_one(
                db, "SELECT * FROM calibration_reports WHERE id = ?", (report_id,))
            if not existing:
                raise ReportNotFoundError(f"Report {report_id} not found")
            if existing["report_type"] != report_type.value:
                raise ReportNotFoundError(
                    f"Report {report_id} is not a {report_type.value} report")

            asset_id = data.asset_id or existing["asset_id"]
            report_info = dict(data.report_info)
            report_info["asset_id"] = asset_id
            report_info["status"] = data.status.value

            await db.execute("""
                UPDATE calibration_reports
                SET report_info = ?, status = ?, asset_id = ?, updated_at = ?
                WHERE id = ?
            """, (json_col(report_info), data.status.value, asset_id,
                  datetime.now().isoformat(), report_id))
            await self._append_history(db, report_id, TestHistoryCreate(
                test_result=data.status,
                tested_by=data.user_id,
                test_notes=data.test_notes,
            ))
            await db.commit()

        logger.info(f"Updated {report_type.value} report {report_id} "
                    f"with status {data.status.value}")
        return ReportSaveResult(report_id=report_id, created=False,
                                asset_id=asset_id)

    async def get_report(self, report_id: int) -> CalibrationReport:
        async with get_db() as db:
            row = await execute_one(
                db, "SELECT * FROM calibration_reports WHERE id = ?", (report_id,))
        if not row:
            raise ReportNotFoundError(f"Report {report_id} not found")
        return _row_to_report(row)

    async def list_reports(self, job_id: Optional[str] = None,
                           report_type: Optional[ReportType] = None,
                           limit: int = 100) -> List[CalibrationReport]:
        query = "SELECT * FROM calibration_reports"
        conditions = []
        params = []
        if job_id:
            conditions.append("job_id = ?")
            params.append(job_id)
        if report_type:
            conditions.append("report_type = ?")
            params.append(report_type.value)
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY created_at DESC, id DESC LIMIT ?"
        params.append(limit)

        async with get_db() as db:
            rows = await execute_all(db, query, params)
        return [_row_to_report(row) for row in rows]

    async def add_test_history(self, report_id: int,
                               entry: TestHistoryCreate) -> TestHistoryEntry:
        async with get_db() as db:
            exists = await execute_one(
                db, "SELECT id FROM calibration_reports WHERE id = ?", (report_id,))
            if not exists:
                raise ReportNotFoundError(f"Report {report_id} not found")
            entry_id = await self._append_history(db, report_id, entry)
            await db.commit()
            row = await execute_one(
                db, "SELECT * FROM report_test_history WHERE id = ?", (entry_id,))
        return TestHistoryEntry(**row)

    async def list_test_history(self, report_id: int) -> List[TestHistoryEntry]:
        async with get_db() as db:
            exists = await execute_one(
                db, "SELECT id FROM calibration_reports WHERE id = ?", (report_id,))
            if not exists:
                raise ReportNotFoundError(f"Report {report_id} not found")
            rows = await execute_all(db, """
                SELECT * FROM report_test_history
                WHERE report_id = ?
                ORDER BY test_date DESC, id DESC
            """, (report_id,))
        return [TestHistoryEntry(**row) for row in rows]

    async def _append_history(self, db, report_id: int,
                              entry: TestHistoryCreate) -> int:
        now = datetime.now().isoformat()
        test_date = entry.test_date.isoformat() if entry.test_date else now
        cursor = await db.execute("""
            INSERT INTO report_test_history
                (report_id, test_result, tested_by, test_notes, test_date,
                 created_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (report_id, entry.test_result.value, entry.tested_by,
              entry.test_notes, test_date, now))
        return cursor.lastrowid


_service = ReportService()


async def save_report(report_type: ReportType, data: ReportSave,
                      report_id: Optional[int] = None) -> ReportSaveResult:
    return await _service.save_report(report_type, data, report_id)


async def get_report(report_id: int) -> CalibrationReport:
    return await _service.get_report(report_id)


async def list_reports(*args, **kwargs) -> List[CalibrationReport]:
    return await _service.list_reports(*args, **kwargs)


async def add_test_history(report_id: int,
                           entry: TestHistoryCreate) -> TestHistoryEntry:
    return await _service.add_test_history(report_id, entry)


async def list_test_history(report_id: int) -> List[TestHistoryEntry]:
    return await _service.list_test_history(report_id)
