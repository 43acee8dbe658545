"""
Calibration Lab Records - Database Models
Version: 1.2.0

Changelog:
v1.2.0 (2026-10-26): asset_testing_history table for per-asset test results
v1.1.0 (2026-10-12): UNIQUE index on lab_assets.asset_id; deleted_at column for
                      soft-deleted assets; report_test_history table
v1.0.0 (2026-10-05): Initial schema - customers, calibration reports, lab assets,
                      customer asset counters
"""

from .asset import AssetRecord, AssetCreate, CustomerAssetCounter, NextAssetId
from .report import (
    ReportType, TestResult, ReportSave, CalibrationReport,
    TestHistoryCreate, TestHistoryEntry, ReportSaveResult,
)
from .asset_testing import (
    PassFailStatus, DegradationTrend, AssetTestRecordCreate,
    AssetTestRecordUpdate, AssetTestRecord, AssetTestingStats,
    AssetWithTestingHistory, AssetTestSearch,
)

import aiosqlite
import logging

logger = logging.getLogger(__name__)


async def _add_column_if_missing(db, table, column, col_type, default=None):
    """Idempotent ALTER TABLE ADD COLUMN"""
    cursor = await db.execute(f"PRAGMA table_info({table})")
    existing = {row[1] for row in await cursor.fetchall()}
    if column not in existing:
        default_clause = f" DEFAULT {default}" if default is not None else ""
        await db.execute(f"ALTER TABLE {table} ADD COLUMN {column} {col_type}{default_clause}")


async def init_db():
    """Initialize SQLite database with calibration lab schema"""
    from database import get_db_path
    db_path = get_db_path()
    logger.info(f"Initializing database: {db_path}")

    async with aiosqlite.connect(db_path) as db:
        await db.execute("PRAGMA journal_mode=WAL")
        await db.execute("PRAGMA foreign_keys=ON")

        # ================================================================
        # CUSTOMERS
        # ================================================================
        await db.execute("""
            CREATE TABLE IF NOT EXISTS customers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                customer_code TEXT UNIQUE,
                contact_person TEXT,
                email TEXT,
                phone TEXT,
                address_line1 TEXT,
                city TEXT,
                state TEXT,
                postal_code TEXT,
                is_active BOOLEAN DEFAULT 1,
                notes TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # ================================================================
        # CALIBRATION REPORTS (one row per certificate form)
        # ================================================================
        await db.execute("""
            CREATE TABLE IF NOT EXISTS calibration_reports (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                report_type TEXT NOT NULL,
                job_id TEXT NOT NULL,
                user_id TEXT,
                customer_id TEXT,
                customer_code TEXT,
                asset_id TEXT,
                status TEXT NOT NULL DEFAULT 'PASS',
                report_info TEXT NOT NULL DEFAULT '{}',
                parent_report_id INTEGER REFERENCES calibration_reports(id),
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL
            )
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_calibration_reports_job
            ON calibration_reports(job_id, report_type)
        """)

        # ================================================================
        # REPORT TEST HISTORY (append-only pass/fail log)
        # ================================================================
        await db.execute("""
            CREATE TABLE IF NOT EXISTS report_test_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                report_id INTEGER NOT NULL REFERENCES calibration_reports(id)
                    ON DELETE CASCADE,
                test_result TEXT NOT NULL CHECK (test_result IN ('PASS', 'FAIL')),
                tested_by TEXT NOT NULL,
                test_notes TEXT,
                test_date TIMESTAMP NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_report_test_history_report
            ON report_test_history(report_id, test_date)
        """)

        # ================================================================
        # LAB ASSETS (equipment tracked by {customerCode}-{n})
        # ================================================================
        await db.execute("""
            CREATE TABLE IF NOT EXISTS lab_assets (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                asset_id TEXT,
                customer_id TEXT,
                job_id TEXT NOT NULL,
                user_id TEXT,
                name TEXT NOT NULL,
                file_url TEXT NOT NULL,
                report_id INTEGER REFERENCES calibration_reports(id),
                created_at TIMESTAMP NOT NULL
            )
        """)
        await _add_column_if_missing(db, "lab_assets", "deleted_at", "TIMESTAMP")
        await db.execute("""
            CREATE UNIQUE INDEX IF NOT EXISTS idx_lab_assets_asset_id
            ON lab_assets(asset_id)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_lab_assets_job
            ON lab_assets(job_id)
        """)

        # ================================================================
        # ASSET TESTING HISTORY (per-asset results, editable)
        # ================================================================
        await db.execute("""
            CREATE TABLE IF NOT EXISTS asset_testing_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                asset_row_id INTEGER NOT NULL REFERENCES lab_assets(id)
                    ON DELETE CASCADE,
                test_date TIMESTAMP NOT NULL,
                test_type TEXT,
                pass_fail_status TEXT NOT NULL
                    CHECK (pass_fail_status IN ('PASS', 'FAIL', 'CONDITIONAL')),
                condition_rating REAL,
                test_measurements TEXT NOT NULL DEFAULT '{}',
                notes TEXT,
                test_performed_by TEXT,
                created_by TEXT,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL
            )
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_asset_testing_history_asset
            ON asset_testing_history(asset_row_id, test_date)
        """)

        # ================================================================
        # CUSTOMER ASSET COUNTERS (advisory next-number hint)
        # ================================================================
        await db.execute("""
            CREATE TABLE IF NOT EXISTS customer_asset_counters (
                customer_id TEXT PRIMARY KEY,
                next_counter INTEGER NOT NULL DEFAULT 1,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.commit()

    logger.info("Database schema ready")
