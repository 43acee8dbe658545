"""
Calibration Lab Records - Admin API
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): Asset counter inspection
v1.0.0 (2026-10-05): Initial admin endpoints
"""

from fastapi import APIRouter, HTTPException
from typing import List

from config import settings
from database import get_db, execute_one, execute_all
from models.asset import CustomerAssetCounter

router = APIRouter()


# Asset Counters

@router.get("/asset-counters", response_model=List[CustomerAssetCounter])
async def get_asset_counters():
    """Advisory next-number hints per customer code"""
    async with get_db() as db:
        rows = await execute_all(
            db, "SELECT * FROM customer_asset_counters ORDER BY customer_id")
    return [CustomerAssetCounter(**row) for row in rows]


@router.get("/asset-counters/{customer_id}", response_model=CustomerAssetCounter)
async def get_asset_counter(customer_id: str):
    async with get_db() as db:
        row = await execute_one(
            db, "SELECT * FROM customer_asset_counters WHERE customer_id = ?",
            (customer_id,))
    if not row:
        raise HTTPException(
            status_code=404,
            detail=f"No asset counter for customer '{customer_id}'"
        )
    return CustomerAssetCounter(**row)


# System Information

@router.get("/system/info")
async def system_info():
    """Get system information"""
    import platform
    import psutil

    return {
        "platform": platform.platform(),
        "python_version": platform.python_version(),
        "cpu_count": psutil.cpu_count(),
        "memory_total_gb": round(psutil.virtual_memory().total / (1024**3), 2),
        "memory_available_gb": round(psutil.virtual_memory().available / (1024**3), 2),
        "disk_usage_percent": psutil.disk_usage('/').percent,
        "app_version": settings.APP_VERSION
    }


@router.get("/system/health")
async def system_health():
    """Database reachability and record counts"""
    health = {
        "overall": "healthy",
        "services": {}
    }

    try:
        async with get_db() as db:
            await db.execute("SELECT 1")
            counts = await execute_one(db, """
                SELECT
                    (SELECT COUNT(*) FROM calibration_reports) as reports,
                    (SELECT COUNT(*) FROM lab_assets WHERE deleted_at IS NULL) as assets
            """)
        health["services"]["sqlite"] = {"status": "healthy", **counts}
    except Exception as e:
        health["services"]["sqlite"] = {"status": "error", "error": str(e)}
        health["overall"] = "degraded"

    return health
