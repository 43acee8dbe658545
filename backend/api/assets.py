"""
Calibration Lab Records - Lab Asset API Endpoints
Version: 1.2.0

Changelog:
v1.2.0 (2026-10-26): Exact, case-sensitive customer_code filter
v1.1.0 (2026-10-12): Soft delete / restore; deleted assets listing
v1.0.0 (2026-10-05): Next asset ID preview and asset creation
"""

from fastapi import APIRouter, HTTPException
from typing import Optional, List
from datetime import datetime
import logging

from database import get_db, execute_one, execute_all, execute_update
from models.asset import AssetRecord, AssetCreate, NextAssetId
from services import asset_allocator

router = APIRouter(prefix="/assets", tags=["assets"])
logger = logging.getLogger(__name__)


@router.get("/next-id", response_model=NextAssetId)
async def next_asset_id(customer_id: str = ""):
    """
    Preview the asset ID the next saved report would get.
    The number is not reserved.
    """
    asset_id = await asset_allocator.get_next_asset_id(customer_id)
    return NextAssetId(customer_id=customer_id, asset_id=asset_id)


@router.post("/", response_model=AssetRecord)
async def create_asset(data: AssetCreate):
    """Create a lab asset, minting a fresh asset ID from the customer code"""
    try:
        return await asset_allocator.create_calibration_asset(
            data.job_id,
            data.customer_id,
            data.name,
            data.file_url,
            data.user_id,
            customer_id_for_asset=data.customer_id_for_asset,
            parent_report_id=data.parent_report_id,
        )
    except Exception as e:
        logger.error(f"Failed to create asset for job {data.job_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to create asset: {str(e)}")


@router.get("/", response_model=List[AssetRecord])
async def list_assets(
    customer_code: Optional[str] = None,
    job_id: Optional[str] = None,
    include_deleted: bool = False,
    limit: int = 200
):
    """List lab assets, newest first"""
    query = "SELECT * FROM lab_assets"
    conditions = []
    params = []

    if not include_deleted:
        conditions.append("deleted_at IS NULL")
    if customer_code:
        # Exact, case-sensitive prefix; LIKE would treat '_' as a wildcard
        conditions.append("substr(asset_id, 1, length(?)) = ?")
        params.extend([f"{customer_code}-", f"{customer_code}-"])
    if job_id:
        conditions.append("job_id = ?")
        params.append(job_id)

    if conditions:
        query += " WHERE " + " AND ".join(conditions)
    query += " ORDER BY created_at DESC, id DESC LIMIT ?"
    params.append(limit)

    async with get_db() as db:
        rows = await execute_all(db, query, params)
    return [AssetRecord(**row) for row in rows]


@router.get("/deleted", response_model=List[AssetRecord])
async def list_deleted_assets(limit: int = 200):
    """Soft-deleted assets, most recently deleted first"""
    async with get_db() as db:
        rows = await execute_all(db, """
            SELECT * FROM lab_assets
            WHERE deleted_at IS NOT NULL
            ORDER BY deleted_at DESC LIMIT ?
        """, (limit,))
    return [AssetRecord(**row) for row in rows]


@router.get("/{asset_row_id}", response_model=AssetRecord)
async def get_asset(asset_row_id: int):
    async with get_db() as db:
        row = await execute_one(
            db, "SELECT * FROM lab_assets WHERE id = ?", (asset_row_id,))
    if not row:
        raise HTTPException(status_code=404, detail="Asset not found")
    return AssetRecord(**row)


@router.delete("/{asset_row_id}")
async def delete_asset(asset_row_id: int):
    """
    Soft-delete an asset. The row keeps its asset ID, so the number is
    never handed out again.
    """
    async with get_db() as db:
        count = await execute_update(db, """
            UPDATE lab_assets SET deleted_at = ?
            WHERE id = ? AND deleted_at IS NULL
        """, (datetime.now().isoformat(), asset_row_id))
    if count == 0:
        raise HTTPException(status_code=404, detail="Asset not found")
    return {"status": "ok"}


@router.post("/{asset_row_id}/restore", response_model=AssetRecord)
async def restore_asset(asset_row_id: int):
    async with get_db() as db:
        count = await execute_update(db, """
            UPDATE lab_assets SET deleted_at = NULL
            WHERE id = ? AND deleted_at IS NOT NULL
        """, (asset_row_id,))
        if count == 0:
            raise HTTPException(status_code=404, detail="Deleted asset not found")
        row = await execute_one(
            db, "SELECT * FROM lab_assets WHERE id = ?", (asset_row_id,))
    return AssetRecord(**row)
