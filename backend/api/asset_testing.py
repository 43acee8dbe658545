"""
Calibration Lab Records - Asset Testing History API
Version: 1.2.0

Changelog:
v1.2.0 (2026-10-26): Per-asset test records, stats, search and job view
"""

from fastapi import APIRouter, HTTPException, Query
from typing import List, Dict
import logging

from models.asset_testing import (
    AssetTestRecordCreate, AssetTestRecordUpdate, AssetTestRecord,
    AssetTestingStats, AssetWithTestingHistory, AssetTestSearch,
)
from services import asset_testing
from services.asset_testing import AssetNotFoundError, AssetTestRecordNotFoundError

router = APIRouter(prefix="/asset-testing", tags=["asset-testing"])
logger = logging.getLogger(__name__)


@router.get("/assets/{asset_row_id}/history", response_model=List[AssetTestRecord])
async def get_history(asset_row_id: int):
    try:
        return await asset_testing.get_history(asset_row_id)
    except AssetNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/assets/{asset_row_id}/history", response_model=AssetTestRecord)
async def add_record(asset_row_id: int, data: AssetTestRecordCreate):
    try:
        return await asset_testing.add_record(asset_row_id, data)
    except AssetNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/assets/{asset_row_id}/stats", response_model=AssetTestingStats)
async def get_stats(asset_row_id: int):
    try:
        return await asset_testing.get_stats(asset_row_id)
    except AssetNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/records/{record_id}", response_model=AssetTestRecord)
async def update_record(record_id: int, data: AssetTestRecordUpdate):
    try:
        return await asset_testing.update_record(record_id, data)
    except AssetTestRecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/records/{record_id}")
async def delete_record(record_id: int):
    try:
        await asset_testing.delete_record(record_id)
    except AssetTestRecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"status": "ok"}


@router.post("/search", response_model=List[AssetTestRecord])
async def search_records(criteria: AssetTestSearch):
    return await asset_testing.search(criteria)


@router.get("/summary", response_model=Dict[int, AssetTestingStats])
async def get_summary(asset_row_ids: List[int] = Query(default=[])):
    """Stats for several assets: ?asset_row_ids=1&asset_row_ids=2"""
    return await asset_testing.get_summary(asset_row_ids)


@router.get("/jobs/{job_id}/assets", response_model=List[AssetWithTestingHistory])
async def get_job_assets(job_id: str, include_deleted: bool = False):
    """Assets of a job with their full testing history and latest result"""
    return await asset_testing.get_job_assets(job_id, include_deleted)
