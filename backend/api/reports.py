"""
Calibration Lab Records - Calibration Report API
Version: 1.2.0

Changelog:
v1.2.0 (2026-10-26): 404 for test history of unknown reports
v1.1.0 (2026-10-12): Test history endpoints
v1.0.0 (2026-10-05): Initial report save/load endpoints
"""

from fastapi import APIRouter, HTTPException
from typing import Optional, List
import logging

from models.report import (
    ReportType, ReportSave, CalibrationReport, TestHistoryCreate,
    TestHistoryEntry, ReportSaveResult,
)
from services import report_service
from services.report_service import ReportNotFoundError

router = APIRouter(prefix="/reports", tags=["reports"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[CalibrationReport])
async def list_reports(
    job_id: Optional[str] = None,
    report_type: Optional[ReportType] = None,
    limit: int = 100
):
    return await report_service.list_reports(
        job_id=job_id, report_type=report_type, limit=limit)


@router.get("/{report_id}", response_model=CalibrationReport)
async def get_report(report_id: int):
    try:
        return await report_service.get_report(report_id)
    except ReportNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{report_type}", response_model=ReportSaveResult)
async def create_report(report_type: ReportType, data: ReportSave):
    """
    Save a new certificate. The response is successful even when the linked
    asset record could not be created; check `warnings`.
    """
    try:
        return await report_service.save_report(report_type, data)
    except Exception as e:
        logger.error(f"Failed to save {report_type.value} report: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to save report: {str(e)}")


@router.put("/{report_type}/{report_id}", response_model=ReportSaveResult)
async def update_report(report_type: ReportType, report_id: int, data: ReportSave):
    try:
        return await report_service.save_report(report_type, data, report_id)
    except ReportNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update report {report_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to update report: {str(e)}")


@router.get("/{report_id}/test-history", response_model=List[TestHistoryEntry])
async def get_test_history(report_id: int):
    try:
        return await report_service.list_test_history(report_id)
    except ReportNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{report_id}/test-history", response_model=TestHistoryEntry)
async def add_test_history(report_id: int, entry: TestHistoryCreate):
    try:
        return await report_service.add_test_history(report_id, entry)
    except ReportNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
