"""
Calibration Lab Records - Calibration Report Models
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): Test history entries; save result carries warnings
v1.0.0 (2026-10-05): Initial report models
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum

from .asset import AssetRecord


class ReportType(str, Enum):
    """Certificate forms filled out by the lab"""
    GLOVES = "gloves"
    SLEEVE = "sleeve"
    LINE_HOSE = "line_hose"
    METER = "meter"
    BUCKET_TRUCK = "bucket_truck"
    DIGGER = "digger"
    HOTSTICK = "hotstick"
    GROUND_CABLE = "ground_cable"

    @property
    def label(self) -> str:
        return REPORT_LABELS[self]

    @property
    def url_slug(self) -> str:
        return self.value.replace("_", "-")


REPORT_LABELS = {
    ReportType.GLOVES: "Glove",
    ReportType.SLEEVE: "Sleeve",
    ReportType.LINE_HOSE: "Line Hose",
    ReportType.METER: "Meter",
    ReportType.BUCKET_TRUCK: "Bucket Truck",
    ReportType.DIGGER: "Digger",
    ReportType.HOTSTICK: "Hotstick",
    ReportType.GROUND_CABLE: "Ground Cable",
}


class TestResult(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"


class ReportSave(BaseModel):
    """Report form submission (create or update)"""
    job_id: str
    user_id: str
    customer_id: Optional[str] = Field(None, description="Customer database reference")
    customer_code: Optional[str] = Field(None, description="Short code used for asset IDs")
    asset_id: Optional[str] = Field(None, description="Asset ID already shown on the form")
    status: TestResult = TestResult.PASS
    report_info: Dict[str, Any] = Field(default_factory=dict)
    parent_report_id: Optional[int] = None
    test_notes: Optional[str] = None


class CalibrationReport(BaseModel):
    id: int
    report_type: ReportType
    job_id: str
    user_id: Optional[str] = None
    customer_id: Optional[str] = None
    customer_code: Optional[str] = None
    asset_id: Optional[str] = None
    status: TestResult
    report_info: Dict[str, Any] = Field(default_factory=dict)
    parent_report_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class TestHistoryCreate(BaseModel):
    test_result: TestResult
    tested_by: str
    test_notes: Optional[str] = None
    test_date: Optional[datetime] = None


class TestHistoryEntry(BaseModel):
    id: int
    report_id: int
    test_result: TestResult
    tested_by: str
    test_notes: Optional[str] = None
    test_date: datetime
    created_at: datetime


class ReportSaveResult(BaseModel):
    """Outcome of a save; asset failures are reported, not raised"""
    report_id: int
    created: bool
    asset_id: Optional[str] = None
    asset: Optional[AssetRecord] = None
    warnings: List[str] = Field(default_factory=list)
