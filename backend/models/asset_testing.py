"""
Calibration Lab Records - Asset Testing History Models
Version: 1.2.0

Changelog:
v1.2.0 (2026-10-26): Initial per-asset testing history, stats and search models
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum

from .asset import AssetRecord


class PassFailStatus(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    CONDITIONAL = "CONDITIONAL"


class DegradationTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"
    UNKNOWN = "unknown"


class AssetTestRecordCreate(BaseModel):
    """New test result for a lab asset"""
    test_date: Optional[datetime] = Field(None, description="Defaults to now")
    test_type: Optional[str] = Field(None, description="e.g. dielectric, visual")
    pass_fail_status: PassFailStatus
    condition_rating: Optional[float] = Field(None, ge=0, le=10)
    test_measurements: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None
    performed_by: str = Field(..., description="Technician who ran the test")


class AssetTestRecordUpdate(BaseModel):
    test_date: Optional[datetime] = None
    test_type: Optional[str] = None
    pass_fail_status: Optional[PassFailStatus] = None
    condition_rating: Optional[float] = Field(None, ge=0, le=10)
    test_measurements: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None


class AssetTestRecord(BaseModel):
    id: int
    asset_row_id: int = Field(..., description="lab_assets.id")
    test_date: datetime
    test_type: Optional[str] = None
    pass_fail_status: PassFailStatus
    condition_rating: Optional[float] = None
    test_measurements: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None
    test_performed_by: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AssetTestingStats(BaseModel):
    total_tests: int = 0
    pass_rate: float = Field(0.0, description="Percent of PASS results")
    average_condition_rating: float = 0.0
    latest_test_date: Optional[datetime] = None
    degradation_trend: DegradationTrend = DegradationTrend.UNKNOWN
    tests_per_year: float = 0.0


class AssetWithTestingHistory(AssetRecord):
    testing_history: List[AssetTestRecord] = Field(default_factory=list)
    testing_stats: AssetTestingStats = Field(default_factory=AssetTestingStats)
    latest_test: Optional[AssetTestRecord] = None
    latest_condition_rating: Optional[float] = None
    latest_pass_fail: Optional[PassFailStatus] = None


class AssetTestSearch(BaseModel):
    """Search criteria; every field is optional and criteria are ANDed"""
    asset_row_ids: List[int] = Field(default_factory=list)
    test_type: Optional[str] = None
    pass_fail_status: Optional[PassFailStatus] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    condition_rating_min: Optional[float] = None
    condition_rating_max: Optional[float] = None
