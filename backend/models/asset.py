"""
Calibration Lab Records - Asset Models
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): deleted_at for soft-deleted assets
v1.0.0 (2026-10-05): Initial asset and counter models
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class AssetRecord(BaseModel):
    """Row in lab_assets - one per saved calibration report"""
    id: int = Field(..., description="Row ID")
    asset_id: Optional[str] = Field(None, description="Lab asset ID, {customerCode}-{n}")
    customer_id: Optional[str] = Field(None, description="Customer database reference")
    job_id: str = Field(..., description="Job the asset was tested under")
    user_id: Optional[str] = Field(None, description="Technician who saved the report")
    name: str
    file_url: str
    report_id: Optional[int] = Field(None, description="Parent report (e.g. bucket truck)")
    created_at: datetime
    deleted_at: Optional[datetime] = None


class AssetCreate(BaseModel):
    """Create asset request"""
    job_id: str
    customer_id: Optional[str] = None
    name: str
    file_url: str
    user_id: Optional[str] = None
    customer_id_for_asset: Optional[str] = Field(
        None, description="Short customer code used to mint the asset ID"
    )
    parent_report_id: Optional[int] = None


class CustomerAssetCounter(BaseModel):
    """Advisory next-number hint for a customer code"""
    customer_id: str
    next_counter: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NextAssetId(BaseModel):
    customer_id: str
    asset_id: str
