"""
Pydantic schemas for citizen reports and the admin triage views.
"""
from datetime import datetime
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, ConfigDict, field_validator
from ..db.enums import ReportType, ReportStatus
from .base import Pagination

class ReportCreate(BaseModel):
    qr_code_no: Optional[str] = Field(None, max_length=200)
    reporter_phone: str = Field(min_length=5, max_length=20)
    issue_type: ReportType
    description: str = Field(min_length=1, max_length=2000)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    image_url: Optional[str] = Field(None, max_length=1000)

    @field_validator("qr_code_no")
    @classmethod
    def blank_token_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "qr_code_no": "1_1_3f2a9c0e4b5d4e6f8a7b9c0d1e2f3a4b",
            "reporter_phone": "9876543210",
            "issue_type": "STRUCTURAL_HAZARD",
            "description": "Frame is bent and leaning over the footpath",
        }
    })

class ReportRead(BaseModel):
    id: int
    qr_code_no: Optional[str]
    reporter_phone: str
    issue_type: ReportType
    description: str
    latitude: Optional[float]
    longitude: Optional[float]
    image_url: Optional[str]
    status: ReportStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ReportAdminView(ReportRead):
    label: str
    priority: str
    category: str

class ReportStatusUpdate(BaseModel):
    status: ReportStatus

class ReportStatusCounts(BaseModel):
    total: int
    pending: int
    reviewed: int
    action_taken: int

class ReportList(BaseModel):
    reports: List[ReportAdminView]
    stats: ReportStatusCounts
    pagination: Pagination

class AdminOverview(BaseModel):
    total_reports: int
    pending_reports: int
    reviewed_reports: int
    action_taken_reports: int
    recent_reports: int
    reports_with_qr: int
    resolution_rate: float
    issue_types: Dict[str, int]
    total_hoardings: int
    occupied_hoardings: int
    total_placements: int
    active_placements: int
    pending_advertisements: int
