"""
Pydantic schemas for placement requests and results.
"""
from datetime import date, datetime
from typing import Optional, Union
from pydantic import BaseModel, Field, ConfigDict

class PlacementRequest(BaseModel):
    """Booking request. Dates are parsed by the allocator so malformed values map to InvalidRange."""
    hoarding_id: int = Field(gt=0)
    advertisement_id: int = Field(gt=0)
    start_date: Union[date, str]
    end_date: Union[date, str]

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "hoarding_id": 1,
            "advertisement_id": 1,
            "start_date": "2025-02-01",
            "end_date": "2025-03-01",
        }
    })

class PlacementResult(BaseModel):
    placement_id: str
    token: str
    hoarding_id: int
    advertisement_id: int
    start_date: date
    end_date: date

class PlacementRead(BaseModel):
    id: str
    hoarding_id: int
    advertisement_id: int
    start_date: date
    end_date: date
    token: str
    created_at: Optional[datetime] = None
    is_active: bool = False
    is_expired: bool = False
    address: Optional[str] = None
    advertisement_title: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class PublicPlacementInfo(BaseModel):
    """What a citizen sees after scanning a QR token."""
    token: str
    hoarding_id: int
    address: str
    advertisement_title: str
    advertisement_category: str
    start_date: date
    end_date: date
    is_active: bool
