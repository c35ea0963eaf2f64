"""
Pydantic schemas for advertisements.
"""
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

class AdvertisementCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=2000)
    category: str = Field(min_length=1, max_length=100)
    content_url: Optional[str] = Field(None, max_length=1000)

class AdvertisementUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    content_url: Optional[str] = Field(None, max_length=1000)

class AdvertisementPlacementSummary(BaseModel):
    placement_id: str
    hoarding_id: int
    address: Optional[str] = None
    start_date: date
    end_date: date
    token: str
    is_active: bool

class AdvertisementRead(BaseModel):
    id: int
    advertiser_id: int
    title: str
    description: str
    category: str
    content_url: Optional[str]
    approved: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class AdvertisementWithPlacements(AdvertisementRead):
    placements: List[AdvertisementPlacementSummary] = []
    is_active: bool = False

class AdvertisementStats(BaseModel):
    total: int
    active: int
    approved: int
    total_hoardings: int

class AdvertisementList(BaseModel):
    advertisements: List[AdvertisementWithPlacements]
    stats: AdvertisementStats

class AdvertisementApproval(BaseModel):
    approved: bool
