"""
Pydantic schemas for hoarding inventory.
"""
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

class HoardingCreate(BaseModel):
    height: float = Field(gt=0, description="Height in metres")
    width: float = Field(gt=0, description="Width in metres")
    address: str = Field(min_length=1, max_length=500)
    installation_date: date
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

class HoardingUpdate(BaseModel):
    """Owners may change dimensions, address and location. Availability is derived, not editable."""
    height: Optional[float] = Field(None, gt=0)
    width: Optional[float] = Field(None, gt=0)
    address: Optional[str] = Field(None, min_length=1, max_length=500)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

class CurrentPlacement(BaseModel):
    placement_id: str
    advertisement_id: int
    advertisement_title: Optional[str] = None
    start_date: date
    end_date: date

class HoardingRead(BaseModel):
    id: int
    owner_id: int
    height: float
    width: float
    address: str
    latitude: Optional[float]
    longitude: Optional[float]
    installation_date: date
    is_available: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class HoardingWithPlacement(HoardingRead):
    current_placement: Optional[CurrentPlacement] = None

class HoardingStats(BaseModel):
    total: int
    available: int
    occupied: int

class OwnerHoardingList(BaseModel):
    hoardings: List[HoardingWithPlacement]
    stats: HoardingStats

class AvailableHoarding(HoardingRead):
    """Hoarding as browsed by advertisers, with the owner's contact details."""
    owner_name: Optional[str] = None
    owner_phone: Optional[str] = None
