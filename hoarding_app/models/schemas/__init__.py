from .base import ResponseBase, ErrorResponse, Pagination
from .auth import UserRegister, UserLogin, AuthIdentity, UserRead
from .hoardings import (
    HoardingCreate,
    HoardingUpdate,
    HoardingRead,
    HoardingWithPlacement,
    CurrentPlacement,
    HoardingStats,
    OwnerHoardingList,
    AvailableHoarding,
)
from .advertisements import (
    AdvertisementCreate,
    AdvertisementUpdate,
    AdvertisementRead,
    AdvertisementWithPlacements,
    AdvertisementPlacementSummary,
    AdvertisementStats,
    AdvertisementList,
    AdvertisementApproval,
)
from .placements import PlacementRequest, PlacementResult, PlacementRead, PublicPlacementInfo
from .reports import (
    ReportCreate,
    ReportRead,
    ReportAdminView,
    ReportStatusUpdate,
    ReportStatusCounts,
    ReportList,
    AdminOverview,
)

__all__ = [
    "ResponseBase", "ErrorResponse", "Pagination",
    "UserRegister", "UserLogin", "AuthIdentity", "UserRead",
    "HoardingCreate", "HoardingUpdate", "HoardingRead", "HoardingWithPlacement",
    "CurrentPlacement", "HoardingStats", "OwnerHoardingList", "AvailableHoarding",
    "AdvertisementCreate", "AdvertisementUpdate", "AdvertisementRead",
    "AdvertisementWithPlacements", "AdvertisementPlacementSummary",
    "AdvertisementStats", "AdvertisementList", "AdvertisementApproval",
    "PlacementRequest", "PlacementResult", "PlacementRead", "PublicPlacementInfo",
    "ReportCreate", "ReportRead", "ReportAdminView", "ReportStatusUpdate",
    "ReportStatusCounts", "ReportList", "AdminOverview",
]
