from .enums import UserRole, ReportType, ReportStatus, PlacementState
from .users import User
from .hoardings import Hoarding
from .advertisements import Advertisement
from .placements import Placement
from .reports import Report

__all__ = [
    "UserRole",
    "ReportType",
    "ReportStatus",
    "PlacementState",
    "User",
    "Hoarding",
    "Advertisement",
    "Placement",
    "Report",
]
