"""Central Enum definitions for core domain states.

These replace scattered string literals to ensure consistency across
DB models, schemas, and business logic.
"""
from __future__ import annotations
import enum


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    OWNER = "OWNER"
    ADVERTISER = "ADVERTISER"


class ReportType(str, enum.Enum):
    NO_QR = "NO_QR"
    BANNED_CONTENT = "BANNED_CONTENT"
    ILLEGAL_INSTALLATION = "ILLEGAL_INSTALLATION"
    STRUCTURAL_HAZARD = "STRUCTURAL_HAZARD"


class ReportStatus(str, enum.Enum):
    PENDING = "PENDING"
    REVIEWED = "REVIEWED"
    ACTION_TAKEN = "ACTION_TAKEN"

# ------------------------ Placement allocation ------------------------ #

class PlacementState(str, enum.Enum):
    """Outcome of one allocation attempt. Rejected attempts never create a row."""
    PENDING_VALIDATION = "PENDING_VALIDATION"
    COMMITTED = "COMMITTED"
    REJECTED = "REJECTED"

__all__ = [
    "UserRole",
    "ReportType",
    "ReportStatus",
    "PlacementState",
]
