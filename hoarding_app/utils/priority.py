"""Priority utilities centralizing mapping from report issue type -> triage label, priority and category."""
from __future__ import annotations
from hoarding_app.models.db.enums import ReportType

ISSUE_LABELS = {
    ReportType.NO_QR: "Missing QR Code",
    ReportType.BANNED_CONTENT: "Inappropriate Content",
    ReportType.ILLEGAL_INSTALLATION: "Illegal Installation",
    ReportType.STRUCTURAL_HAZARD: "Structural Damage",
}

PRIORITY_MAP = {
    ReportType.STRUCTURAL_HAZARD: "Critical",
    ReportType.ILLEGAL_INSTALLATION: "High",
    ReportType.BANNED_CONTENT: "High",
    ReportType.NO_QR: "Medium",
}

CATEGORY_MAP = {
    ReportType.NO_QR: "Technical",
    ReportType.BANNED_CONTENT: "Content",
    ReportType.ILLEGAL_INSTALLATION: "Compliance",
    ReportType.STRUCTURAL_HAZARD: "Safety",
}

def issue_label(issue_type: ReportType) -> str:
    return ISSUE_LABELS.get(issue_type, str(getattr(issue_type, "value", issue_type)))

def compute_priority(issue_type: ReportType) -> str:
    """Compute triage priority for a report's issue type."""
    return PRIORITY_MAP.get(issue_type, "Low")

def issue_category(issue_type: ReportType) -> str:
    return CATEGORY_MAP.get(issue_type, "General")

__all__ = ["issue_label", "compute_priority", "issue_category", "ISSUE_LABELS", "PRIORITY_MAP", "CATEGORY_MAP"]
