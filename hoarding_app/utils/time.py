"""Time utilities (UTC now / today).

Booking intervals are calendar dates evaluated against the UTC calendar day.
"""
from __future__ import annotations
from datetime import date, datetime, timezone

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def utc_today() -> date:
    return utc_now().date()

__all__ = ["utc_now", "utc_today"]
