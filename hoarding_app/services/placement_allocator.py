"""Placement allocator.

Single public function `request_placement(session, ...)` that:
1. Parses and validates the half-open interval ``[start_date, end_date)``.
2. Checks the advertisement exists, is approved and belongs to the advertiser.
   The advertisement row is locked from here until the commit.
3. Under a per-hoarding lock, re-reads the hoarding ``FOR UPDATE``.
4. Looks for an overlapping placement on that hoarding.
5. Inserts the placement with its token already computed, recomputes the
   hoarding's availability and commits, all in one transaction.
6. Returns an `AllocatedPlacement`, or raises a `PlacementError` subclass.

Validation is fail-fast in the order above; nothing is written before the
conflict check passes. Store failures are reported as `StoreUnavailable` and
never retried here: a caller retry of an attempt that did commit gets a
`SlotConflict` pointing at the committed placement.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from hoarding_app.config import BOOKING_SETTINGS
from hoarding_app.models.db.advertisements import Advertisement
from hoarding_app.models.db.hoardings import Hoarding
from hoarding_app.models.db.placements import Placement
from hoarding_app.models.db.enums import PlacementState
from hoarding_app.services.availability import refresh_hoarding_availability
from hoarding_app.services.locks import advertisement_locks, hoarding_locks
from hoarding_app.utils import get_logger, log_business_event, utc_today

logger = get_logger(__name__)


# ------------------------------- Errors -------------------------------- #

class PlacementError(Exception):
    """Base class for typed allocation failures."""
    code = "PLACEMENT_ERROR"
    status_code = 400
    retryable = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, "details": self.details}


class InvalidRange(PlacementError):
    code = "INVALID_RANGE"
    status_code = 400


class AdvertisementNotEligible(PlacementError):
    """The status follows the reason: unknown 404, someone else's 403, awaiting approval 409."""
    code = "ADVERTISEMENT_NOT_ELIGIBLE"
    status_code = 404
    status_by_reason = {"not_found": 404, "not_owned": 403, "not_approved": 409}

    def __init__(self, advertisement_id: int, reason: str):
        messages = {
            "not_found": "Advertisement not found",
            "not_owned": "Advertisement does not belong to this advertiser",
            "not_approved": "Advertisement is not approved",
        }
        super().__init__(
            messages.get(reason, "Advertisement is not eligible for placement"),
            {"advertisement_id": advertisement_id, "reason": reason},
        )
        self.advertisement_id = advertisement_id
        self.reason = reason
        self.status_code = self.status_by_reason.get(reason, self.status_code)


class HoardingNotFound(PlacementError):
    code = "HOARDING_NOT_FOUND"
    status_code = 404

    def __init__(self, hoarding_id: int):
        super().__init__("Hoarding not found", {"hoarding_id": hoarding_id})
        self.hoarding_id = hoarding_id


class SlotConflict(PlacementError):
    """Requested interval overlaps an existing placement on the same hoarding."""
    code = "SLOT_CONFLICT"
    status_code = 409

    def __init__(
        self,
        hoarding_id: int,
        conflicting_placement_id: str,
        conflicting_start: date,
        conflicting_end: date,
        next_available_start: Optional[date] = None,
    ):
        super().__init__(
            "Hoarding is already booked for part of the requested dates",
            {
                "hoarding_id": hoarding_id,
                "conflicting_placement_id": conflicting_placement_id,
                "conflicting_start_date": conflicting_start.isoformat(),
                "conflicting_end_date": conflicting_end.isoformat(),
                "next_available_start_date": next_available_start.isoformat() if next_available_start else None,
            },
        )
        self.hoarding_id = hoarding_id
        self.conflicting_placement_id = conflicting_placement_id
        self.conflicting_start = conflicting_start
        self.conflicting_end = conflicting_end
        self.next_available_start = next_available_start


class StoreUnavailable(PlacementError):
    code = "STORE_UNAVAILABLE"
    status_code = 503
    retryable = True

    def __init__(self, message: str = "Booking store is temporarily unavailable"):
        super().__init__(message, {"retryable": True})


# --------------------------- Pure helpers ------------------------------ #

def parse_booking_date(value: Any, field_name: str) -> date:
    """Accept a ``date``, an ISO date string or an ISO datetime string."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        try:
            return date.fromisoformat(raw)
        except ValueError:
            pass
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            raise InvalidRange(f"{field_name} is not a valid date", {"field": field_name, "value": value}) from None
        return parse_booking_date(parsed, field_name)
    raise InvalidRange(f"{field_name} is required", {"field": field_name, "value": value})


def intervals_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Half-open overlap: touching intervals (``a_end == b_start``) do not overlap."""
    return a_start < b_end and b_start < a_end


def new_placement_id() -> str:
    return uuid.uuid4().hex


def build_token(hoarding_id: int, advertisement_id: int, placement_id: str) -> str:
    return f"{hoarding_id}_{advertisement_id}_{placement_id}"


def validate_range(start_raw: Any, end_raw: Any, today: date) -> tuple[date, date]:
    start = parse_booking_date(start_raw, "start_date")
    end = parse_booking_date(end_raw, "end_date")
    if not start < end:
        raise InvalidRange(
            "start_date must be before end_date",
            {"start_date": start.isoformat(), "end_date": end.isoformat()},
        )
    if BOOKING_SETTINGS.get("reject_past_start") and start < today:
        raise InvalidRange(
            "start_date is in the past",
            {"start_date": start.isoformat(), "today": today.isoformat()},
        )
    max_days = BOOKING_SETTINGS.get("max_booking_days")
    if max_days and (end - start).days > int(max_days):
        raise InvalidRange(
            f"Bookings may not exceed {max_days} days",
            {"start_date": start.isoformat(), "end_date": end.isoformat(), "max_booking_days": max_days},
        )
    return start, end


def suggest_next_window(
    occupied: Sequence[tuple[date, date]], requested_start: date, duration: timedelta
) -> date:
    """Earliest start >= requested_start at which ``duration`` fits between occupied intervals.

    ``occupied`` must be sorted by start date.
    """
    candidate = requested_start
    for occ_start, occ_end in occupied:
        if occ_end <= candidate:
            continue
        if intervals_overlap(candidate, candidate + duration, occ_start, occ_end):
            candidate = occ_end
        else:
            break
    return candidate


# ------------------------------ Allocation ----------------------------- #

@dataclass(frozen=True, slots=True)
class AllocatedPlacement:
    placement_id: str
    token: str
    hoarding_id: int
    advertisement_id: int
    start_date: date
    end_date: date

    def as_dict(self) -> Dict[str, Any]:
        return {
            "placement_id": self.placement_id,
            "token": self.token,
            "hoarding_id": self.hoarding_id,
            "advertisement_id": self.advertisement_id,
            "start_date": self.start_date,
            "end_date": self.end_date,
        }


def _check_advertisement(session: Session, advertiser_id: int, advertisement_id: int) -> Advertisement:
    """Re-read the advertisement ``FOR UPDATE``; a rejected request releases the row at once."""
    ad = session.execute(
        select(Advertisement)
        .where(Advertisement.id == advertisement_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    reason = None
    if ad is None:
        reason = "not_found"
    elif ad.advertiser_id != advertiser_id:
        reason = "not_owned"
    elif not ad.approved:
        reason = "not_approved"
    if reason is not None:
        session.rollback()
        raise AdvertisementNotEligible(advertisement_id, reason)
    return ad


def _first_conflict(session: Session, hoarding_id: int, start: date, end: date) -> Optional[Placement]:
    stmt = (
        select(Placement)
        .where(
            Placement.hoarding_id == hoarding_id,
            Placement.start_date < end,
            Placement.end_date > start,
        )
        .order_by(Placement.start_date)
        .limit(1)
    )
    return session.execute(stmt).scalars().first()


def _slot_conflict(session: Session, hoarding_id: int, conflict: Placement, start: date, end: date) -> SlotConflict:
    occupied = session.execute(
        select(Placement.start_date, Placement.end_date)
        .where(Placement.hoarding_id == hoarding_id, Placement.end_date > start)
        .order_by(Placement.start_date)
    ).all()
    next_start = suggest_next_window([(s, e) for s, e in occupied], start, end - start)
    return SlotConflict(hoarding_id, conflict.id, conflict.start_date, conflict.end_date, next_start)


def _rollback_quietly(session: Session) -> None:
    try:
        session.rollback()
    except SQLAlchemyError as e:
        logger.warning("Rollback after store failure failed", error=str(e))


def _allocate_locked(
    session: Session,
    *,
    hoarding_id: int,
    advertisement_id: int,
    start: date,
    end: date,
    today: date,
) -> AllocatedPlacement:
    hoarding = session.execute(
        select(Hoarding)
        .where(Hoarding.id == hoarding_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if hoarding is None:
        session.rollback()
        raise HoardingNotFound(hoarding_id)

    conflict = _first_conflict(session, hoarding_id, start, end)
    if conflict is not None:
        error = _slot_conflict(session, hoarding_id, conflict, start, end)
        session.rollback()
        raise error

    placement_id = new_placement_id()
    token = build_token(hoarding_id, advertisement_id, placement_id)
    session.add(
        Placement(
            id=placement_id,
            hoarding_id=hoarding_id,
            advertisement_id=advertisement_id,
            start_date=start,
            end_date=end,
            token=token,
        )
    )
    result = AllocatedPlacement(
        placement_id=placement_id,
        token=token,
        hoarding_id=hoarding_id,
        advertisement_id=advertisement_id,
        start_date=start,
        end_date=end,
    )
    try:
        session.flush()
        refresh_hoarding_availability(session, hoarding, today)
        session.commit()
    except IntegrityError as exc:
        # Exclusion constraint (PostgreSQL) caught an overlap the lock could not see
        session.rollback()
        conflict = _first_conflict(session, hoarding_id, start, end)
        if conflict is None:
            raise
        raise _slot_conflict(session, hoarding_id, conflict, start, end) from exc
    return result


def request_placement(
    session: Session,
    *,
    advertiser_id: int,
    hoarding_id: int,
    advertisement_id: int,
    start_date: Any,
    end_date: Any,
    today: Optional[date] = None,
    request_id: Optional[str] = None,
) -> AllocatedPlacement:
    """Allocate ``[start_date, end_date)`` on a hoarding to an approved advertisement.

    Raises:
        InvalidRange, AdvertisementNotEligible, HoardingNotFound, SlotConflict,
        StoreUnavailable
    """
    today = today or utc_today()
    context = {
        "hoarding_id": hoarding_id,
        "advertisement_id": advertisement_id,
        "start_date": start_date,
        "end_date": end_date,
    }
    logger.debug("Placement requested", state=PlacementState.PENDING_VALIDATION.value, advertiser_id=advertiser_id, **context)
    try:
        start, end = validate_range(start_date, end_date, today)
        with advertisement_locks.hold(advertisement_id):
            _check_advertisement(session, advertiser_id, advertisement_id)
            with hoarding_locks.hold(hoarding_id):
                result = _allocate_locked(
                    session,
                    hoarding_id=hoarding_id,
                    advertisement_id=advertisement_id,
                    start=start,
                    end=end,
                    today=today,
                )
    except PlacementError as exc:
        log_business_event(
            "placement_rejected",
            {"state": PlacementState.REJECTED.value, "code": exc.code, **context, **exc.details},
            user_id=advertiser_id,
            request_id=request_id,
        )
        raise
    except (OperationalError, PoolTimeoutError) as exc:
        _rollback_quietly(session)
        logger.error(
            "Placement store unavailable",
            advertiser_id=advertiser_id,
            request_id=request_id,
            error=str(exc),
            **context,
        )
        raise StoreUnavailable() from exc

    log_business_event(
        "placement_committed",
        {"state": PlacementState.COMMITTED.value, **result.as_dict()},
        user_id=advertiser_id,
        request_id=request_id,
    )
    return result


__all__ = [
    "PlacementError",
    "InvalidRange",
    "AdvertisementNotEligible",
    "HoardingNotFound",
    "SlotConflict",
    "StoreUnavailable",
    "AllocatedPlacement",
    "advertisement_locks",
    "hoarding_locks",
    "parse_booking_date",
    "intervals_overlap",
    "new_placement_id",
    "build_token",
    "validate_range",
    "suggest_next_window",
    "request_placement",
]
