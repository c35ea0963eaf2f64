"""Derived hoarding availability.

A hoarding is available iff none of its placements ends after today
(``end_date > today`` covers both running and future bookings). The
``Hoarding.is_available`` column caches that predicate. Only two writers
store it: the allocator inside its booking transaction, and
`sync_all_hoardings` (startup and administrators). Both hold the hoarding
lock. Listing endpoints derive the value with `availability_by_id` and leave
the column alone.
"""
from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from sqlalchemy import select, exists
from sqlalchemy.orm import Session

from hoarding_app.models.db.hoardings import Hoarding
from hoarding_app.models.db.placements import Placement
from hoarding_app.models.db.reports import Report
from hoarding_app.services.locks import hoarding_locks
from hoarding_app.utils import get_logger, utc_today

logger = get_logger(__name__)


def is_placement_active(placement: Placement, today: Optional[date] = None) -> bool:
    today = today or utc_today()
    return placement.start_date <= today < placement.end_date


def has_active_or_future_placement(session: Session, hoarding_id: int, today: Optional[date] = None) -> bool:
    today = today or utc_today()
    stmt = select(
        exists().where(Placement.hoarding_id == hoarding_id, Placement.end_date > today)
    )
    return bool(session.execute(stmt).scalar())


def refresh_hoarding_availability(session: Session, hoarding: Hoarding, today: Optional[date] = None) -> bool:
    """Recompute one hoarding's cached flag. Does not commit; returns the new value.

    Pending placements must already be flushed.
    """
    available = not has_active_or_future_placement(session, hoarding.id, today)
    if hoarding.is_available != available:
        hoarding.is_available = available
    return available


def _busy_hoarding_ids(session: Session, hoarding_ids: list[int], today: date) -> set[int]:
    if not hoarding_ids:
        return set()
    stmt = (
        select(Placement.hoarding_id)
        .where(Placement.hoarding_id.in_(hoarding_ids), Placement.end_date > today)
        .distinct()
    )
    return set(session.execute(stmt).scalars().all())


def availability_by_id(session: Session, hoardings: Iterable[Hoarding], today: Optional[date] = None) -> dict[int, bool]:
    """Derived availability for each hoarding, read straight from placements.

    Read paths use this instead of the cached column and never write it back;
    only the allocator and `sync_all_hoardings` store the flag, each under the
    hoarding's lock.
    """
    today = today or utc_today()
    ids = [h.id for h in hoardings]
    busy = _busy_hoarding_ids(session, ids, today)
    return {hoarding_id: hoarding_id not in busy for hoarding_id in ids}


def sync_all_hoardings(session: Session, today: Optional[date] = None) -> dict:
    """Recompute every hoarding's cache. Used at startup and by administrators.

    Each hoarding is re-read ``FOR UPDATE`` and committed under its lock, so a
    booking committing meanwhile is either seen or waits for the write.
    """
    today = today or utc_today()
    hoarding_ids = session.execute(select(Hoarding.id).order_by(Hoarding.id)).scalars().all()
    changed = 0
    for hoarding_id in hoarding_ids:
        with hoarding_locks.hold(hoarding_id):
            hoarding = session.execute(
                select(Hoarding)
                .where(Hoarding.id == hoarding_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if hoarding is not None:
                before = hoarding.is_available
                if refresh_hoarding_availability(session, hoarding, today) != before:
                    changed += 1
            session.commit()
    logger.info("Hoarding availability synchronized", checked=len(hoarding_ids), updated=changed, as_of=today)
    return {"checked": len(hoarding_ids), "updated": changed, "as_of": today.isoformat()}


def current_placement(placements: Iterable[Placement], today: Optional[date] = None) -> Optional[Placement]:
    """The placement running today, else the next upcoming one."""
    today = today or utc_today()
    upcoming: Optional[Placement] = None
    for placement in placements:
        if placement.start_date <= today < placement.end_date:
            return placement
        if placement.start_date > today and (upcoming is None or placement.start_date < upcoming.start_date):
            upcoming = placement
    return upcoming


def hoardings_free_between(session: Session, start: date, end: date) -> list[Hoarding]:
    """Hoardings with no placement overlapping ``[start, end)``."""
    overlapping = exists().where(
        Placement.hoarding_id == Hoarding.id,
        Placement.start_date < end,
        Placement.end_date > start,
    )
    stmt = select(Hoarding).where(~overlapping).order_by(Hoarding.id.desc())
    return list(session.execute(stmt).scalars().all())


def remove_expired_placements(session: Session, placements: Iterable[Placement]) -> int:
    """Delete expired placements ahead of retiring their hoarding or advertisement.

    Reports that referenced one of the tokens keep their content but lose the link.
    Callers must already have ruled out running or future placements.
    """
    placements = list(placements)
    tokens = [p.token for p in placements]
    if tokens:
        session.query(Report).filter(Report.qr_code_no.in_(tokens)).update(
            {Report.qr_code_no: None}, synchronize_session=False
        )
    for placement in placements:
        session.delete(placement)
    return len(placements)


__all__ = [
    "is_placement_active",
    "has_active_or_future_placement",
    "refresh_hoarding_availability",
    "availability_by_id",
    "sync_all_hoardings",
    "current_placement",
    "hoardings_free_between",
    "remove_expired_placements",
]
