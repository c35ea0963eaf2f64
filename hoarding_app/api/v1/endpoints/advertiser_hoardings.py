"""
Advertiser view of bookable hoardings.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session, joinedload
from hoarding_app.api.deps import get_db, require_advertiser
from hoarding_app.models.db import User, Hoarding
from hoarding_app.models.schemas.hoardings import AvailableHoarding
from hoarding_app.services.availability import availability_by_id, hoardings_free_between
from hoarding_app.services.placement_allocator import validate_range
from hoarding_app.utils import get_logger, utc_today

router = APIRouter()
logger = get_logger(__name__)

def _as_available(hoarding: Hoarding, available: Optional[bool] = None) -> AvailableHoarding:
    item = AvailableHoarding.model_validate(hoarding)
    if available is not None:
        item.is_available = available
    if hoarding.owner is not None:
        item.owner_name = hoarding.owner.name
        item.owner_phone = hoarding.owner.phone
    return item

@router.get("/hoardings", response_model=List[AvailableHoarding], summary="Browse bookable hoardings")
async def list_available_hoardings(
    request: Request,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    current_user: User = Depends(require_advertiser),
    db: Session = Depends(get_db)
) -> List[AvailableHoarding]:
    """Hoardings free right now, or free for ``[start_date, end_date)`` when both are given."""
    request_id = request.headers.get("X-Request-ID", "unknown")
    today = utc_today()

    if (start_date is None) != (end_date is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date and end_date must be given together"
        )

    derived: dict = {}
    if start_date is not None:
        # Malformed or inverted windows raise InvalidRange (400)
        window_start, window_end = validate_range(start_date, end_date, today)
        hoardings = hoardings_free_between(db, window_start, window_end)
    else:
        everything = db.query(Hoarding).options(joinedload(Hoarding.owner)).all()
        derived = availability_by_id(db, everything, today)
        hoardings = sorted((h for h in everything if derived[h.id]), key=lambda h: h.id, reverse=True)

    logger.info(
        "Available hoardings listed",
        user_id=current_user.id,
        window_start=start_date,
        window_end=end_date,
        hoardings_returned=len(hoardings),
        request_id=request_id
    )
    return [_as_available(h, derived.get(h.id)) for h in hoardings]
