"""
Owner inventory endpoints: CRUD over the current owner's hoardings.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session, selectinload
import time
from hoarding_app.api.deps import get_db, require_owner, get_owned_hoarding
from hoarding_app.models.db import User, Hoarding, Placement
from hoarding_app.models.schemas.hoardings import (
    HoardingCreate, HoardingUpdate, HoardingRead, HoardingWithPlacement,
    CurrentPlacement, HoardingStats, OwnerHoardingList
)
from hoarding_app.models.schemas.base import ResponseBase
from hoarding_app.services.availability import (
    availability_by_id, current_placement,
    has_active_or_future_placement, remove_expired_placements
)
from hoarding_app.services.locks import hoarding_locks
from hoarding_app.utils import get_logger, log_business_event, log_performance, utc_today

router = APIRouter()
logger = get_logger(__name__)

def _with_placement(hoarding: Hoarding, today, available: bool) -> HoardingWithPlacement:
    item = HoardingWithPlacement.model_validate(hoarding)
    item.is_available = available
    placement = current_placement(hoarding.placements, today)
    if placement is not None:
        item.current_placement = CurrentPlacement(
            placement_id=placement.id,
            advertisement_id=placement.advertisement_id,
            advertisement_title=placement.advertisement.title if placement.advertisement else None,
            start_date=placement.start_date,
            end_date=placement.end_date,
        )
    return item

@router.get(
    "/",
    response_model=OwnerHoardingList,
    summary="List my hoardings"
)
async def list_hoardings(
    request: Request,
    current_user: User = Depends(require_owner),
    db: Session = Depends(get_db)
) -> OwnerHoardingList:
    """List the owner's hoardings with their current placement and occupancy stats."""
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", "unknown")

    try:
        hoardings = (
            db.query(Hoarding)
            .options(selectinload(Hoarding.placements).selectinload(Placement.advertisement))
            .filter(Hoarding.owner_id == current_user.id)
            .order_by(Hoarding.created_at.desc(), Hoarding.id.desc())
            .all()
        )
        today = utc_today()
        derived = availability_by_id(db, hoardings, today)

        items = [_with_placement(h, today, derived[h.id]) for h in hoardings]
        available = sum(1 for free in derived.values() if free)
        stats = HoardingStats(total=len(hoardings), available=available, occupied=len(hoardings) - available)

        duration_ms = (time.time() - start_time) * 1000
        log_performance(
            operation="list_owner_hoardings",
            duration_ms=duration_ms,
            additional_data={"hoardings_returned": len(items)}
        )
        return OwnerHoardingList(hoardings=items, stats=stats)

    except HTTPException:
        raise
    except Exception as e:
        logger.error("Owner hoarding list failed", error=str(e), user_id=current_user.id, request_id=request_id, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error while listing hoardings"
        )

@router.post(
    "/",
    response_model=HoardingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register a hoarding"
)
async def create_hoarding(
    payload: HoardingCreate,
    request: Request,
    current_user: User = Depends(require_owner),
    db: Session = Depends(get_db)
) -> HoardingRead:
    request_id = request.headers.get("X-Request-ID", "unknown")

    try:
        hoarding = Hoarding(
            owner_id=current_user.id,
            height=payload.height,
            width=payload.width,
            address=payload.address,
            latitude=payload.latitude,
            longitude=payload.longitude,
            installation_date=payload.installation_date,
            is_available=True,
        )
        db.add(hoarding)
        db.commit()
        db.refresh(hoarding)

        log_business_event(
            event_type="hoarding_created",
            details={"hoarding_id": hoarding.id, "address": hoarding.address},
            user_id=current_user.id,
            request_id=request_id
        )
        return HoardingRead.model_validate(hoarding)

    except Exception as e:
        db.rollback()
        logger.error("Hoarding creation failed", error=str(e), user_id=current_user.id, request_id=request_id, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error while creating hoarding"
        )

@router.get("/{hoarding_id}", response_model=HoardingWithPlacement, summary="Get one of my hoardings")
async def get_hoarding(
    hoarding: Hoarding = Depends(get_owned_hoarding),
    db: Session = Depends(get_db)
) -> HoardingWithPlacement:
    today = utc_today()
    derived = availability_by_id(db, [hoarding], today)
    return _with_placement(hoarding, today, derived[hoarding.id])

@router.put("/{hoarding_id}", response_model=HoardingRead, summary="Update dimensions, address or location")
async def update_hoarding(
    payload: HoardingUpdate,
    request: Request,
    hoarding: Hoarding = Depends(get_owned_hoarding),
    db: Session = Depends(get_db)
) -> HoardingRead:
    request_id = request.headers.get("X-Request-ID", "unknown")
    changes = payload.model_dump(exclude_unset=True)
    for field_name, value in changes.items():
        if value is None and field_name in ("height", "width", "address"):
            continue
        setattr(hoarding, field_name, value)
    db.commit()
    db.refresh(hoarding)

    logger.info("Hoarding updated", hoarding_id=hoarding.id, fields=sorted(changes), request_id=request_id)
    return HoardingRead.model_validate(hoarding)

@router.delete("/{hoarding_id}", response_model=ResponseBase, summary="Delete a hoarding")
def delete_hoarding(
    request: Request,
    hoarding: Hoarding = Depends(get_owned_hoarding),
    db: Session = Depends(get_db)
) -> ResponseBase:
    """Refused while the hoarding has a running or future placement."""
    request_id = request.headers.get("X-Request-ID", "unknown")
    hoarding_id = hoarding.id
    owner_id = hoarding.owner_id

    # Same lock as the allocator so no booking lands between the check and the delete
    with hoarding_locks.hold(hoarding_id):
        if has_active_or_future_placement(db, hoarding_id, utc_today()):
            logger.warning("Hoarding delete refused: booked", hoarding_id=hoarding_id, request_id=request_id)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cannot delete hoarding with an active or upcoming placement"
            )
        removed = remove_expired_placements(db, hoarding.placements)
        db.flush()
        db.expire(hoarding, ["placements"])
        db.delete(hoarding)
        db.commit()

    log_business_event(
        event_type="hoarding_deleted",
        details={"hoarding_id": hoarding_id, "expired_placements_removed": removed},
        user_id=owner_id,
        request_id=request_id
    )
    return ResponseBase(success=True, message="Hoarding deleted successfully")
