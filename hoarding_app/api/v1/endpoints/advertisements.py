"""
Advertiser endpoints for managing advertisement creatives.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
import time
from hoarding_app.api.deps import get_db, require_advertiser, get_owned_advertisement
from hoarding_app.config import ADVERTISEMENT_SETTINGS
from hoarding_app.models.db import User, Advertisement, Placement
from hoarding_app.models.schemas.advertisements import (
    AdvertisementCreate, AdvertisementUpdate, AdvertisementRead, AdvertisementWithPlacements,
    AdvertisementPlacementSummary, AdvertisementStats, AdvertisementList
)
from hoarding_app.models.schemas.base import ResponseBase
from hoarding_app.services.availability import is_placement_active, remove_expired_placements
from hoarding_app.services.locks import advertisement_locks
from hoarding_app.utils import get_logger, log_business_event, log_performance, utc_today

router = APIRouter()
logger = get_logger(__name__)

def _with_placements(ad: Advertisement, today) -> AdvertisementWithPlacements:
    item = AdvertisementWithPlacements.model_validate(ad)
    item.placements = [
        AdvertisementPlacementSummary(
            placement_id=p.id,
            hoarding_id=p.hoarding_id,
            address=p.hoarding.address if p.hoarding else None,
            start_date=p.start_date,
            end_date=p.end_date,
            token=p.token,
            is_active=is_placement_active(p, today),
        )
        for p in ad.placements
    ]
    item.is_active = any(p.is_active for p in item.placements)
    return item

@router.get("/advertisements", response_model=AdvertisementList, summary="List my advertisements")
async def list_advertisements(
    request: Request,
    current_user: User = Depends(require_advertiser),
    db: Session = Depends(get_db)
) -> AdvertisementList:
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", "unknown")

    try:
        ads = (
            db.query(Advertisement)
            .options(selectinload(Advertisement.placements).selectinload(Placement.hoarding))
            .filter(Advertisement.advertiser_id == current_user.id)
            .order_by(Advertisement.created_at.desc(), Advertisement.id.desc())
            .all()
        )
        today = utc_today()
        items = [_with_placements(ad, today) for ad in ads]
        stats = AdvertisementStats(
            total=len(items),
            active=sum(1 for i in items if i.is_active),
            approved=sum(1 for i in items if i.approved),
            total_hoardings=sum(len(i.placements) for i in items),
        )

        log_performance(
            operation="list_advertisements",
            duration_ms=(time.time() - start_time) * 1000,
            additional_data={"advertisements_returned": len(items)}
        )
        return AdvertisementList(advertisements=items, stats=stats)

    except Exception as e:
        logger.error("Advertisement list failed", error=str(e), user_id=current_user.id, request_id=request_id, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error while listing advertisements"
        )

@router.post(
    "/advertisements",
    response_model=AdvertisementRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create an advertisement"
)
async def create_advertisement(
    payload: AdvertisementCreate,
    request: Request,
    current_user: User = Depends(require_advertiser),
    db: Session = Depends(get_db)
) -> AdvertisementRead:
    request_id = request.headers.get("X-Request-ID", "unknown")

    ad = Advertisement(
        advertiser_id=current_user.id,
        title=payload.title,
        description=payload.description,
        category=payload.category,
        content_url=payload.content_url,
        approved=bool(ADVERTISEMENT_SETTINGS["auto_approve_on_create"]),
    )
    db.add(ad)
    db.commit()
    db.refresh(ad)

    log_business_event(
        event_type="advertisement_created",
        details={"advertisement_id": ad.id, "approved": ad.approved, "category": ad.category},
        user_id=current_user.id,
        request_id=request_id
    )
    return AdvertisementRead.model_validate(ad)

@router.get("/advertisements/{advertisement_id}", response_model=AdvertisementWithPlacements)
async def get_advertisement(
    ad: Advertisement = Depends(get_owned_advertisement),
) -> AdvertisementWithPlacements:
    return _with_placements(ad, utc_today())

@router.put("/advertisements/{advertisement_id}", response_model=AdvertisementRead)
async def update_advertisement(
    payload: AdvertisementUpdate,
    request: Request,
    ad: Advertisement = Depends(get_owned_advertisement),
    db: Session = Depends(get_db)
) -> AdvertisementRead:
    """Edits send the advertisement back for approval."""
    request_id = request.headers.get("X-Request-ID", "unknown")
    changes = payload.model_dump(exclude_unset=True)
    for field_name, value in changes.items():
        if value is None and field_name != "content_url":
            continue
        setattr(ad, field_name, value)
    ad.approved = False
    db.commit()
    db.refresh(ad)

    log_business_event(
        event_type="advertisement_updated",
        details={"advertisement_id": ad.id, "fields": sorted(changes), "approved": False},
        user_id=ad.advertiser_id,
        request_id=request_id
    )
    return AdvertisementRead.model_validate(ad)

@router.delete("/advertisements/{advertisement_id}", response_model=ResponseBase)
def delete_advertisement(
    request: Request,
    ad: Advertisement = Depends(get_owned_advertisement),
    db: Session = Depends(get_db)
) -> ResponseBase:
    """Refused while the advertisement has a running or future placement."""
    request_id = request.headers.get("X-Request-ID", "unknown")
    today = utc_today()
    ad_id, advertiser_id = ad.id, ad.advertiser_id

    # Same lock the allocator holds from eligibility check to commit
    with advertisement_locks.hold(ad_id):
        ad = db.execute(
            select(Advertisement)
            .where(Advertisement.id == ad_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one()
        placements = db.execute(select(Placement).where(Placement.advertisement_id == ad_id)).scalars().all()
        if any(p.end_date > today for p in placements):
            db.rollback()
            logger.warning("Advertisement delete refused: booked", advertisement_id=ad_id, request_id=request_id)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cannot delete advertisement with active hoarding assignments"
            )
        try:
            removed = remove_expired_placements(db, placements)
            db.flush()
            db.expire(ad, ["placements"])
            db.delete(ad)
            db.commit()
        except IntegrityError:
            # A booking from another process landed after the check
            db.rollback()
            logger.warning("Advertisement delete lost race with a booking", advertisement_id=ad_id, request_id=request_id)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cannot delete advertisement with active hoarding assignments"
            )

    log_business_event(
        event_type="advertisement_deleted",
        details={"advertisement_id": ad_id, "expired_placements_removed": removed},
        user_id=advertiser_id,
        request_id=request_id
    )
    return ResponseBase(success=True, message="Advertisement deleted successfully")
