"""
Advertiser booking endpoints: request a placement, list placements, fetch the QR.
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status, Request, Response
from sqlalchemy.orm import Session, joinedload
import time
from hoarding_app.api.deps import get_db, require_advertiser
from hoarding_app.models.db import User, Advertisement, Placement
from hoarding_app.models.schemas.placements import PlacementRequest, PlacementResult, PlacementRead
from hoarding_app.services.placement_allocator import request_placement
from hoarding_app.services.availability import is_placement_active
from hoarding_app.services.qr import render_qr_png
from hoarding_app.utils import get_logger, log_performance, utc_today

router = APIRouter()
logger = get_logger(__name__)

@router.post(
    "/placements",
    response_model=PlacementResult,
    status_code=status.HTTP_201_CREATED,
    summary="Book a hoarding for an approved advertisement",
    description="Allocates the half-open interval [start_date, end_date). Failures are returned "
                "as typed errors: INVALID_RANGE, ADVERTISEMENT_NOT_ELIGIBLE, HOARDING_NOT_FOUND, "
                "SLOT_CONFLICT or STORE_UNAVAILABLE."
)
def create_placement(
    payload: PlacementRequest,
    request: Request,
    current_user: User = Depends(require_advertiser),
    db: Session = Depends(get_db)
) -> PlacementResult:
    # Plain def: the allocator blocks on a per-hoarding lock, so this runs in the threadpool
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", "unknown")

    logger.info(
        "Placement request received",
        user_id=current_user.id,
        hoarding_id=payload.hoarding_id,
        advertisement_id=payload.advertisement_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        request_id=request_id
    )

    result = request_placement(
        db,
        advertiser_id=current_user.id,
        hoarding_id=payload.hoarding_id,
        advertisement_id=payload.advertisement_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        request_id=request_id,
    )

    log_performance(
        operation="request_placement",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"hoarding_id": result.hoarding_id, "placement_id": result.placement_id}
    )
    return PlacementResult(**result.as_dict())

@router.get("/placements", response_model=List[PlacementRead], summary="List my placements")
async def list_placements(
    current_user: User = Depends(require_advertiser),
    db: Session = Depends(get_db)
) -> List[PlacementRead]:
    today = utc_today()
    placements = (
        db.query(Placement)
        .join(Advertisement, Placement.advertisement_id == Advertisement.id)
        .options(joinedload(Placement.hoarding), joinedload(Placement.advertisement))
        .filter(Advertisement.advertiser_id == current_user.id)
        .order_by(Placement.start_date.desc())
        .all()
    )
    items = []
    for p in placements:
        item = PlacementRead.model_validate(p)
        item.is_active = is_placement_active(p, today)
        item.is_expired = p.is_expired_on(today)
        item.address = p.hoarding.address if p.hoarding else None
        item.advertisement_title = p.advertisement.title if p.advertisement else None
        items.append(item)
    return items

@router.get(
    "/placements/{placement_id}/qr",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
    summary="QR code (PNG) for a placement token"
)
async def placement_qr(
    placement_id: str,
    current_user: User = Depends(require_advertiser),
    db: Session = Depends(get_db)
) -> Response:
    placement = db.get(Placement, placement_id)
    if placement is None or placement.advertisement.advertiser_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Placement not found")
    png = render_qr_png(placement.token)
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="placement-{placement.id}.png"'},
    )
