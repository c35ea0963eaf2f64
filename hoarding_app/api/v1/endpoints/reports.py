"""
Public citizen endpoints: issue reports and QR token lookup.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from hoarding_app.api.deps import get_db
from hoarding_app.models.db import Report, Placement
from hoarding_app.models.db.enums import ReportStatus
from hoarding_app.models.schemas.reports import ReportCreate, ReportRead
from hoarding_app.models.schemas.placements import PublicPlacementInfo
from hoarding_app.services.availability import is_placement_active
from hoarding_app.utils import get_logger, log_business_event

router = APIRouter()
logger = get_logger(__name__)

@router.post(
    "/",
    response_model=ReportRead,
    status_code=status.HTTP_201_CREATED,
    summary="Report a billboard issue",
    description="No account needed. qr_code_no, when given, must be the token printed on a placement's QR."
)
async def submit_report(
    payload: ReportCreate,
    request: Request,
    db: Session = Depends(get_db)
) -> ReportRead:
    request_id = request.headers.get("X-Request-ID", "unknown")

    if payload.qr_code_no is not None:
        placement = db.query(Placement).filter(Placement.token == payload.qr_code_no).first()
        if placement is None:
            logger.warning("Report rejected: unknown QR token", qr_code_no=payload.qr_code_no, request_id=request_id)
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="No placement matches this QR code"
            )

    try:
        report = Report(
            qr_code_no=payload.qr_code_no,
            reporter_phone=payload.reporter_phone,
            issue_type=payload.issue_type,
            description=payload.description,
            latitude=payload.latitude,
            longitude=payload.longitude,
            image_url=payload.image_url,
            status=ReportStatus.PENDING,
        )
        db.add(report)
        db.commit()
        db.refresh(report)
    except Exception as e:
        db.rollback()
        logger.error("Report submission failed", error=str(e), request_id=request_id, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error while saving report"
        )

    log_business_event(
        event_type="report_submitted",
        details={
            "report_id": report.id,
            "issue_type": report.issue_type.value,
            "has_qr": report.qr_code_no is not None,
        },
        request_id=request_id
    )
    return ReportRead.model_validate(report)

@router.get(
    "/placements/{token}",
    response_model=PublicPlacementInfo,
    summary="Look up the placement behind a QR token"
)
async def lookup_placement(token: str, db: Session = Depends(get_db)) -> PublicPlacementInfo:
    placement = db.query(Placement).filter(Placement.token == token).first()
    if placement is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No placement matches this QR code")
    return PublicPlacementInfo(
        token=placement.token,
        hoarding_id=placement.hoarding_id,
        address=placement.hoarding.address,
        advertisement_title=placement.advertisement.title,
        advertisement_category=placement.advertisement.category,
        start_date=placement.start_date,
        end_date=placement.end_date,
        is_active=is_placement_active(placement),
    )
