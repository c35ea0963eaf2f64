"""
Administrator endpoints: report triage, statistics, advertisement approval and
availability resynchronization.
"""
from __future__ import annotations
from datetime import timedelta
from typing import Optional
import math
import time
from fastapi import APIRouter, Depends, HTTPException, status, Request, Query
from sqlalchemy.orm import Session
from sqlalchemy import func, or_, cast, String
from hoarding_app.api.deps import get_db, require_admin, get_pagination_params
from hoarding_app.config import REPORT_SETTINGS
from hoarding_app.models.db import User, Report, Hoarding, Placement, Advertisement
from hoarding_app.models.db.enums import ReportStatus
from hoarding_app.models.schemas.base import ResponseBase, Pagination
from hoarding_app.models.schemas.reports import (
    ReportRead, ReportAdminView, ReportStatusUpdate, ReportStatusCounts, ReportList, AdminOverview
)
from hoarding_app.models.schemas.advertisements import AdvertisementApproval, AdvertisementRead
from hoarding_app.services.availability import sync_all_hoardings
from hoarding_app.utils import get_logger, log_business_event, log_performance, utc_now, utc_today
from hoarding_app.utils.priority import issue_label, compute_priority, issue_category

router = APIRouter()
logger = get_logger(__name__)

def _admin_view(report: Report) -> ReportAdminView:
    return ReportAdminView(
        **ReportRead.model_validate(report).model_dump(),
        label=issue_label(report.issue_type),
        priority=compute_priority(report.issue_type),
        category=issue_category(report.issue_type),
    )

def _status_counts(db: Session) -> ReportStatusCounts:
    rows = db.query(Report.status, func.count(Report.id)).group_by(Report.status).all()
    by_status = {s: c for s, c in rows}
    return ReportStatusCounts(
        total=sum(by_status.values()),
        pending=by_status.get(ReportStatus.PENDING, 0),
        reviewed=by_status.get(ReportStatus.REVIEWED, 0),
        action_taken=by_status.get(ReportStatus.ACTION_TAKEN, 0),
    )

def _get_report(db: Session, report_id: int) -> Report:
    report = db.get(Report, report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return report

@router.get("/reports", response_model=ReportList, summary="Search and page through reports")
async def list_reports(
    request: Request,
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
    pagination: dict = Depends(get_pagination_params),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> ReportList:
    """List reports newest first. ``status`` may be a ReportStatus value or ``all``."""
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", "unknown")

    query = db.query(Report)
    if status_filter and status_filter.lower() != "all":
        try:
            query = query.filter(Report.status == ReportStatus(status_filter.upper()))
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown status '{status_filter}'"
            )
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            cast(Report.id, String).like(pattern),
            Report.description.ilike(pattern),
            Report.reporter_phone.like(pattern),
            Report.qr_code_no.ilike(pattern),
        ))

    total = query.count()
    reports = (
        query.order_by(Report.created_at.desc(), Report.id.desc())
        .offset(pagination["offset"])
        .limit(pagination["limit"])
        .all()
    )

    log_performance(
        operation="list_reports",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"reports_returned": len(reports), "user_id": current_user.id}
    )
    return ReportList(
        reports=[_admin_view(r) for r in reports],
        stats=_status_counts(db),
        pagination=Pagination(
            total=total,
            pages=math.ceil(total / pagination["limit"]) if total else 0,
            current_page=pagination["page"],
            limit=pagination["limit"],
        ),
    )

@router.get("/reports/{report_id}", response_model=ReportAdminView)
async def get_report(
    report_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> ReportAdminView:
    return _admin_view(_get_report(db, report_id))

@router.put("/reports/{report_id}", response_model=ReportAdminView, summary="Change a report's status")
async def update_report(
    report_id: int,
    payload: ReportStatusUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> ReportAdminView:
    request_id = request.headers.get("X-Request-ID", "unknown")
    report = _get_report(db, report_id)
    previous = report.status
    report.status = payload.status
    db.commit()
    db.refresh(report)

    log_business_event(
        event_type="report_status_changed",
        details={"report_id": report.id, "from_status": previous.value, "to_status": report.status.value},
        user_id=current_user.id,
        request_id=request_id
    )
    return _admin_view(report)

@router.delete("/reports/{report_id}", response_model=ResponseBase)
async def delete_report(
    report_id: int,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> ResponseBase:
    request_id = request.headers.get("X-Request-ID", "unknown")
    report = _get_report(db, report_id)
    db.delete(report)
    db.commit()
    log_business_event(
        event_type="report_deleted",
        details={"report_id": report_id},
        user_id=current_user.id,
        request_id=request_id
    )
    return ResponseBase(success=True, message="Report deleted successfully")

@router.get("/stats", response_model=AdminOverview, summary="Dashboard statistics")
async def get_stats(
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> AdminOverview:
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", "unknown")

    try:
        counts = _status_counts(db)
        since = utc_now() - timedelta(days=REPORT_SETTINGS["recent_window_days"])
        recent = db.query(func.count(Report.id)).filter(Report.created_at >= since).scalar() or 0
        with_qr = db.query(func.count(Report.id)).filter(Report.qr_code_no.isnot(None)).scalar() or 0
        issue_rows = db.query(Report.issue_type, func.count(Report.id)).group_by(Report.issue_type).all()

        today = utc_today()
        total_hoardings = db.query(func.count(Hoarding.id)).scalar() or 0
        occupied = (
            db.query(func.count(func.distinct(Placement.hoarding_id)))
            .filter(Placement.end_date > today)
            .scalar() or 0
        )
        total_placements = db.query(func.count(Placement.id)).scalar() or 0
        active_placements = (
            db.query(func.count(Placement.id))
            .filter(Placement.start_date <= today, Placement.end_date > today)
            .scalar() or 0
        )
        pending_ads = db.query(func.count(Advertisement.id)).filter(Advertisement.approved == False).scalar() or 0

        overview = AdminOverview(
            total_reports=counts.total,
            pending_reports=counts.pending,
            reviewed_reports=counts.reviewed,
            action_taken_reports=counts.action_taken,
            recent_reports=recent,
            reports_with_qr=with_qr,
            resolution_rate=round(counts.action_taken / counts.total * 100, 1) if counts.total else 0.0,
            issue_types={issue_label(t): c for t, c in issue_rows},
            total_hoardings=total_hoardings,
            occupied_hoardings=occupied,
            total_placements=total_placements,
            active_placements=active_placements,
            pending_advertisements=pending_ads,
        )
        log_performance(operation="admin_stats", duration_ms=(time.time() - start_time) * 1000)
        return overview

    except Exception as e:
        logger.error("Admin stats failed", error=str(e), request_id=request_id, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error while computing statistics"
        )

@router.put(
    "/advertisements/{advertisement_id}/approval",
    response_model=AdvertisementRead,
    summary="Approve or withdraw approval of an advertisement"
)
async def set_advertisement_approval(
    advertisement_id: int,
    payload: AdvertisementApproval,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> AdvertisementRead:
    """Existing placements are unaffected; approval only gates new bookings."""
    request_id = request.headers.get("X-Request-ID", "unknown")
    ad = db.get(Advertisement, advertisement_id)
    if ad is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Advertisement not found")
    ad.approved = payload.approved
    db.commit()
    db.refresh(ad)

    log_business_event(
        event_type="advertisement_approved" if ad.approved else "advertisement_approval_withdrawn",
        details={"advertisement_id": ad.id, "advertiser_id": ad.advertiser_id},
        user_id=current_user.id,
        request_id=request_id
    )
    return AdvertisementRead.model_validate(ad)

@router.post("/hoardings/availability/sync", response_model=ResponseBase, summary="Recompute hoarding availability")
async def sync_availability(
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
) -> ResponseBase:
    request_id = request.headers.get("X-Request-ID", "unknown")
    summary = sync_all_hoardings(db)
    log_business_event(
        event_type="availability_synced",
        details=summary,
        user_id=current_user.id,
        request_id=request_id
    )
    return ResponseBase(success=True, message="Hoarding availability synchronized", data=summary)
