"""Demo data bootstrap.

    python -m hoarding_app.seed

Creates an admin, an owner with one hoarding, an advertiser with one approved
advertisement, a 30 day placement booked through the allocator, and a handful
of citizen reports (two referencing the placement's QR token). Re-running is
safe: users are matched by email and an existing booking is reused.
"""
from __future__ import annotations

import os
from datetime import date, timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from hoarding_app import database
from hoarding_app.database import Base
from hoarding_app.models.db import User, Hoarding, Advertisement, Placement, Report
from hoarding_app.models.db.enums import UserRole, ReportType, ReportStatus
from hoarding_app.security import get_password_hash
from hoarding_app.services.placement_allocator import request_placement, SlotConflict
from hoarding_app.utils import get_logger, setup_logging, utc_today

logger = get_logger(__name__)

DEMO_PASSWORD_ENV = "SEED_PASSWORD"

DEMO_USERS = [
    {
        "name": "Admin User",
        "email": "admin@bmc.gov",
        "phone": "9999999999",
        "gov_id_type": "PAN",
        "gov_id_no": "ADMIN1234",
        "role": UserRole.ADMIN,
    },
    {
        "name": "Ravi Owner",
        "email": "ravi@owner.com",
        "phone": "9876543210",
        "gov_id_type": "AADHAAR",
        "gov_id_no": "1234-5678-9012",
        "role": UserRole.OWNER,
    },
    {
        "name": "Sita Advertiser",
        "email": "sita@ads.com",
        "phone": "9123456780",
        "gov_id_type": "PAN",
        "gov_id_no": "ABCDE1234F",
        "role": UserRole.ADVERTISER,
    },
]


def _get_or_create_user(session: Session, profile: Dict[str, Any], password: str) -> User:
    user = session.query(User).filter(User.email == profile["email"]).first()
    if user is not None:
        return user
    user = User(password_hash=get_password_hash(password), is_active=True, **profile)
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("Seed user created", user_id=user.id, role=user.role.value)
    return user


def seed_demo_data(session: Session, password: Optional[str] = None, today: Optional[date] = None) -> Dict[str, Any]:
    """Insert the demo dataset and return the ids that were created or reused."""
    password = password or os.getenv(DEMO_PASSWORD_ENV, "changeme123")
    today = today or utc_today()

    users = {profile["role"]: _get_or_create_user(session, profile, password) for profile in DEMO_USERS}
    owner = users[UserRole.OWNER]
    advertiser = users[UserRole.ADVERTISER]

    hoarding = session.query(Hoarding).filter(Hoarding.owner_id == owner.id).order_by(Hoarding.id).first()
    if hoarding is None:
        hoarding = Hoarding(
            owner_id=owner.id,
            height=10.5,
            width=20.0,
            address="Jaydev Vihar Square",
            latitude=20.2961,
            longitude=85.8245,
            installation_date=today,
            is_available=True,
        )
        session.add(hoarding)
        session.commit()
        session.refresh(hoarding)

    ad = session.query(Advertisement).filter(Advertisement.advertiser_id == advertiser.id).order_by(Advertisement.id).first()
    if ad is None:
        ad = Advertisement(
            advertiser_id=advertiser.id,
            title="New Store Opening",
            description="Grand opening of fashion store",
            category="Retail",
            content_url="https://example.com/ad.png",
            approved=True,
        )
        session.add(ad)
        session.commit()
        session.refresh(ad)

    hoarding_id, ad_id = hoarding.id, ad.id
    try:
        result = request_placement(
            session,
            advertiser_id=advertiser.id,
            hoarding_id=hoarding_id,
            advertisement_id=ad_id,
            start_date=today,
            end_date=today + timedelta(days=30),
            today=today,
        )
        token = result.token
    except SlotConflict as exc:
        token = session.get(Placement, exc.conflicting_placement_id).token
        logger.info("Seed placement already present", placement_id=exc.conflicting_placement_id)

    if session.query(Report).count() == 0:
        session.add_all([
            Report(
                qr_code_no=token,
                reporter_phone="9876543210",
                issue_type=ReportType.NO_QR,
                description="QR code is not visible or damaged on this hoarding",
                status=ReportStatus.PENDING,
            ),
            Report(
                reporter_phone="9123456789",
                issue_type=ReportType.ILLEGAL_INSTALLATION,
                description="This hoarding appears to be installed without proper permits",
                status=ReportStatus.REVIEWED,
            ),
            Report(
                qr_code_no=token,
                reporter_phone="9988776655",
                issue_type=ReportType.STRUCTURAL_HAZARD,
                description="This hoarding structure looks unstable and poses safety risk",
                latitude=20.2965,
                longitude=85.8250,
                status=ReportStatus.PENDING,
            ),
            Report(
                reporter_phone="9555666777",
                issue_type=ReportType.BANNED_CONTENT,
                description="Advertisement contains inappropriate content that violates community guidelines",
                image_url="https://example.com/evidence.jpg",
                status=ReportStatus.ACTION_TAKEN,
            ),
        ])
        session.commit()

    summary = {
        "admin_id": users[UserRole.ADMIN].id,
        "owner_id": owner.id,
        "advertiser_id": advertiser.id,
        "hoarding_id": hoarding_id,
        "advertisement_id": ad_id,
        "token": token,
        "reports": session.query(Report).count(),
    }
    logger.info("Demo data seeded", **summary)
    return summary


def main() -> None:
    setup_logging(log_level=os.getenv("LOG_LEVEL", "INFO"))
    Base.metadata.create_all(bind=database.engine)
    session = database.SessionLocal()
    try:
        seed_demo_data(session)
    finally:
        session.close()


if __name__ == "__main__":
    main()
