from __future__ import annotations
"""SQLAlchemy model for citizen issue reports."""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, Text, Float, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .placements import Placement
from sqlalchemy.sql import func
from hoarding_app.database import Base
from .enums import ReportType, ReportStatus

class Report(Base):
    __tablename__ = "reports"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # Optional link to the placement whose QR the reporter scanned
    qr_code_no: Mapped[str | None] = mapped_column(String, ForeignKey("placements.token"), nullable=True, index=True)

    reporter_phone: Mapped[str] = mapped_column(String, nullable=False)
    issue_type: Mapped[ReportType] = mapped_column(Enum(ReportType), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)

    status: Mapped[ReportStatus] = mapped_column(Enum(ReportStatus), default=ReportStatus.PENDING, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    placement: Mapped["Placement | None"] = relationship("Placement", back_populates="reports")
