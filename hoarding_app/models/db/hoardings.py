from __future__ import annotations
"""SQLAlchemy model for physical billboard slots (hoardings)."""
from datetime import date, datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, Date, DateTime, Float, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .users import User
    from .placements import Placement
from sqlalchemy.sql import func
from hoarding_app.database import Base

class Hoarding(Base):
    __tablename__ = "hoardings"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    owner_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    height: Mapped[float] = mapped_column(Float, nullable=False)
    width: Mapped[float] = mapped_column(Float, nullable=False)
    address: Mapped[str] = mapped_column(String, nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    installation_date: Mapped[date] = mapped_column(Date, nullable=False)
    # Cache of "no placement ends after today"; written only by services.availability
    # and the allocator, never by request payloads.
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    owner: Mapped["User"] = relationship("User", back_populates="hoardings")
    placements: Mapped[list["Placement"]] = relationship(
        "Placement", back_populates="hoarding", order_by="Placement.start_date"
    )

    __table_args__ = (
        CheckConstraint("height > 0 AND width > 0", name="hoarding_positive_dimensions"),
    )
