from __future__ import annotations
"""SQLAlchemy model for hoarding placements (booked date intervals).

A placement occupies the half-open interval ``[start_date, end_date)`` on one
hoarding. Rows are written only by ``services.placement_allocator`` and never
modified afterwards; "expired" is a read-time predicate (``end_date <= today``).
"""
from datetime import date, datetime
from typing import TYPE_CHECKING
from sqlalchemy import String, Integer, Date, DateTime, ForeignKey, CheckConstraint, DDL, event, func
from sqlalchemy.dialects.postgresql import ExcludeConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .hoardings import Hoarding
    from .advertisements import Advertisement
    from .reports import Report
from hoarding_app.database import Base

class Placement(Base):
    __tablename__ = "placements"
    # uuid4 hex pre-allocated by the allocator so the token can be written in the same INSERT
    id: Mapped[str] = mapped_column(String(32), primary_key=True)

    hoarding_id: Mapped[int] = mapped_column(Integer, ForeignKey("hoardings.id"), nullable=False, index=True)
    advertisement_id: Mapped[int] = mapped_column(Integer, ForeignKey("advertisements.id"), nullable=False, index=True)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    token: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    hoarding: Mapped["Hoarding"] = relationship("Hoarding", back_populates="placements")
    advertisement: Mapped["Advertisement"] = relationship("Advertisement", back_populates="placements")
    reports: Mapped[list["Report"]] = relationship("Report", back_populates="placement")

    __table_args__ = (
        CheckConstraint("start_date < end_date", name="placement_valid_interval"),
        CheckConstraint("token <> ''", name="placement_token_not_empty"),
    )

    def is_active_on(self, day: date) -> bool:
        return self.start_date <= day < self.end_date

    def is_expired_on(self, day: date) -> bool:
        return self.end_date <= day


# Store-level overlap guard. PostgreSQL only; other dialects rely on the
# allocator's lock + conflict query.
_table = Placement.__table__
_table.append_constraint(
    ExcludeConstraint(
        (_table.c.hoarding_id, "="),
        (func.daterange(_table.c.start_date, _table.c.end_date), "&&"),
        name="placement_no_overlap",
        using="gist",
    ).ddl_if(dialect="postgresql")
)

event.listen(
    Base.metadata,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
