from __future__ import annotations
"""SQLAlchemy model for users (owners, advertisers and administrators)."""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, DateTime, Boolean, Enum
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .hoardings import Hoarding
    from .advertisements import Advertisement
from sqlalchemy.sql import func
from hoarding_app.database import Base
from .enums import UserRole

class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    phone: Mapped[str] = mapped_column(String, nullable=False)
    gov_id_type: Mapped[str] = mapped_column(String, nullable=False)
    gov_id_no: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    hoardings: Mapped[list["Hoarding"]] = relationship("Hoarding", back_populates="owner")
    advertisements: Mapped[list["Advertisement"]] = relationship("Advertisement", back_populates="advertiser")
