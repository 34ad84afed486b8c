from typing import Optional
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from rotadesk.db.database import Base, JSONType


class StaffMembers(Base):
    """Read-only roster snapshot; owned by the staff registry."""
    __tablename__ = "staff_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    venue_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)  # null = floats between venues
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_fixed_staff: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    contract_hours_week: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    hourly_rate_base: Mapped[Optional[Decimal]] = mapped_column(Numeric(8, 2), nullable=True)
    hourly_rate_extra: Mapped[Optional[Decimal]] = mapped_column(Numeric(8, 2), nullable=True)
    skills: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
