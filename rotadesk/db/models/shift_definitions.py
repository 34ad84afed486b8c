from typing import Optional
from datetime import date, datetime, time
from decimal import Decimal
from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, String, Time, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from rotadesk.db.database import Base, JSONType


class ShiftDefinitions(Base):
    __tablename__ = "shift_definitions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    venue_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(20), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)  # earlier than start_time = overnight
    break_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    min_staff: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_staff: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    required_skills: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    rate_multiplier: Mapped[Decimal] = mapped_column(Numeric(4, 2), nullable=False, default=Decimal("1.00"))
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active_from: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("venue_id", "code", name="uix_shift_definitions_venue_code"),
    )
