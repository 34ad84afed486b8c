from typing import Optional
from enum import Enum
from datetime import date, datetime
from sqlalchemy import Date, DateTime, Enum as SQLEnum, Integer, String, Text, Index, func
from sqlalchemy.orm import Mapped, mapped_column

from rotadesk.db.database import Base, JSONType


class ScheduleStatusDB(str, Enum):
    DRAFT = "DRAFT"
    GENERATED = "GENERATED"
    REVIEW = "REVIEW"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class ShiftSchedules(Base):
    __tablename__ = "shift_schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    venue_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[ScheduleStatusDB] = mapped_column(SQLEnum(ScheduleStatusDB, name="schedule_status_enum"), nullable=False, default=ScheduleStatusDB.DRAFT)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    generation_log: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)  # bumped on every engine write
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by_user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_shift_schedules_venue_dates", "venue_id", "start_date", "end_date"),
    )
