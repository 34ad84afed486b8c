from typing import Optional
from enum import Enum
from datetime import date, datetime
from decimal import Decimal
from sqlalchemy import Date, DateTime, Enum as SQLEnum, ForeignKey, Integer, Numeric, Index, func
from sqlalchemy.orm import Mapped, mapped_column

from rotadesk.db.database import Base


class AssignmentStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ShiftAssignments(Base):
    __tablename__ = "shift_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    schedule_id: Mapped[int] = mapped_column(Integer, ForeignKey("shift_schedules.id"), nullable=False, index=True)
    staff_id: Mapped[int] = mapped_column(Integer, ForeignKey("staff_members.id"), nullable=False)
    shift_definition_id: Mapped[int] = mapped_column(Integer, ForeignKey("shift_definitions.id"), nullable=False)
    venue_id: Mapped[int] = mapped_column(Integer, nullable=False)
    shift_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_datetime: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_datetime: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    break_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hours_scheduled: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    cost_estimated: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    status: Mapped[AssignmentStatus] = mapped_column(SQLEnum(AssignmentStatus, name="assignment_status_enum"), nullable=False, default=AssignmentStatus.SCHEDULED)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_shift_assignments_staff_start", "staff_id", "start_datetime"),
        Index("ix_shift_assignments_venue_date", "venue_id", "shift_date"),
    )
