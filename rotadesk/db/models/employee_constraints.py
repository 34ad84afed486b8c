from typing import Optional
from enum import Enum
from datetime import date, datetime
from sqlalchemy import Boolean, Date, DateTime, Enum as SQLEnum, ForeignKey, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from rotadesk.db.database import Base, JSONType


class EmployeeConstraintType(str, Enum):
    AVAILABILITY = "AVAILABILITY"
    MAX_HOURS = "MAX_HOURS"
    MIN_REST = "MIN_REST"
    PREFERRED_SHIFT = "PREFERRED_SHIFT"
    BLOCKED_DAY = "BLOCKED_DAY"
    SKILL_REQUIRED = "SKILL_REQUIRED"
    CONSECUTIVE_DAYS = "CONSECUTIVE_DAYS"


class EmployeeConstraints(Base):
    __tablename__ = "employee_constraints"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    staff_id: Mapped[int] = mapped_column(Integer, ForeignKey("staff_members.id"), nullable=False, index=True)
    venue_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)  # null = every venue
    constraint_type: Mapped[EmployeeConstraintType] = mapped_column(SQLEnum(EmployeeConstraintType, name="employee_constraint_type_enum"), nullable=False)
    config: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    valid_from: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    valid_to: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=5)  # 1-10
    is_hard: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
