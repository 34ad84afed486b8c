from typing import Optional
from enum import Enum
from datetime import date, datetime
from sqlalchemy import Boolean, Date, DateTime, Enum as SQLEnum, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from rotadesk.db.database import Base, JSONType


class RelationshipConstraintType(str, Enum):
    NEVER_TOGETHER = "NEVER_TOGETHER"
    SAME_DAY_OFF = "SAME_DAY_OFF"


class RelationshipConstraints(Base):
    __tablename__ = "relationship_constraints"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    venue_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    constraint_type: Mapped[RelationshipConstraintType] = mapped_column(SQLEnum(RelationshipConstraintType, name="relationship_constraint_type_enum"), nullable=False)
    staff_ids: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    valid_from: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    valid_to: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    is_hard: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
