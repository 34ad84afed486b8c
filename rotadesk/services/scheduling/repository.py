"""
Schedule persistence.

Writers lock the schedule row, then commit their change with an update
conditioned on the version and status they read. A zero-row update means
another writer got there first; the transaction is rolled back and
ScheduleConflictError raised.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.orm import Session

from rotadesk.db.models.shift_assignments import AssignmentStatus, ShiftAssignments
from rotadesk.db.models.shift_schedules import ScheduleStatusDB, ShiftSchedules

from .errors import InvalidScheduleInputError, ScheduleConflictError, ScheduleNotFoundError
from .types import Assignment, ScheduleStatus

logger = logging.getLogger(__name__)


def lock_schedule(db: Session, schedule_id: int) -> ShiftSchedules:
    """SELECT ... FOR UPDATE on the schedule row, refreshing any cached copy."""
    stmt = (
        select(ShiftSchedules)
        .where(ShiftSchedules.id == schedule_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    schedule = db.execute(stmt).scalar_one_or_none()
    if schedule is None:
        raise ScheduleNotFoundError(schedule_id)
    return schedule


def schedule_status(schedule: ShiftSchedules) -> ScheduleStatus:
    return ScheduleStatus(schedule.status.value)


def claim_schedule(
    db: Session,
    schedule_id: int,
    expected_version: int,
    expected_status: ScheduleStatus,
    new_status: ScheduleStatus,
    **values,
) -> None:
    """Conditionally move the schedule to new_status and bump its version."""
    stmt = (
        update(ShiftSchedules)
        .where(
            and_(
                ShiftSchedules.id == schedule_id,
                ShiftSchedules.version == expected_version,
                ShiftSchedules.status == ScheduleStatusDB(expected_status.value),
            )
        )
        .values(
            status=ScheduleStatusDB(new_status.value),
            version=ShiftSchedules.version + 1,
            **values,
        )
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    if result.rowcount != 1:
        db.rollback()
        logger.warning(f"Schedule {schedule_id} changed underneath a write (expected v{expected_version}, {expected_status.value})")
        raise ScheduleConflictError(schedule_id)


def replace_assignments(db: Session, schedule_id: int, assignments: list[Assignment]) -> None:
    db.execute(delete(ShiftAssignments).where(ShiftAssignments.schedule_id == schedule_id))
    db.add_all([
        ShiftAssignments(
            schedule_id=schedule_id,
            staff_id=a.staff_id,
            shift_definition_id=a.shift_definition_id,
            venue_id=a.venue_id,
            shift_date=a.shift_date,
            start_datetime=a.start_datetime,
            end_datetime=a.end_datetime,
            break_minutes=a.break_minutes,
            hours_scheduled=Decimal(str(a.hours_scheduled)),
            cost_estimated=Decimal(str(a.cost_estimated)),
            status=AssignmentStatus.SCHEDULED,
        )
        for a in assignments
    ])


def count_assignments(db: Session, schedule_id: int) -> int:
    stmt = select(func.count(ShiftAssignments.id)).where(
        and_(
            ShiftAssignments.schedule_id == schedule_id,
            ShiftAssignments.status != AssignmentStatus.CANCELLED,
        )
    )
    return db.execute(stmt).scalar_one()


def find_overlapping_schedule(
    db: Session,
    venue_id: int,
    start_date: date,
    end_date: date,
    exclude_id: Optional[int] = None,
) -> Optional[ShiftSchedules]:
    """A non-archived schedule for the venue sharing at least one date with the range."""
    conditions = [
        ShiftSchedules.venue_id == venue_id,
        ShiftSchedules.status != ScheduleStatusDB.ARCHIVED,
        ShiftSchedules.start_date <= end_date,
        ShiftSchedules.end_date >= start_date,
    ]
    if exclude_id is not None:
        conditions.append(ShiftSchedules.id != exclude_id)
    stmt = select(ShiftSchedules).where(and_(*conditions)).limit(1)
    return db.execute(stmt).scalar_one_or_none()


def create_schedule(
    db: Session,
    venue_id: int,
    name: str,
    start_date: date,
    end_date: date,
    notes: Optional[str] = None,
    created_by_user_id: Optional[int] = None,
) -> ShiftSchedules:
    """Create a DRAFT schedule; a venue may not have two live schedules covering one date."""
    if end_date < start_date:
        raise InvalidScheduleInputError(f"Date range ends ({end_date}) before it starts ({start_date})")

    existing = find_overlapping_schedule(db, venue_id, start_date, end_date)
    if existing is not None:
        raise InvalidScheduleInputError(
            f"Schedule {existing.id} already covers {existing.start_date} to {existing.end_date} for this venue"
        )

    schedule = ShiftSchedules(
        venue_id=venue_id,
        name=name,
        start_date=start_date,
        end_date=end_date,
        notes=notes,
        status=ScheduleStatusDB.DRAFT,
        version=1,
        created_by_user_id=created_by_user_id,
    )
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    logger.info(f"Created schedule {schedule.id} for venue {venue_id}: {start_date} to {end_date}")
    return schedule
