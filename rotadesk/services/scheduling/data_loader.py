"""
Data loader for scheduling service.
Fetches all relevant data from the database and converts to internal types.
"""

from datetime import date, timedelta
from sqlalchemy import select, and_, or_
from sqlalchemy.orm import Session

from rotadesk.db.models.staff_members import StaffMembers
from rotadesk.db.models.shift_definitions import ShiftDefinitions
from rotadesk.db.models.employee_constraints import EmployeeConstraints
from rotadesk.db.models.relationship_constraints import RelationshipConstraints
from rotadesk.db.models.leave_requests import LeaveRequests, LeaveStatus
from rotadesk.db.models.shift_schedules import ShiftSchedules, ScheduleStatusDB
from rotadesk.db.models.shift_assignments import ShiftAssignments, AssignmentStatus

from .constraint_config import parse_constraint_config
from .errors import ScheduleNotFoundError
from .types import (
    Assignment,
    ConstraintType,
    EmployeeConstraint,
    LeaveRequest,
    RelationshipConstraint,
    RelationshipType,
    ScheduleContext,
    ShiftDefinition,
    StaffMember,
)

# Published work this far either side of a schedule still affects rest,
# weekly hours and consecutive-day runs
ADJACENT_DAYS = 7


def _float(value):
    return float(value) if value is not None else None


def load_schedule(db: Session, schedule_id: int) -> ShiftSchedules:
    schedule = db.get(ShiftSchedules, schedule_id)
    if schedule is None:
        raise ScheduleNotFoundError(schedule_id)
    return schedule


def load_staff(db: Session, venue_id: int) -> list[StaffMember]:
    """Load active staff who belong to the venue or float between venues."""
    stmt = select(StaffMembers).where(
        and_(
            StaffMembers.is_active == True,
            or_(StaffMembers.venue_id == venue_id, StaffMembers.venue_id.is_(None)),
        )
    ).order_by(StaffMembers.id)
    rows = db.execute(stmt).scalars().all()

    return [
        StaffMember(
            id=s.id,
            first_name=s.first_name,
            last_name=s.last_name,
            is_fixed_staff=s.is_fixed_staff,
            venue_id=s.venue_id,
            contract_hours_week=_float(s.contract_hours_week),
            hourly_rate_base=_float(s.hourly_rate_base),
            hourly_rate_extra=_float(s.hourly_rate_extra),
            skills=list(s.skills or []),
        )
        for s in rows
    ]


def load_shift_definitions(db: Session, venue_id: int) -> list[ShiftDefinition]:
    """Load active shift definitions for a venue."""
    stmt = select(ShiftDefinitions).where(
        and_(
            ShiftDefinitions.venue_id == venue_id,
            ShiftDefinitions.is_active == True,
        )
    ).order_by(ShiftDefinitions.position, ShiftDefinitions.id)
    rows = db.execute(stmt).scalars().all()

    return [
        ShiftDefinition(
            id=d.id,
            venue_id=d.venue_id,
            code=d.code,
            name=d.name,
            start_time=d.start_time,
            end_time=d.end_time,
            break_minutes=d.break_minutes,
            min_staff=d.min_staff,
            max_staff=d.max_staff,
            required_skills=list(d.required_skills or []),
            rate_multiplier=float(d.rate_multiplier),
            position=d.position,
            active_from=d.active_from,
            is_active=d.is_active,
        )
        for d in rows
    ]


def load_employee_constraints(
    db: Session,
    staff_ids: list[int],
    venue_id: int,
    start_date: date,
    end_date: date,
) -> list[EmployeeConstraint]:
    """
    Load constraints for the given staff that can apply to this venue and range.
    Configs are validated here; a malformed one raises InvalidConstraintConfig.
    """
    if not staff_ids:
        return []

    stmt = select(EmployeeConstraints).where(
        and_(
            EmployeeConstraints.staff_id.in_(staff_ids),
            or_(EmployeeConstraints.venue_id == venue_id, EmployeeConstraints.venue_id.is_(None)),
            or_(EmployeeConstraints.valid_from.is_(None), EmployeeConstraints.valid_from <= end_date),
            or_(EmployeeConstraints.valid_to.is_(None), EmployeeConstraints.valid_to >= start_date),
        )
    ).order_by(EmployeeConstraints.id)
    rows = db.execute(stmt).scalars().all()

    constraints = []
    for c in rows:
        constraint_type = ConstraintType(c.constraint_type.value)
        constraints.append(EmployeeConstraint(
            id=c.id,
            staff_id=c.staff_id,
            constraint_type=constraint_type,
            config=parse_constraint_config(constraint_type, c.config, constraint_id=c.id),
            is_hard=c.is_hard,
            priority=c.priority,
            valid_from=c.valid_from,
            valid_to=c.valid_to,
            venue_id=c.venue_id,
        ))
    return constraints


def load_leave_requests(
    db: Session,
    staff_ids: list[int],
    start_date: date,
    end_date: date,
) -> list[LeaveRequest]:
    """Load approved leave overlapping the date range."""
    if not staff_ids:
        return []

    stmt = select(LeaveRequests).where(
        and_(
            LeaveRequests.staff_id.in_(staff_ids),
            LeaveRequests.status == LeaveStatus.APPROVED,
            LeaveRequests.start_date <= end_date,
            LeaveRequests.end_date >= start_date,
        )
    )
    rows = db.execute(stmt).scalars().all()

    return [
        LeaveRequest(staff_id=r.staff_id, start_date=r.start_date, end_date=r.end_date)
        for r in rows
    ]


def load_relationship_constraints(db: Session, venue_id: int) -> list[RelationshipConstraint]:
    stmt = select(RelationshipConstraints).where(
        or_(RelationshipConstraints.venue_id == venue_id, RelationshipConstraints.venue_id.is_(None))
    ).order_by(RelationshipConstraints.id)
    rows = db.execute(stmt).scalars().all()

    return [
        RelationshipConstraint(
            id=r.id,
            constraint_type=RelationshipType(r.constraint_type.value),
            staff_ids=[int(i) for i in (r.staff_ids or [])],
            is_hard=r.is_hard,
            valid_from=r.valid_from,
            valid_to=r.valid_to,
        )
        for r in rows
    ]


def _to_assignment(row: ShiftAssignments) -> Assignment:
    return Assignment(
        id=row.id,
        staff_id=row.staff_id,
        shift_definition_id=row.shift_definition_id,
        venue_id=row.venue_id,
        shift_date=row.shift_date,
        start_datetime=row.start_datetime,
        end_datetime=row.end_datetime,
        break_minutes=row.break_minutes,
        hours_scheduled=float(row.hours_scheduled),
        cost_estimated=float(row.cost_estimated or 0),
    )


def load_schedule_assignments(db: Session, schedule_id: int) -> list[Assignment]:
    stmt = select(ShiftAssignments).where(
        and_(
            ShiftAssignments.schedule_id == schedule_id,
            ShiftAssignments.status != AssignmentStatus.CANCELLED,
        )
    ).order_by(ShiftAssignments.start_datetime, ShiftAssignments.id)
    return [_to_assignment(row) for row in db.execute(stmt).scalars().all()]


def load_prior_assignments(
    db: Session,
    staff_ids: list[int],
    start_date: date,
    end_date: date,
    exclude_schedule_id: int,
) -> list[Assignment]:
    """
    Published assignments from other schedules (any venue) in or around the range.
    """
    if not staff_ids:
        return []

    stmt = (
        select(ShiftAssignments)
        .join(ShiftSchedules, ShiftSchedules.id == ShiftAssignments.schedule_id)
        .where(
            and_(
                ShiftAssignments.staff_id.in_(staff_ids),
                ShiftAssignments.schedule_id != exclude_schedule_id,
                ShiftAssignments.status != AssignmentStatus.CANCELLED,
                ShiftSchedules.status == ScheduleStatusDB.PUBLISHED,
                ShiftAssignments.shift_date >= start_date - timedelta(days=ADJACENT_DAYS),
                ShiftAssignments.shift_date <= end_date + timedelta(days=ADJACENT_DAYS),
            )
        )
        .order_by(ShiftAssignments.start_datetime)
    )
    return [_to_assignment(row) for row in db.execute(stmt).scalars().all()]


def load_schedule_context(db: Session, schedule: ShiftSchedules) -> ScheduleContext:
    """
    Load all data needed to generate or validate a schedule.

    Args:
        db: Database session
        schedule: the schedule row (its venue and date range scope the load)

    Returns:
        ScheduleContext ready for the solver or validator
    """
    venue_id = schedule.venue_id
    staff = load_staff(db, venue_id)
    staff_ids = [s.id for s in staff]

    return ScheduleContext(
        venue_id=venue_id,
        start_date=schedule.start_date,
        end_date=schedule.end_date,
        shift_definitions=load_shift_definitions(db, venue_id),
        staff=staff,
        constraints=load_employee_constraints(db, staff_ids, venue_id, schedule.start_date, schedule.end_date),
        leave_requests=load_leave_requests(db, staff_ids, schedule.start_date, schedule.end_date),
        relationship_constraints=load_relationship_constraints(db, venue_id),
        prior_assignments=load_prior_assignments(db, staff_ids, schedule.start_date, schedule.end_date, schedule.id),
    )
