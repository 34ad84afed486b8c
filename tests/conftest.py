import pytest
from datetime import date, time, timedelta
from typing import Optional

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rotadesk.core.security import Role, create_access_token
from rotadesk.db.models import (
    Base,
    EmployeeConstraints,
    EmployeeConstraintType,
    LeaveRequests,
    LeaveStatus,
    ScheduleStatusDB,
    ShiftDefinitions,
    ShiftSchedules,
    StaffMembers,
)
from rotadesk.services.scheduling.constraint_config import parse_constraint_config
from rotadesk.services.scheduling.coverage import resolve_shift_times, shift_hours
from rotadesk.services.scheduling.types import (
    Assignment,
    ConstraintType,
    EmployeeConstraint,
    ScheduleContext,
    ShiftDefinition,
    ShiftSlot,
    StaffMember,
)


def get_test_monday() -> date:
    # returns a fixed Monday for deterministic tests
    return date(2025, 1, 20)


# --- in-memory engine types ---

def make_definition(id: int = 1, code: str = "MORN", name: str = "Morning",
                    start: time = time(8, 0), end: time = time(16, 0), **kwargs) -> ShiftDefinition:
    kwargs.setdefault("venue_id", 1)
    return ShiftDefinition(id=id, code=code, name=name, start_time=start, end_time=end, **kwargs)


def make_staff(id: int, **kwargs) -> StaffMember:
    kwargs.setdefault("first_name", f"Staff{id}")
    kwargs.setdefault("last_name", "Test")
    kwargs.setdefault("venue_id", 1)
    return StaffMember(id=id, **kwargs)


_constraint_ids = iter(range(1, 1_000_000))


def make_constraint(staff_id: int, constraint_type: ConstraintType, config: Optional[dict] = None,
                    **kwargs) -> EmployeeConstraint:
    return EmployeeConstraint(
        id=kwargs.pop("id", next(_constraint_ids)),
        staff_id=staff_id,
        constraint_type=constraint_type,
        config=parse_constraint_config(constraint_type, config or {}),
        **kwargs,
    )


def make_slot(definition: ShiftDefinition, slot_date: date,
              min_staff: Optional[int] = None, max_staff: Optional[int] = None) -> ShiftSlot:
    start_dt, end_dt = resolve_shift_times(definition, slot_date)
    min_staff = definition.min_staff if min_staff is None else min_staff
    if max_staff is None:
        max_staff = definition.max_staff if definition.max_staff is not None else min_staff
    return ShiftSlot(definition=definition, slot_date=slot_date, start_datetime=start_dt,
                     end_datetime=end_dt, min_staff=min_staff, max_staff=max_staff)


def make_assignment(staff_id: int, definition: ShiftDefinition, slot_date: date,
                    hours: Optional[float] = None) -> Assignment:
    start_dt, end_dt = resolve_shift_times(definition, slot_date)
    return Assignment(
        staff_id=staff_id,
        shift_definition_id=definition.id,
        venue_id=definition.venue_id,
        shift_date=slot_date,
        start_datetime=start_dt,
        end_datetime=end_dt,
        break_minutes=definition.break_minutes,
        hours_scheduled=hours if hours is not None else shift_hours(start_dt, end_dt, definition.break_minutes),
    )


def make_context(definitions: list[ShiftDefinition], staff: list[StaffMember],
                 days: int = 1, start: Optional[date] = None, **kwargs) -> ScheduleContext:
    start = start or get_test_monday()
    return ScheduleContext(
        venue_id=kwargs.pop("venue_id", 1),
        start_date=start,
        end_date=start + timedelta(days=days - 1),
        shift_definitions=definitions,
        staff=staff,
        **kwargs,
    )


# --- database ---

@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


def add_staff(db, id: int, venue_id: Optional[int] = 1, **kwargs) -> StaffMembers:
    kwargs.setdefault("first_name", f"Staff{id}")
    kwargs.setdefault("last_name", "Test")
    kwargs.setdefault("skills", [])
    staff = StaffMembers(id=id, venue_id=venue_id, **kwargs)
    db.add(staff)
    db.commit()
    return staff


def add_definition(db, id: int = 1, code: str = "MORN", venue_id: int = 1,
                   start: time = time(8, 0), end: time = time(16, 0), **kwargs) -> ShiftDefinitions:
    kwargs.setdefault("name", code.title())
    kwargs.setdefault("required_skills", [])
    definition = ShiftDefinitions(id=id, code=code, venue_id=venue_id, start_time=start, end_time=end, **kwargs)
    db.add(definition)
    db.commit()
    return definition


def add_schedule(db, venue_id: int = 1, start: Optional[date] = None, days: int = 7,
                 status: ScheduleStatusDB = ScheduleStatusDB.DRAFT, **kwargs) -> ShiftSchedules:
    start = start or get_test_monday()
    kwargs.setdefault("name", f"Week of {start.isoformat()}")
    schedule = ShiftSchedules(
        venue_id=venue_id,
        start_date=start,
        end_date=start + timedelta(days=days - 1),
        status=status,
        version=1,
        **kwargs,
    )
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    return schedule


def add_constraint(db, staff_id: int, constraint_type: EmployeeConstraintType, config: dict, **kwargs) -> EmployeeConstraints:
    constraint = EmployeeConstraints(staff_id=staff_id, constraint_type=constraint_type, config=config, **kwargs)
    db.add(constraint)
    db.commit()
    return constraint


def add_leave(db, staff_id: int, start: date, end: date, status: LeaveStatus = LeaveStatus.APPROVED) -> LeaveRequests:
    leave = LeaveRequests(staff_id=staff_id, start_date=start, end_date=end, status=status)
    db.add(leave)
    db.commit()
    return leave


@pytest.fixture
def seeded_week(db_session):
    """Venue 1: one morning shift needing one person, two staff, a DRAFT week."""
    add_definition(db_session, id=1, code="MORN", min_staff=1, max_staff=2)
    add_staff(db_session, id=1, contract_hours_week=40, hourly_rate_base=12)
    add_staff(db_session, id=2, contract_hours_week=40, hourly_rate_base=12)
    return add_schedule(db_session)


# --- api ---

def auth_headers(role: Role = Role.MANAGER, venue_id: Optional[int] = 1, user_id: int = 1) -> dict:
    token = create_access_token({"sub": user_id, "role": role, "venue_id": venue_id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db_session):
    from rotadesk.api.deps import get_db
    from rotadesk.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
