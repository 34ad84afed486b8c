"""
Internal data types for scheduling logic.
decoupled from SQLAlchemy models for cleaner logic.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .constraint_config import ConstraintConfig


class ConstraintType(str, Enum):
    AVAILABILITY = "AVAILABILITY"
    MAX_HOURS = "MAX_HOURS"
    MIN_REST = "MIN_REST"
    PREFERRED_SHIFT = "PREFERRED_SHIFT"
    BLOCKED_DAY = "BLOCKED_DAY"
    SKILL_REQUIRED = "SKILL_REQUIRED"
    CONSECUTIVE_DAYS = "CONSECUTIVE_DAYS"


class RelationshipType(str, Enum):
    NEVER_TOGETHER = "NEVER_TOGETHER"
    SAME_DAY_OFF = "SAME_DAY_OFF"


class ScheduleStatus(str, Enum):
    DRAFT = "DRAFT"
    GENERATED = "GENERATED"
    REVIEW = "REVIEW"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class WarningType(str, Enum):
    UNDERSTAFFED = "UNDERSTAFFED"
    OVERSTAFFED = "OVERSTAFFED"
    HARD_CONSTRAINT_VIOLATED = "HARD_CONSTRAINT_VIOLATED"
    SOFT_CONSTRAINT_VIOLATED = "SOFT_CONSTRAINT_VIOLATED"
    RELATIONSHIP_CONSTRAINT_VIOLATED = "RELATIONSHIP_CONSTRAINT_VIOLATED"
    UNBALANCED_HOURS = "UNBALANCED_HOURS"


def iso_week(day: date) -> tuple[int, int]:
    year, week, _ = day.isocalendar()
    return year, week


@dataclass
class StaffMember:
    id: int
    first_name: str
    last_name: str
    is_fixed_staff: bool = True
    venue_id: Optional[int] = None  # None = floats between venues
    contract_hours_week: Optional[float] = None
    hourly_rate_base: Optional[float] = None
    hourly_rate_extra: Optional[float] = None
    skills: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class ShiftDefinition:
    id: int
    venue_id: int
    code: str
    name: str
    start_time: time
    end_time: time  # <= start_time means the shift ends next day
    break_minutes: int = 0
    min_staff: int = 1
    max_staff: Optional[int] = None
    required_skills: list[str] = field(default_factory=list)
    rate_multiplier: float = 1.0
    position: int = 0
    active_from: Optional[date] = None
    is_active: bool = True


@dataclass
class EmployeeConstraint:
    id: int
    staff_id: int
    constraint_type: ConstraintType
    config: ConstraintConfig
    is_hard: bool = True
    priority: int = 5  # 1-10, scales soft penalties
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    venue_id: Optional[int] = None  # None = applies at every venue

    @property
    def weight(self) -> float:
        return self.priority / 10

    def is_active_on(self, day: date, venue_id: Optional[int] = None) -> bool:
        if self.valid_from and day < self.valid_from:
            return False
        if self.valid_to and day > self.valid_to:
            return False
        if self.venue_id is not None and venue_id is not None and self.venue_id != venue_id:
            return False
        return True


@dataclass
class LeaveRequest:
    """Approved leave, inclusive on both ends."""
    staff_id: int
    start_date: date
    end_date: date

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass
class RelationshipConstraint:
    id: int
    constraint_type: RelationshipType
    staff_ids: list[int]
    is_hard: bool = False
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None

    def is_active_on(self, day: date) -> bool:
        if self.valid_from and day < self.valid_from:
            return False
        if self.valid_to and day > self.valid_to:
            return False
        return True


def shift_hours(start_dt: datetime, end_dt: datetime, break_minutes: int) -> float:
    minutes = (end_dt - start_dt).total_seconds() / 60 - break_minutes
    return round(minutes / 60, 2)


@dataclass
class ShiftSlot:
    """One occurrence of a shift definition on a date, with its staffing target."""
    definition: ShiftDefinition
    slot_date: date
    start_datetime: datetime
    end_datetime: datetime
    min_staff: int
    max_staff: int

    @property
    def key(self) -> tuple[date, int]:
        return self.slot_date, self.definition.id

    @property
    def venue_id(self) -> int:
        return self.definition.venue_id

    @property
    def break_minutes(self) -> int:
        return self.definition.break_minutes

    @property
    def required_skills(self) -> list[str]:
        return self.definition.required_skills

    @property
    def hours(self) -> float:
        return shift_hours(self.start_datetime, self.end_datetime, self.break_minutes)

    @property
    def label(self) -> str:
        return f"{self.definition.name} on {self.slot_date.isoformat()}"


@dataclass
class Assignment:
    """A staff member placed on a shift (proposed or persisted)."""
    staff_id: int
    shift_definition_id: int
    venue_id: int
    shift_date: date
    start_datetime: datetime
    end_datetime: datetime
    break_minutes: int = 0
    hours_scheduled: float = 0.0
    cost_estimated: float = 0.0
    id: Optional[int] = None

    @property
    def slot_key(self) -> tuple[date, int]:
        return self.shift_date, self.shift_definition_id


@dataclass
class SolverOptions:
    prefer_fixed_staff: bool = True
    balance_hours: bool = True
    minimize_cost: bool = False
    fill_extra_capacity: bool = False
    staffing_requirements: dict[str, int] = field(default_factory=dict)  # "YYYY-MM-DD_<definition id>" -> min staff

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ScheduleWarning:
    type: WarningType
    severity: Severity
    message: str
    shift_date: Optional[date] = None
    shift_definition_id: Optional[int] = None
    staff_id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "shift_date": self.shift_date.isoformat() if self.shift_date else None,
            "shift_definition_id": self.shift_definition_id,
            "staff_id": self.staff_id,
        }


@dataclass
class StaffStats:
    staff_id: int
    name: str
    shifts_assigned: int
    hours_assigned: float
    cost_estimated: float
    contract_hours_week: Optional[float]
    utilization_percentage: float


@dataclass
class GenerationStats:
    total_shifts: int = 0
    total_hours: float = 0.0
    total_cost: float = 0.0
    coverage_percentage: float = 100.0
    unmet_slots: int = 0
    soft_constraints_violated: int = 0
    staff_stats: list[StaffStats] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class GenerationResult:
    """Output of the scheduling algorithm."""
    success: bool  # every slot reached its minimum
    assignments: list[Assignment]
    stats: GenerationStats
    warnings: list[ScheduleWarning] = field(default_factory=list)


@dataclass
class ValidationResult:
    is_valid: bool  # no high-severity warnings
    warnings: list[ScheduleWarning] = field(default_factory=list)

    @property
    def high_warnings(self) -> list[ScheduleWarning]:
        return [w for w in self.warnings if w.severity == Severity.HIGH]


@dataclass
class PublishResult:
    schedule_id: int
    status: ScheduleStatus
    published_at: datetime
    forced: bool
    warnings: list[ScheduleWarning] = field(default_factory=list)


@dataclass
class ScheduleContext:
    """All data needed to generate or validate a schedule for one venue and date range."""
    venue_id: int
    start_date: date
    end_date: date  # inclusive
    shift_definitions: list[ShiftDefinition]
    staff: list[StaffMember]
    constraints: list[EmployeeConstraint] = field(default_factory=list)
    leave_requests: list[LeaveRequest] = field(default_factory=list)
    relationship_constraints: list[RelationshipConstraint] = field(default_factory=list)
    prior_assignments: list[Assignment] = field(default_factory=list)  # published, outside this schedule

    @property
    def dates(self) -> list[date]:
        days = (self.end_date - self.start_date).days + 1
        return [self.start_date + timedelta(days=i) for i in range(max(days, 0))]

    def constraints_for(self, staff_id: int) -> list[EmployeeConstraint]:
        return [c for c in self.constraints if c.staff_id == staff_id]

    def leave_for(self, staff_id: int) -> list[LeaveRequest]:
        return [r for r in self.leave_requests if r.staff_id == staff_id]


@dataclass
class StaffLedger:
    """Running totals for one staff member while a schedule is built or replayed."""
    hours_by_week: dict[tuple[int, int], float] = field(default_factory=dict)
    run_hours: float = 0.0  # hours inside the schedule being built
    run_shifts: int = 0
    worked_dates: set[date] = field(default_factory=set)
    intervals: list[tuple[datetime, datetime]] = field(default_factory=list)

    def week_hours(self, day: date) -> float:
        return self.hours_by_week.get(iso_week(day), 0.0)


@dataclass
class RunState:
    ledgers: dict[int, StaffLedger] = field(default_factory=dict)

    def ledger(self, staff_id: int) -> StaffLedger:
        if staff_id not in self.ledgers:
            self.ledgers[staff_id] = StaffLedger()
        return self.ledgers[staff_id]

    def record(self, assignment: Assignment, in_run: bool = True) -> None:
        ledger = self.ledger(assignment.staff_id)
        week = iso_week(assignment.shift_date)
        ledger.hours_by_week[week] = round(ledger.hours_by_week.get(week, 0.0) + assignment.hours_scheduled, 2)
        ledger.worked_dates.add(assignment.shift_date)
        ledger.intervals.append((assignment.start_datetime, assignment.end_datetime))
        if in_run:
            ledger.run_hours = round(ledger.run_hours + assignment.hours_scheduled, 2)
            ledger.run_shifts += 1

    @classmethod
    def seeded(cls, prior_assignments: list[Assignment]) -> "RunState":
        state = cls()
        for assignment in prior_assignments:
            state.record(assignment, in_run=False)
        return state
