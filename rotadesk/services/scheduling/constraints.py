"""
Constraint evaluation for a single (staff member, slot) pair.

Hard constraints decide eligibility. Soft constraints contribute a weighted
score (priority / 10) where positive values are penalties and negative
values are bonuses. The evaluator never mutates the run state.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Callable, Optional

from .availability import Outcome, check_availability, check_builtin_rules
from .constraint_config import HoursPeriod, ShiftPreference
from .types import (
    ConstraintType,
    EmployeeConstraint,
    LeaveRequest,
    RelationshipConstraint,
    RelationshipType,
    ShiftSlot,
    StaffLedger,
    StaffMember,
)

logger = logging.getLogger(__name__)

MAX_HOURS_PENALTY_PER_HOUR = 5
MIN_REST_PENALTY_PER_HOUR = 5
PREFERRED_SHIFT_BONUS = 30
OTHER_SHIFT_PENALTY = 20
AVOIDED_SHIFT_PENALTY = 40
BLOCKED_DAY_PENALTY = 25
MISSING_SKILL_PENALTY = 30
CONSECUTIVE_DAY_PENALTY = 15


class EvaluationStatus(str, Enum):
    ELIGIBLE = "ELIGIBLE"
    INELIGIBLE = "INELIGIBLE"
    PENALTY = "PENALTY"


@dataclass
class Evaluation:
    status: EvaluationStatus
    score: float = 0.0
    reason: Optional[str] = None
    violations: list[str] = field(default_factory=list)  # soft constraints the slot breaks

    @property
    def is_eligible(self) -> bool:
        return self.status != EvaluationStatus.INELIGIBLE


def _hard_or_soft(constraint: EmployeeConstraint, reason: str, penalty: float) -> Outcome:
    if constraint.is_hard:
        return Outcome(ineligible_reason=reason)
    return Outcome(score=penalty * constraint.weight, violation=reason)


def check_max_hours(constraint: EmployeeConstraint, slot: ShiftSlot, ledger: StaffLedger) -> Optional[Outcome]:
    config = constraint.config
    if config.period == HoursPeriod.WEEK:
        current = ledger.week_hours(slot.slot_date)
    else:
        current = ledger.run_hours
    overage = round(current + slot.hours - config.max_hours, 2)
    if overage <= 0:
        return None
    reason = f"Exceeds {config.max_hours:g}h per {config.period.value.lower()} by {overage:g}h"
    return _hard_or_soft(constraint, reason, MAX_HOURS_PENALTY_PER_HOUR * overage)


def check_min_rest(constraint: EmployeeConstraint, slot: ShiftSlot, ledger: StaffLedger) -> Optional[Outcome]:
    required = timedelta(hours=constraint.config.min_rest_hours)
    shortfall = timedelta(0)
    for start, end in ledger.intervals:
        if end <= slot.start_datetime:
            gap = slot.start_datetime - end
        elif start >= slot.end_datetime:
            gap = start - slot.end_datetime
        else:
            continue  # overlap is a built-in rule
        if gap < required:
            shortfall = max(shortfall, required - gap)

    if not shortfall:
        return None
    missing = round(shortfall.total_seconds() / 3600, 2)
    reason = f"Rest below {constraint.config.min_rest_hours:g}h by {missing:g}h"
    return _hard_or_soft(constraint, reason, MIN_REST_PENALTY_PER_HOUR * missing)


def check_preferred_shift(constraint: EmployeeConstraint, slot: ShiftSlot, ledger: StaffLedger) -> Optional[Outcome]:
    # preferences only move the score
    config = constraint.config
    matches = config.matches(slot.definition.code, slot.definition.name)
    weight = constraint.weight
    if config.preference == ShiftPreference.PREFER:
        if matches:
            return Outcome(score=-PREFERRED_SHIFT_BONUS * weight)
        return Outcome(score=OTHER_SHIFT_PENALTY * weight, violation=f"Prefers {config.shift_code} shifts")
    if matches:
        return Outcome(score=AVOIDED_SHIFT_PENALTY * weight, violation=f"Avoids {config.shift_code} shifts")
    return None


def check_blocked_day(constraint: EmployeeConstraint, slot: ShiftSlot, ledger: StaffLedger) -> Optional[Outcome]:
    config = constraint.config
    if slot.slot_date.weekday() not in config.days_of_week and slot.slot_date not in config.dates:
        return None
    reason = f"Blocked day ({config.reason})" if config.reason else "Blocked day"
    return _hard_or_soft(constraint, reason, BLOCKED_DAY_PENALTY)


def count_consecutive_days(slot: ShiftSlot, ledger: StaffLedger) -> int:
    """Length of the worked run the slot would join, the slot's own day included."""
    run = 1
    day = slot.slot_date - timedelta(days=1)
    while day in ledger.worked_dates:
        run += 1
        day -= timedelta(days=1)
    day = slot.slot_date + timedelta(days=1)
    while day in ledger.worked_dates:
        run += 1
        day += timedelta(days=1)
    return run


def check_consecutive_days(constraint: EmployeeConstraint, slot: ShiftSlot, ledger: StaffLedger) -> Optional[Outcome]:
    max_days = constraint.config.max_days
    excess = count_consecutive_days(slot, ledger) - max_days
    if excess <= 0:
        return None
    reason = f"More than {max_days} consecutive days"
    return _hard_or_soft(constraint, reason, CONSECUTIVE_DAY_PENALTY * excess)


def check_skills(staff: StaffMember, constraints: list[EmployeeConstraint], slot: ShiftSlot) -> Optional[Outcome]:
    required = set(slot.required_skills)
    if not required:
        return None

    skill_constraints = [c for c in constraints if c.constraint_type == ConstraintType.SKILL_REQUIRED]
    held = set(staff.skills)
    for c in skill_constraints:
        held.update(c.config.skills)

    missing = sorted(required - held)
    if not missing:
        return None

    reason = f"Missing skills: {', '.join(missing)}"
    if skill_constraints and all(not c.is_hard for c in skill_constraints):
        weight = max(c.weight for c in skill_constraints)
        return Outcome(score=MISSING_SKILL_PENALTY * len(missing) * weight, violation=reason)
    return Outcome(ineligible_reason=reason)


ConstraintCheck = Callable[[EmployeeConstraint, ShiftSlot, StaffLedger], Optional[Outcome]]

# AVAILABILITY and SKILL_REQUIRED are checked as groups
CONSTRAINT_CHECKS: dict[ConstraintType, ConstraintCheck] = {
    ConstraintType.MAX_HOURS: check_max_hours,
    ConstraintType.MIN_REST: check_min_rest,
    ConstraintType.PREFERRED_SHIFT: check_preferred_shift,
    ConstraintType.BLOCKED_DAY: check_blocked_day,
    ConstraintType.CONSECUTIVE_DAYS: check_consecutive_days,
}


def evaluate_constraints(
    staff: StaffMember,
    slot: ShiftSlot,
    constraints: list[EmployeeConstraint],
    ledger: StaffLedger,
    leave_requests: Optional[list[LeaveRequest]] = None,
) -> Evaluation:
    """
    Evaluate one staff member against one slot.

    Args:
        staff: candidate
        slot: the shift occurrence being filled
        constraints: constraints configured for this staff member; inactive ones
            (validity window, other venue) are skipped here
        ledger: the staff member's running totals so far
        leave_requests: approved leave

    Returns:
        Evaluation with status ELIGIBLE, INELIGIBLE (with reason) or PENALTY
        (with summed weighted score and the soft violations behind it)
    """
    reason = check_builtin_rules(staff.id, slot, ledger, leave_requests or [])
    if reason:
        return Evaluation(EvaluationStatus.INELIGIBLE, reason=reason)

    active = [
        c for c in constraints
        if c.staff_id == staff.id and c.is_active_on(slot.slot_date, slot.venue_id)
    ]

    outcomes = [check_availability(active, slot), check_skills(staff, active, slot)]
    for constraint in active:
        check = CONSTRAINT_CHECKS.get(constraint.constraint_type)
        if check:
            outcomes.append(check(constraint, slot, ledger))

    score = 0.0
    violations = []
    for outcome in outcomes:
        if outcome is None:
            continue
        if outcome.ineligible_reason:
            return Evaluation(EvaluationStatus.INELIGIBLE, reason=outcome.ineligible_reason)
        score += outcome.score
        if outcome.violation:
            violations.append(outcome.violation)

    score = round(score, 2)
    if score == 0 and not violations:
        return Evaluation(EvaluationStatus.ELIGIBLE)
    return Evaluation(EvaluationStatus.PENALTY, score=score, violations=violations)


def relationship_conflict(
    staff_id: int,
    slot: ShiftSlot,
    slot_mates: list[int],
    relationships: list[RelationshipConstraint],
) -> Optional[str]:
    """Hard NEVER_TOGETHER rules block sharing a slot with a listed colleague."""
    for rel in relationships:
        if not rel.is_hard or rel.constraint_type != RelationshipType.NEVER_TOGETHER:
            continue
        if staff_id not in rel.staff_ids or not rel.is_active_on(slot.slot_date):
            continue
        clash = [m for m in slot_mates if m != staff_id and m in rel.staff_ids]
        if clash:
            logger.debug(f"Staff {staff_id} kept apart from {clash} on {slot.label}")
            return "Cannot work with an assigned colleague"
    return None
