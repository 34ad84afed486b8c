"""
Availability checking utilities.
Determines if a staff member can work a given shift slot: leave, double
booking, and declared AVAILABILITY windows.
"""

from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional

from .constraint_config import AvailabilityConfig
from .types import (
    ConstraintType,
    EmployeeConstraint,
    LeaveRequest,
    ShiftSlot,
    StaffLedger,
)

MINUTES_PER_DAY = 24 * 60

AVAILABILITY_PENALTY = 20


@dataclass
class Outcome:
    """Result of a single check. A reason makes the staff member ineligible."""
    ineligible_reason: Optional[str] = None
    score: float = 0.0  # weighted; positive = penalty, negative = bonus
    violation: Optional[str] = None


def datetime_ranges_overlap(
    start1: datetime, end1: datetime,
    start2: datetime, end2: datetime
) -> bool:
    """Check if two datetime ranges overlap."""
    return start1 < end2 and start2 < end1


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def _slot_minutes(slot: ShiftSlot) -> tuple[int, int]:
    """Slot as minutes from midnight of its date; the end may run past 1440."""
    start = _minutes(slot.start_datetime.time())
    length = int((slot.end_datetime - slot.start_datetime).total_seconds() // 60)
    return start, start + length


def _window_minutes(config: AvailabilityConfig) -> tuple[int, int]:
    start = _minutes(config.start_time)
    end = _minutes(config.end_time)
    if end <= start:
        end += MINUTES_PER_DAY
    return start, end


def window_applies(config: AvailabilityConfig, slot: ShiftSlot) -> bool:
    return config.day_of_week is None or config.day_of_week == slot.slot_date.weekday()


def slot_within_window(config: AvailabilityConfig, slot: ShiftSlot) -> bool:
    if config.is_all_day:
        return True
    slot_start, slot_end = _slot_minutes(slot)
    win_start, win_end = _window_minutes(config)
    return win_start <= slot_start and slot_end <= win_end


def slot_overlaps_window(config: AvailabilityConfig, slot: ShiftSlot) -> bool:
    if config.is_all_day:
        return True
    slot_start, slot_end = _slot_minutes(slot)
    win_start, win_end = _window_minutes(config)
    return slot_start < win_end and win_start < slot_end


def is_on_leave(staff_id: int, slot: ShiftSlot, leave_requests: list[LeaveRequest]) -> bool:
    """Check if staff member has approved leave on the slot's date."""
    return any(r.staff_id == staff_id and r.covers(slot.slot_date) for r in leave_requests)


def check_builtin_rules(
    staff_id: int,
    slot: ShiftSlot,
    ledger: StaffLedger,
    leave_requests: list[LeaveRequest],
) -> Optional[str]:
    """
    Rules that hold for everyone regardless of configured constraints.

    Returns:
        The reason the staff member cannot take the slot, or None.
    """
    if is_on_leave(staff_id, slot, leave_requests):
        return "On approved leave"

    if slot.slot_date in ledger.worked_dates:
        return "Already assigned on this date"

    for start, end in ledger.intervals:
        if datetime_ranges_overlap(slot.start_datetime, slot.end_datetime, start, end):
            return "Overlaps another assigned shift"

    return None


def check_availability(constraints: list[EmployeeConstraint], slot: ShiftSlot) -> Optional[Outcome]:
    """
    Apply AVAILABILITY constraints to a slot.

    Windows marked unavailable block when they overlap the slot. Otherwise, once a
    staff member declares any available window, a slot must fit inside one of
    the windows that apply to its weekday.
    """
    windows = [c for c in constraints if c.constraint_type == ConstraintType.AVAILABILITY]
    if not windows:
        return None

    for c in windows:
        if not c.config.available and window_applies(c.config, slot) and slot_overlaps_window(c.config, slot):
            reason = "Marked unavailable"
            if c.is_hard:
                return Outcome(ineligible_reason=reason)
            return Outcome(score=AVAILABILITY_PENALTY * c.weight, violation=reason)

    declared = [c for c in windows if c.config.available]
    if not declared:
        return None
    if any(window_applies(c.config, slot) and slot_within_window(c.config, slot) for c in declared):
        return None

    reason = "Outside declared availability"
    if any(c.is_hard for c in declared):
        return Outcome(ineligible_reason=reason)
    weight = max(c.weight for c in declared)
    return Outcome(score=AVAILABILITY_PENALTY * weight, violation=reason)
