"""
Coverage planning: expands shift definitions over a date range into slots.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from .errors import InvalidScheduleInputError
from .types import ShiftDefinition, ShiftSlot, shift_hours

logger = logging.getLogger(__name__)


def staffing_key(slot_date: date, shift_definition_id: int) -> str:
    """Key used by staffing overrides, e.g. "2025-01-20_3"."""
    return f"{slot_date.isoformat()}_{shift_definition_id}"


def iter_dates(start_date: date, end_date: date):
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def resolve_shift_times(definition: ShiftDefinition, slot_date: date) -> tuple[datetime, datetime]:
    """Absolute start/end; an end at or before the start rolls to the next day."""
    start_dt = datetime.combine(slot_date, definition.start_time)
    end_dt = datetime.combine(slot_date, definition.end_time)
    if end_dt <= start_dt:
        end_dt += timedelta(days=1)
    return start_dt, end_dt


def validate_shift_definition(definition: ShiftDefinition) -> None:
    if definition.start_time == definition.end_time:
        raise InvalidScheduleInputError(
            f"Shift definition {definition.code} has the same start and end time"
        )
    if definition.break_minutes < 0:
        raise InvalidScheduleInputError(f"Shift definition {definition.code} has a negative break")
    if definition.min_staff < 0:
        raise InvalidScheduleInputError(f"Shift definition {definition.code} has a negative min_staff")
    if definition.max_staff is not None and definition.max_staff < definition.min_staff:
        raise InvalidScheduleInputError(
            f"Shift definition {definition.code} has max_staff below min_staff"
        )

    start_dt, end_dt = resolve_shift_times(definition, date(2000, 1, 3))
    if shift_hours(start_dt, end_dt, definition.break_minutes) <= 0:
        raise InvalidScheduleInputError(
            f"Shift definition {definition.code} has a break as long as the shift"
        )


def plan_slots(
    definitions: list[ShiftDefinition],
    start_date: date,
    end_date: date,
    staffing_requirements: Optional[dict[str, int]] = None,
) -> list[ShiftSlot]:
    """
    Build one slot per active definition per date in [start_date, end_date].

    Args:
        definitions: shift definitions for the venue; inactive ones are ignored,
            as are dates before a definition's active_from
        staffing_requirements: overrides keyed by staffing_key(); the value
            replaces the slot's minimum and the maximum is raised to match.
            An override of 0 closes the slot.

    Returns:
        Slots ordered by date then definition position
    """
    if end_date < start_date:
        raise InvalidScheduleInputError(f"Date range ends ({end_date}) before it starts ({start_date})")

    overrides = staffing_requirements or {}
    for key, value in overrides.items():
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise InvalidScheduleInputError(f"Staffing requirement {key} must be a non-negative integer")

    active = sorted((d for d in definitions if d.is_active), key=lambda d: (d.position, d.id))
    for definition in active:
        validate_shift_definition(definition)

    slots = []
    for slot_date in iter_dates(start_date, end_date):
        for definition in active:
            if definition.active_from and slot_date < definition.active_from:
                continue

            min_staff = definition.min_staff
            max_staff = definition.max_staff if definition.max_staff is not None else min_staff

            override = overrides.get(staffing_key(slot_date, definition.id))
            if override is not None:
                min_staff = override
                max_staff = 0 if override == 0 else max(max_staff, override)

            start_dt, end_dt = resolve_shift_times(definition, slot_date)
            slots.append(ShiftSlot(
                definition=definition,
                slot_date=slot_date,
                start_datetime=start_dt,
                end_datetime=end_dt,
                min_staff=min_staff,
                max_staff=max_staff,
            ))

    logger.debug(f"Planned {len(slots)} slots for {start_date} to {end_date}")
    return slots
