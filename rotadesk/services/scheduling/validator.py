"""
Schedule validation.
Checks a set of assignments for coverage gaps, overstaffing, constraint
breaches, relationship conflicts and uneven hours. Only coverage gaps are
high severity, so only they make a schedule invalid.
"""

import logging
from collections import defaultdict
from typing import Optional

from .constraints import evaluate_constraints
from .coverage import plan_slots
from .types import (
    Assignment,
    RelationshipType,
    RunState,
    ScheduleContext,
    ScheduleWarning,
    Severity,
    ShiftSlot,
    ShiftDefinition,
    StaffMember,
    ValidationResult,
    WarningType,
)

logger = logging.getLogger(__name__)

UNBALANCED_SPREAD_RATIO = 0.5  # (max - min) hours vs mean hours

SEVERITY_RANK = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}


def check_coverage(slots: list[ShiftSlot], assignments: list[Assignment]) -> list[ScheduleWarning]:
    fills = defaultdict(int)
    for a in assignments:
        fills[a.slot_key] += 1

    warnings = []
    for slot in slots:
        count = fills[slot.key]
        if count < slot.min_staff:
            warnings.append(ScheduleWarning(
                type=WarningType.UNDERSTAFFED,
                severity=Severity.HIGH,
                message=f"{slot.label}: {count}/{slot.min_staff} staff assigned",
                shift_date=slot.slot_date,
                shift_definition_id=slot.definition.id,
            ))
        elif count > slot.max_staff:
            warnings.append(ScheduleWarning(
                type=WarningType.OVERSTAFFED,
                severity=Severity.MEDIUM,
                message=f"{slot.label}: {count} staff assigned, maximum is {slot.max_staff}",
                shift_date=slot.slot_date,
                shift_definition_id=slot.definition.id,
            ))
    return warnings


def _slot_for_assignment(assignment: Assignment, definition: ShiftDefinition) -> ShiftSlot:
    # assignments keep their own times, they may have been edited after generation
    return ShiftSlot(
        definition=definition,
        slot_date=assignment.shift_date,
        start_datetime=assignment.start_datetime,
        end_datetime=assignment.end_datetime,
        min_staff=definition.min_staff,
        max_staff=definition.max_staff if definition.max_staff is not None else definition.min_staff,
    )


def check_constraint_compliance(context: ScheduleContext, assignments: list[Assignment]) -> list[ScheduleWarning]:
    """Replay assignments in chronological order against each staff member's constraints."""
    staff_by_id = {s.id: s for s in context.staff}
    definitions = {d.id: d for d in context.shift_definitions}
    constraints_by_staff = defaultdict(list)
    for c in context.constraints:
        constraints_by_staff[c.staff_id].append(c)

    state = RunState.seeded(context.prior_assignments)
    warnings = []
    for a in sorted(assignments, key=lambda a: (a.start_datetime, a.shift_definition_id, a.staff_id)):
        staff = staff_by_id.get(a.staff_id)
        definition = definitions.get(a.shift_definition_id)
        if staff is None:
            warnings.append(ScheduleWarning(
                type=WarningType.HARD_CONSTRAINT_VIOLATED,
                severity=Severity.MEDIUM,
                message=f"Staff member {a.staff_id} is not on the active roster",
                shift_date=a.shift_date,
                shift_definition_id=a.shift_definition_id,
                staff_id=a.staff_id,
            ))
        elif definition is not None:
            slot = _slot_for_assignment(a, definition)
            evaluation = evaluate_constraints(
                staff,
                slot,
                constraints_by_staff[staff.id],
                state.ledger(staff.id),
                context.leave_requests,
            )
            if not evaluation.is_eligible:
                warnings.append(ScheduleWarning(
                    type=WarningType.HARD_CONSTRAINT_VIOLATED,
                    severity=Severity.MEDIUM,
                    message=f"{staff.name} on {slot.label}: {evaluation.reason}",
                    shift_date=a.shift_date,
                    shift_definition_id=a.shift_definition_id,
                    staff_id=staff.id,
                ))
            elif evaluation.violations:
                warnings.append(ScheduleWarning(
                    type=WarningType.SOFT_CONSTRAINT_VIOLATED,
                    severity=Severity.MEDIUM,
                    message=f"{staff.name} on {slot.label}: {'; '.join(evaluation.violations)}",
                    shift_date=a.shift_date,
                    shift_definition_id=a.shift_definition_id,
                    staff_id=staff.id,
                ))
        state.record(a)
    return warnings


def check_relationships(context: ScheduleContext, assignments: list[Assignment]) -> list[ScheduleWarning]:
    warnings = []
    for rel in context.relationship_constraints:
        members = set(rel.staff_ids)
        if len(members) < 2:
            continue
        severity = Severity.MEDIUM if rel.is_hard else Severity.LOW

        if rel.constraint_type == RelationshipType.NEVER_TOGETHER:
            together = defaultdict(set)
            for a in assignments:
                if a.staff_id in members:
                    together[a.slot_key].add(a.staff_id)
            for (slot_date, definition_id), ids in sorted(together.items()):
                if len(ids) > 1 and rel.is_active_on(slot_date):
                    warnings.append(ScheduleWarning(
                        type=WarningType.RELATIONSHIP_CONSTRAINT_VIOLATED,
                        severity=severity,
                        message=f"Staff {sorted(ids)} should not work together on {slot_date.isoformat()}",
                        shift_date=slot_date,
                        shift_definition_id=definition_id,
                    ))

        elif rel.constraint_type == RelationshipType.SAME_DAY_OFF:
            working = defaultdict(set)
            for a in assignments:
                if a.staff_id in members:
                    working[a.shift_date].add(a.staff_id)
            for day in context.dates:
                if not rel.is_active_on(day):
                    continue
                on_shift = working.get(day, set())
                if on_shift and on_shift != members:
                    warnings.append(ScheduleWarning(
                        type=WarningType.RELATIONSHIP_CONSTRAINT_VIOLATED,
                        severity=severity,
                        message=f"Staff {sorted(members)} should share days off, only {sorted(on_shift)} work on {day.isoformat()}",
                        shift_date=day,
                    ))
    return warnings


def check_hour_balance(assignments: list[Assignment], roster: list[StaffMember]) -> list[ScheduleWarning]:
    """Roster members without a shift count as zero hours."""
    hours = {s.id: 0.0 for s in roster}
    for a in assignments:
        if a.staff_id in hours:
            hours[a.staff_id] += a.hours_scheduled
    if len(hours) < 2:
        return []

    values = list(hours.values())
    mean = sum(values) / len(values)
    spread = max(values) - min(values)
    if spread <= UNBALANCED_SPREAD_RATIO * mean:
        return []
    return [ScheduleWarning(
        type=WarningType.UNBALANCED_HOURS,
        severity=Severity.LOW,
        message=f"Assigned hours range from {min(values):g}h to {max(values):g}h (mean {mean:.1f}h)",
    )]


def validate_assignments(
    context: ScheduleContext,
    assignments: list[Assignment],
    staffing_requirements: Optional[dict[str, int]] = None,
) -> ValidationResult:
    """
    Validate assignments against the context they were generated for.

    Args:
        context: the venue, date range, roster and constraints
        assignments: assignments belonging to the schedule
        staffing_requirements: the overrides used at generation time

    Returns:
        ValidationResult; is_valid is False only when a high-severity warning exists
    """
    slots = plan_slots(
        context.shift_definitions,
        context.start_date,
        context.end_date,
        staffing_requirements,
    )

    warnings = []
    warnings.extend(check_coverage(slots, assignments))
    warnings.extend(check_constraint_compliance(context, assignments))
    warnings.extend(check_relationships(context, assignments))
    roster = [s for s in context.staff if s.venue_id is None or s.venue_id == context.venue_id]
    warnings.extend(check_hour_balance(assignments, roster))
    warnings.sort(key=lambda w: (SEVERITY_RANK[w.severity], w.shift_date or context.start_date))

    is_valid = not any(w.severity == Severity.HIGH for w in warnings)
    logger.debug(f"Validated {len(assignments)} assignments: {len(warnings)} warnings, valid={is_valid}")
    return ValidationResult(is_valid=is_valid, warnings=warnings)
