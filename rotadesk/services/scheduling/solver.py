"""
Greedy schedule solver.

Strategy:
1. Expand shift definitions over the date range into slots
2. Order slots: date, start time, most staff needed, position
3. Fill each slot up to its minimum with the best-scoring eligible staff
4. Optionally top slots up towards their maximum, one extra per slot per round
5. Validate the result and compute stats
"""

import math
from collections import defaultdict
from typing import Optional

from .constraints import Evaluation, evaluate_constraints, relationship_conflict
from .coverage import plan_slots
from .types import (
    Assignment,
    GenerationResult,
    GenerationStats,
    RunState,
    ScheduleContext,
    ShiftDefinition,
    ShiftSlot,
    SolverOptions,
    StaffMember,
    StaffStats,
    WarningType,
)
from .validator import validate_assignments


BASE_SCORE = 100
FIXED_STAFF_BONUS = 20
HOUR_BALANCE_WEIGHT = 2  # per hour already assigned in this run
DEFAULT_HOURLY_RATE = 10.0
DEFAULT_CONTRACT_HOURS = 40.0


def effective_hourly_rate(staff: StaffMember, definition: ShiftDefinition) -> float:
    """Base rate (or the extra-staff rate for non-fixed staff) times the shift multiplier."""
    rate = staff.hourly_rate_base
    if not staff.is_fixed_staff and staff.hourly_rate_extra is not None:
        rate = staff.hourly_rate_extra
    if rate is None:
        rate = DEFAULT_HOURLY_RATE
    return round(rate * definition.rate_multiplier, 2)


def slot_order(slot: ShiftSlot) -> tuple:
    return (
        slot.slot_date,
        slot.start_datetime,
        -slot.min_staff,
        slot.definition.position,
        slot.definition.id,
    )


class ScheduleSolver:
    """
    Greedy constructive solver. Deterministic for identical inputs.
    """

    def __init__(self, context: ScheduleContext, options: Optional[SolverOptions] = None):
        self.context = context
        self.options = options or SolverOptions()
        self.staff = [
            s for s in context.staff
            if s.venue_id is None or s.venue_id == context.venue_id
        ]
        self.constraints_by_staff = defaultdict(list)
        for constraint in context.constraints:
            self.constraints_by_staff[constraint.staff_id].append(constraint)

        # Published assignments elsewhere count towards hours, rest and runs
        self.state = RunState.seeded(context.prior_assignments)
        self.assignments: list[Assignment] = []
        self.slot_fills: dict[tuple, list[int]] = defaultdict(list)

    def solve(self) -> GenerationResult:
        """
        Main solving method.

        Returns:
            GenerationResult with the new assignments, stats and warnings
        """
        slots = plan_slots(
            self.context.shift_definitions,
            self.context.start_date,
            self.context.end_date,
            self.options.staffing_requirements,
        )
        ordered = sorted(slots, key=slot_order)

        #1: Fill every slot to its minimum
        for slot in ordered:
            self._fill_slot(slot, slot.min_staff)

        #2: Spare capacity, spread evenly across slots
        if self.options.fill_extra_capacity:
            self._fill_extra_capacity(ordered)

        #3: Result
        return self._build_result(slots)

    def _fill_slot(self, slot: ShiftSlot, target: int):
        while len(self.slot_fills[slot.key]) < target:
            candidate = self._best_candidate(slot)
            if candidate is None:
                return
            self._assign(candidate, slot)

    def _fill_extra_capacity(self, ordered: list[ShiftSlot]):
        added = True
        while added:
            added = False
            for slot in ordered:
                if len(self.slot_fills[slot.key]) >= slot.max_staff:
                    continue
                candidate = self._best_candidate(slot)
                if candidate is not None:
                    self._assign(candidate, slot)
                    added = True

    def _best_candidate(self, slot: ShiftSlot) -> Optional[StaffMember]:
        """Highest score wins; ties go to the lowest staff id."""
        mates = self.slot_fills[slot.key]
        ranked = []
        for staff in self.staff:
            if staff.id in mates:
                continue
            if relationship_conflict(staff.id, slot, mates, self.context.relationship_constraints):
                continue
            evaluation = evaluate_constraints(
                staff,
                slot,
                self.constraints_by_staff[staff.id],
                self.state.ledger(staff.id),
                self.context.leave_requests,
            )
            if not evaluation.is_eligible:
                continue
            ranked.append((-self._score_candidate(staff, slot, evaluation), staff.id, staff))

        if not ranked:
            return None
        ranked.sort(key=lambda item: (item[0], item[1]))
        return ranked[0][2]

    def _score_candidate(self, staff: StaffMember, slot: ShiftSlot, evaluation: Evaluation) -> float:
        score = BASE_SCORE - evaluation.score
        if self.options.prefer_fixed_staff and staff.is_fixed_staff:
            score += FIXED_STAFF_BONUS
        if self.options.balance_hours:
            score -= HOUR_BALANCE_WEIGHT * self.state.ledger(staff.id).run_hours
        if self.options.minimize_cost:
            score -= effective_hourly_rate(staff, slot.definition)
        return score

    def _assign(self, staff: StaffMember, slot: ShiftSlot):
        hours = slot.hours
        assignment = Assignment(
            staff_id=staff.id,
            shift_definition_id=slot.definition.id,
            venue_id=slot.venue_id,
            shift_date=slot.slot_date,
            start_datetime=slot.start_datetime,
            end_datetime=slot.end_datetime,
            break_minutes=slot.break_minutes,
            hours_scheduled=hours,
            cost_estimated=round(hours * effective_hourly_rate(staff, slot.definition), 2),
        )
        self.assignments.append(assignment)
        self.slot_fills[slot.key].append(staff.id)
        self.state.record(assignment)

    def _build_result(self, slots: list[ShiftSlot]) -> GenerationResult:
        validation = validate_assignments(
            self.context,
            self.assignments,
            self.options.staffing_requirements,
        )
        soft_violations = sum(
            1 for w in validation.warnings if w.type == WarningType.SOFT_CONSTRAINT_VIOLATED
        )
        stats = calculate_stats(self.context, slots, self.assignments, soft_violations)

        assignments = sorted(self.assignments, key=lambda a: (a.start_datetime, a.shift_definition_id, a.staff_id))
        return GenerationResult(
            success=stats.unmet_slots == 0,
            assignments=assignments,
            stats=stats,
            warnings=validation.warnings,
        )


def calculate_stats(
    context: ScheduleContext,
    slots: list[ShiftSlot],
    assignments: list[Assignment],
    soft_violations: int = 0,
) -> GenerationStats:
    fills = defaultdict(int)
    for a in assignments:
        fills[a.slot_key] += 1

    required = sum(s.min_staff for s in slots)
    covered = sum(min(fills[s.key], s.min_staff) for s in slots)
    unmet = sum(1 for s in slots if fills[s.key] < s.min_staff)
    coverage = round(covered / required * 100, 1) if required else 100.0

    weeks = max(1, math.ceil(len(context.dates) / 7))
    staff_stats = []
    for staff in context.staff:
        mine = [a for a in assignments if a.staff_id == staff.id]
        if not mine:
            continue
        hours = round(sum(a.hours_scheduled for a in mine), 2)
        contract = staff.contract_hours_week
        capacity = (contract if contract else DEFAULT_CONTRACT_HOURS) * weeks
        staff_stats.append(StaffStats(
            staff_id=staff.id,
            name=staff.name,
            shifts_assigned=len(mine),
            hours_assigned=hours,
            cost_estimated=round(sum(a.cost_estimated for a in mine), 2),
            contract_hours_week=contract,
            utilization_percentage=round(hours / capacity * 100, 1),
        ))

    return GenerationStats(
        total_shifts=len(assignments),
        total_hours=round(sum(a.hours_scheduled for a in assignments), 2),
        total_cost=round(sum(a.cost_estimated for a in assignments), 2),
        coverage_percentage=coverage,
        unmet_slots=unmet,
        soft_constraints_violated=soft_violations,
        staff_stats=staff_stats,
    )


def solve_schedule(context: ScheduleContext, options: Optional[SolverOptions] = None) -> GenerationResult:
    """
    Main entry point for schedule generation.

    Args:
        context: ScheduleContext with all required data
        options: solver weighting and staffing overrides

    Returns:
        GenerationResult with generated assignments
    """
    solver = ScheduleSolver(context, options)
    return solver.solve()
