"""
Schedule generator - main orchestration layer.

This module provides the high-level API for generating schedules,
combining locking, data loading, solving and persistence into a single flow.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from .data_loader import load_schedule_context
from .errors import SchedulingError
from .lifecycle import ScheduleAction, TransitionContext, apply_transition
from .repository import claim_schedule, lock_schedule, replace_assignments, schedule_status
from .solver import solve_schedule
from .types import GenerationResult, ScheduleContext, SolverOptions

logger = logging.getLogger(__name__)


def build_generation_log(options: SolverOptions, result: GenerationResult) -> dict:
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "params": options.to_dict(),
        "stats": result.stats.to_dict(),
        "warnings": [w.to_dict() for w in result.warnings],
    }


def generate_schedule(
    db: Session,
    schedule_id: int,
    options: Optional[SolverOptions] = None,
) -> GenerationResult:
    """
    Generate (or regenerate) assignments for a DRAFT or GENERATED schedule.

    main entry point for schedule generation. This function:
    1. Locks the schedule row and checks the lifecycle allows generation
    2. Loads the venue's definitions, roster, constraints and leave
    3. Runs the solver
    4. Replaces the schedule's assignments and stores the generation log,
       all in one transaction

    Args:
        db: Database session
        schedule_id: The schedule to fill
        options: Solver options; defaults when omitted

    Returns:
        GenerationResult containing:
        - success: bool, True when every slot reached its minimum
        - assignments: the new assignments
        - stats: totals, coverage and per-staff figures
        - warnings: validator warnings for the generated assignments

    Raises:
        ScheduleNotFoundError: unknown schedule
        InvalidTransitionError: schedule is in REVIEW, PUBLISHED or ARCHIVED
        TransitionGuardError: the venue has no active shift definitions
        InvalidScheduleInputError: malformed range, definition or constraint config
        ScheduleConflictError: the schedule changed concurrently
    """
    options = options or SolverOptions()
    try:
        schedule = lock_schedule(db, schedule_id)
        status = schedule_status(schedule)
        version = schedule.version
        context = load_schedule_context(db, schedule)

        target = apply_transition(
            status,
            ScheduleAction.GENERATE,
            TransitionContext(active_definition_count=len(context.shift_definitions)),
        )

        result = solve_schedule(context, options)

        claim_schedule(
            db,
            schedule_id,
            expected_version=version,
            expected_status=status,
            new_status=target,
            generation_log=build_generation_log(options, result),
        )
        replace_assignments(db, schedule_id, result.assignments)
        db.commit()
    except SchedulingError:
        db.rollback()
        raise

    logger.info(
        f"Generated schedule {schedule_id}: {result.stats.total_shifts} shifts, "
        f"{result.stats.coverage_percentage}% coverage, {len(result.warnings)} warnings"
    )
    return result


def generate_schedule_from_context(
    context: ScheduleContext,
    options: Optional[SolverOptions] = None,
) -> GenerationResult:
    """
    Generate a schedule from a pre-loaded context.

    Useful for testing or when you want to manipulate the context
    before solving. Nothing is persisted.
    """
    return solve_schedule(context, options)
