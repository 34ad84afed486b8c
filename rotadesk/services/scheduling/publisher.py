"""
Schedule validation and the post-generation lifecycle steps
(review, publish, archive).
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from rotadesk.db.models.shift_schedules import ShiftSchedules

from .data_loader import load_schedule, load_schedule_assignments, load_schedule_context
from .errors import SchedulingError, TransitionGuardError
from .lifecycle import ScheduleAction, TransitionContext, apply_transition, ensure_transition_allowed
from .repository import claim_schedule, count_assignments, lock_schedule, schedule_status
from .types import PublishResult, ScheduleStatus, ValidationResult
from .validator import validate_assignments

logger = logging.getLogger(__name__)


def _staffing_requirements(schedule: ShiftSchedules) -> dict[str, int]:
    """Overrides used by the last generation, so validation measures the same targets."""
    params = (schedule.generation_log or {}).get("params") or {}
    return params.get("staffing_requirements") or {}


def _validate_loaded(db: Session, schedule: ShiftSchedules) -> tuple[ValidationResult, int]:
    context = load_schedule_context(db, schedule)
    assignments = load_schedule_assignments(db, schedule.id)
    result = validate_assignments(context, assignments, _staffing_requirements(schedule))
    return result, len(assignments)


def validate_schedule(db: Session, schedule_id: int) -> ValidationResult:
    """Validate a schedule's current assignments. Read-only."""
    schedule = load_schedule(db, schedule_id)
    result, _ = _validate_loaded(db, schedule)
    return result


def submit_for_review(db: Session, schedule_id: int) -> ScheduleStatus:
    try:
        schedule = lock_schedule(db, schedule_id)
        status = schedule_status(schedule)
        target = apply_transition(
            status,
            ScheduleAction.SUBMIT_FOR_REVIEW,
            TransitionContext(assignment_count=count_assignments(db, schedule_id)),
        )
        claim_schedule(db, schedule_id, schedule.version, status, target)
        db.commit()
    except SchedulingError:
        db.rollback()
        raise

    logger.info(f"Schedule {schedule_id} submitted for review")
    return target


def publish_schedule(db: Session, schedule_id: int, force: bool = False) -> PublishResult:
    """
    Publish a GENERATED or REVIEW schedule.

    The schedule is re-validated inside the same transaction. High-severity
    warnings (coverage gaps) block publication unless force is set; callers
    decide who may force.

    Raises:
        InvalidTransitionError: not in GENERATED or REVIEW
        TransitionGuardError: no assignments, or invalid without force. Carries
            the blocking warnings.
        ScheduleConflictError: a concurrent writer changed the schedule first
    """
    try:
        schedule = lock_schedule(db, schedule_id)
        status = schedule_status(schedule)
        version = schedule.version
        ensure_transition_allowed(status, ScheduleAction.PUBLISH)

        validation, assignment_count = _validate_loaded(db, schedule)
        try:
            target = apply_transition(
                status,
                ScheduleAction.PUBLISH,
                TransitionContext(
                    assignment_count=assignment_count,
                    is_valid=validation.is_valid,
                    force=force,
                ),
            )
        except TransitionGuardError as e:
            raise TransitionGuardError(e.reason, warnings=validation.high_warnings) from e

        forced = not validation.is_valid
        published_at = datetime.now(timezone.utc)
        log = dict(schedule.generation_log or {})
        log["publication"] = {
            "published_at": published_at.isoformat(),
            "forced": forced,
            "warnings": [w.to_dict() for w in validation.warnings],
        }
        claim_schedule(
            db,
            schedule_id,
            expected_version=version,
            expected_status=status,
            new_status=target,
            published_at=published_at,
            generation_log=log,
        )
        db.commit()
    except SchedulingError:
        db.rollback()
        raise

    if forced:
        logger.warning(f"Schedule {schedule_id} force-published with {len(validation.high_warnings)} coverage gaps")
    else:
        logger.info(f"Published schedule {schedule_id}")

    return PublishResult(
        schedule_id=schedule_id,
        status=target,
        published_at=published_at,
        forced=forced,
        warnings=validation.warnings,
    )


def archive_schedule(db: Session, schedule_id: int) -> ScheduleStatus:
    try:
        schedule = lock_schedule(db, schedule_id)
        status = schedule_status(schedule)
        target = apply_transition(status, ScheduleAction.ARCHIVE)
        claim_schedule(db, schedule_id, schedule.version, status, target)
        db.commit()
    except SchedulingError:
        db.rollback()
        raise

    logger.info(f"Archived schedule {schedule_id}")
    return target
