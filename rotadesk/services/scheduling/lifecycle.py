"""
Schedule lifecycle: DRAFT -> GENERATED -> REVIEW -> PUBLISHED -> ARCHIVED.

Every status change goes through apply_transition so the legal moves and
their preconditions live in one table.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .errors import InvalidTransitionError, TransitionGuardError
from .types import ScheduleStatus

logger = logging.getLogger(__name__)


class ScheduleAction(str, Enum):
    GENERATE = "GENERATE"
    SUBMIT_FOR_REVIEW = "SUBMIT_FOR_REVIEW"
    PUBLISH = "PUBLISH"
    ARCHIVE = "ARCHIVE"


@dataclass(frozen=True)
class TransitionContext:
    """Facts about the schedule that transition guards look at."""
    active_definition_count: int = 0
    assignment_count: int = 0
    is_valid: bool = False
    force: bool = False


Guard = Callable[[TransitionContext], Optional[str]]  # returns a refusal reason


def _has_shift_definitions(ctx: TransitionContext) -> Optional[str]:
    if ctx.active_definition_count < 1:
        return "No active shift definitions for this venue"
    return None


def _has_assignments(ctx: TransitionContext) -> Optional[str]:
    if ctx.assignment_count < 1:
        return "Schedule has no assignments"
    return None


def _publishable(ctx: TransitionContext) -> Optional[str]:
    reason = _has_assignments(ctx)
    if reason:
        return reason
    if not ctx.is_valid and not ctx.force:
        return "Schedule has unresolved coverage gaps"
    return None


@dataclass(frozen=True)
class Transition:
    sources: frozenset
    target: ScheduleStatus
    guard: Optional[Guard] = None


TRANSITIONS: dict[ScheduleAction, Transition] = {
    ScheduleAction.GENERATE: Transition(
        sources=frozenset({ScheduleStatus.DRAFT, ScheduleStatus.GENERATED}),
        target=ScheduleStatus.GENERATED,
        guard=_has_shift_definitions,
    ),
    ScheduleAction.SUBMIT_FOR_REVIEW: Transition(
        sources=frozenset({ScheduleStatus.GENERATED}),
        target=ScheduleStatus.REVIEW,
        guard=_has_assignments,
    ),
    ScheduleAction.PUBLISH: Transition(
        sources=frozenset({ScheduleStatus.GENERATED, ScheduleStatus.REVIEW}),
        target=ScheduleStatus.PUBLISHED,
        guard=_publishable,
    ),
    ScheduleAction.ARCHIVE: Transition(
        sources=frozenset({ScheduleStatus.PUBLISHED}),
        target=ScheduleStatus.ARCHIVED,
    ),
}


def can_transition(status: ScheduleStatus, action: ScheduleAction) -> bool:
    return ScheduleStatus(status) in TRANSITIONS[action].sources


def allowed_actions(status: ScheduleStatus) -> list[ScheduleAction]:
    return [action for action in ScheduleAction if can_transition(status, action)]


def ensure_transition_allowed(status: ScheduleStatus, action: ScheduleAction) -> None:
    if not can_transition(status, action):
        logger.warning(f"Refused {action.value} from {ScheduleStatus(status).value}")
        raise InvalidTransitionError(ScheduleStatus(status).value, action.value)


def apply_transition(
    status: ScheduleStatus,
    action: ScheduleAction,
    ctx: Optional[TransitionContext] = None,
) -> ScheduleStatus:
    """
    Resolve the status a schedule moves to.

    Raises:
        InvalidTransitionError: action not allowed from this status
        TransitionGuardError: allowed, but its precondition does not hold
    """
    ensure_transition_allowed(status, action)
    transition = TRANSITIONS[action]
    if transition.guard:
        reason = transition.guard(ctx or TransitionContext())
        if reason:
            logger.warning(f"{action.value} blocked: {reason}")
            raise TransitionGuardError(reason)
    return transition.target
