"""
Scheduling service package.

Usage:
    from rotadesk.services.scheduling import generate_schedule, publish_schedule, SolverOptions

    # Load data, solve and persist in one call
    result = generate_schedule(db, schedule_id=7, options=SolverOptions(minimize_cost=True))

    # Publish once coverage gaps are resolved (or force it)
    publish_schedule(db, schedule_id=7)

    # Or work on an in-memory context (tests, what-if runs)
    from rotadesk.services.scheduling import generate_schedule_from_context
    result = generate_schedule_from_context(context)
"""

from .types import (
    Assignment,
    ConstraintType,
    EmployeeConstraint,
    GenerationResult,
    GenerationStats,
    LeaveRequest,
    PublishResult,
    RelationshipConstraint,
    RelationshipType,
    ScheduleContext,
    ScheduleStatus,
    ScheduleWarning,
    Severity,
    ShiftDefinition,
    ShiftSlot,
    SolverOptions,
    StaffMember,
    StaffStats,
    ValidationResult,
    WarningType,
)
from .errors import (
    InvalidConstraintConfig,
    InvalidScheduleInputError,
    InvalidTransitionError,
    ScheduleConflictError,
    ScheduleNotFoundError,
    SchedulingError,
    TransitionGuardError,
)
from .constraint_config import parse_constraint_config
from .constraints import Evaluation, EvaluationStatus, evaluate_constraints
from .coverage import plan_slots, staffing_key
from .lifecycle import ScheduleAction, TransitionContext, allowed_actions, apply_transition
from .validator import validate_assignments
from .solver import solve_schedule
from .data_loader import load_schedule_context
from .generator import generate_schedule, generate_schedule_from_context
from .publisher import archive_schedule, publish_schedule, submit_for_review, validate_schedule

__all__ = [
    # Types
    "Assignment",
    "ConstraintType",
    "EmployeeConstraint",
    "Evaluation",
    "EvaluationStatus",
    "GenerationResult",
    "GenerationStats",
    "LeaveRequest",
    "PublishResult",
    "RelationshipConstraint",
    "RelationshipType",
    "ScheduleAction",
    "ScheduleContext",
    "ScheduleStatus",
    "ScheduleWarning",
    "Severity",
    "ShiftDefinition",
    "ShiftSlot",
    "SolverOptions",
    "StaffMember",
    "StaffStats",
    "TransitionContext",
    "ValidationResult",
    "WarningType",
    # Errors
    "SchedulingError",
    "ScheduleNotFoundError",
    "InvalidScheduleInputError",
    "InvalidConstraintConfig",
    "InvalidTransitionError",
    "TransitionGuardError",
    "ScheduleConflictError",
    # Main entry points
    "generate_schedule",
    "generate_schedule_from_context",
    "validate_schedule",
    "submit_for_review",
    "publish_schedule",
    "archive_schedule",
    # Lower-level functions
    "load_schedule_context",
    "parse_constraint_config",
    "evaluate_constraints",
    "plan_slots",
    "staffing_key",
    "solve_schedule",
    "validate_assignments",
    "allowed_actions",
    "apply_transition",
]
