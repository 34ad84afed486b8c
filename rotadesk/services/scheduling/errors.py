"""
Exceptions raised by the scheduling engine.

Coverage shortfalls and constraint conflicts are never raised; they are
reported as warnings on the generation/validation result.
"""

from typing import Optional


class SchedulingError(Exception):
    pass


class ScheduleNotFoundError(SchedulingError):
    def __init__(self, schedule_id: int):
        super().__init__(f"Schedule {schedule_id} not found")
        self.schedule_id = schedule_id


class InvalidScheduleInputError(SchedulingError):
    """Rejected before any computation (bad range, bad shift definition, ...)."""


class InvalidConstraintConfig(InvalidScheduleInputError):
    def __init__(self, constraint_type: str, detail: str, constraint_id: Optional[int] = None):
        where = f" (constraint {constraint_id})" if constraint_id is not None else ""
        super().__init__(f"Invalid {constraint_type} config{where}: {detail}")
        self.constraint_type = constraint_type
        self.constraint_id = constraint_id


class InvalidTransitionError(SchedulingError):
    def __init__(self, status: str, action: str):
        super().__init__(f"Cannot {action.lower()} a schedule in status {status}")
        self.status = status
        self.action = action


class TransitionGuardError(SchedulingError):
    """Transition is legal for the current status but its precondition failed."""

    def __init__(self, reason: str, warnings: Optional[list] = None):
        super().__init__(reason)
        self.reason = reason
        self.warnings = warnings or []


class ScheduleConflictError(SchedulingError):
    def __init__(self, schedule_id: int):
        super().__init__(f"Schedule {schedule_id} was modified concurrently, retry with fresh data")
        self.schedule_id = schedule_id
