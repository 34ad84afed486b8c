from rotadesk.db.database import Base

# Import models
from rotadesk.db.models.staff_members import StaffMembers
from rotadesk.db.models.shift_definitions import ShiftDefinitions
from rotadesk.db.models.employee_constraints import EmployeeConstraints, EmployeeConstraintType
from rotadesk.db.models.relationship_constraints import RelationshipConstraints, RelationshipConstraintType
from rotadesk.db.models.leave_requests import LeaveRequests, LeaveStatus
from rotadesk.db.models.shift_schedules import ShiftSchedules, ScheduleStatusDB
from rotadesk.db.models.shift_assignments import ShiftAssignments, AssignmentStatus

__all__ = [
    "Base",
    # Models
    "StaffMembers",
    "ShiftDefinitions",
    "EmployeeConstraints",
    "RelationshipConstraints",
    "LeaveRequests",
    "ShiftSchedules",
    "ShiftAssignments",
    # Enums
    "EmployeeConstraintType",
    "RelationshipConstraintType",
    "LeaveStatus",
    "ScheduleStatusDB",
    "AssignmentStatus",
]
