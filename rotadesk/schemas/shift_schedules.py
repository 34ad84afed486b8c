from pydantic import BaseModel, Field, model_validator
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from rotadesk.db.models.shift_schedules import ScheduleStatusDB
from rotadesk.db.models.shift_assignments import AssignmentStatus


class ScheduleBase(BaseModel):
    venue_id: int
    name: str = Field(..., min_length=1, max_length=200)
    start_date: date
    end_date: date
    notes: Optional[str] = None


class ScheduleCreate(ScheduleBase):
    @model_validator(mode="after")
    def _range_order(self) -> "ScheduleCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ScheduleResponse(ScheduleBase):
    id: int
    status: ScheduleStatusDB
    version: int
    generation_log: Optional[dict] = None
    published_at: Optional[datetime] = None
    created_by_user_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class GenerateRequest(BaseModel):
    prefer_fixed_staff: bool = True
    balance_hours: bool = True
    minimize_cost: bool = False
    fill_extra_capacity: bool = False
    staffing_requirements: dict[str, int] = Field(default_factory=dict)  # "YYYY-MM-DD_<shift definition id>" -> staff


class WarningResponse(BaseModel):
    type: str
    severity: str
    message: str
    shift_date: Optional[date] = None
    shift_definition_id: Optional[int] = None
    staff_id: Optional[int] = None


class StaffStatsResponse(BaseModel):
    staff_id: int
    name: str
    shifts_assigned: int
    hours_assigned: float
    cost_estimated: float
    contract_hours_week: Optional[float] = None
    utilization_percentage: float


class GenerationStatsResponse(BaseModel):
    total_shifts: int
    total_hours: float
    total_cost: float
    coverage_percentage: float
    unmet_slots: int
    soft_constraints_violated: int
    staff_stats: list[StaffStatsResponse]


class GenerationResponse(BaseModel):
    schedule_id: int
    success: bool
    stats: GenerationStatsResponse
    warnings: list[WarningResponse]


class ValidationResponse(BaseModel):
    schedule_id: int
    is_valid: bool
    warnings: list[WarningResponse]


class PublishRequest(BaseModel):
    force: bool = False


class PublishResponse(BaseModel):
    schedule_id: int
    status: str
    published_at: datetime
    forced: bool
    warnings: list[WarningResponse]


class StatusResponse(BaseModel):
    schedule_id: int
    status: str


class AssignmentResponse(BaseModel):
    id: int
    schedule_id: int
    staff_id: int
    shift_definition_id: int
    venue_id: int
    shift_date: date
    start_datetime: datetime
    end_datetime: datetime
    break_minutes: int
    hours_scheduled: Decimal
    cost_estimated: Optional[Decimal] = None
    status: AssignmentStatus

    class Config:
        from_attributes = True
