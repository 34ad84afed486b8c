"""
Typed configuration payloads, one variant per constraint type.

Raw JSON configs are validated here once, when constraints are loaded, so the
evaluator only ever sees well-formed data. Both snake_case keys and the
camelCase keys written by the constraint editor are accepted. The editor
numbers weekdays from Sunday (0 = Sunday); snake_case keys use
`date.weekday()` (0 = Monday)."""

from datetime import date, time
from enum import Enum
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import InvalidConstraintConfig
from .types import ConstraintType


class HoursPeriod(str, Enum):
    WEEK = "WEEK"
    SCHEDULE = "SCHEDULE"


class ShiftPreference(str, Enum):
    PREFER = "PREFER"
    AVOID = "AVOID"


class _ConfigBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


def editor_weekday(value: Any) -> Any:
    """Sunday-first editor weekday to date.weekday() numbering."""
    if isinstance(value, str) and value.isdigit():
        value = int(value)
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 6:
        return (value - 1) % 7
    return value


class AvailabilityConfig(_ConfigBase):
    day_of_week: Optional[int] = Field(None, ge=0, le=6)  # None = every day
    start_time: Optional[time] = Field(None, validation_alias=AliasChoices("start_time", "startTime"))  # None = whole day
    end_time: Optional[time] = Field(None, validation_alias=AliasChoices("end_time", "endTime"))
    available: bool = True

    @model_validator(mode="before")
    @classmethod
    def _editor_day(cls, data: Any) -> Any:
        if isinstance(data, dict) and "dayOfWeek" in data and "day_of_week" not in data:
            data = {**data, "day_of_week": editor_weekday(data["dayOfWeek"])}
        return data

    @model_validator(mode="after")
    def _both_or_neither(self) -> "AvailabilityConfig":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be given together")
        return self

    @property
    def is_all_day(self) -> bool:
        return self.start_time is None


class MaxHoursConfig(_ConfigBase):
    max_hours: float = Field(40, gt=0, validation_alias=AliasChoices("max_hours", "maxHours"))
    period: HoursPeriod = HoursPeriod.WEEK

    @field_validator("period", mode="before")
    @classmethod
    def _upper(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class MinRestConfig(_ConfigBase):
    min_rest_hours: float = Field(11, ge=0, validation_alias=AliasChoices("min_rest_hours", "minRestHours"))


class PreferredShiftConfig(_ConfigBase):
    shift_code: str = Field(..., min_length=1, validation_alias=AliasChoices("shift_code", "shiftCode", "shiftType"))
    preference: ShiftPreference = ShiftPreference.PREFER

    @field_validator("preference", mode="before")
    @classmethod
    def _upper(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    def matches(self, code: str, name: str) -> bool:
        wanted = self.shift_code.strip().lower()
        return wanted in (code.lower(), name.lower())


class BlockedDayConfig(_ConfigBase):
    days_of_week: list[int] = Field(default_factory=list)
    dates: list[date] = Field(default_factory=list)
    reason: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _single_day(cls, data: Any) -> Any:
        if isinstance(data, dict):
            single = data.get("day_of_week")
            if single is None and data.get("dayOfWeek") is not None:
                single = editor_weekday(data["dayOfWeek"])
            if single is not None and "days_of_week" not in data:
                data = {**data, "days_of_week": [single]}
        return data

    @field_validator("days_of_week")
    @classmethod
    def _weekday_range(cls, v: list[int]) -> list[int]:
        if any(d < 0 or d > 6 for d in v):
            raise ValueError("days_of_week values must be 0-6")
        return v

    @model_validator(mode="after")
    def _something_blocked(self) -> "BlockedDayConfig":
        if not self.days_of_week and not self.dates:
            raise ValueError("at least one day_of_week or date is required")
        return self


class SkillConfig(_ConfigBase):
    skills: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _single_skill(cls, data: Any) -> Any:
        if isinstance(data, dict) and "skill" in data and "skills" not in data:
            data = {**data, "skills": [data["skill"]]}
        return data


class ConsecutiveDaysConfig(_ConfigBase):
    max_days: int = Field(6, ge=1, validation_alias=AliasChoices("max_days", "maxDays"))


ConstraintConfig = Union[
    AvailabilityConfig,
    MaxHoursConfig,
    MinRestConfig,
    PreferredShiftConfig,
    BlockedDayConfig,
    SkillConfig,
    ConsecutiveDaysConfig,
]

CONFIG_MODELS: dict[ConstraintType, type[_ConfigBase]] = {
    ConstraintType.AVAILABILITY: AvailabilityConfig,
    ConstraintType.MAX_HOURS: MaxHoursConfig,
    ConstraintType.MIN_REST: MinRestConfig,
    ConstraintType.PREFERRED_SHIFT: PreferredShiftConfig,
    ConstraintType.BLOCKED_DAY: BlockedDayConfig,
    ConstraintType.SKILL_REQUIRED: SkillConfig,
    ConstraintType.CONSECUTIVE_DAYS: ConsecutiveDaysConfig,
}


def parse_constraint_config(
    constraint_type: ConstraintType,
    payload: Optional[dict],
    constraint_id: Optional[int] = None,
) -> ConstraintConfig:
    """Validate a raw config payload into its typed variant."""
    model = CONFIG_MODELS[ConstraintType(constraint_type)]
    try:
        return model.model_validate(payload or {})
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidConstraintConfig(ConstraintType(constraint_type).value, errors, constraint_id) from e
