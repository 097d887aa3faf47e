"""Coach schedule schemas: weekly rules and time-off."""

from datetime import datetime
from typing import List, Optional

from pydantic import AwareDatetime, Field, field_validator

from ..domain.time_of_day import TimeOfDay
from ..services.schedule_service import CoachSchedule
from .base import StandardizedModel, StrictRequestModel, reference_time


class AvailabilityRuleInput(StrictRequestModel):
    weekday: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start_time: str = Field(..., description="HH:MM in the reference timezone")
    end_time: str = Field(..., description="HH:MM in the reference timezone")

    @field_validator("start_time", "end_time")
    @classmethod
    def _validate_hhmm(cls, v: str) -> str:
        return TimeOfDay.parse(v).isoformat()

    def as_spec(self) -> tuple:
        return (self.weekday, TimeOfDay.parse(self.start_time), TimeOfDay.parse(self.end_time))


class TimeOffInput(StrictRequestModel):
    start_at: AwareDatetime
    end_at: AwareDatetime
    reason: Optional[str] = Field(None, max_length=255)

    def as_spec(self) -> tuple:
        return (self.start_at, self.end_at, self.reason)


class ScheduleUpdate(StrictRequestModel):
    """``rules`` replaces the weekly rules when present; ``timeOffs`` are appended."""

    rules: Optional[List[AvailabilityRuleInput]] = None
    time_offs: Optional[List[TimeOffInput]] = None


class AvailabilityRuleResponse(StandardizedModel):
    id: str
    weekday: int
    start_time: str
    end_time: str


class TimeOffResponse(StandardizedModel):
    id: str
    start_at: datetime
    end_at: datetime
    reason: Optional[str] = None


class ScheduleResponse(StandardizedModel):
    coach_id: str
    rules: List[AvailabilityRuleResponse]
    time_offs: List[TimeOffResponse]

    @classmethod
    def from_schedule(cls, schedule: CoachSchedule) -> "ScheduleResponse":
        return cls(
            coach_id=schedule.coach_id,
            rules=[
                AvailabilityRuleResponse(
                    id=rule.id,
                    weekday=rule.weekday,
                    start_time=rule.start_time.isoformat(),
                    end_time=rule.end_time.isoformat(),
                )
                for rule in schedule.rules
            ],
            time_offs=[
                TimeOffResponse(
                    id=time_off.id,
                    start_at=reference_time(time_off.start_at),
                    end_at=reference_time(time_off.end_at),
                    reason=time_off.reason,
                )
                for time_off in schedule.time_offs
            ],
        )
