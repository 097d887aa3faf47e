"""
Reservation schemas.

Request instants must carry a UTC offset; responses render instants in the
reference timezone.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import AwareDatetime, Field, model_validator

from ..core.enums import LessonGoal, ReservationStatus
from ..models.reservation import Reservation
from .base import StandardizedModel, StrictRequestModel, reference_time


class ReservationCreate(StrictRequestModel):
    lesson_id: str = Field(..., min_length=1, description="Lesson to book")
    start_at: AwareDatetime = Field(..., description="Start instant (inclusive)")
    end_at: AwareDatetime = Field(..., description="End instant (exclusive)")
    goal: Optional[LessonGoal] = None
    category_tag: Optional[str] = Field(None, max_length=50)


class ReservationAdminUpdate(StrictRequestModel):
    """Administrator changes: a status transition, feedback, or both."""

    status: Optional[ReservationStatus] = None
    feedback: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def _require_change(self) -> "ReservationAdminUpdate":
        if self.status is None and "feedback" not in self.model_fields_set:
            raise ValueError("Provide status and/or feedback")
        return self


class ReservationResponse(StandardizedModel):
    id: str
    lesson_id: str
    lesson_name: Optional[str] = None
    user_id: str
    coach_id: str
    coach_name: Optional[str] = None
    branch_id: str
    start_at: datetime
    end_at: datetime
    duration_minutes: int
    status: ReservationStatus
    goal: Optional[LessonGoal] = None
    category_tag: Optional[str] = None
    feedback: Optional[str] = None
    canceled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_reservation(cls, reservation: Reservation) -> "ReservationResponse":
        return cls(
            id=reservation.id,
            lesson_id=reservation.lesson_id,
            lesson_name=reservation.lesson.name if reservation.lesson else None,
            user_id=reservation.user_id,
            coach_id=reservation.coach_id,
            coach_name=reservation.coach.name if reservation.coach else None,
            branch_id=reservation.branch_id,
            start_at=reference_time(reservation.start_at),
            end_at=reference_time(reservation.end_at),
            duration_minutes=reservation.duration_minutes,
            status=reservation.status,
            goal=reservation.goal,
            category_tag=reservation.category_tag,
            feedback=reservation.feedback,
            canceled_at=reference_time(reservation.canceled_at),
            created_at=reference_time(reservation.created_at),
        )


class ReservationListResponse(StandardizedModel):
    items: List[ReservationResponse]
    total: int
