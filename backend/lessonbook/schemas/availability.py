"""Availability response schemas."""

from datetime import date as date_type, datetime
from typing import List, Optional

from ..services.availability_engine import AvailabilityResult, expand_slots
from .base import StandardizedModel


class TimeRangeResponse(StandardizedModel):
    start: datetime
    end: datetime


class AvailabilityResponse(StandardizedModel):
    """
    Bookable ranges of one coach for one day.

    Ranges are ISO-8601 instants in the reference timezone; an empty list
    means nothing is bookable that day. ``slot_starts`` is only present when
    the caller asked for it (``includeSlots=true``).
    """

    date: date_type
    slot_step_minutes: int
    available_ranges: List[TimeRangeResponse]
    slot_starts: Optional[List[datetime]] = None

    @classmethod
    def from_result(
        cls, result: AvailabilityResult, include_slots: bool = False
    ) -> "AvailabilityResponse":
        return cls(
            date=result.date,
            slot_step_minutes=result.slot_step_minutes,
            available_ranges=[TimeRangeResponse(start=r.start, end=r.end) for r in result.ranges],
            slot_starts=(
                expand_slots(result.ranges, result.slot_step_minutes) if include_slots else None
            ),
        )
