"""
Availability computation for one coach on one calendar day.

Pure functions over plain values: no database access, no clock reads. The
service layer loads rules, time-off and reservations and hands them here.

Bookable ranges are the union of the day's weekly rules clipped to operating
hours, minus every time-off interval, minus every reservation in a status
that holds the slot.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Sequence

import pytz

from ..core.config import settings
from ..core.enums import ACTIVE_RESERVATION_STATUSES, ReservationStatus
from ..core.timezone_utils import get_reference_timezone, localize_minutes, sunday_based_weekday
from ..domain.time_of_day import TimeOfDay

_ACTIVE_STATUS_VALUES = frozenset(status.value for status in ACTIVE_RESERVATION_STATUSES)


@dataclass(frozen=True)
class TimeRange:
    """Half-open instant interval ``[start, end)``."""

    start: datetime
    end: datetime

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start

    @property
    def minutes(self) -> int:
        if self.is_empty:
            return 0
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, other: "TimeRange") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class WeeklyRule:
    weekday: int  # Sunday = 0
    start_time: TimeOfDay
    end_time: TimeOfDay


@dataclass(frozen=True)
class ReservedInterval:
    start: datetime
    end: datetime
    status: str = ReservationStatus.CONFIRMED.value

    @property
    def holds_slot(self) -> bool:
        status = self.status.value if isinstance(self.status, ReservationStatus) else self.status
        return status in _ACTIVE_STATUS_VALUES


@dataclass(frozen=True)
class AvailabilityResult:
    date: date
    slot_step_minutes: int
    ranges: List[TimeRange]

    @property
    def total_minutes(self) -> int:
        return sum(r.minutes for r in self.ranges)


def subtract_range(working: Sequence[TimeRange], cut: TimeRange) -> List[TimeRange]:
    """
    Remove ``cut`` from every range in ``working``.

    ``[a, b)`` removed from ``[s, e)`` leaves ``[s, a)`` when ``s < a`` and
    ``[b, e)`` when ``e > b``. An empty or inverted ``cut`` removes nothing.
    """
    if cut.is_empty:
        return [r for r in working if not r.is_empty]

    result: List[TimeRange] = []
    for current in working:
        if current.is_empty:
            continue
        if not current.overlaps(cut):
            result.append(current)
            continue
        if current.start < cut.start:
            result.append(TimeRange(current.start, cut.start))
        if current.end > cut.end:
            result.append(TimeRange(cut.end, current.end))
    return result


def merge_ranges(ranges: Iterable[TimeRange]) -> List[TimeRange]:
    """Union of ``ranges`` as sorted, disjoint, non-empty ranges (abutting ranges join)."""
    ordered = sorted((r for r in ranges if not r.is_empty), key=lambda r: (r.start, r.end))
    merged: List[TimeRange] = []
    for current in ordered:
        if merged and current.start <= merged[-1].end:
            last = merged[-1]
            if current.end > last.end:
                merged[-1] = TimeRange(last.start, current.end)
            continue
        merged.append(current)
    return merged


def expand_slots(ranges: Sequence[TimeRange], step_minutes: int) -> List[datetime]:
    """Slot start instants, every ``step_minutes`` from each range start, that fit fully inside it."""
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")
    step = timedelta(minutes=step_minutes)
    slots: List[datetime] = []
    for current in ranges:
        cursor = current.start
        while cursor + step <= current.end:
            slots.append(cursor)
            cursor += step
    return slots


class AvailabilityEngine:
    """
    Computes the bookable ranges of a coach for a calendar day.

    The reference timezone, operating hours and slot granularity are fixed
    per engine instance; ``from_settings`` builds one from configuration.
    """

    def __init__(
        self,
        timezone: pytz.BaseTzInfo,
        opening: TimeOfDay,
        closing: TimeOfDay,
        slot_step_minutes: int = 30,
    ) -> None:
        self.timezone = timezone
        self.opening = opening
        self.closing = closing
        self.slot_step_minutes = slot_step_minutes

    @classmethod
    def from_settings(cls) -> "AvailabilityEngine":
        return cls(
            timezone=get_reference_timezone(),
            opening=TimeOfDay.parse(settings.operating_hours_start),
            closing=TimeOfDay.parse(settings.operating_hours_end),
            slot_step_minutes=settings.slot_step_minutes,
        )

    def operating_window(self, target_date: date) -> TimeRange:
        return TimeRange(
            localize_minutes(target_date, self.opening.minutes, self.timezone),
            localize_minutes(target_date, self.closing.minutes, self.timezone),
        )

    def rule_ranges(self, target_date: date, rules: Iterable[WeeklyRule]) -> List[TimeRange]:
        """Rules for the weekday of ``target_date`` clipped to operating hours, unioned."""
        weekday = sunday_based_weekday(target_date)
        window = self.operating_window(target_date)
        clipped: List[TimeRange] = []
        for rule in rules:
            if rule.weekday != weekday:
                continue
            start = localize_minutes(target_date, rule.start_time.minutes, self.timezone)
            end = localize_minutes(target_date, rule.end_time.minutes, self.timezone)
            candidate = TimeRange(max(start, window.start), min(end, window.end))
            if not candidate.is_empty:
                clipped.append(candidate)
        return merge_ranges(clipped)

    def compute(
        self,
        target_date: date,
        rules: Iterable[WeeklyRule],
        time_offs: Iterable[TimeRange] = (),
        reservations: Iterable[ReservedInterval] = (),
    ) -> AvailabilityResult:
        """
        Open ranges for ``target_date``.

        Reservations of any status may be passed; only those holding the slot
        are subtracted.
        """
        working = self.rule_ranges(target_date, rules)

        for time_off in time_offs:
            if not working:
                break
            working = subtract_range(working, time_off)

        for reservation in reservations:
            if not working:
                break
            if not reservation.holds_slot:
                continue
            working = subtract_range(working, TimeRange(reservation.start, reservation.end))

        ranges = sorted(working, key=lambda r: r.start)
        return AvailabilityResult(
            date=target_date,
            slot_step_minutes=self.slot_step_minutes,
            ranges=[self._to_reference(r) for r in ranges],
        )

    def _to_reference(self, time_range: TimeRange) -> TimeRange:
        return TimeRange(
            time_range.start.astimezone(self.timezone),
            time_range.end.astimezone(self.timezone),
        )

