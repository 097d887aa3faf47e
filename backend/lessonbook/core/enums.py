# backend/lessonbook/core/enums.py
"""
Core enums for the lesson booking platform.

Reservation statuses, membership ledger reasons and account roles are stored
as plain strings; these enums provide the canonical values.
"""

from enum import Enum
from typing import Dict, FrozenSet


class RoleName(str, Enum):
    """Account roles. Administrators manage the catalog, schedules and memberships."""

    ADMIN = "admin"
    USER = "user"


class ReservationStatus(str, Enum):
    """Reservation lifecycle statuses."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"  # Default for member bookings
    ATTENDED = "ATTENDED"
    NO_SHOW = "NO_SHOW"
    CANCELED = "CANCELED"
    HOLIDAY = "HOLIDAY"  # Admin-only block of the coach's calendar


# Statuses that occupy the coach's calendar
ACTIVE_RESERVATION_STATUSES: FrozenSet[ReservationStatus] = frozenset(
    {
        ReservationStatus.PENDING,
        ReservationStatus.CONFIRMED,
        ReservationStatus.ATTENDED,
        ReservationStatus.HOLIDAY,
    }
)

# Statuses a member may cancel from
CANCELABLE_STATUSES: FrozenSet[ReservationStatus] = frozenset(
    {ReservationStatus.PENDING, ReservationStatus.CONFIRMED}
)

ALLOWED_STATUS_TRANSITIONS: Dict[ReservationStatus, FrozenSet[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.CANCELED, ReservationStatus.HOLIDAY}
    ),
    ReservationStatus.CONFIRMED: frozenset(
        {
            ReservationStatus.ATTENDED,
            ReservationStatus.NO_SHOW,
            ReservationStatus.CANCELED,
            ReservationStatus.HOLIDAY,
        }
    ),
    ReservationStatus.HOLIDAY: frozenset({ReservationStatus.CANCELED}),
    ReservationStatus.ATTENDED: frozenset(),
    ReservationStatus.NO_SHOW: frozenset(),
    ReservationStatus.CANCELED: frozenset(),
}


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    """Return True when ``current -> target`` is a legal status change."""
    return target in ALLOWED_STATUS_TRANSITIONS.get(ReservationStatus(current), frozenset())


class LessonGoal(str, Enum):
    EASY = "EASY"
    NORMAL = "NORMAL"
    HARD = "HARD"


class LedgerReason(str, Enum):
    """Reason codes for membership ledger entries."""

    ALLOCATE = "ALLOCATE"  # Minutes granted when the membership is issued
    BOOKING = "BOOKING"
    CANCEL_REFUND = "CANCEL_REFUND"
    ADJUST = "ADJUST"  # Manual correction by an administrator


class LessonSearchField(str, Enum):
    LESSON = "lesson"
    COACH = "coach"
    BRANCH = "branch"
