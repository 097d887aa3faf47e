"""
Database models for the lesson booking platform.

The models are organized by functionality:
- User accounts
- Catalog (branches, coaches, lessons)
- Coach schedules (weekly rules, time-off)
- Reservations
- Memberships and the membership ledger
"""

from .branch import Branch
from .coach import Coach, CoachAvailabilityRule, CoachTimeOff
from .lesson import Lesson
from .membership import Membership, MembershipLedgerEntry
from .reservation import RESERVATION_OVERLAP_CONSTRAINT, Reservation, is_overlap_violation
from .user import User

__all__ = [
    "Branch",
    "Coach",
    "CoachAvailabilityRule",
    "CoachTimeOff",
    "Lesson",
    "Membership",
    "MembershipLedgerEntry",
    "RESERVATION_OVERLAP_CONSTRAINT",
    "Reservation",
    "User",
    "is_overlap_violation",
]
