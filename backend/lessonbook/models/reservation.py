# backend/lessonbook/models/reservation.py
"""
Reservation model for the lesson booking platform.

A reservation holds a coach's time range for one member and one lesson.
Canceled reservations are kept as history. Two reservations of the same
coach in an active status (``PENDING``, ``CONFIRMED``, ``ATTENDED``,
``HOLIDAY``) may never overlap; this is enforced by the database itself
through the ``reservations_no_overlap_per_coach`` constraint:

- PostgreSQL: ``btree_gist`` exclusion constraint on
  ``(coach_id, tstzrange(start_at, end_at, '[)'))``.
- SQLite: ``BEFORE INSERT`` / ``BEFORE UPDATE`` triggers aborting with the
  constraint name.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Optional

from sqlalchemy import DDL, CheckConstraint, Column, ForeignKey, Index, String, Text, event
from sqlalchemy.orm import relationship

from ..core.enums import ACTIVE_RESERVATION_STATUSES, ReservationStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import TimestampMixin, UTCDateTime

logger = logging.getLogger(__name__)

RESERVATION_OVERLAP_CONSTRAINT = "reservations_no_overlap_per_coach"

_ACTIVE_STATUS_SQL = ", ".join(
    f"'{status.value}'" for status in sorted(ACTIVE_RESERVATION_STATUSES, key=lambda s: s.value)
)
_ALL_STATUS_SQL = ", ".join(f"'{status.value}'" for status in ReservationStatus)


class Reservation(TimestampMixin, Base):
    """
    A booked time range of a coach for a member.

    Coach and branch are copied from the lesson when the reservation is
    created so later catalog edits do not rewrite history.
    """

    __tablename__ = "reservations"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    lesson_id = Column(String(26), ForeignKey("lessons.id"), nullable=False, index=True)
    user_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    coach_id = Column(String(26), ForeignKey("coaches.id"), nullable=False)
    branch_id = Column(String(26), ForeignKey("branches.id"), nullable=False)

    start_at = Column(UTCDateTime(), nullable=False)
    end_at = Column(UTCDateTime(), nullable=False)
    status = Column(
        String(20), nullable=False, default=ReservationStatus.CONFIRMED.value, index=True
    )

    goal = Column(String(10), nullable=True)
    category_tag = Column(String(50), nullable=True)
    feedback = Column(Text, nullable=True)
    canceled_at = Column(UTCDateTime(), nullable=True)

    lesson = relationship("Lesson", back_populates="reservations")
    user = relationship("User")
    coach = relationship("Coach")
    branch = relationship("Branch")
    ledger_entries = relationship("MembershipLedgerEntry", back_populates="reservation")

    __table_args__ = (
        CheckConstraint("end_at > start_at", name="ck_reservations_time_order"),
        CheckConstraint(f"status IN ({_ALL_STATUS_SQL})", name="ck_reservations_status"),
        CheckConstraint(
            "goal IS NULL OR goal IN ('EASY', 'NORMAL', 'HARD')", name="ck_reservations_goal"
        ),
        Index("ix_reservations_coach_start", "coach_id", "start_at"),
    )

    @property
    def duration_minutes(self) -> int:
        return int((self.end_at - self.start_at).total_seconds() // 60)

    @property
    def is_active(self) -> bool:
        return self.status in {s.value for s in ACTIVE_RESERVATION_STATUSES}

    def cancel(self, when: Optional[datetime] = None) -> None:
        """Mark this reservation canceled."""
        self.status = ReservationStatus.CANCELED.value
        self.canceled_at = when or datetime.now(timezone.utc)
        logger.info(f"Reservation {self.id} canceled")

    def __repr__(self) -> str:
        return (
            f"<Reservation {self.id}: coach={self.coach_id}, user={self.user_id}, "
            f"{self.start_at}-{self.end_at}, status={self.status}>"
        )


# PostgreSQL: exclusion constraint
event.listen(
    Reservation.__table__,
    "after_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    Reservation.__table__,
    "after_create",
    DDL(
        f"ALTER TABLE reservations ADD CONSTRAINT {RESERVATION_OVERLAP_CONSTRAINT} "
        "EXCLUDE USING gist (coach_id WITH =, tstzrange(start_at, end_at, '[)') WITH &&) "
        f"WHERE (status IN ({_ACTIVE_STATUS_SQL}))"
    ).execute_if(dialect="postgresql"),
)

# SQLite: triggers raising with the constraint name
_SQLITE_OVERLAP_PREDICATE = (
    "SELECT RAISE(ABORT, '{name}') WHERE EXISTS ("
    "SELECT 1 FROM reservations AS r "
    "WHERE r.coach_id = NEW.coach_id AND r.id <> NEW.id "
    "AND r.status IN ({statuses}) "
    "AND r.start_at < NEW.end_at AND NEW.start_at < r.end_at)"
).format(name=RESERVATION_OVERLAP_CONSTRAINT, statuses=_ACTIVE_STATUS_SQL)

event.listen(
    Reservation.__table__,
    "after_create",
    DDL(
        f"CREATE TRIGGER {RESERVATION_OVERLAP_CONSTRAINT}_insert "
        "BEFORE INSERT ON reservations "
        f"WHEN NEW.status IN ({_ACTIVE_STATUS_SQL}) "
        f"BEGIN {_SQLITE_OVERLAP_PREDICATE}; END"
    ).execute_if(dialect="sqlite"),
)
event.listen(
    Reservation.__table__,
    "after_create",
    DDL(
        f"CREATE TRIGGER {RESERVATION_OVERLAP_CONSTRAINT}_update "
        "BEFORE UPDATE OF coach_id, start_at, end_at, status ON reservations "
        f"WHEN NEW.status IN ({_ACTIVE_STATUS_SQL}) "
        f"BEGIN {_SQLITE_OVERLAP_PREDICATE}; END"
    ).execute_if(dialect="sqlite"),
)


def is_overlap_violation(exc: Any) -> bool:
    """
    Return True when a database error was raised by the overlap constraint.

    Checks the driver diagnostics (psycopg2 ``diag.constraint_name``) first,
    then the constraint name carried in the error message.
    """
    orig = getattr(exc, "orig", None)
    if orig is None:
        cause = getattr(exc, "__cause__", None)
        orig = getattr(cause, "orig", cause)
    if orig is None:
        return False

    diag = getattr(orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None) if diag is not None else None
    if constraint_name:
        return constraint_name == RESERVATION_OVERLAP_CONSTRAINT
    return RESERVATION_OVERLAP_CONSTRAINT in str(orig)
