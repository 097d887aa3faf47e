# backend/lessonbook/models/membership.py
"""
Membership and membership ledger models.

A membership is a per-(user, coach) balance of pre-purchased lesson
minutes. Every balance change is recorded as an append-only ledger entry,
so the sum of a membership's ledger deltas always equals its remaining
minutes.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ..core.enums import LedgerReason
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import TimestampMixin, UTCDateTime, utc_now

MEMBERSHIP_UNIQUE_CONSTRAINT = "uq_memberships_user_coach"

_LEDGER_REASON_SQL = ", ".join(f"'{reason.value}'" for reason in LedgerReason)


class Membership(TimestampMixin, Base):
    """
    Lesson-minute balance a user holds with one coach.

    Memberships are never deleted, only deactivated or left to expire.
    """

    __tablename__ = "memberships"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    user_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    coach_id = Column(String(26), ForeignKey("coaches.id"), nullable=False, index=True)
    remaining_minutes = Column(Integer, nullable=False, default=0)
    expires_at = Column(UTCDateTime(), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    user = relationship("User", back_populates="memberships")
    coach = relationship("Coach")
    ledger_entries = relationship(
        "MembershipLedgerEntry",
        back_populates="membership",
        order_by="MembershipLedgerEntry.created_at",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "coach_id", name=MEMBERSHIP_UNIQUE_CONSTRAINT),
        CheckConstraint("remaining_minutes >= 0", name="ck_memberships_remaining_non_negative"),
    )

    def is_expired(self, at: datetime) -> bool:
        """Whether the membership expired before ``at``."""
        return self.expires_at < at

    def __repr__(self) -> str:
        return (
            f"<Membership {self.id}: user={self.user_id}, coach={self.coach_id}, "
            f"remaining={self.remaining_minutes}, active={self.is_active}>"
        )


class MembershipLedgerEntry(Base):
    """Append-only record of one signed change to a membership balance."""

    __tablename__ = "membership_ledger"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    membership_id = Column(
        String(26), ForeignKey("memberships.id"), nullable=False, index=True
    )
    delta_minutes = Column(Integer, nullable=False)
    reason = Column(String(20), nullable=False)
    reservation_id = Column(String(26), ForeignKey("reservations.id"), nullable=True)
    created_by = Column(String(26), ForeignKey("users.id"), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utc_now)

    membership = relationship("Membership", back_populates="ledger_entries")
    reservation = relationship("Reservation", back_populates="ledger_entries")

    __table_args__ = (
        CheckConstraint(f"reason IN ({_LEDGER_REASON_SQL})", name="ck_membership_ledger_reason"),
        Index("ix_membership_ledger_reservation", "reservation_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<MembershipLedgerEntry {self.id}: membership={self.membership_id}, "
            f"delta={self.delta_minutes}, reason={self.reason}>"
        )
