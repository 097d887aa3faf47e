# backend/lessonbook/models/coach.py
"""
Coach and coach schedule models.

A coach's bookable time comes from recurring weekly rules
(``coach_availability_rules``) minus explicit absolute-time exclusions
(``coach_time_offs``) minus reservations that hold the slot.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import TimeOfDayType, TimestampMixin, UTCDateTime


class Coach(TimestampMixin, Base):
    """Coach who teaches lessons; memberships are held per coach."""

    __tablename__ = "coaches"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    name = Column(String(100), nullable=False, index=True)
    phone = Column(String(30), nullable=True)
    bio = Column(Text, nullable=True)
    branch_id = Column(String(26), ForeignKey("branches.id", ondelete="SET NULL"), nullable=True)

    branch = relationship("Branch", back_populates="coaches")
    lessons = relationship("Lesson", back_populates="coach")
    availability_rules = relationship(
        "CoachAvailabilityRule",
        back_populates="coach",
        cascade="all, delete-orphan",
        order_by=lambda: [CoachAvailabilityRule.weekday, CoachAvailabilityRule.start_time],
    )
    time_offs = relationship(
        "CoachTimeOff",
        back_populates="coach",
        cascade="all, delete-orphan",
        order_by="CoachTimeOff.start_at",
    )

    def __repr__(self) -> str:
        return f"<Coach {self.name}>"


class CoachAvailabilityRule(Base):
    """
    Recurring weekly open interval for a coach.

    ``weekday`` uses Sunday = 0 ... Saturday = 6. Several rules may share a
    weekday; the covered intervals are unioned.
    """

    __tablename__ = "coach_availability_rules"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    coach_id = Column(String(26), ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False)
    weekday = Column(Integer, nullable=False)
    start_time = Column(TimeOfDayType(), nullable=False)
    end_time = Column(TimeOfDayType(), nullable=False)

    coach = relationship("Coach", back_populates="availability_rules")

    __table_args__ = (
        CheckConstraint("weekday BETWEEN 0 AND 6", name="ck_availability_rules_weekday"),
        CheckConstraint("start_time < end_time", name="ck_availability_rules_time_order"),
        Index("ix_availability_rules_coach_weekday", "coach_id", "weekday"),
    )

    def __repr__(self) -> str:
        return f"<CoachAvailabilityRule coach={self.coach_id} {self.weekday} {self.start_time}-{self.end_time}>"


class CoachTimeOff(Base):
    """Absolute-time exclusion interval for a coach."""

    __tablename__ = "coach_time_offs"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    coach_id = Column(String(26), ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False)
    start_at = Column(UTCDateTime(), nullable=False)
    end_at = Column(UTCDateTime(), nullable=False)
    reason = Column(String(255), nullable=True)

    coach = relationship("Coach", back_populates="time_offs")

    __table_args__ = (
        CheckConstraint("end_at > start_at", name="ck_time_offs_time_order"),
        Index("ix_time_offs_coach_start", "coach_id", "start_at"),
    )

    def __repr__(self) -> str:
        return f"<CoachTimeOff coach={self.coach_id} {self.start_at}-{self.end_at}>"
