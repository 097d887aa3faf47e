# backend/lessonbook/models/lesson.py
"""Lesson catalog model."""

from sqlalchemy import Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import TimestampMixin


class Lesson(TimestampMixin, Base):
    """
    A bookable lesson offered by one coach at one branch.

    Reservations snapshot the lesson's coach and branch at booking time.
    """

    __tablename__ = "lessons"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    name = Column(String(100), nullable=False, index=True)
    category = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    coach_id = Column(String(26), ForeignKey("coaches.id"), nullable=False, index=True)
    branch_id = Column(String(26), ForeignKey("branches.id"), nullable=False, index=True)

    coach = relationship("Coach", back_populates="lessons")
    branch = relationship("Branch", back_populates="lessons")
    reservations = relationship("Reservation", back_populates="lesson")

    def __repr__(self) -> str:
        return f"<Lesson {self.name}>"
