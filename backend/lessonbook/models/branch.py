# backend/lessonbook/models/branch.py
"""Branch (studio location) model."""

from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import TimestampMixin


class Branch(TimestampMixin, Base):
    __tablename__ = "branches"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    name = Column(String(100), nullable=False, index=True)
    address = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    description = Column(Text, nullable=True)

    coaches = relationship("Coach", back_populates="branch")
    lessons = relationship("Lesson", back_populates="branch")

    def __repr__(self) -> str:
        return f"<Branch {self.name}>"
