# backend/lessonbook/models/user.py
"""
User model for authentication and membership ownership.

Members book lessons against their memberships; administrators manage the
catalog, schedules, memberships and reservation statuses.
"""

import logging

from sqlalchemy import Boolean, CheckConstraint, Column, String
from sqlalchemy.orm import relationship

from ..core.enums import RoleName
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import TimestampMixin

logger = logging.getLogger(__name__)


class User(TimestampMixin, Base):
    """
    Account that can authenticate against the API.

    Attributes:
        id: ULID primary key
        email: Unique login identifier
        hashed_password: bcrypt hash
        name: Display name
        phone: Optional contact number
        role: ``admin`` or ``user``
        is_active: Inactive accounts cannot authenticate
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True)
    role = Column(String(20), nullable=False, default=RoleName.USER.value)
    is_active = Column(Boolean, nullable=False, default=True)

    memberships = relationship("Membership", back_populates="user")

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'user')", name="ck_users_role"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN.value

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
