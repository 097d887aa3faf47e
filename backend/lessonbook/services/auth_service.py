# backend/lessonbook/services/auth_service.py
"""
Authentication Service

Handles user registration, authentication, and user retrieval operations.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..auth import get_password_hash, verify_password
from ..core.enums import RoleName
from ..core.exceptions import ConflictException, UserNotFoundException
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class AuthService(BaseService):
    """Service for handling authentication operations."""

    def __init__(self, db: Session) -> None:
        super().__init__(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("register_user")
    def register_user(
        self,
        email: str,
        password: str,
        name: str,
        phone: Optional[str] = None,
        role: RoleName = RoleName.USER,
    ) -> User:
        """
        Register a new user.

        Raises:
            ConflictException: If email already exists
        """
        normalized_email = email.strip().lower()
        self.log_operation("register_user", email=normalized_email, role=RoleName(role).value)

        if self.user_repository.get_by_email(normalized_email):
            self.logger.warning(f"Registration failed - email already exists: {normalized_email}")
            raise ConflictException(
                "Email already registered",
                code="EMAIL_EXISTS",
                details={"email": normalized_email},
            )

        with self.transaction():
            user = self.user_repository.create(
                email=normalized_email,
                hashed_password=get_password_hash(password),
                name=name,
                phone=phone,
                role=RoleName(role).value,
            )
        self.logger.info(f"Registered user {user.id}")
        return user

    @BaseService.measure_operation("authenticate_user")
    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Return the user when the credentials match an active account."""
        user = self.user_repository.get_by_email(email)
        if not user or not user.is_active:
            return None
        if not verify_password(password, user.hashed_password):
            self.logger.info(f"Failed login for {email}")
            return None
        return user

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return self.user_repository.get_by_id(user_id, load_relationships=False)

    def get_user(self, user_id: str) -> User:
        user = self.get_user_by_id(user_id)
        if user is None:
            raise UserNotFoundException(user_id)
        return user

    @BaseService.measure_operation("search_users")
    def search_users(self, term: Optional[str] = None) -> List[User]:
        return self.user_repository.search(term)
