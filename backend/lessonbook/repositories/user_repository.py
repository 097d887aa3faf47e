# backend/lessonbook/repositories/user_repository.py
"""User Repository: account lookups for authentication and administration."""

import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.find_one_by(email=email.strip().lower())

    def search(self, term: Optional[str] = None, limit: int = 100) -> List[User]:
        """Users newest first, optionally filtered by email, name or phone."""
        try:
            query = self.db.query(User)
            if term:
                pattern = f"%{term}%"
                query = query.filter(
                    or_(User.email.ilike(pattern), User.name.ilike(pattern), User.phone.like(pattern))
                )
            return query.order_by(User.created_at.desc(), User.id.desc()).limit(limit).all()
        except SQLAlchemyError as exc:
            self.logger.error("Failed to search users: %s", exc)
            raise RepositoryException("Failed to search users") from exc
