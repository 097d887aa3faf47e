# backend/lessonbook/repositories/catalog_repository.py
"""
Catalog repositories: branches, coaches and lessons.

Lesson search uses keyset pagination on the ULID primary key, newest first.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.enums import LessonSearchField
from ..core.exceptions import RepositoryException
from ..models.branch import Branch
from ..models.coach import Coach
from ..models.lesson import Lesson
from ..models.membership import Membership
from ..models.reservation import Reservation
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BranchRepository(BaseRepository[Branch]):
    def __init__(self, db: Session):
        super().__init__(db, Branch)

    def list_branches(self) -> List[Branch]:
        return self.db.query(Branch).order_by(Branch.name.asc(), Branch.id.asc()).all()


class CoachRepository(BaseRepository[Coach]):
    def __init__(self, db: Session):
        super().__init__(db, Coach)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Coach.branch))

    def list_coaches(self, branch_id: Optional[str] = None) -> List[Coach]:
        query = self._apply_eager_loading(self.db.query(Coach))
        if branch_id:
            query = query.filter(Coach.branch_id == branch_id)
        return query.order_by(Coach.name.asc(), Coach.id.asc()).all()

    def lock(self, coach_id: str) -> Optional[Coach]:
        """
        Lock the coach row for the rest of the transaction.

        Serialises concurrent bookings for the same coach on PostgreSQL;
        SQLite ignores FOR UPDATE and relies on its database-level write lock.
        """
        try:
            return (
                self.db.query(Coach).filter(Coach.id == coach_id).with_for_update().first()
            )
        except SQLAlchemyError as exc:
            self.logger.error("Failed to lock coach %s: %s", coach_id, exc)
            raise RepositoryException(f"Failed to lock coach: {exc}") from exc

    def count_dependents(self, coach_id: str) -> Dict[str, int]:
        """Lessons, reservations and memberships that reference the coach."""
        return {
            "lessons": self.db.query(Lesson).filter(Lesson.coach_id == coach_id).count(),
            "reservations": self.db.query(Reservation)
            .filter(Reservation.coach_id == coach_id)
            .count(),
            "memberships": self.db.query(Membership)
            .filter(Membership.coach_id == coach_id)
            .count(),
        }


class LessonRepository(BaseRepository[Lesson]):
    def __init__(self, db: Session):
        super().__init__(db, Lesson)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Lesson.coach), joinedload(Lesson.branch))

    def search(
        self,
        *,
        by: LessonSearchField = LessonSearchField.LESSON,
        term: Optional[str] = None,
        cursor: Optional[str] = None,
        limit: int = 20,
    ) -> List[Lesson]:
        """
        Case-insensitive substring search over lesson, coach or branch name.

        Returns up to ``limit + 1`` rows so callers can tell whether another
        page exists. ``cursor`` is the id of the last lesson of the previous page.
        """
        try:
            query = self._apply_eager_loading(self.db.query(Lesson))
            if term:
                pattern = f"%{term}%"
                if by == LessonSearchField.COACH:
                    query = query.join(Lesson.coach).filter(Coach.name.ilike(pattern))
                elif by == LessonSearchField.BRANCH:
                    query = query.join(Lesson.branch).filter(Branch.name.ilike(pattern))
                else:
                    query = query.filter(Lesson.name.ilike(pattern))
            if cursor:
                query = query.filter(Lesson.id < cursor)
            return query.order_by(Lesson.id.desc()).limit(limit + 1).all()
        except SQLAlchemyError as exc:
            self.logger.error("Failed to search lessons: %s", exc)
            raise RepositoryException("Failed to search lessons") from exc
