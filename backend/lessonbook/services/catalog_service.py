# backend/lessonbook/services/catalog_service.py
"""
Catalog Service

Branch, coach and lesson administration plus the public lesson search.
"""

from dataclasses import dataclass
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import LessonSearchField
from ..core.exceptions import (
    CoachNotFoundException,
    ConflictException,
    LessonNotFoundException,
    NotFoundException,
    RepositoryException,
    ValidationException,
)
from ..core.ulid_helper import is_valid_ulid
from ..models.branch import Branch
from ..models.coach import Coach
from ..models.lesson import Lesson
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LessonPage:
    items: List[Lesson]
    next_cursor: Optional[str]
    has_more: bool


def _branch_not_found(branch_id: str) -> NotFoundException:
    return NotFoundException(
        "Branch not found", code="BRANCH_NOT_FOUND", details={"branch_id": branch_id}
    )


class CatalogService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.branch_repository = RepositoryFactory.create_branch_repository(db)
        self.coach_repository = RepositoryFactory.create_coach_repository(db)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)

    # Branches

    def list_branches(self) -> List[Branch]:
        return self.branch_repository.list_branches()

    def get_branch(self, branch_id: str) -> Branch:
        branch = self.branch_repository.get_by_id(branch_id)
        if branch is None:
            raise _branch_not_found(branch_id)
        return branch

    @BaseService.measure_operation("create_branch")
    def create_branch(self, data: Dict[str, Any]) -> Branch:
        self.log_operation("create_branch", branch_name=data.get("name"))
        with self.transaction():
            branch = self.branch_repository.create(**data)
        return branch

    @BaseService.measure_operation("update_branch")
    def update_branch(self, branch_id: str, data: Dict[str, Any]) -> Branch:
        with self.transaction():
            branch = self.branch_repository.update(branch_id, **data)
            if branch is None:
                raise _branch_not_found(branch_id)
        return branch

    @BaseService.measure_operation("delete_branch")
    def delete_branch(self, branch_id: str) -> None:
        self.log_operation("delete_branch", branch_id=branch_id)
        try:
            with self.transaction():
                if not self.branch_repository.delete(branch_id):
                    raise _branch_not_found(branch_id)
        except RepositoryException as exc:
            raise ConflictException(
                "Branch still has lessons or reservations",
                code="IN_USE",
                details={"branch_id": branch_id},
            ) from exc

    # Coaches

    def list_coaches(self, branch_id: Optional[str] = None) -> List[Coach]:
        return self.coach_repository.list_coaches(branch_id)

    def get_coach(self, coach_id: str) -> Coach:
        coach = self.coach_repository.get_by_id(coach_id)
        if coach is None:
            raise CoachNotFoundException(coach_id)
        return coach

    def _ensure_branch(self, branch_id: Optional[str]) -> None:
        if branch_id and not self.branch_repository.exists(id=branch_id):
            raise _branch_not_found(branch_id)

    @BaseService.measure_operation("create_coach")
    def create_coach(self, data: Dict[str, Any]) -> Coach:
        self.log_operation("create_coach", coach_name=data.get("name"))
        self._ensure_branch(data.get("branch_id"))
        with self.transaction():
            coach = self.coach_repository.create(**data)
        return coach

    @BaseService.measure_operation("update_coach")
    def update_coach(self, coach_id: str, data: Dict[str, Any]) -> Coach:
        self._ensure_branch(data.get("branch_id"))
        with self.transaction():
            coach = self.coach_repository.update(coach_id, **data)
            if coach is None:
                raise CoachNotFoundException(coach_id)
        return coach

    @BaseService.measure_operation("delete_coach")
    def delete_coach(self, coach_id: str) -> None:
        """
        Delete a coach with its weekly rules and time-off.

        Raises:
            CoachNotFoundException: If the coach does not exist
            ValidationException: HAS_DEPENDENCIES while lessons, reservations
                or memberships still reference the coach
        """
        self.log_operation("delete_coach", coach_id=coach_id)
        if not self.coach_repository.exists(id=coach_id):
            raise CoachNotFoundException(coach_id)

        dependents = self.coach_repository.count_dependents(coach_id)
        if any(dependents.values()):
            raise ValidationException(
                "Coaches with lessons, reservations or memberships cannot be deleted",
                code="HAS_DEPENDENCIES",
                details={"coach_id": coach_id, **dependents},
            )
        try:
            with self.transaction():
                if not self.coach_repository.delete(coach_id):
                    raise CoachNotFoundException(coach_id)
        except RepositoryException as exc:
            raise ValidationException(
                "Coach is still referenced and cannot be deleted",
                code="HAS_DEPENDENCIES",
                details={"coach_id": coach_id},
            ) from exc

    # Lessons

    def get_lesson(self, lesson_id: str) -> Lesson:
        lesson = self.lesson_repository.get_by_id(lesson_id)
        if lesson is None:
            raise LessonNotFoundException(lesson_id)
        return lesson

    def _ensure_lesson_refs(self, data: Dict[str, Any]) -> None:
        coach_id = data.get("coach_id")
        if coach_id and not self.coach_repository.exists(id=coach_id):
            raise CoachNotFoundException(coach_id)
        self._ensure_branch(data.get("branch_id"))

    @BaseService.measure_operation("create_lesson")
    def create_lesson(self, data: Dict[str, Any]) -> Lesson:
        self.log_operation("create_lesson", lesson_name=data.get("name"))
        self._ensure_lesson_refs(data)
        with self.transaction():
            lesson = self.lesson_repository.create(**data)
        return self.get_lesson(lesson.id)

    @BaseService.measure_operation("update_lesson")
    def update_lesson(self, lesson_id: str, data: Dict[str, Any]) -> Lesson:
        self._ensure_lesson_refs(data)
        with self.transaction():
            if self.lesson_repository.update(lesson_id, **data) is None:
                raise LessonNotFoundException(lesson_id)
        return self.get_lesson(lesson_id)

    @BaseService.measure_operation("delete_lesson")
    def delete_lesson(self, lesson_id: str) -> None:
        self.log_operation("delete_lesson", lesson_id=lesson_id)
        try:
            with self.transaction():
                if not self.lesson_repository.delete(lesson_id):
                    raise LessonNotFoundException(lesson_id)
        except RepositoryException as exc:
            raise ConflictException(
                "Lesson has reservations and cannot be deleted",
                code="IN_USE",
                details={"lesson_id": lesson_id},
            ) from exc

    @BaseService.measure_operation("search_lessons")
    def search_lessons(
        self,
        by: LessonSearchField = LessonSearchField.LESSON,
        q: Optional[str] = None,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> LessonPage:
        """
        One page of lessons, newest first.

        ``cursor`` is the ``next_cursor`` of the previous page.
        """
        page_size = limit or settings.lesson_page_size
        if cursor and not is_valid_ulid(cursor):
            raise ValidationException(
                "Invalid pagination cursor", code="INVALID_CURSOR", details={"cursor": cursor}
            )
        rows = self.lesson_repository.search(
            by=LessonSearchField(by), term=(q or "").strip() or None, cursor=cursor, limit=page_size
        )
        has_more = len(rows) > page_size
        items = rows[:page_size]
        return LessonPage(
            items=items,
            next_cursor=items[-1].id if has_more and items else None,
            has_more=has_more,
        )
