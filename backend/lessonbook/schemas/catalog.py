"""Branch, coach and lesson schemas."""

from typing import List, Optional

from pydantic import Field

from ..models.coach import Coach
from ..models.lesson import Lesson
from ..services.catalog_service import LessonPage
from .base import StandardizedModel, StrictRequestModel


class BranchCreate(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    description: Optional[str] = None


class BranchUpdate(StrictRequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    description: Optional[str] = None


class BranchResponse(StandardizedModel):
    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    description: Optional[str] = None


class CoachCreate(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    bio: Optional[str] = None
    branch_id: Optional[str] = None


class CoachUpdate(StrictRequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    bio: Optional[str] = None
    branch_id: Optional[str] = None


class CoachResponse(StandardizedModel):
    id: str
    name: str
    phone: Optional[str] = None
    bio: Optional[str] = None
    branch_id: Optional[str] = None
    branch_name: Optional[str] = None

    @classmethod
    def from_coach(cls, coach: Coach) -> "CoachResponse":
        return cls(
            id=coach.id,
            name=coach.name,
            phone=coach.phone,
            bio=coach.bio,
            branch_id=coach.branch_id,
            branch_name=coach.branch.name if coach.branch else None,
        )


class LessonCreate(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    category: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    coach_id: str = Field(..., min_length=1)
    branch_id: str = Field(..., min_length=1)


class LessonUpdate(StrictRequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    coach_id: Optional[str] = Field(None, min_length=1)
    branch_id: Optional[str] = Field(None, min_length=1)


class LessonResponse(StandardizedModel):
    id: str
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    coach_id: str
    coach_name: Optional[str] = None
    branch_id: str
    branch_name: Optional[str] = None

    @classmethod
    def from_lesson(cls, lesson: Lesson) -> "LessonResponse":
        return cls(
            id=lesson.id,
            name=lesson.name,
            category=lesson.category,
            description=lesson.description,
            coach_id=lesson.coach_id,
            coach_name=lesson.coach.name if lesson.coach else None,
            branch_id=lesson.branch_id,
            branch_name=lesson.branch.name if lesson.branch else None,
        )


class LessonPageResponse(StandardizedModel):
    items: List[LessonResponse]
    next_cursor: Optional[str] = None
    has_more: bool

    @classmethod
    def from_page(cls, page: LessonPage) -> "LessonPageResponse":
        return cls(
            items=[LessonResponse.from_lesson(lesson) for lesson in page.items],
            next_cursor=page.next_cursor,
            has_more=page.has_more,
        )
