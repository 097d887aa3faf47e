# backend/lessonbook/routes/v1/lessons.py
"""
Lesson routes - API v1

Public lesson catalog under /api/v1/lessons.

Endpoints:
    GET /                              → Search lessons (cursor pagination)
    GET /{lesson_id}                   → Lesson details
    GET /{lesson_id}/availability      → Bookable ranges of the lesson's coach for a day
"""

from datetime import date
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.params import Path

from ...api.dependencies import get_availability_service, get_catalog_service
from ...core.enums import LessonSearchField
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...schemas.availability import AvailabilityResponse
from ...schemas.catalog import LessonPageResponse, LessonResponse
from ...services.availability_service import AvailabilityService
from ...services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["lessons-v1"])


@router.get("", response_model=LessonPageResponse)
def search_lessons(
    by: LessonSearchField = Query(LessonSearchField.LESSON, description="Field matched by q"),
    q: Optional[str] = Query(None, max_length=100),
    cursor: Optional[str] = Query(None, description="nextCursor of the previous page"),
    limit: Optional[int] = Query(None, ge=1, le=100),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> LessonPageResponse:
    try:
        page = catalog_service.search_lessons(by=by, q=q, cursor=cursor, limit=limit)
        return LessonPageResponse.from_page(page)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{lesson_id}", response_model=LessonResponse)
def get_lesson(
    lesson_id: str = Path(...),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> LessonResponse:
    try:
        return LessonResponse.from_lesson(catalog_service.get_lesson(lesson_id))
    except DomainException as e:
        handle_domain_exception(e)


@router.get(
    "/{lesson_id}/availability",
    response_model=AvailabilityResponse,
    response_model_exclude_none=True,
)
def get_lesson_availability(
    lesson_id: str = Path(...),
    target_date: date = Query(..., alias="date", description="YYYY-MM-DD in the reference timezone"),
    include_slots: bool = Query(False, alias="includeSlots", description="Also list slot start instants"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    try:
        result = availability_service.get_lesson_availability(lesson_id, target_date)
        return AvailabilityResponse.from_result(result, include_slots=include_slots)
    except DomainException as e:
        handle_domain_exception(e)
