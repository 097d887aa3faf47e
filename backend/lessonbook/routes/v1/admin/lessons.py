# backend/lessonbook/routes/v1/admin/lessons.py
"""
Admin lesson routes - API v1

Endpoints:
    POST /              → Create a lesson
    PATCH /{lesson_id}  → Update a lesson
    DELETE /{lesson_id} → Delete a lesson without reservations
"""

from fastapi import APIRouter, Body, Depends, Response, status
from fastapi.params import Path

from ....api.dependencies import get_catalog_service
from ....core.exceptions import DomainException
from ....errors import handle_domain_exception
from ....schemas.catalog import LessonCreate, LessonResponse, LessonUpdate
from ....services.catalog_service import CatalogService

router = APIRouter(tags=["admin-lessons"])


@router.post("", response_model=LessonResponse, status_code=status.HTTP_201_CREATED)
def create_lesson(
    payload: LessonCreate = Body(...),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> LessonResponse:
    try:
        return LessonResponse.from_lesson(catalog_service.create_lesson(payload.model_dump()))
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{lesson_id}", response_model=LessonResponse)
def update_lesson(
    lesson_id: str = Path(...),
    payload: LessonUpdate = Body(...),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> LessonResponse:
    try:
        lesson = catalog_service.update_lesson(lesson_id, payload.model_dump(exclude_unset=True))
        return LessonResponse.from_lesson(lesson)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{lesson_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_lesson(
    lesson_id: str = Path(...),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> Response:
    try:
        catalog_service.delete_lesson(lesson_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
