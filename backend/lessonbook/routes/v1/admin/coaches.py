# backend/lessonbook/routes/v1/admin/coaches.py
"""
Admin coach and schedule routes - API v1

Endpoints:
    GET /                                  → List coaches (optionally by branch)
    POST /                                 → Create a coach
    GET /{coach_id}                        → Coach details
    PATCH /{coach_id}                      → Update a coach
    DELETE /{coach_id}                     → Delete a coach without dependents
    GET /{coach_id}/schedule               → Weekly rules and upcoming time-off
    POST /{coach_id}/schedule              → Replace weekly rules and/or add time-off
    DELETE /{coach_id}/timeoffs/{time_off_id} → Remove one time-off entry
"""

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status
from fastapi.params import Path

from ....api.dependencies import get_catalog_service, get_schedule_service
from ....core.exceptions import DomainException
from ....errors import handle_domain_exception
from ....schemas.catalog import CoachCreate, CoachResponse, CoachUpdate
from ....schemas.schedule import ScheduleResponse, ScheduleUpdate
from ....services.catalog_service import CatalogService
from ....services.schedule_service import ScheduleService

router = APIRouter(tags=["admin-coaches"])


@router.get("", response_model=List[CoachResponse])
def list_coaches(
    branch_id: Optional[str] = Query(None, alias="branchId"),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> List[CoachResponse]:
    return [CoachResponse.from_coach(c) for c in catalog_service.list_coaches(branch_id)]


@router.post("", response_model=CoachResponse, status_code=status.HTTP_201_CREATED)
def create_coach(
    payload: CoachCreate = Body(...),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> CoachResponse:
    try:
        coach = catalog_service.create_coach(payload.model_dump())
        return CoachResponse.from_coach(catalog_service.get_coach(coach.id))
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{coach_id}", response_model=CoachResponse)
def get_coach(
    coach_id: str = Path(...),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> CoachResponse:
    try:
        return CoachResponse.from_coach(catalog_service.get_coach(coach_id))
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{coach_id}", response_model=CoachResponse)
def update_coach(
    coach_id: str = Path(...),
    payload: CoachUpdate = Body(...),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> CoachResponse:
    try:
        catalog_service.update_coach(coach_id, payload.model_dump(exclude_unset=True))
        return CoachResponse.from_coach(catalog_service.get_coach(coach_id))
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{coach_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_coach(
    coach_id: str = Path(...),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> Response:
    try:
        catalog_service.delete_coach(coach_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{coach_id}/schedule", response_model=ScheduleResponse)
def get_schedule(
    coach_id: str = Path(...),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> ScheduleResponse:
    try:
        return ScheduleResponse.from_schedule(schedule_service.get_schedule(coach_id))
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{coach_id}/schedule", response_model=ScheduleResponse)
def update_schedule(
    coach_id: str = Path(...),
    payload: ScheduleUpdate = Body(...),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> ScheduleResponse:
    """Replace the weekly rules when ``rules`` is given; append ``timeOffs``."""
    try:
        schedule = schedule_service.update_schedule(
            coach_id,
            rules=None if payload.rules is None else [r.as_spec() for r in payload.rules],
            time_offs=(
                None if payload.time_offs is None else [t.as_spec() for t in payload.time_offs]
            ),
        )
        return ScheduleResponse.from_schedule(schedule)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete(
    "/{coach_id}/timeoffs/{time_off_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
def delete_time_off(
    coach_id: str = Path(...),
    time_off_id: str = Path(...),
    schedule_service: ScheduleService = Depends(get_schedule_service),
) -> Response:
    try:
        schedule_service.delete_time_off(coach_id, time_off_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
