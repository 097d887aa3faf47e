# backend/lessonbook/routes/v1/coaches.py
"""
Coach routes - API v1

Endpoints:
    GET /{coach_id}/availability → Bookable ranges of a coach for a day
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.params import Path

from ...api.dependencies import get_availability_service
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...schemas.availability import AvailabilityResponse
from ...services.availability_service import AvailabilityService

router = APIRouter(tags=["coaches-v1"])


@router.get(
    "/{coach_id}/availability",
    response_model=AvailabilityResponse,
    response_model_exclude_none=True,
)
def get_coach_availability(
    coach_id: str = Path(...),
    target_date: date = Query(..., alias="date", description="YYYY-MM-DD in the reference timezone"),
    include_slots: bool = Query(False, alias="includeSlots", description="Also list slot start instants"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    """
    Weekly rules for the day's weekday, clipped to operating hours, minus
    time-off and active reservations. Empty when nothing is bookable.
    """
    try:
        result = availability_service.get_coach_availability(coach_id, target_date)
        return AvailabilityResponse.from_result(result, include_slots=include_slots)
    except DomainException as e:
        handle_domain_exception(e)
