# backend/lessonbook/routes/v1/reservations.py
"""
Member reservation routes - API v1

All business logic delegated to BookingService.

Endpoints:
    POST /                        → Book a lesson slot against a membership
    GET /                         → The caller's reservations, newest first
    PATCH /{reservation_id}/cancel → Cancel an own future reservation and refund
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.params import Path

from ...api.dependencies import get_booking_service, get_current_active_user
from ...core.enums import ReservationStatus
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...models.user import User
from ...schemas.reservation import (
    ReservationCreate,
    ReservationListResponse,
    ReservationResponse,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reservations-v1"])


@router.post(
    "",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid time range, duration, or membership"},
        404: {"description": "Lesson not found"},
        409: {"description": "Time slot already booked"},
    },
)
def create_reservation(
    payload: ReservationCreate = Body(...),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> ReservationResponse:
    try:
        reservation = booking_service.create_reservation(
            user_id=current_user.id,
            lesson_id=payload.lesson_id,
            start_at=payload.start_at,
            end_at=payload.end_at,
            goal=payload.goal,
            category_tag=payload.category_tag,
        )
        return ReservationResponse.from_reservation(reservation)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=ReservationListResponse)
def list_my_reservations(
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> ReservationListResponse:
    reservations = booking_service.list_user_reservations(current_user.id, status=status_filter)
    items = [ReservationResponse.from_reservation(r) for r in reservations]
    return ReservationListResponse(items=items, total=len(items))


@router.patch("/{reservation_id}/cancel", response_model=ReservationResponse)
def cancel_reservation(
    reservation_id: str = Path(...),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> ReservationResponse:
    try:
        reservation = booking_service.cancel_reservation(reservation_id, current_user.id)
        return ReservationResponse.from_reservation(reservation)
    except DomainException as e:
        handle_domain_exception(e)
