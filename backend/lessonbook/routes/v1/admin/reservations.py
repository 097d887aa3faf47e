# backend/lessonbook/routes/v1/admin/reservations.py
"""
Admin reservation routes - API v1

Endpoints:
    GET /                    → All reservations, newest first (optional status filter)
    GET /{reservation_id}    → Reservation details
    PATCH /{reservation_id}  → Status transition and/or feedback
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.params import Path

from ....api.dependencies import get_booking_service, require_admin
from ....core.enums import ReservationStatus
from ....core.exceptions import DomainException
from ....errors import handle_domain_exception
from ....models.user import User
from ....schemas.reservation import (
    ReservationAdminUpdate,
    ReservationListResponse,
    ReservationResponse,
)
from ....services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-reservations"])


@router.get("", response_model=ReservationListResponse)
def list_reservations(
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    booking_service: BookingService = Depends(get_booking_service),
) -> ReservationListResponse:
    items = [
        ReservationResponse.from_reservation(r)
        for r in booking_service.list_reservations(status=status_filter)
    ]
    return ReservationListResponse(items=items, total=len(items))


@router.get("/{reservation_id}", response_model=ReservationResponse)
def get_reservation(
    reservation_id: str = Path(...),
    booking_service: BookingService = Depends(get_booking_service),
) -> ReservationResponse:
    try:
        return ReservationResponse.from_reservation(booking_service.get_reservation(reservation_id))
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{reservation_id}", response_model=ReservationResponse)
def update_reservation(
    reservation_id: str = Path(...),
    payload: ReservationAdminUpdate = Body(...),
    admin: User = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> ReservationResponse:
    """
    Apply a status transition (moving to CANCELED refunds the membership)
    and/or replace the coach feedback.
    """
    try:
        if payload.status is not None:
            booking_service.admin_update_status(reservation_id, payload.status, admin.id)
        if "feedback" in payload.model_fields_set:
            booking_service.admin_update_feedback(reservation_id, payload.feedback)
        return ReservationResponse.from_reservation(booking_service.get_reservation(reservation_id))
    except DomainException as e:
        handle_domain_exception(e)
