# backend/lessonbook/api/dependencies/services.py
"""
Service dependencies for FastAPI routes.

Each factory builds a service bound to the request-scoped session.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.auth_service import AuthService
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.catalog_service import CatalogService
from ...services.dashboard_service import DashboardService
from ...services.membership_service import MembershipService
from ...services.schedule_service import ScheduleService
from .database import get_db


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Availability service using the configured engine (timezone, hours, step)."""
    return AvailabilityService(db)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """
    Get booking service instance.

    Args:
        db: Database session

    Returns:
        BookingService instance
    """
    return BookingService(db)


def get_membership_service(db: Session = Depends(get_db)) -> MembershipService:
    return MembershipService(db)


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    return ScheduleService(db)


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    return DashboardService(db)
