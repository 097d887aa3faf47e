# backend/lessonbook/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .auth import get_current_active_user, get_current_user, require_admin
from .database import get_db
from .services import (
    get_auth_service,
    get_availability_service,
    get_booking_service,
    get_catalog_service,
    get_dashboard_service,
    get_membership_service,
    get_schedule_service,
)

__all__ = [
    # Auth
    "get_current_user",
    "get_current_active_user",
    "require_admin",
    # Database
    "get_db",
    # Services
    "get_auth_service",
    "get_availability_service",
    "get_booking_service",
    "get_catalog_service",
    "get_dashboard_service",
    "get_membership_service",
    "get_schedule_service",
]
