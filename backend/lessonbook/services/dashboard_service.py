# backend/lessonbook/services/dashboard_service.py
"""Administrator dashboard statistics."""

from dataclasses import dataclass
from datetime import date, timedelta
import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from ..core.enums import ReservationStatus, RoleName
from ..core.timezone_utils import (
    get_reference_timezone,
    localize_minutes,
    month_start,
    next_month_start,
    reference_today,
    week_start,
)
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

COUNTED_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.ATTENDED)


@dataclass(frozen=True)
class DashboardStats:
    total_users: int
    total_coaches: int
    total_branches: int
    total_lessons: int
    today_reservations: int
    week_reservations: int
    month_reservations: int


class DashboardService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.coach_repository = RepositoryFactory.create_coach_repository(db)
        self.branch_repository = RepositoryFactory.create_branch_repository(db)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)
        self.reservation_repository = RepositoryFactory.create_reservation_repository(db)

    def _count_between(self, first_day: date, day_after_last: date) -> int:
        tz = get_reference_timezone()
        return self.reservation_repository.count_starting_between(
            localize_minutes(first_day, 0, tz),
            localize_minutes(day_after_last, 0, tz),
            COUNTED_STATUSES,
        )

    @staticmethod
    def _periods(today: date) -> Tuple[Tuple[date, date], ...]:
        """Today, this week (Monday start) and this month as [first, next) day pairs."""
        monday = week_start(today)
        return (
            (today, today + timedelta(days=1)),
            (monday, monday + timedelta(days=7)),
            (month_start(today), next_month_start(today)),
        )

    @BaseService.measure_operation("get_dashboard_stats")
    def get_stats(self, today: Optional[date] = None) -> DashboardStats:
        """Catalog totals and CONFIRMED/ATTENDED reservation counts by start day."""
        day, week, month = self._periods(today or reference_today())
        return DashboardStats(
            total_users=self.user_repository.count(role=RoleName.USER.value),
            total_coaches=self.coach_repository.count(),
            total_branches=self.branch_repository.count(),
            total_lessons=self.lesson_repository.count(),
            today_reservations=self._count_between(*day),
            week_reservations=self._count_between(*week),
            month_reservations=self._count_between(*month),
        )
