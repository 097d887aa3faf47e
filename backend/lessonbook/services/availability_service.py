# backend/lessonbook/services/availability_service.py
"""
Availability Service

Loads a coach's weekly rules, the time-off and reservations intersecting
the requested day, and hands them to the availability engine.
"""

from datetime import date
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.exceptions import CoachNotFoundException, LessonNotFoundException
from ..core.timezone_utils import day_bounds, sunday_based_weekday
from ..repositories.factory import RepositoryFactory
from .availability_engine import (
    AvailabilityEngine,
    AvailabilityResult,
    ReservedInterval,
    TimeRange,
    WeeklyRule,
)
from .base import BaseService

logger = logging.getLogger(__name__)


class AvailabilityService(BaseService):
    def __init__(self, db: Session, engine: Optional[AvailabilityEngine] = None):
        super().__init__(db)
        self.engine = engine or AvailabilityEngine.from_settings()
        self.coach_repository = RepositoryFactory.create_coach_repository(db)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)
        self.schedule_repository = RepositoryFactory.create_schedule_repository(db)
        self.reservation_repository = RepositoryFactory.create_reservation_repository(db)

    @BaseService.measure_operation("get_coach_availability")
    def get_coach_availability(self, coach_id: str, target_date: date) -> AvailabilityResult:
        """
        Open ranges of a coach for ``target_date`` in the reference timezone.

        Raises:
            CoachNotFoundException: If the coach does not exist
        """
        if not self.coach_repository.exists(id=coach_id):
            raise CoachNotFoundException(coach_id)
        return self._compute(coach_id, target_date)

    @BaseService.measure_operation("get_lesson_availability")
    def get_lesson_availability(self, lesson_id: str, target_date: date) -> AvailabilityResult:
        """
        Open ranges of the lesson's coach for ``target_date``.

        Raises:
            LessonNotFoundException: If the lesson does not exist
        """
        lesson = self.lesson_repository.get_by_id(lesson_id, load_relationships=False)
        if lesson is None:
            raise LessonNotFoundException(lesson_id)
        return self._compute(lesson.coach_id, target_date)

    def _compute(self, coach_id: str, target_date: date) -> AvailabilityResult:
        day_start, day_end = day_bounds(target_date, self.engine.timezone)

        rules = [
            WeeklyRule(rule.weekday, rule.start_time, rule.end_time)
            for rule in self.schedule_repository.get_rules(
                coach_id, weekday=sunday_based_weekday(target_date)
            )
        ]
        if not rules:
            return AvailabilityResult(target_date, self.engine.slot_step_minutes, [])

        time_offs = [
            TimeRange(time_off.start_at, time_off.end_at)
            for time_off in self.schedule_repository.get_time_offs_overlapping(
                coach_id, day_start, day_end
            )
        ]
        reservations = [
            ReservedInterval(r.start_at, r.end_at, r.status)
            for r in self.reservation_repository.get_coach_reservations_between(
                coach_id, day_start, day_end
            )
        ]

        result = self.engine.compute(target_date, rules, time_offs, reservations)
        self.logger.debug(
            f"Availability for coach {coach_id} on {target_date}: {len(result.ranges)} ranges",
            extra={"coach_id": coach_id, "total_minutes": result.total_minutes},
        )
        return result
