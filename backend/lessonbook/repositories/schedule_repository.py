# backend/lessonbook/repositories/schedule_repository.py
"""
Coach schedule repository: weekly availability rules and time-off.
"""

from datetime import datetime
import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..domain.time_of_day import TimeOfDay
from ..models.coach import CoachAvailabilityRule, CoachTimeOff
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CoachScheduleRepository(BaseRepository[CoachAvailabilityRule]):
    """Reads and writes both rules and time-off rows of a coach."""

    def __init__(self, db: Session):
        super().__init__(db, CoachAvailabilityRule)

    def get_rules(self, coach_id: str, weekday: Optional[int] = None) -> List[CoachAvailabilityRule]:
        query = self.db.query(CoachAvailabilityRule).filter(
            CoachAvailabilityRule.coach_id == coach_id
        )
        if weekday is not None:
            query = query.filter(CoachAvailabilityRule.weekday == weekday)
        return query.order_by(
            CoachAvailabilityRule.weekday.asc(), CoachAvailabilityRule.start_time.asc()
        ).all()

    def replace_rules(
        self, coach_id: str, rules: Iterable[Tuple[int, TimeOfDay, TimeOfDay]]
    ) -> List[CoachAvailabilityRule]:
        """Delete every rule of the coach and insert ``rules`` in their place."""
        try:
            self.db.query(CoachAvailabilityRule).filter(
                CoachAvailabilityRule.coach_id == coach_id
            ).delete(synchronize_session=False)
            created = [
                CoachAvailabilityRule(
                    coach_id=coach_id, weekday=weekday, start_time=start, end_time=end
                )
                for weekday, start, end in rules
            ]
            self.db.add_all(created)
            self.db.flush()
            return created
        except SQLAlchemyError as exc:
            self.logger.error("Failed to replace rules for coach %s: %s", coach_id, exc)
            raise RepositoryException(f"Failed to replace availability rules: {exc}") from exc

    def get_time_offs_overlapping(
        self, coach_id: str, start: datetime, end: datetime
    ) -> List[CoachTimeOff]:
        """Time-off intervals of the coach intersecting ``[start, end)``."""
        return (
            self.db.query(CoachTimeOff)
            .filter(
                CoachTimeOff.coach_id == coach_id,
                CoachTimeOff.start_at < end,
                CoachTimeOff.end_at > start,
            )
            .order_by(CoachTimeOff.start_at.asc())
            .all()
        )

    def list_upcoming_time_offs(self, coach_id: str, now: datetime) -> List[CoachTimeOff]:
        """Time-off that has not ended yet, ordered by start."""
        return (
            self.db.query(CoachTimeOff)
            .filter(CoachTimeOff.coach_id == coach_id, CoachTimeOff.end_at > now)
            .order_by(CoachTimeOff.start_at.asc())
            .all()
        )

    def add_time_offs(
        self, coach_id: str, entries: Iterable[Tuple[datetime, datetime, Optional[str]]]
    ) -> List[CoachTimeOff]:
        try:
            created = [
                CoachTimeOff(coach_id=coach_id, start_at=start, end_at=end, reason=reason)
                for start, end, reason in entries
            ]
            self.db.add_all(created)
            self.db.flush()
            return created
        except SQLAlchemyError as exc:
            self.logger.error("Failed to add time-off for coach %s: %s", coach_id, exc)
            raise RepositoryException(f"Failed to add time-off: {exc}") from exc

    def get_time_off(self, coach_id: str, time_off_id: str) -> Optional[CoachTimeOff]:
        return (
            self.db.query(CoachTimeOff)
            .filter(CoachTimeOff.id == time_off_id, CoachTimeOff.coach_id == coach_id)
            .first()
        )

    def delete_time_off(self, time_off: CoachTimeOff) -> None:
        self.db.delete(time_off)
        self.db.flush()
