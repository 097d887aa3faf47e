# backend/lessonbook/services/schedule_service.py
"""
Coach schedule administration: weekly rules and time-off.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.exceptions import CoachNotFoundException, NotFoundException, ValidationException
from ..core.timezone_utils import ensure_utc, utc_now
from ..domain.time_of_day import TimeOfDay
from ..models.coach import CoachAvailabilityRule, CoachTimeOff
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

RuleSpec = Tuple[int, TimeOfDay, TimeOfDay]
TimeOffSpec = Tuple[datetime, datetime, Optional[str]]


@dataclass(frozen=True)
class CoachSchedule:
    coach_id: str
    rules: List[CoachAvailabilityRule]
    time_offs: List[CoachTimeOff]


class ScheduleService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.coach_repository = RepositoryFactory.create_coach_repository(db)
        self.schedule_repository = RepositoryFactory.create_schedule_repository(db)

    def _ensure_coach(self, coach_id: str) -> None:
        if not self.coach_repository.exists(id=coach_id):
            raise CoachNotFoundException(coach_id)

    @staticmethod
    def _validate_rules(rules: Sequence[RuleSpec]) -> List[RuleSpec]:
        validated: List[RuleSpec] = []
        for index, (weekday, start, end) in enumerate(rules):
            if not 0 <= int(weekday) <= 6:
                raise ValidationException(
                    "Weekday must be between 0 (Sunday) and 6 (Saturday)",
                    code="VALIDATION_ERROR",
                    details={"index": index, "weekday": weekday},
                )
            if start >= end:
                raise ValidationException(
                    "Rule start time must be before its end time",
                    code="VALIDATION_ERROR",
                    details={"index": index, "start": str(start), "end": str(end)},
                )
            validated.append((int(weekday), start, end))
        return validated

    @staticmethod
    def _validate_time_offs(entries: Sequence[TimeOffSpec]) -> List[TimeOffSpec]:
        validated: List[TimeOffSpec] = []
        for index, (start, end, reason) in enumerate(entries):
            start_utc, end_utc = ensure_utc(start), ensure_utc(end)
            if start_utc >= end_utc:
                raise ValidationException(
                    "Time-off start must be before its end",
                    code="VALIDATION_ERROR",
                    details={"index": index},
                )
            validated.append((start_utc, end_utc, reason))
        return validated

    @BaseService.measure_operation("get_schedule")
    def get_schedule(self, coach_id: str) -> CoachSchedule:
        """Rules ordered by weekday and upcoming time-off ordered by start."""
        self._ensure_coach(coach_id)
        return CoachSchedule(
            coach_id=coach_id,
            rules=self.schedule_repository.get_rules(coach_id),
            time_offs=self.schedule_repository.list_upcoming_time_offs(coach_id, utc_now()),
        )

    @BaseService.measure_operation("update_schedule")
    def update_schedule(
        self,
        coach_id: str,
        rules: Optional[Sequence[RuleSpec]] = None,
        time_offs: Optional[Sequence[TimeOffSpec]] = None,
    ) -> CoachSchedule:
        """
        Replace the weekly rules (when given) and append time-off (when given)
        in one transaction.
        """
        self.log_operation(
            "update_schedule",
            coach_id=coach_id,
            rule_count=None if rules is None else len(rules),
            time_off_count=None if time_offs is None else len(time_offs),
        )
        self._ensure_coach(coach_id)
        validated_rules = self._validate_rules(rules) if rules is not None else None
        validated_time_offs = self._validate_time_offs(time_offs) if time_offs is not None else None

        with self.transaction():
            if validated_rules is not None:
                self.schedule_repository.replace_rules(coach_id, validated_rules)
            if validated_time_offs:
                self.schedule_repository.add_time_offs(coach_id, validated_time_offs)
        return self.get_schedule(coach_id)

    @BaseService.measure_operation("delete_time_off")
    def delete_time_off(self, coach_id: str, time_off_id: str) -> None:
        """
        Raises:
            NotFoundException: If the time-off does not exist or belongs to another coach
        """
        with self.transaction():
            time_off = self.schedule_repository.get_time_off(coach_id, time_off_id)
            if time_off is None:
                raise NotFoundException(
                    "Time-off not found",
                    code="NOT_FOUND",
                    details={"coach_id": coach_id, "time_off_id": time_off_id},
                )
            self.schedule_repository.delete_time_off(time_off)
        self.logger.info(f"Deleted time-off {time_off_id} of coach {coach_id}")
