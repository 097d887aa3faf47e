# backend/tests/services/test_availability_service.py
"""Availability computed from stored rules, time-off and reservations."""

from datetime import timedelta

import pytest
from sqlalchemy.orm import Session

from lessonbook.core.enums import ReservationStatus
from lessonbook.core.exceptions import DomainException
from lessonbook.services.availability_service import AvailabilityService

from conftest import MONDAY, seoul


@pytest.fixture
def availability_service(db: Session) -> AvailabilityService:
    return AvailabilityService(db)


def wall(result):
    return [(r.start.strftime("%H:%M"), r.end.strftime("%H:%M")) for r in result.ranges]


def test_rule_only(availability_service, lesson, monday_rule):
    result = availability_service.get_lesson_availability(lesson.id, MONDAY)

    assert wall(result) == [("09:00", "18:00")]
    assert result.slot_step_minutes == 30


def test_confirmed_reservation_is_removed(
    availability_service, make_reservation, member, lesson, monday_rule
):
    make_reservation(member, lesson, seoul(MONDAY, 10), seoul(MONDAY, 11))
    make_reservation(
        member, lesson, seoul(MONDAY, 14), seoul(MONDAY, 15), ReservationStatus.CANCELED
    )

    result = availability_service.get_lesson_availability(lesson.id, MONDAY)

    assert wall(result) == [("09:00", "10:00"), ("11:00", "18:00")]


def test_time_off_is_removed(availability_service, make_time_off, coach, monday_rule):
    make_time_off(coach, seoul(MONDAY, 17), seoul(MONDAY + timedelta(days=1), 9))

    result = availability_service.get_coach_availability(coach.id, MONDAY)

    assert wall(result) == [("09:00", "17:00")]


def test_day_without_rule_is_empty(availability_service, coach, monday_rule):
    assert availability_service.get_coach_availability(coach.id, MONDAY + timedelta(days=1)).ranges == []


def test_reservations_of_other_days_are_ignored(
    availability_service, make_reservation, member, lesson, monday_rule
):
    next_monday = MONDAY + timedelta(days=7)
    make_reservation(member, lesson, seoul(next_monday, 10), seoul(next_monday, 11))

    assert wall(availability_service.get_lesson_availability(lesson.id, MONDAY)) == [
        ("09:00", "18:00")
    ]


def test_unknown_lesson_and_coach(availability_service):
    with pytest.raises(DomainException) as excinfo:
        availability_service.get_lesson_availability("missing", MONDAY)
    assert excinfo.value.code == "LESSON_NOT_FOUND"

    with pytest.raises(DomainException) as excinfo:
        availability_service.get_coach_availability("missing", MONDAY)
    assert excinfo.value.code == "COACH_NOT_FOUND"
