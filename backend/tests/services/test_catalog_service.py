# backend/tests/services/test_catalog_service.py
import pytest
from sqlalchemy.orm import Session

from lessonbook.core.enums import LessonSearchField
from lessonbook.core.exceptions import DomainException
from lessonbook.models import Coach, CoachAvailabilityRule, CoachTimeOff, Lesson
from lessonbook.services.catalog_service import CatalogService

from conftest import MONDAY, seoul


@pytest.fixture
def catalog_service(db: Session) -> CatalogService:
    return CatalogService(db)


@pytest.fixture
def many_lessons(db: Session, coach, branch):
    lessons = [
        Lesson(name=f"Group Swim {n}", category="swim", coach_id=coach.id, branch_id=branch.id)
        for n in range(5)
    ]
    db.add_all(lessons)
    db.commit()
    return lessons


def test_create_and_update_branch(catalog_service):
    branch = catalog_service.create_branch({"name": "Jamsil", "address": "Songpa-gu"})

    updated = catalog_service.update_branch(branch.id, {"address": "Songpa-gu 1"})

    assert updated.name == "Jamsil"
    assert updated.address == "Songpa-gu 1"


def test_update_missing_branch(catalog_service):
    with pytest.raises(DomainException) as excinfo:
        catalog_service.update_branch("missing", {"name": "x"})

    assert excinfo.value.code == "BRANCH_NOT_FOUND"


def test_create_coach_requires_known_branch(catalog_service):
    with pytest.raises(DomainException) as excinfo:
        catalog_service.create_coach({"name": "Nobody", "branch_id": "missing"})

    assert excinfo.value.code == "BRANCH_NOT_FOUND"


def test_create_lesson_loads_relations(catalog_service, coach, branch):
    lesson = catalog_service.create_lesson(
        {"name": "Golf Basics", "category": "golf", "coach_id": coach.id, "branch_id": branch.id}
    )

    assert lesson.coach.name == "Lee Coach"
    assert lesson.branch.name == "Gangnam"


def test_delete_branch_in_use(catalog_service, branch, lesson):
    with pytest.raises(DomainException) as excinfo:
        catalog_service.delete_branch(branch.id)

    assert excinfo.value.code == "IN_USE"


def test_delete_lesson_with_reservations(catalog_service, make_reservation, member, lesson):
    make_reservation(member, lesson, seoul(MONDAY, 10), seoul(MONDAY, 11))

    with pytest.raises(DomainException) as excinfo:
        catalog_service.delete_lesson(lesson.id)

    assert excinfo.value.code == "IN_USE"


def test_delete_unused_lesson(catalog_service, lesson):
    catalog_service.delete_lesson(lesson.id)

    with pytest.raises(DomainException) as excinfo:
        catalog_service.get_lesson(lesson.id)
    assert excinfo.value.code == "LESSON_NOT_FOUND"


class TestLessonSearch:
    def test_pages_cover_all_lessons_once(self, catalog_service, many_lessons):
        seen = []
        cursor = None
        pages = 0
        while True:
            page = catalog_service.search_lessons(cursor=cursor, limit=2)
            seen.extend(lesson.id for lesson in page.items)
            pages += 1
            if not page.has_more:
                assert page.next_cursor is None
                break
            cursor = page.next_cursor

        assert pages == 3
        assert sorted(seen) == sorted(lesson.id for lesson in many_lessons)
        assert seen == sorted(seen, reverse=True)

    def test_search_by_lesson_name_is_case_insensitive(self, catalog_service, lesson, many_lessons):
        page = catalog_service.search_lessons(by=LessonSearchField.LESSON, q="TENNIS")

        assert [item.id for item in page.items] == [lesson.id]
        assert page.has_more is False

    def test_search_by_coach_and_branch(self, catalog_service, lesson):
        assert len(catalog_service.search_lessons(by=LessonSearchField.COACH, q="lee").items) == 1
        assert len(catalog_service.search_lessons(by=LessonSearchField.BRANCH, q="gang").items) == 1
        assert catalog_service.search_lessons(by=LessonSearchField.BRANCH, q="busan").items == []

    def test_invalid_cursor(self, catalog_service):
        with pytest.raises(DomainException) as excinfo:
            catalog_service.search_lessons(cursor="not-a-ulid")

        assert excinfo.value.code == "INVALID_CURSOR"


def test_delete_coach_removes_schedule(db, catalog_service, coach, monday_rule, make_time_off):
    make_time_off(coach, seoul(MONDAY, 12), seoul(MONDAY, 13))

    catalog_service.delete_coach(coach.id)

    db.expire_all()
    assert db.query(Coach).count() == 0
    assert db.query(CoachAvailabilityRule).count() == 0
    assert db.query(CoachTimeOff).count() == 0


def test_delete_missing_coach(catalog_service):
    with pytest.raises(DomainException) as excinfo:
        catalog_service.delete_coach("missing")

    assert excinfo.value.code == "COACH_NOT_FOUND"
    assert excinfo.value.status_code == 404


def test_delete_coach_with_lessons(catalog_service, coach, lesson):
    with pytest.raises(DomainException) as excinfo:
        catalog_service.delete_coach(coach.id)

    assert excinfo.value.code == "HAS_DEPENDENCIES"
    assert excinfo.value.status_code == 400
    assert excinfo.value.details["lessons"] == 1


def test_delete_coach_with_memberships(catalog_service, coach, membership):
    with pytest.raises(DomainException) as excinfo:
        catalog_service.delete_coach(coach.id)

    assert excinfo.value.code == "HAS_DEPENDENCIES"
    assert excinfo.value.details["memberships"] == 1
