# backend/tests/services/test_membership_service.py
from datetime import date

import pytest
from sqlalchemy.orm import Session

from lessonbook.core.enums import LedgerReason
from lessonbook.core.exceptions import DomainException
from lessonbook.services.booking_service import BookingService
from lessonbook.services.membership_service import MembershipService

from conftest import MONDAY, seoul

EXPIRY = seoul(date(2030, 12, 31), 23, 59)


@pytest.fixture
def membership_service(db: Session) -> MembershipService:
    return MembershipService(db)


class TestIssueMembership:
    def test_issue_creates_allocate_entry(self, membership_service, admin, member, coach):
        membership = membership_service.issue_membership(member.id, coach.id, 300, EXPIRY, admin.id)

        assert membership.remaining_minutes == 300
        assert membership.is_active is True
        entries = membership_service.membership_repository.list_ledger(membership.id)
        assert [(e.delta_minutes, e.reason, e.created_by) for e in entries] == [
            (300, LedgerReason.ALLOCATE.value, admin.id)
        ]

    def test_zero_minutes_is_allowed(self, membership_service, admin, member, coach):
        membership = membership_service.issue_membership(member.id, coach.id, 0, EXPIRY, admin.id)

        assert membership.remaining_minutes == 0
        assert membership_service.audit_membership(membership.id).consistent

    def test_negative_minutes_rejected(self, membership_service, admin, member, coach):
        with pytest.raises(DomainException) as excinfo:
            membership_service.issue_membership(member.id, coach.id, -10, EXPIRY, admin.id)

        assert excinfo.value.code == "VALIDATION_ERROR"

    def test_one_membership_per_user_and_coach(self, membership_service, admin, member, coach):
        membership_service.issue_membership(member.id, coach.id, 60, EXPIRY, admin.id)

        with pytest.raises(DomainException) as excinfo:
            membership_service.issue_membership(member.id, coach.id, 60, EXPIRY, admin.id)

        assert excinfo.value.code == "MEMBERSHIP_EXISTS"
        assert excinfo.value.status_code == 409

    def test_unknown_user_and_coach(self, membership_service, admin, member, coach):
        with pytest.raises(DomainException) as excinfo:
            membership_service.issue_membership("nobody", coach.id, 60, EXPIRY, admin.id)
        assert excinfo.value.code == "USER_NOT_FOUND"

        with pytest.raises(DomainException) as excinfo:
            membership_service.issue_membership(member.id, "nocoach", 60, EXPIRY, admin.id)
        assert excinfo.value.code == "COACH_NOT_FOUND"


class TestAdjustMembership:
    def test_adjust_adds_ledger_entry(self, membership_service, admin, membership):
        membership_service.adjust_membership(membership.id, -100, admin.id)
        updated = membership_service.adjust_membership(membership.id, 30, admin.id)

        assert updated.remaining_minutes == 530
        audit = membership_service.audit_membership(membership.id)
        assert audit.consistent
        assert audit.ledger_total == 530

    def test_adjust_below_zero_rejected(self, membership_service, admin, membership):
        with pytest.raises(DomainException) as excinfo:
            membership_service.adjust_membership(membership.id, -601, admin.id)

        assert excinfo.value.code == "INVALID_ADJUSTMENT"
        assert membership_service.audit_membership(membership.id).remaining_minutes == 600

    def test_zero_adjustment_rejected(self, membership_service, admin, membership):
        with pytest.raises(DomainException) as excinfo:
            membership_service.adjust_membership(membership.id, 0, admin.id)

        assert excinfo.value.code == "INVALID_ADJUSTMENT"

    def test_unknown_membership(self, membership_service, admin):
        with pytest.raises(DomainException) as excinfo:
            membership_service.adjust_membership("missing", 10, admin.id)

        assert excinfo.value.code == "NOT_FOUND"

    def test_deactivate_blocks_booking(self, db, membership_service, member, lesson, membership):
        membership_service.set_membership_active(membership.id, False)

        with pytest.raises(DomainException) as excinfo:
            BookingService(db).create_reservation(
                member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11)
            )

        assert excinfo.value.code == "NO_MEMBERSHIP"


class TestLedgerAccess:
    def test_owner_reads_ledger_newest_first(
        self, db, membership_service, member, lesson, membership
    ):
        BookingService(db).create_reservation(
            member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11)
        )

        entries = membership_service.get_ledger(membership.id, member)

        assert {e.reason for e in entries} == {"ALLOCATE", "BOOKING"}
        assert entries[0].created_at >= entries[-1].created_at

    def test_other_member_is_forbidden(self, membership_service, make_user, membership):
        stranger = make_user(email="stranger@example.com")

        with pytest.raises(DomainException) as excinfo:
            membership_service.get_ledger(membership.id, stranger)

        assert excinfo.value.code == "FORBIDDEN"

    def test_admin_reads_any_ledger(self, membership_service, admin, membership):
        assert len(membership_service.get_ledger(membership.id, admin)) == 1

    def test_list_user_memberships_active_first(
        self, membership_service, make_membership, db, branch, member, coach
    ):
        from lessonbook.models import Coach

        second_coach = Coach(name="Choi Coach", branch_id=branch.id)
        db.add(second_coach)
        db.commit()
        make_membership(member, coach, is_active=False)
        active = make_membership(member, second_coach)

        memberships = membership_service.list_user_memberships(member.id)

        assert [m.id for m in memberships][0] == active.id
        assert len(memberships) == 2
