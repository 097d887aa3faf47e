# backend/tests/services/test_booking_service.py
"""
Tests for BookingService: reservation creation, cancellation, administrator
status changes and the membership balance bookkeeping around them.
"""

from datetime import date, timedelta

import pytest
from sqlalchemy import update
from sqlalchemy.orm import Session

from lessonbook.core.enums import LedgerReason, LessonGoal, ReservationStatus
from lessonbook.core.exceptions import DomainException
from lessonbook.models import Membership, MembershipLedgerEntry, Reservation
from lessonbook.repositories.catalog_repository import CoachRepository
from lessonbook.repositories.reservation_repository import ReservationRepository
from lessonbook.services.booking_service import BookingService

from conftest import MONDAY, seoul


@pytest.fixture
def booking_service(db: Session) -> BookingService:
    return BookingService(db)


def ledger_for(db: Session, membership: Membership):
    return (
        db.query(MembershipLedgerEntry)
        .filter(MembershipLedgerEntry.membership_id == membership.id)
        .order_by(MembershipLedgerEntry.created_at.asc(), MembershipLedgerEntry.id.asc())
        .all()
    )


def assert_ledger_balanced(db: Session, membership: Membership) -> None:
    db.refresh(membership)
    assert sum(e.delta_minutes for e in ledger_for(db, membership)) == membership.remaining_minutes


def error_code(excinfo) -> str:
    assert isinstance(excinfo.value, DomainException)
    return excinfo.value.code


class TestCreateReservation:
    def test_books_and_debits_membership(self, db, booking_service, member, lesson, membership):
        reservation = booking_service.create_reservation(
            member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11), goal=LessonGoal.NORMAL
        )

        assert reservation.status == ReservationStatus.CONFIRMED.value
        assert reservation.coach_id == lesson.coach_id
        assert reservation.branch_id == lesson.branch_id
        assert reservation.goal == "NORMAL"
        assert reservation.duration_minutes == 60

        db.refresh(membership)
        assert membership.remaining_minutes == 540
        entries = ledger_for(db, membership)
        assert [(e.delta_minutes, e.reason) for e in entries] == [
            (600, LedgerReason.ALLOCATE.value),
            (-60, LedgerReason.BOOKING.value),
        ]
        assert entries[-1].reservation_id == reservation.id
        assert entries[-1].created_by == member.id
        assert_ledger_balanced(db, membership)

    def test_stores_instants_in_utc(self, booking_service, member, lesson, membership):
        reservation = booking_service.create_reservation(
            member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11)
        )

        assert reservation.start_at == seoul(MONDAY, 10)
        assert reservation.start_at.utcoffset() == timedelta(0)

    def test_overlapping_booking_is_time_conflict(
        self, db, booking_service, member, lesson, membership
    ):
        booking_service.create_reservation(member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11))

        with pytest.raises(DomainException) as excinfo:
            booking_service.create_reservation(
                member.id, lesson.id, seoul(MONDAY, 10, 30), seoul(MONDAY, 11, 30)
            )

        assert error_code(excinfo) == "TIME_CONFLICT"
        assert excinfo.value.status_code == 409
        db.refresh(membership)
        assert membership.remaining_minutes == 540
        assert_ledger_balanced(db, membership)

    def test_adjacent_booking_is_allowed(self, booking_service, member, lesson, membership):
        booking_service.create_reservation(member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11))

        second = booking_service.create_reservation(
            member.id, lesson.id, seoul(MONDAY, 11), seoul(MONDAY, 12)
        )

        assert second.status == ReservationStatus.CONFIRMED.value

    def test_other_members_booking_conflicts_on_same_coach(
        self, booking_service, make_user, make_membership, member, coach, lesson, membership
    ):
        other = make_user(email="other@example.com")
        make_membership(other, coach, minutes=120)
        booking_service.create_reservation(member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11))

        with pytest.raises(DomainException) as excinfo:
            booking_service.create_reservation(
                other.id, lesson.id, seoul(MONDAY, 9, 30), seoul(MONDAY, 10, 30)
            )

        assert error_code(excinfo) == "TIME_CONFLICT"

    def test_canceled_reservation_does_not_block(
        self, booking_service, make_reservation, member, lesson, membership
    ):
        make_reservation(
            member, lesson, seoul(MONDAY, 10), seoul(MONDAY, 11), ReservationStatus.CANCELED
        )

        reservation = booking_service.create_reservation(
            member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11)
        )

        assert reservation.status == ReservationStatus.CONFIRMED.value

    def test_race_past_precheck_is_caught_by_constraint(
        self, db, booking_service, monkeypatch, member, lesson, membership
    ):
        booking_service.create_reservation(member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11))
        # Simulate a concurrent insert that the pre-check did not see
        monkeypatch.setattr(ReservationRepository, "find_active_overlap", lambda *a, **k: None)

        with pytest.raises(DomainException) as excinfo:
            booking_service.create_reservation(
                member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11)
            )

        assert error_code(excinfo) == "TIME_CONFLICT"
        assert db.query(Reservation).count() == 1
        db.refresh(membership)
        assert membership.remaining_minutes == 540
        assert_ledger_balanced(db, membership)

    def test_debit_uses_stored_balance_not_loaded_value(
        self, db, booking_service, monkeypatch, make_membership, member, coach, lesson
    ):
        membership = make_membership(member, coach, minutes=60)
        original_lock = CoachRepository.lock

        def spend_elsewhere_then_lock(self, coach_id):
            # Another writer empties the balance after it was read and checked
            self.db.execute(
                update(Membership)
                .where(Membership.id == membership.id)
                .values(remaining_minutes=0)
                .execution_options(synchronize_session=False)
            )
            return original_lock(self, coach_id)

        monkeypatch.setattr(CoachRepository, "lock", spend_elsewhere_then_lock)

        with pytest.raises(DomainException) as excinfo:
            booking_service.create_reservation(
                member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11)
            )

        assert error_code(excinfo) == "INSUFFICIENT_MINUTES"
        assert excinfo.value.details == {"required_minutes": 60, "remaining_minutes": 0}
        assert db.query(Reservation).count() == 0
        db.refresh(membership)
        assert membership.remaining_minutes == 60

    def test_insufficient_minutes(self, db, booking_service, make_membership, member, coach, lesson):
        membership = make_membership(member, coach, minutes=30)

        with pytest.raises(DomainException) as excinfo:
            booking_service.create_reservation(
                member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11)
            )

        assert error_code(excinfo) == "INSUFFICIENT_MINUTES"
        assert excinfo.value.details == {"required_minutes": 60, "remaining_minutes": 30}
        db.refresh(membership)
        assert membership.remaining_minutes == 30
        assert db.query(Reservation).count() == 0

    def test_exact_balance_can_be_spent(self, db, booking_service, make_membership, member, coach, lesson):
        membership = make_membership(member, coach, minutes=60)

        booking_service.create_reservation(member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11))

        db.refresh(membership)
        assert membership.remaining_minutes == 0

    def test_no_membership(self, booking_service, member, lesson):
        with pytest.raises(DomainException) as excinfo:
            booking_service.create_reservation(
                member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11)
            )

        assert error_code(excinfo) == "NO_MEMBERSHIP"
        assert "Lee Coach" in excinfo.value.message

    def test_inactive_membership_counts_as_missing(
        self, booking_service, make_membership, member, coach, lesson
    ):
        make_membership(member, coach, is_active=False)

        with pytest.raises(DomainException) as excinfo:
            booking_service.create_reservation(
                member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11)
            )

        assert error_code(excinfo) == "NO_MEMBERSHIP"

    def test_membership_expired_before_start(
        self, booking_service, make_membership, member, coach, lesson
    ):
        make_membership(member, coach, expires_at=seoul(MONDAY, 9))

        with pytest.raises(DomainException) as excinfo:
            booking_service.create_reservation(
                member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11)
            )

        assert error_code(excinfo) == "MEMBERSHIP_EXPIRED"

    def test_membership_expiring_at_start_is_still_valid(
        self, booking_service, make_membership, member, coach, lesson
    ):
        make_membership(member, coach, expires_at=seoul(MONDAY, 10))

        reservation = booking_service.create_reservation(
            member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11)
        )

        assert reservation.id

    def test_unknown_lesson(self, booking_service, member, membership):
        with pytest.raises(DomainException) as excinfo:
            booking_service.create_reservation(
                member.id, "01HZZZZZZZZZZZZZZZZZZZZZZZ", seoul(MONDAY, 10), seoul(MONDAY, 11)
            )

        assert error_code(excinfo) == "LESSON_NOT_FOUND"
        assert excinfo.value.status_code == 404

    @pytest.mark.parametrize("end_hour,end_minute", [(10, 0), (9, 30)])
    def test_invalid_time_range(self, booking_service, member, lesson, membership, end_hour, end_minute):
        with pytest.raises(DomainException) as excinfo:
            booking_service.create_reservation(
                member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, end_hour, end_minute)
            )

        assert error_code(excinfo) == "INVALID_TIME_RANGE"

    def test_time_range_checked_before_lesson(self, booking_service, member):
        with pytest.raises(DomainException) as excinfo:
            booking_service.create_reservation(
                member.id, "missing-lesson", seoul(MONDAY, 11), seoul(MONDAY, 10)
            )

        assert error_code(excinfo) == "INVALID_TIME_RANGE"

    def test_duration_must_be_whole_slots(self, booking_service, member, lesson, membership):
        with pytest.raises(DomainException) as excinfo:
            booking_service.create_reservation(
                member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 10, 45)
            )

        assert error_code(excinfo) == "INVALID_DURATION"


class TestCancelReservation:
    def test_cancel_refunds_minutes(self, db, booking_service, member, lesson, membership):
        reservation = booking_service.create_reservation(
            member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11, 30)
        )

        canceled = booking_service.cancel_reservation(reservation.id, member.id)

        assert canceled.status == ReservationStatus.CANCELED.value
        assert canceled.canceled_at is not None
        db.refresh(membership)
        assert membership.remaining_minutes == 600
        assert [e.reason for e in ledger_for(db, membership)] == [
            LedgerReason.ALLOCATE.value,
            LedgerReason.BOOKING.value,
            LedgerReason.CANCEL_REFUND.value,
        ]
        refund = ledger_for(db, membership)[-1]
        assert refund.delta_minutes == 90
        assert refund.reservation_id == reservation.id
        assert_ledger_balanced(db, membership)

    def test_canceled_slot_can_be_rebooked(self, booking_service, member, lesson, membership):
        first = booking_service.create_reservation(
            member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11)
        )
        booking_service.cancel_reservation(first.id, member.id)

        second = booking_service.create_reservation(
            member.id, lesson.id, seoul(MONDAY, 10), seoul(MONDAY, 11)
        )

        assert second.id != first.id

    def test_not_found(self, booking_service, member):
        with pytest.raises(DomainException) as excinfo:
            booking_service.cancel_reservation("01HZZZZZZZZZZZZZZZZZZZZZZZ", member.id)

        assert error_code(excinfo) == "NOT_FOUND"

    def test_someone_elses_reservation(
        self, booking_service, make_user, make_reservation, member, lesson
    ):
        reservation = make_reservation(member, lesson, seoul(MONDAY, 10), seoul(MONDAY, 11))
        intruder = make_user(email="intruder@example.com")

        with pytest.raises(DomainException) as excinfo:
            booking_service.cancel_reservation(reservation.id, intruder.id)

        assert error_code(excinfo) == "FORBIDDEN"
        assert excinfo.value.status_code == 403

    def test_already_canceled(self, booking_service, make_reservation, member, lesson):
        reservation = make_reservation(
            member, lesson, seoul(MONDAY, 10), seoul(MONDAY, 11), ReservationStatus.CANCELED
        )

        with pytest.raises(DomainException) as excinfo:
            booking_service.cancel_reservation(reservation.id, member.id)

        assert error_code(excinfo) == "ALREADY_CANCELED"

    @pytest.mark.parametrize(
        "status",
        [ReservationStatus.ATTENDED, ReservationStatus.NO_SHOW, ReservationStatus.HOLIDAY],
    )
    def test_cannot_cancel_other_statuses(
        self, booking_service, make_reservation, member, lesson, status
    ):
        reservation = make_reservation(member, lesson, seoul(MONDAY, 10), seoul(MONDAY, 11), status)

        with pytest.raises(DomainException) as excinfo:
            booking_service.cancel_reservation(reservation.id, member.id)

        assert error_code(excinfo) == "CANNOT_CANCEL"

    def test_pending_can_be_canceled(
        self, booking_service, make_reservation, member, lesson, membership
    ):
        reservation = make_reservation(
            member, lesson, seoul(MONDAY, 10), seoul(MONDAY, 11), ReservationStatus.PENDING
        )

        assert booking_service.cancel_reservation(reservation.id, member.id).status == "CANCELED"

    def test_past_reservation(self, db, booking_service, make_reservation, member, lesson, membership):
        past_day = date(2020, 3, 2)
        reservation = make_reservation(member, lesson, seoul(past_day, 10), seoul(past_day, 11))

        with pytest.raises(DomainException) as excinfo:
            booking_service.cancel_reservation(reservation.id, member.id)

        assert error_code(excinfo) == "PAST_RESERVATION"
        db.refresh(reservation)
        assert reservation.status == ReservationStatus.CONFIRMED.value

    def test_missing_membership_cancels_without_refund(
        self, db, booking_service, make_reservation, member, lesson
    ):
        reservation = make_reservation(member, lesson, seoul(MONDAY, 10), seoul(MONDAY, 11))

        canceled = booking_service.cancel_reservation(reservation.id, member.id)

        assert canceled.status == ReservationStatus.CANCELED.value
        assert db.query(MembershipLedgerEntry).count() == 0


class TestAdminStatusChanges:
    def test_legal_transition(self, booking_service, make_reservation, admin, member, lesson):
        reservation = make_reservation(member, lesson, seoul(MONDAY, 10), seoul(MONDAY, 11))

        updated = booking_service.admin_update_status(
            reservation.id, ReservationStatus.ATTENDED, admin.id
        )

        assert updated.status == ReservationStatus.ATTENDED.value

    def test_illegal_transition(self, booking_service, make_reservation, admin, member, lesson):
        reservation = make_reservation(
            member, lesson, seoul(MONDAY, 10), seoul(MONDAY, 11), ReservationStatus.ATTENDED
        )

        with pytest.raises(DomainException) as excinfo:
            booking_service.admin_update_status(
                reservation.id, ReservationStatus.CONFIRMED, admin.id
            )

        assert error_code(excinfo) == "INVALID_STATUS_TRANSITION"

    def test_admin_cancel_of_past_reservation_refunds(
        self, db, booking_service, admin, member, lesson, membership
    ):
        past_day = date(2020, 3, 2)
        reservation = booking_service.create_reservation(
            member.id, lesson.id, seoul(past_day, 10), seoul(past_day, 11)
        )

        booking_service.admin_update_status(reservation.id, ReservationStatus.CANCELED, admin.id)

        db.refresh(membership)
        assert membership.remaining_minutes == 600
        refund = ledger_for(db, membership)[-1]
        assert refund.reason == LedgerReason.CANCEL_REFUND.value
        assert refund.created_by == admin.id
        assert_ledger_balanced(db, membership)

    def test_feedback_update(self, booking_service, make_reservation, member, lesson):
        reservation = make_reservation(member, lesson, seoul(MONDAY, 10), seoul(MONDAY, 11))

        updated = booking_service.admin_update_feedback(reservation.id, "Great footwork")

        assert updated.feedback == "Great footwork"


def test_ledger_sum_matches_balance_through_mixed_operations(
    db, booking_service, admin, member, lesson, membership
):
    starts = [9, 10, 13, 15]
    reservations = [
        booking_service.create_reservation(
            member.id, lesson.id, seoul(MONDAY, hour), seoul(MONDAY, hour, 30)
        )
        for hour in starts
    ]
    booking_service.cancel_reservation(reservations[1].id, member.id)
    booking_service.admin_update_status(reservations[2].id, ReservationStatus.CANCELED, admin.id)
    booking_service.admin_update_status(reservations[3].id, ReservationStatus.ATTENDED, admin.id)

    db.refresh(membership)
    assert membership.remaining_minutes == 600 - 2 * 30
    assert_ledger_balanced(db, membership)
