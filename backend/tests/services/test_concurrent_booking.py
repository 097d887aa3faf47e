# backend/tests/services/test_concurrent_booking.py
"""
Concurrent bookings against a file-backed SQLite database.

Each booking runs in its own thread with its own session. A barrier in the
coach lock holds both threads until each has read the membership and
passed the balance check, so both proceed from the same stale view.
"""

import threading
from typing import List, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from lessonbook.core.enums import ReservationStatus
from lessonbook.core.exceptions import DomainException
from lessonbook.database import Base
from lessonbook.models import Membership, Reservation
from lessonbook.repositories.catalog_repository import CoachRepository
from lessonbook.repositories.membership_repository import MembershipRepository
from lessonbook.services.booking_service import BookingService

from conftest import MONDAY, seoul


@pytest.fixture(scope="function")
def engine(tmp_path):
    """Shadows the in-memory engine: threads need separate connections to one file."""
    file_engine = create_engine(
        f"sqlite:///{tmp_path / 'booking.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=file_engine)
    yield file_engine
    Base.metadata.drop_all(bind=file_engine)
    file_engine.dispose()


@pytest.fixture
def barrier_at_coach_lock(monkeypatch) -> threading.Barrier:
    barrier = threading.Barrier(2, timeout=10)
    original_lock = CoachRepository.lock

    def lock_after_both_arrive(self, coach_id):
        barrier.wait()
        return original_lock(self, coach_id)

    monkeypatch.setattr(CoachRepository, "lock", lock_after_both_arrive)
    return barrier


def book_concurrently(engine, user_id: str, lesson_id: str, ranges) -> List[Tuple[str, str]]:
    """Run one create_reservation per range in parallel; return (outcome, detail) pairs."""
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    results: List[Tuple[str, str]] = []
    results_lock = threading.Lock()

    def book(start_at, end_at):
        session = SessionLocal()
        try:
            reservation = BookingService(session).create_reservation(
                user_id, lesson_id, start_at, end_at
            )
            outcome = ("ok", reservation.id)
        except DomainException as exc:
            outcome = ("error", exc.code)
        except Exception as exc:  # surfaced through the assertions below
            outcome = ("unexpected", repr(exc))
        finally:
            session.close()
        with results_lock:
            results.append(outcome)

    threads = [threading.Thread(target=book, args=r) for r in ranges]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return results


def stored_balance_and_ledger_sum(db, membership: Membership) -> Tuple[int, int]:
    db.expire_all()
    stored = db.get(Membership, membership.id)
    return stored.remaining_minutes, MembershipRepository(db).ledger_sum(membership.id)


class TestConcurrentBooking:
    def test_overlapping_requests_confirm_exactly_one(
        self, db, barrier_at_coach_lock, member, lesson, membership
    ):
        results = book_concurrently(
            db.get_bind(),
            member.id,
            lesson.id,
            [
                (seoul(MONDAY, 10), seoul(MONDAY, 11)),
                (seoul(MONDAY, 10, 30), seoul(MONDAY, 11, 30)),
            ],
        )

        assert sorted(outcome for outcome, _ in results) == ["error", "ok"], results
        assert [detail for outcome, detail in results if outcome == "error"] == ["TIME_CONFLICT"]

        db.expire_all()
        reservations = db.query(Reservation).all()
        assert [r.status for r in reservations] == [ReservationStatus.CONFIRMED.value]
        balance, ledger_sum = stored_balance_and_ledger_sum(db, membership)
        assert balance == 540
        assert ledger_sum == balance

    def test_disjoint_requests_on_one_membership_both_debit(
        self, db, barrier_at_coach_lock, member, lesson, membership
    ):
        results = book_concurrently(
            db.get_bind(),
            member.id,
            lesson.id,
            [
                (seoul(MONDAY, 10), seoul(MONDAY, 11)),
                (seoul(MONDAY, 14), seoul(MONDAY, 15)),
            ],
        )

        assert [outcome for outcome, _ in results] == ["ok", "ok"], results
        balance, ledger_sum = stored_balance_and_ledger_sum(db, membership)
        assert balance == 480
        assert ledger_sum == balance

    def test_last_minutes_are_spent_only_once(
        self, db, barrier_at_coach_lock, make_membership, member, coach, lesson
    ):
        membership = make_membership(member, coach, minutes=60)

        results = book_concurrently(
            db.get_bind(),
            member.id,
            lesson.id,
            [
                (seoul(MONDAY, 10), seoul(MONDAY, 11)),
                (seoul(MONDAY, 14), seoul(MONDAY, 15)),
            ],
        )

        assert sorted(outcome for outcome, _ in results) == ["error", "ok"], results
        assert [detail for outcome, detail in results if outcome == "error"] == [
            "INSUFFICIENT_MINUTES"
        ]
        db.expire_all()
        assert db.query(Reservation).count() == 1
        balance, ledger_sum = stored_balance_and_ledger_sum(db, membership)
        assert balance == 0
        assert ledger_sum == balance
