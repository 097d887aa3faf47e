# backend/lessonbook/services/booking_service.py
"""
Booking Service

Creates and cancels reservations against membership balances. Each create
or cancel is one unit of work: the reservation write, the membership
balance change and the ledger entry commit together or not at all.

Overlap between active reservations of a coach is checked inside the
transaction after locking the coach row, and enforced again by the
``reservations_no_overlap_per_coach`` database constraint. A constraint
violation is reported as TIME_CONFLICT and never retried.
"""

from datetime import datetime, timedelta
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import (
    CANCELABLE_STATUSES,
    LedgerReason,
    LessonGoal,
    ReservationStatus,
    can_transition,
)
from ..core.exceptions import (
    AlreadyCanceledException,
    CannotCancelException,
    DomainException,
    InsufficientMinutesException,
    InvalidAdjustmentException,
    InvalidDurationException,
    InvalidStatusTransitionException,
    InvalidTimeRangeException,
    LessonNotFoundException,
    MembershipExpiredException,
    NoMembershipException,
    PastReservationException,
    ReservationForbiddenException,
    ReservationNotFoundException,
    TimeConflictException,
)
from ..core.timezone_utils import ensure_utc, utc_now
from ..models.reservation import Reservation, is_overlap_violation
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .membership_ledger import record_ledger_entry

logger = logging.getLogger(__name__)

TIME_CONFLICT_MESSAGE = "This time slot has already been booked"


class BookingService(BaseService):
    """Reservation create/cancel and administrator status changes."""

    def __init__(self, db: Session, slot_step_minutes: Optional[int] = None):
        super().__init__(db)
        self.slot_step_minutes = slot_step_minutes or settings.slot_step_minutes
        self.reservation_repository = RepositoryFactory.create_reservation_repository(db)
        self.membership_repository = RepositoryFactory.create_membership_repository(db)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)
        self.coach_repository = RepositoryFactory.create_coach_repository(db)

    # Create

    def _validate_time_range(self, start_at: datetime, end_at: datetime) -> int:
        """Return the duration in minutes or raise INVALID_TIME_RANGE / INVALID_DURATION."""
        if end_at <= start_at:
            raise InvalidTimeRangeException(
                details={"start_at": start_at.isoformat(), "end_at": end_at.isoformat()}
            )
        step = timedelta(minutes=self.slot_step_minutes)
        span = end_at - start_at
        duration_minutes = int(span.total_seconds() // 60)
        if span % step != timedelta(0):
            raise InvalidDurationException(duration_minutes, self.slot_step_minutes)
        return duration_minutes

    def _conflict_details(
        self, coach_id: str, start_at: datetime, end_at: datetime
    ) -> Dict[str, Any]:
        return {
            "coach_id": coach_id,
            "start_at": start_at.isoformat(),
            "end_at": end_at.isoformat(),
        }

    @BaseService.measure_operation("create_reservation")
    def create_reservation(
        self,
        user_id: str,
        lesson_id: str,
        start_at: datetime,
        end_at: datetime,
        goal: Optional[LessonGoal] = None,
        category_tag: Optional[str] = None,
    ) -> Reservation:
        """
        Book ``[start_at, end_at)`` of the lesson's coach for ``user_id``.

        Validation order: time range, duration, lesson, membership presence,
        membership expiry, balance, overlap.

        Returns:
            The CONFIRMED reservation

        Raises:
            InvalidTimeRangeException, InvalidDurationException,
            LessonNotFoundException, NoMembershipException,
            MembershipExpiredException, InsufficientMinutesException,
            TimeConflictException
        """
        self.log_operation(
            "create_reservation", user_id=user_id, lesson_id=lesson_id, start_at=start_at
        )
        try:
            reservation = self._create_reservation(
                user_id, lesson_id, ensure_utc(start_at), ensure_utc(end_at), goal, category_tag
            )
        except DomainException as exc:
            prometheus_metrics.record_reservation_outcome("rejected", exc.code)
            raise
        prometheus_metrics.record_reservation_outcome("created")
        return reservation

    def _create_reservation(
        self,
        user_id: str,
        lesson_id: str,
        start_at: datetime,
        end_at: datetime,
        goal: Optional[LessonGoal],
        category_tag: Optional[str],
    ) -> Reservation:
        duration_minutes = self._validate_time_range(start_at, end_at)

        lesson = self.lesson_repository.get_by_id(lesson_id)
        if not lesson:
            raise LessonNotFoundException(lesson_id)

        try:
            with self.reservation_repository.transaction():
                membership = self.membership_repository.get_for_user_and_coach(
                    user_id, lesson.coach_id, lock=True
                )
                if membership is None or not membership.is_active:
                    raise NoMembershipException(lesson.coach_id, lesson.coach.name)
                if membership.is_expired(start_at):
                    raise MembershipExpiredException(
                        membership.id, membership.expires_at.isoformat()
                    )
                if membership.remaining_minutes < duration_minutes:
                    raise InsufficientMinutesException(
                        duration_minutes, membership.remaining_minutes
                    )

                self.coach_repository.lock(lesson.coach_id)
                existing = self.reservation_repository.find_active_overlap(
                    lesson.coach_id, start_at, end_at
                )
                if existing is not None:
                    raise TimeConflictException(
                        TIME_CONFLICT_MESSAGE,
                        details=self._conflict_details(lesson.coach_id, start_at, end_at),
                    )

                reservation = self.reservation_repository.insert(
                    Reservation(
                        lesson_id=lesson.id,
                        user_id=user_id,
                        coach_id=lesson.coach_id,
                        branch_id=lesson.branch_id,
                        start_at=start_at,
                        end_at=end_at,
                        status=ReservationStatus.CONFIRMED.value,
                        goal=LessonGoal(goal).value if goal else None,
                        category_tag=category_tag,
                    )
                )
                try:
                    record_ledger_entry(
                        self.membership_repository,
                        membership,
                        -duration_minutes,
                        LedgerReason.BOOKING,
                        reservation_id=reservation.id,
                        created_by=user_id,
                    )
                except InvalidAdjustmentException as exc:
                    # Another booking spent the minutes after the balance check above
                    raise InsufficientMinutesException(
                        duration_minutes, membership.remaining_minutes
                    ) from exc
        except IntegrityError as exc:
            if is_overlap_violation(exc):
                self.logger.warning(
                    "Overlap constraint rejected reservation",
                    extra={"coach_id": lesson.coach_id, "user_id": user_id},
                )
                raise TimeConflictException(
                    TIME_CONFLICT_MESSAGE,
                    details=self._conflict_details(lesson.coach_id, start_at, end_at),
                ) from exc
            raise

        self.logger.info(
            f"Reservation {reservation.id} confirmed for user {user_id}",
            extra={"reservation_id": reservation.id, "duration_minutes": duration_minutes},
        )
        return reservation

    # Cancel

    def _refund_and_cancel(self, reservation: Reservation, actor_id: str) -> None:
        """
        Cancel ``reservation`` and refund its duration to the (user, coach) membership.

        Must run inside the caller's transaction. A missing membership skips
        the refund but still cancels.
        """
        reservation.cancel(utc_now())
        duration_minutes = reservation.duration_minutes

        membership = self.membership_repository.get_for_user_and_coach(
            reservation.user_id, reservation.coach_id, lock=True
        )
        if membership is None:
            self.logger.warning(
                f"No membership for reservation {reservation.id}; canceled without refund",
                extra={
                    "reservation_id": reservation.id,
                    "user_id": reservation.user_id,
                    "coach_id": reservation.coach_id,
                },
            )
            self.db.flush()
            return

        record_ledger_entry(
            self.membership_repository,
            membership,
            duration_minutes,
            LedgerReason.CANCEL_REFUND,
            reservation_id=reservation.id,
            created_by=actor_id,
        )

    @BaseService.measure_operation("cancel_reservation")
    def cancel_reservation(self, reservation_id: str, user_id: str) -> Reservation:
        """
        Cancel a member's own future reservation and refund its minutes.

        Raises:
            ReservationNotFoundException: NOT_FOUND
            ReservationForbiddenException: FORBIDDEN
            AlreadyCanceledException: ALREADY_CANCELED
            CannotCancelException: CANNOT_CANCEL
            PastReservationException: PAST_RESERVATION
        """
        self.log_operation("cancel_reservation", reservation_id=reservation_id, user_id=user_id)

        with self.transaction():
            reservation = self.reservation_repository.lock(reservation_id)
            if reservation is None:
                raise ReservationNotFoundException(reservation_id)
            if reservation.user_id != user_id:
                raise ReservationForbiddenException(reservation_id)
            if reservation.status == ReservationStatus.CANCELED.value:
                raise AlreadyCanceledException(reservation_id)
            if ReservationStatus(reservation.status) not in CANCELABLE_STATUSES:
                raise CannotCancelException(reservation_id, reservation.status)
            if reservation.start_at <= utc_now():
                raise PastReservationException(reservation_id)

            self._refund_and_cancel(reservation, actor_id=user_id)

        prometheus_metrics.record_reservation_outcome("canceled")
        return reservation

    # Administrator operations

    @BaseService.measure_operation("admin_update_status")
    def admin_update_status(
        self, reservation_id: str, status: ReservationStatus, admin_id: str
    ) -> Reservation:
        """
        Apply a legal status transition.

        Moving to CANCELED refunds exactly like a member cancellation but
        without the past-time restriction.
        """
        target = ReservationStatus(status)
        self.log_operation(
            "admin_update_status",
            reservation_id=reservation_id,
            target_status=target.value,
            admin_id=admin_id,
        )

        with self.transaction():
            reservation = self.reservation_repository.lock(reservation_id)
            if reservation is None:
                raise ReservationNotFoundException(reservation_id)
            current = ReservationStatus(reservation.status)
            if not can_transition(current, target):
                raise InvalidStatusTransitionException(current.value, target.value)

            if target == ReservationStatus.CANCELED:
                self._refund_and_cancel(reservation, actor_id=admin_id)
            else:
                reservation.status = target.value
                self.db.flush()

        if target == ReservationStatus.CANCELED:
            prometheus_metrics.record_reservation_outcome("canceled")
        return reservation

    @BaseService.measure_operation("admin_update_feedback")
    def admin_update_feedback(self, reservation_id: str, feedback: Optional[str]) -> Reservation:
        with self.transaction():
            reservation = self.reservation_repository.get_by_id(
                reservation_id, load_relationships=False
            )
            if reservation is None:
                raise ReservationNotFoundException(reservation_id)
            reservation.feedback = feedback
        return reservation

    def get_reservation(self, reservation_id: str) -> Reservation:
        reservation = self.reservation_repository.get_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFoundException(reservation_id)
        return reservation

    @BaseService.measure_operation("list_reservations")
    def list_reservations(self, status: Optional[ReservationStatus] = None) -> List[Reservation]:
        """All reservations, newest first (administrators)."""
        return self.reservation_repository.list_reservations(status=status)

    @BaseService.measure_operation("list_user_reservations")
    def list_user_reservations(
        self, user_id: str, status: Optional[ReservationStatus] = None
    ) -> List[Reservation]:
        """A member's reservations, newest first."""
        return self.reservation_repository.list_reservations(user_id=user_id, status=status)
