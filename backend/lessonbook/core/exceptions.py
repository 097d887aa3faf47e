# backend/lessonbook/core/exceptions.py
"""
Domain-specific exceptions for the lesson booking platform.

These exceptions provide clear, business-focused error messages with a
machine-readable ``code`` that the API layer passes through unchanged.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "code": self.code,
                "message": self.message,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "code": self.code,
                "message": self.message or "An error occurred processing your request",
                "details": self.details if self.details else {},
            },
        )


# Reservation creation


class InvalidTimeRangeException(ValidationException):
    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="End time must be after start time",
            code="INVALID_TIME_RANGE",
            details=details,
        )


class InvalidDurationException(ValidationException):
    def __init__(self, duration_minutes: int, step_minutes: int):
        super().__init__(
            message=f"Reservations must be booked in {step_minutes}-minute units",
            code="INVALID_DURATION",
            details={"duration_minutes": duration_minutes, "step_minutes": step_minutes},
        )


class LessonNotFoundException(NotFoundException):
    def __init__(self, lesson_id: str):
        super().__init__(
            message="Lesson not found",
            code="LESSON_NOT_FOUND",
            details={"lesson_id": lesson_id},
        )


class NoMembershipException(ValidationException):
    def __init__(self, coach_id: str, coach_name: Optional[str] = None):
        who = f"coach {coach_name}" if coach_name else "this coach"
        super().__init__(
            message=f"You have no active membership with {who}",
            code="NO_MEMBERSHIP",
            details={"coach_id": coach_id},
        )


class MembershipExpiredException(ValidationException):
    def __init__(self, membership_id: str, expires_at: str):
        super().__init__(
            message="Membership has expired",
            code="MEMBERSHIP_EXPIRED",
            details={"membership_id": membership_id, "expires_at": expires_at},
        )


class InsufficientMinutesException(ValidationException):
    def __init__(self, required_minutes: int, remaining_minutes: int):
        super().__init__(
            message=(
                f"Not enough lesson minutes: {required_minutes} required, "
                f"{remaining_minutes} remaining"
            ),
            code="INSUFFICIENT_MINUTES",
            details={
                "required_minutes": required_minutes,
                "remaining_minutes": remaining_minutes,
            },
        )


class TimeConflictException(ConflictException):
    """Raised when a reservation overlaps an active reservation of the same coach."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot has already been booked",
            code="TIME_CONFLICT",
            details=details or {},
        )


# Reservation cancellation


class ReservationNotFoundException(NotFoundException):
    def __init__(self, reservation_id: str):
        super().__init__(
            message="Reservation not found",
            code="NOT_FOUND",
            details={"reservation_id": reservation_id},
        )


class ReservationForbiddenException(ForbiddenException):
    def __init__(self, reservation_id: str):
        super().__init__(
            message="You can only cancel your own reservations",
            code="FORBIDDEN",
            details={"reservation_id": reservation_id},
        )


class AlreadyCanceledException(ValidationException):
    def __init__(self, reservation_id: str):
        super().__init__(
            message="Reservation is already canceled",
            code="ALREADY_CANCELED",
            details={"reservation_id": reservation_id},
        )


class CannotCancelException(ValidationException):
    def __init__(self, reservation_id: str, current_status: str):
        super().__init__(
            message=f"Reservations in status {current_status} cannot be canceled",
            code="CANNOT_CANCEL",
            details={"reservation_id": reservation_id, "status": current_status},
        )


class PastReservationException(ValidationException):
    def __init__(self, reservation_id: str):
        super().__init__(
            message="Past reservations cannot be canceled",
            code="PAST_RESERVATION",
            details={"reservation_id": reservation_id},
        )


class InvalidStatusTransitionException(ValidationException):
    def __init__(self, current_status: str, requested_status: str):
        super().__init__(
            message=f"Cannot change reservation status from {current_status} to {requested_status}",
            code="INVALID_STATUS_TRANSITION",
            details={"from": current_status, "to": requested_status},
        )


# Memberships and catalog


class CoachNotFoundException(NotFoundException):
    def __init__(self, coach_id: str):
        super().__init__(
            message="Coach not found",
            code="COACH_NOT_FOUND",
            details={"coach_id": coach_id},
        )


class UserNotFoundException(NotFoundException):
    def __init__(self, user_id: str):
        super().__init__(
            message="User not found",
            code="USER_NOT_FOUND",
            details={"user_id": user_id},
        )


class MembershipExistsException(ConflictException):
    def __init__(self, user_id: str, coach_id: str):
        super().__init__(
            message="User already holds a membership with this coach",
            code="MEMBERSHIP_EXISTS",
            details={"user_id": user_id, "coach_id": coach_id},
        )


class InvalidAdjustmentException(ValidationException):
    def __init__(self, remaining_minutes: int, delta_minutes: int):
        super().__init__(
            message="Adjustment would make the remaining minutes negative",
            code="INVALID_ADJUSTMENT",
            details={"remaining_minutes": remaining_minutes, "delta_minutes": delta_minutes},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
