# backend/lessonbook/services/membership_service.py
"""
Membership Service

Issues memberships, applies administrator adjustments, and exposes the
membership ledger. Every balance change goes through ``record_ledger_entry``
so the conservation law (balance == sum of ledger deltas) holds after each
unit of work.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.enums import LedgerReason
from ..core.exceptions import (
    CoachNotFoundException,
    ForbiddenException,
    InvalidAdjustmentException,
    MembershipExistsException,
    NotFoundException,
    UserNotFoundException,
    ValidationException,
)
from ..core.timezone_utils import ensure_utc
from ..models.membership import MEMBERSHIP_UNIQUE_CONSTRAINT, Membership, MembershipLedgerEntry
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .membership_ledger import record_ledger_entry

logger = logging.getLogger(__name__)


def _is_duplicate_membership(exc: IntegrityError) -> bool:
    """Unique (user, coach) violation, by constraint name or SQLite column list."""
    diag = getattr(exc.orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None)
    if constraint_name:
        return constraint_name == MEMBERSHIP_UNIQUE_CONSTRAINT
    text = str(exc.orig)
    return MEMBERSHIP_UNIQUE_CONSTRAINT in text or "memberships.user_id, memberships.coach_id" in text


@dataclass(frozen=True)
class MembershipAudit:
    membership_id: str
    remaining_minutes: int
    ledger_total: int

    @property
    def consistent(self) -> bool:
        return self.remaining_minutes == self.ledger_total


class MembershipService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.membership_repository = RepositoryFactory.create_membership_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.coach_repository = RepositoryFactory.create_coach_repository(db)

    def _get_membership(self, membership_id: str, *, lock: bool = False) -> Membership:
        membership = (
            self.membership_repository.lock(membership_id)
            if lock
            else self.membership_repository.get_by_id(membership_id)
        )
        if membership is None:
            raise NotFoundException(
                "Membership not found",
                code="NOT_FOUND",
                details={"membership_id": membership_id},
            )
        return membership

    @BaseService.measure_operation("issue_membership")
    def issue_membership(
        self,
        user_id: str,
        coach_id: str,
        minutes: int,
        expires_at: datetime,
        admin_id: str,
    ) -> Membership:
        """
        Create an active membership with an ALLOCATE ledger entry of ``+minutes``.

        Raises:
            UserNotFoundException, CoachNotFoundException,
            MembershipExistsException, ValidationException
        """
        self.log_operation(
            "issue_membership", user_id=user_id, coach_id=coach_id, minutes=minutes
        )
        if minutes < 0:
            raise ValidationException(
                "Minutes must be zero or more", code="VALIDATION_ERROR", details={"minutes": minutes}
            )
        if not self.user_repository.exists(id=user_id):
            raise UserNotFoundException(user_id)
        if not self.coach_repository.exists(id=coach_id):
            raise CoachNotFoundException(coach_id)
        if self.membership_repository.get_for_user_and_coach(user_id, coach_id) is not None:
            raise MembershipExistsException(user_id, coach_id)

        try:
            with self.membership_repository.transaction():
                membership = Membership(
                    user_id=user_id,
                    coach_id=coach_id,
                    remaining_minutes=0,
                    expires_at=ensure_utc(expires_at),
                    is_active=True,
                )
                self.db.add(membership)
                self.db.flush()
                record_ledger_entry(
                    self.membership_repository,
                    membership,
                    minutes,
                    LedgerReason.ALLOCATE,
                    created_by=admin_id,
                )
        except IntegrityError as exc:
            if _is_duplicate_membership(exc):
                raise MembershipExistsException(user_id, coach_id) from exc
            raise
        return membership

    @BaseService.measure_operation("adjust_membership")
    def adjust_membership(self, membership_id: str, delta_minutes: int, admin_id: str) -> Membership:
        """
        Add or remove minutes with an ADJUST ledger entry.

        Raises:
            InvalidAdjustmentException: If the result would be negative or the delta is zero
        """
        self.log_operation("adjust_membership", membership_id=membership_id, delta=delta_minutes)
        with self.transaction():
            membership = self._get_membership(membership_id, lock=True)
            if delta_minutes == 0:
                raise InvalidAdjustmentException(membership.remaining_minutes, delta_minutes)
            record_ledger_entry(
                self.membership_repository,
                membership,
                delta_minutes,
                LedgerReason.ADJUST,
                created_by=admin_id,
            )
        return membership

    @BaseService.measure_operation("set_membership_active")
    def set_membership_active(self, membership_id: str, active: bool) -> Membership:
        with self.transaction():
            membership = self._get_membership(membership_id, lock=True)
            membership.is_active = active
        self.logger.info(
            f"Membership {membership_id} {'activated' if active else 'deactivated'}"
        )
        return membership

    @BaseService.measure_operation("list_user_memberships")
    def list_user_memberships(self, user_id: str) -> List[Membership]:
        """Active memberships first, then by expiry."""
        return self.membership_repository.list_for_user(user_id)

    @BaseService.measure_operation("get_ledger")
    def get_ledger(self, membership_id: str, requester: User) -> List[MembershipLedgerEntry]:
        """
        Ledger entries newest first.

        Members may only read the ledger of their own membership.
        """
        membership = self._get_membership(membership_id)
        if not requester.is_admin and membership.user_id != requester.id:
            raise ForbiddenException(
                "You can only view your own membership history",
                code="FORBIDDEN",
                details={"membership_id": membership_id},
            )
        return self.membership_repository.list_ledger(membership_id)

    @BaseService.measure_operation("audit_membership")
    def audit_membership(self, membership_id: str) -> MembershipAudit:
        """Compare the stored balance with the sum of ledger deltas."""
        membership = self._get_membership(membership_id)
        audit = MembershipAudit(
            membership_id=membership.id,
            remaining_minutes=membership.remaining_minutes,
            ledger_total=self.membership_repository.ledger_sum(membership.id),
        )
        if not audit.consistent:
            self.logger.error(
                f"Membership {membership_id} balance does not match its ledger",
                extra={
                    "remaining_minutes": audit.remaining_minutes,
                    "ledger_total": audit.ledger_total,
                },
            )
        return audit
