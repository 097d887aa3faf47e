"""Membership, ledger and audit schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import AwareDatetime, Field, model_validator

from ..core.enums import LedgerReason
from ..models.membership import Membership, MembershipLedgerEntry
from ..services.membership_service import MembershipAudit
from .base import StandardizedModel, StrictRequestModel, reference_time


class MembershipCreate(StrictRequestModel):
    coach_id: str = Field(..., min_length=1)
    minutes: int = Field(..., ge=0, description="Initial lesson minutes")
    expires_at: AwareDatetime


class MembershipUpdate(StrictRequestModel):
    """Either a signed minute adjustment, an activation flag, or both."""

    delta_minutes: Optional[int] = None
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def _require_change(self) -> "MembershipUpdate":
        if self.delta_minutes is None and self.is_active is None:
            raise ValueError("Provide deltaMinutes and/or isActive")
        return self


class MembershipResponse(StandardizedModel):
    id: str
    user_id: str
    coach_id: str
    coach_name: Optional[str] = None
    remaining_minutes: int
    expires_at: datetime
    is_active: bool
    created_at: Optional[datetime] = None

    @classmethod
    def from_membership(cls, membership: Membership) -> "MembershipResponse":
        return cls(
            id=membership.id,
            user_id=membership.user_id,
            coach_id=membership.coach_id,
            coach_name=membership.coach.name if membership.coach else None,
            remaining_minutes=membership.remaining_minutes,
            expires_at=reference_time(membership.expires_at),
            is_active=membership.is_active,
            created_at=reference_time(membership.created_at),
        )


class LedgerEntryResponse(StandardizedModel):
    id: str
    membership_id: str
    delta_minutes: int
    reason: LedgerReason
    reservation_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_entry(cls, entry: MembershipLedgerEntry) -> "LedgerEntryResponse":
        return cls(
            id=entry.id,
            membership_id=entry.membership_id,
            delta_minutes=entry.delta_minutes,
            reason=entry.reason,
            reservation_id=entry.reservation_id,
            created_by=entry.created_by,
            created_at=reference_time(entry.created_at),
        )


class LedgerResponse(StandardizedModel):
    membership_id: str
    entries: List[LedgerEntryResponse]


class MembershipAuditResponse(StandardizedModel):
    membership_id: str
    remaining_minutes: int
    ledger_total: int
    consistent: bool

    @classmethod
    def from_audit(cls, audit: MembershipAudit) -> "MembershipAuditResponse":
        return cls(
            membership_id=audit.membership_id,
            remaining_minutes=audit.remaining_minutes,
            ledger_total=audit.ledger_total,
            consistent=audit.consistent,
        )
