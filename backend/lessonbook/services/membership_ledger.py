"""
Membership ledger bookkeeping.

Every change to a membership balance goes through ``record_ledger_entry``,
which applies the delta and appends the matching ledger row on the
caller's session. The caller owns the transaction, so the balance update,
the ledger row and whatever else the caller wrote commit or roll back
together.
"""

import logging
from typing import Optional

from ..core.enums import LedgerReason
from ..core.exceptions import InvalidAdjustmentException
from ..models.membership import Membership, MembershipLedgerEntry
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.membership_repository import MembershipRepository

logger = logging.getLogger(__name__)


def record_ledger_entry(
    repository: MembershipRepository,
    membership: Membership,
    delta_minutes: int,
    reason: LedgerReason,
    *,
    reservation_id: Optional[str] = None,
    created_by: Optional[str] = None,
) -> MembershipLedgerEntry:
    """
    Apply ``delta_minutes`` to ``membership`` and append a ledger entry.

    The stored balance is changed by a conditional UPDATE; the value held
    on ``membership`` is only reloaded, never written back.

    Raises:
        InvalidAdjustmentException: If the balance would become negative
    """
    if not repository.apply_balance_delta(membership, delta_minutes):
        raise InvalidAdjustmentException(membership.remaining_minutes, delta_minutes)

    entry = repository.add_ledger_entry(
        MembershipLedgerEntry(
            membership_id=membership.id,
            delta_minutes=delta_minutes,
            reason=LedgerReason(reason).value,
            reservation_id=reservation_id,
            created_by=created_by,
        )
    )
    prometheus_metrics.record_ledger_movement(LedgerReason(reason).value, delta_minutes)
    logger.info(
        "Ledger entry recorded",
        extra={
            "membership_id": membership.id,
            "delta_minutes": delta_minutes,
            "reason": LedgerReason(reason).value,
            "reservation_id": reservation_id,
            "balance": membership.remaining_minutes,
        },
    )
    return entry
