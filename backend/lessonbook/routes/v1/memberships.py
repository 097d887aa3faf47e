# backend/lessonbook/routes/v1/memberships.py
"""
Membership ledger routes - API v1

Endpoints:
    GET /{membership_id}/ledger → Ledger entries newest first (owner or admin)
"""

from fastapi import APIRouter, Depends
from fastapi.params import Path

from ...api.dependencies import get_current_active_user, get_membership_service
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...models.user import User
from ...schemas.membership import LedgerEntryResponse, LedgerResponse
from ...services.membership_service import MembershipService

router = APIRouter(tags=["memberships-v1"])


@router.get("/{membership_id}/ledger", response_model=LedgerResponse)
def get_membership_ledger(
    membership_id: str = Path(...),
    current_user: User = Depends(get_current_active_user),
    membership_service: MembershipService = Depends(get_membership_service),
) -> LedgerResponse:
    try:
        entries = membership_service.get_ledger(membership_id, current_user)
        return LedgerResponse(
            membership_id=membership_id,
            entries=[LedgerEntryResponse.from_entry(entry) for entry in entries],
        )
    except DomainException as e:
        handle_domain_exception(e)
