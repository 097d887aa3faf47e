# backend/lessonbook/routes/v1/admin/memberships.py
"""
Admin membership routes - API v1

Endpoints:
    PATCH /{membership_id}        → Adjust minutes and/or (de)activate
    GET /{membership_id}/audit    → Compare balance with the ledger sum
"""

from fastapi import APIRouter, Body, Depends
from fastapi.params import Path

from ....api.dependencies import get_membership_service, require_admin
from ....core.exceptions import DomainException
from ....errors import handle_domain_exception
from ....models.user import User
from ....schemas.membership import MembershipAuditResponse, MembershipResponse, MembershipUpdate
from ....services.membership_service import MembershipService

router = APIRouter(tags=["admin-memberships"])


@router.patch("/{membership_id}", response_model=MembershipResponse)
def update_membership(
    membership_id: str = Path(...),
    payload: MembershipUpdate = Body(...),
    admin: User = Depends(require_admin),
    membership_service: MembershipService = Depends(get_membership_service),
) -> MembershipResponse:
    try:
        membership = None
        if payload.delta_minutes is not None:
            membership = membership_service.adjust_membership(
                membership_id, payload.delta_minutes, admin.id
            )
        if payload.is_active is not None:
            membership = membership_service.set_membership_active(
                membership_id, payload.is_active
            )
        return MembershipResponse.from_membership(membership)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{membership_id}/audit", response_model=MembershipAuditResponse)
def audit_membership(
    membership_id: str = Path(...),
    membership_service: MembershipService = Depends(get_membership_service),
) -> MembershipAuditResponse:
    try:
        return MembershipAuditResponse.from_audit(
            membership_service.audit_membership(membership_id)
        )
    except DomainException as e:
        handle_domain_exception(e)
