# backend/lessonbook/routes/v1/admin/users.py
"""
Admin user and membership issuance routes - API v1

Endpoints:
    GET /                         → Search users by name, email or phone
    GET /{user_id}/memberships    → A user's memberships
    POST /{user_id}/memberships   → Issue a membership with initial minutes
"""

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.params import Path

from ....api.dependencies import get_auth_service, get_membership_service, require_admin
from ....core.exceptions import DomainException
from ....errors import handle_domain_exception
from ....models.user import User
from ....schemas.auth import UserResponse
from ....schemas.membership import MembershipCreate, MembershipResponse
from ....services.auth_service import AuthService
from ....services.membership_service import MembershipService

router = APIRouter(tags=["admin-users"])


@router.get("", response_model=List[UserResponse])
def search_users(
    search: Optional[str] = Query(None, max_length=100),
    auth_service: AuthService = Depends(get_auth_service),
) -> List[UserResponse]:
    return [UserResponse.model_validate(u) for u in auth_service.search_users(search)]


@router.get("/{user_id}/memberships", response_model=List[MembershipResponse])
def list_user_memberships(
    user_id: str = Path(...),
    auth_service: AuthService = Depends(get_auth_service),
    membership_service: MembershipService = Depends(get_membership_service),
) -> List[MembershipResponse]:
    try:
        auth_service.get_user(user_id)
        return [
            MembershipResponse.from_membership(m)
            for m in membership_service.list_user_memberships(user_id)
        ]
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{user_id}/memberships",
    response_model=MembershipResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Membership for this coach already exists"}},
)
def issue_membership(
    user_id: str = Path(...),
    payload: MembershipCreate = Body(...),
    admin: User = Depends(require_admin),
    membership_service: MembershipService = Depends(get_membership_service),
) -> MembershipResponse:
    try:
        membership = membership_service.issue_membership(
            user_id=user_id,
            coach_id=payload.coach_id,
            minutes=payload.minutes,
            expires_at=payload.expires_at,
            admin_id=admin.id,
        )
        return MembershipResponse.from_membership(membership)
    except DomainException as e:
        handle_domain_exception(e)
