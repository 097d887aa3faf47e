# backend/lessonbook/routes/v1/me.py
"""
Current-user routes - API v1

Endpoints:
    GET /             → Profile of the authenticated user
    GET /memberships  → The caller's memberships, active first
"""

from typing import List

from fastapi import APIRouter, Depends

from ...api.dependencies import get_current_active_user, get_membership_service
from ...models.user import User
from ...schemas.auth import UserResponse
from ...schemas.membership import MembershipResponse
from ...services.membership_service import MembershipService

router = APIRouter(tags=["me-v1"])


@router.get("", response_model=UserResponse)
def read_me(current_user: User = Depends(get_current_active_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.get("/memberships", response_model=List[MembershipResponse])
def list_my_memberships(
    current_user: User = Depends(get_current_active_user),
    membership_service: MembershipService = Depends(get_membership_service),
) -> List[MembershipResponse]:
    return [
        MembershipResponse.from_membership(m)
        for m in membership_service.list_user_memberships(current_user.id)
    ]
