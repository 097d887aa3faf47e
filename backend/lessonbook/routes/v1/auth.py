# backend/lessonbook/routes/v1/auth.py
"""
Authentication routes - API v1

Endpoints:
    POST /register → Create a member account
    POST /login    → Exchange email and password for a bearer token
"""

import logging

from fastapi import APIRouter, Body, Depends, status

from ...auth import create_access_token
from ...core.exceptions import DomainException, UnauthorizedException
from ...api.dependencies import get_auth_service
from ...errors import handle_domain_exception
from ...schemas.auth import Token, UserCreate, UserLogin, UserResponse
from ...services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth-v1"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Email already registered"}},
)
def register(
    payload: UserCreate = Body(...),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    try:
        user = auth_service.register_user(
            email=payload.email,
            password=payload.password,
            name=payload.name,
            phone=payload.phone,
        )
        return UserResponse.model_validate(user)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/login", response_model=Token, responses={401: {"description": "Bad credentials"}})
def login(
    payload: UserLogin = Body(...),
    auth_service: AuthService = Depends(get_auth_service),
) -> Token:
    """Return a bearer token whose subject is the user id."""
    user = auth_service.authenticate_user(payload.email.lower(), payload.password)
    if user is None:
        raise UnauthorizedException(
            "Incorrect email or password", code="INVALID_CREDENTIALS"
        ).to_http_exception()
    logger.info(f"User {user.id} logged in")
    return Token(access_token=create_access_token({"sub": user.id, "role": user.role}))
