# backend/lessonbook/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

The bearer token's ``sub`` claim is the user id. Routes receive a ``User``
and pass its id explicitly into services.
"""

import logging
from typing import Optional

from fastapi import Depends
import jwt
from sqlalchemy.orm import Session

from ...auth import decode_access_token, oauth2_scheme_optional
from ...core.exceptions import ForbiddenException, UnauthorizedException
from ...models.user import User
from ...repositories.factory import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)


def _unauthorized(message: str = "Could not validate credentials") -> UnauthorizedException:
    return UnauthorizedException(message, code="UNAUTHORIZED")


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme_optional),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the bearer token to a user.

    Raises:
        HTTPException: 401 UNAUTHORIZED for a missing or invalid token, or an unknown user
    """
    if not token:
        raise _unauthorized("Not authenticated").to_http_exception()
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError as exc:
        logger.info(f"Rejected access token: {exc}")
        raise _unauthorized().to_http_exception() from exc

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized().to_http_exception()

    user = RepositoryFactory.create_user_repository(db).get_by_id(
        str(user_id), load_relationships=False
    )
    if user is None:
        logger.warning(f"Token subject {user_id} does not match any user")
        raise _unauthorized().to_http_exception()
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """The current user, rejected when the account has been deactivated."""
    if not current_user.is_active:
        raise _unauthorized("Inactive user").to_http_exception()
    return current_user


def require_admin(user: User = Depends(get_current_active_user)) -> User:
    """Dependency that ensures the caller has administrator privileges."""
    if not user.is_admin:
        raise ForbiddenException("Admin access required", code="FORBIDDEN").to_http_exception()
    return user
