# backend/lessonbook/api/dependencies/database.py
"""
Database dependencies for FastAPI routes.

Routes depend on this module rather than ``lessonbook.database`` so tests can
override a single callable.
"""

from typing import Generator

from sqlalchemy.orm import Session

from ...database import get_db as original_get_db


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session that commits on success."""
    yield from original_get_db()
