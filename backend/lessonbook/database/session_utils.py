"""
Session helpers that do not depend on a particular database backend.
"""

from __future__ import annotations

from sqlalchemy.exc import UnboundExecutionError
from sqlalchemy.orm import Session


def get_dialect_name(session: Session, default: str = "sqlite") -> str:
    """
    Name of the dialect the session talks to (``postgresql``, ``sqlite``).

    Uses ``Session.get_bind()`` so sessions bound through a connection (as in
    tests) resolve the same way as engine-bound ones.
    """
    try:
        bind = session.get_bind()
    except UnboundExecutionError:
        return default
    return getattr(getattr(bind, "dialect", None), "name", None) or default
