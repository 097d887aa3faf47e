# backend/lessonbook/routes/v1/health.py
"""
Health check endpoint for monitoring and load balancer probes.
"""

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...api.dependencies import get_db
from ...core.config import settings
from ...database.session_utils import get_dialect_name
from ...schemas.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db)) -> HealthResponse:
    """
    Report service status and whether the database answers a trivial query.
    """
    status_value = "healthy"
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check database probe failed")
        status_value = "degraded"
    return HealthResponse(
        status=status_value,
        service="lessonbook-api",
        environment=settings.environment,
        database=get_dialect_name(db),
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )
