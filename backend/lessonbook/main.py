# backend/lessonbook/main.py
"""
FastAPI application entry point.

Run locally with ``uvicorn lessonbook.main:app --reload`` from ``backend/``.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.dependencies import require_admin
from .core.config import settings
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .routes.v1 import (
    auth as auth_v1,
    coaches as coaches_v1,
    health as health_v1,
    lessons as lessons_v1,
    me as me_v1,
    memberships as memberships_v1,
    prometheus as prometheus_v1,
    reservations as reservations_v1,
)
from .routes.v1.admin import (
    branches as admin_branches_v1,
    coaches as admin_coaches_v1,
    dashboard as admin_dashboard_v1,
    lessons as admin_lessons_v1,
    memberships as admin_memberships_v1,
    reservations as admin_reservations_v1,
    users as admin_users_v1,
)

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

API_TITLE = "Lessonbook API"
API_VERSION = "0.1.0"


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(
        f"Starting {API_TITLE} ({settings.environment}); reference timezone "
        f"{settings.reference_timezone}, operating hours "
        f"{settings.operating_hours_start}-{settings.operating_hours_end}"
    )
    yield
    logger.info(f"Shutting down {API_TITLE}")


app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)
app.add_middleware(PrometheusMiddleware)

api_v1 = APIRouter(prefix="/api/v1")

api_v1.include_router(auth_v1.router, prefix="/auth")
api_v1.include_router(lessons_v1.router, prefix="/lessons")
api_v1.include_router(coaches_v1.router, prefix="/coaches")
api_v1.include_router(reservations_v1.router, prefix="/reservations")
api_v1.include_router(me_v1.router, prefix="/me")
api_v1.include_router(memberships_v1.router, prefix="/memberships")

admin_v1 = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])
admin_v1.include_router(admin_branches_v1.router, prefix="/branches")
admin_v1.include_router(admin_coaches_v1.router, prefix="/coaches")
admin_v1.include_router(admin_lessons_v1.router, prefix="/lessons")
admin_v1.include_router(admin_reservations_v1.router, prefix="/reservations")
admin_v1.include_router(admin_users_v1.router, prefix="/users")
admin_v1.include_router(admin_memberships_v1.router, prefix="/memberships")
admin_v1.include_router(admin_dashboard_v1.router, prefix="/dashboard")
api_v1.include_router(admin_v1)

app.include_router(api_v1)
app.include_router(health_v1.router, prefix="/health")
app.include_router(prometheus_v1.router)
