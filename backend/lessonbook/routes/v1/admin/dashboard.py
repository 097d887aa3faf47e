# backend/lessonbook/routes/v1/admin/dashboard.py
"""
Admin dashboard routes - API v1

Endpoints:
    GET /stats → Catalog totals and reservation counts per period
"""

from fastapi import APIRouter, Depends

from ....api.dependencies import get_dashboard_service
from ....schemas.dashboard import DashboardStatsResponse
from ....services.dashboard_service import DashboardService

router = APIRouter(tags=["admin-dashboard"])


@router.get("/stats", response_model=DashboardStatsResponse)
def get_dashboard_stats(
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> DashboardStatsResponse:
    return DashboardStatsResponse.model_validate(dashboard_service.get_stats())
