"""Administrator dashboard schemas."""

from .base import StandardizedModel


class DashboardStatsResponse(StandardizedModel):
    total_users: int
    total_coaches: int
    total_branches: int
    total_lessons: int
    today_reservations: int
    week_reservations: int
    month_reservations: int
