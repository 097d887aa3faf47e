"""Health check schemas."""

from .base import StandardizedModel


class HealthResponse(StandardizedModel):
    status: str
    service: str
    environment: str
    database: str
    timestamp: str
