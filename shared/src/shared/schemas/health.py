"""Health check response schema."""
from pydantic import BaseModel, Field


class DependencyStatus(BaseModel):
    status: str  # "healthy" | "unhealthy"
    message: str = ""


class HealthResponse(BaseModel):
    """Response for /healthz and /readyz."""

    status: str  # "ok" | "degraded" | "unhealthy"
    service: str = ""
    version: str = ""
    checks: dict[str, DependencyStatus] = Field(default_factory=dict)
