"""Common DTOs and schemas."""
from shared.schemas.health import DependencyStatus, HealthResponse

__all__ = ["DependencyStatus", "HealthResponse"]
