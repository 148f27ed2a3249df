"""Pydantic response schemas for the API."""

from farewatch.schemas.health import HealthResponse, ReadinessResponse

__all__ = ["HealthResponse", "ReadinessResponse"]
