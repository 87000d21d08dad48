"""Common data models.

This module contains base models and common response models
used throughout the application.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseModel(PydanticBaseModel):
    """Base model with common configuration."""

    model_config = ConfigDict(
        # Validate assignment to model fields
        validate_assignment=True,
        # Allow population by field name and alias
        populate_by_name=True,
    )


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="Application version")
    timestamp: datetime = Field(default_factory=_utcnow, description="Response timestamp")


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str = Field(..., description="Error detail message")
    type: str = Field(..., description="Error type")
    correlation_id: Optional[str] = Field(None, description="Request correlation ID")
