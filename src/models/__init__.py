"""Pydantic models for the application.

This module contains all data models used throughout the application
for request/response validation and serialization.
"""

from .common import BaseModel, ErrorResponse, HealthResponse
from .relay import (
    FailureStatus,
    HttpMethod,
    InboundRequest,
    OutboundRequest,
    RelayResult,
)

__all__ = [
    # Relay models
    "FailureStatus",
    "HttpMethod",
    "InboundRequest",
    "OutboundRequest",
    "RelayResult",
    # Common models
    "BaseModel",
    "ErrorResponse",
    "HealthResponse",
]
