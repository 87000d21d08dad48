"""Relay-related data models.

This module contains Pydantic models for the inbound request handed to
the relay, the outbound request derived from it, and the result written
back to the caller.
"""

import re
from enum import Enum
from typing import Dict, Optional

from pydantic import Field, field_validator

from .common import BaseModel

_METHOD_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")


def _method_token(value):
    """Accept any RFC 9110 method token, keeping its case."""
    if isinstance(value, Enum):
        value = value.value
    if not isinstance(value, str) or not _METHOD_TOKEN.fullmatch(value):
        raise ValueError(f"Invalid HTTP method: {value!r}")
    return value


class HttpMethod(str, Enum):
    """Well-known HTTP methods. Any other method token is relayed as is."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class FailureStatus(str, Enum):
    """Classification of an outbound failure, reported as status text."""

    CONNECT_FAILURE = "ConnectFailure"
    TIMEOUT = "Timeout"
    SEND_FAILURE = "SendFailure"
    RECEIVE_FAILURE = "ReceiveFailure"
    PROTOCOL_ERROR = "ProtocolError"
    UNKNOWN_ERROR = "UnknownError"


class InboundRequest(BaseModel):
    """Request received by the relay endpoint."""

    method: str = Field(..., description="HTTP method token")
    query_string: str = Field(default="", description="Raw, still percent-encoded query string")
    headers: Dict[str, str] = Field(default_factory=dict, description="Request headers")
    body: Optional[bytes] = Field(None, description="Request body for body-bearing methods")
    content_length: Optional[int] = Field(None, ge=0, description="Declared body length")

    @field_validator("method", mode="before")
    @classmethod
    def validate_method(cls, v):
        return _method_token(v)

    @field_validator("headers")
    @classmethod
    def normalize_headers(cls, v):
        """Normalize header names to lowercase."""
        return {key.lower(): value for key, value in v.items()}


class OutboundRequest(BaseModel):
    """Request issued to the target URL."""

    method: str = Field(..., description="HTTP method token")
    url: str = Field(..., description="Decoded target URL")
    headers: Dict[str, str] = Field(default_factory=dict, description="Forwarded headers")
    accept: Optional[str] = Field(None, description="Accept header value")
    content_type: Optional[str] = Field(None, description="Content type of the body")
    content: Optional[bytes] = Field(None, description="Request body")
    content_length: Optional[int] = Field(None, ge=0, description="Declared body length")

    @field_validator("method", mode="before")
    @classmethod
    def validate_method(cls, v):
        return _method_token(v)


class RelayResult(BaseModel):
    """Outcome of a relay, written back to the caller."""

    status_code: int = Field(default=200, description="HTTP status code")
    content_type: Optional[str] = Field(None, description="Content type")
    body: bytes = Field(default=b"", description="Response body")
    status_text: Optional[str] = Field(None, description="Failure classification")
