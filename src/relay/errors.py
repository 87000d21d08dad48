"""Mapping of relay failures to caller-visible results."""

import httpx
from fastapi import status

from core.exceptions import OutboundExecutionError
from models.relay import FailureStatus, RelayResult

# Most specific classes first; the first isinstance match wins.
_CLASSIFICATIONS = (
    (httpx.TimeoutException, FailureStatus.TIMEOUT),
    (httpx.ConnectError, FailureStatus.CONNECT_FAILURE),
    (httpx.UnsupportedProtocol, FailureStatus.CONNECT_FAILURE),
    (httpx.InvalidURL, FailureStatus.CONNECT_FAILURE),
    (httpx.WriteError, FailureStatus.SEND_FAILURE),
    (httpx.ReadError, FailureStatus.RECEIVE_FAILURE),
    (httpx.RemoteProtocolError, FailureStatus.RECEIVE_FAILURE),
    (httpx.DecodingError, FailureStatus.RECEIVE_FAILURE),
    (httpx.TooManyRedirects, FailureStatus.PROTOCOL_ERROR),
    (httpx.HTTPStatusError, FailureStatus.PROTOCOL_ERROR),
)


def classify(exc: Exception) -> FailureStatus:
    """Classify an httpx failure.

    Args:
        exc: Exception raised while executing or reading a request.

    Returns:
        FailureStatus: Classification reported to the caller.
    """
    for exc_type, classification in _CLASSIFICATIONS:
        if isinstance(exc, exc_type):
            return classification
    return FailureStatus.UNKNOWN_ERROR


def forbidden_result() -> RelayResult:
    """Result for a request without a target: 403, no body."""
    return RelayResult(status_code=status.HTTP_403_FORBIDDEN)


def failure_result(exc: OutboundExecutionError) -> RelayResult:
    """Result for a failed outbound request.

    The remote error body, if one came back with the failure, is
    forwarded along with its content type.
    """
    return RelayResult(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        status_text=exc.classification,
        content_type=exc.content_type if exc.body else None,
        body=exc.body or b"",
    )


def no_response_result() -> RelayResult:
    """Result when execution produced nothing: empty body, default status."""
    return RelayResult()
