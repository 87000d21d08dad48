"""Custom exception classes.

This module defines custom exceptions used throughout the application.
"""

from typing import Any, Dict, Optional


class BaseAppException(Exception):
    """Base exception class for the application.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Error message.
            details: Additional error details.
            cause: Underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation of the exception."""
        return self.message

    def __repr__(self) -> str:
        """Detailed representation of the exception."""
        return f"{self.__class__.__name__}('{self.message}', details={self.details})"


class ValidationError(BaseAppException):
    """Raised when data validation fails."""
    pass


class MissingTargetError(ValidationError):
    """Raised when the inbound query string carries no usable target URL."""
    pass


class ExternalServiceError(BaseAppException):
    """Raised when external service call fails.

    Attributes:
        service: Name of the external service.
        status_code: HTTP status code if applicable.
    """

    def __init__(
        self,
        message: str,
        service: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Error message.
            service: Name of the external service.
            status_code: HTTP status code if applicable.
            details: Additional error details.
            cause: Underlying exception that caused this error.
        """
        super().__init__(message, details, cause)
        self.service = service
        self.status_code = status_code


class OutboundExecutionError(ExternalServiceError):
    """Raised when the outbound request of a relay fails.

    Attributes:
        target_url: The target URL that failed.
        classification: Failure classification reported as status text.
        content_type: Content type of the remote error body, if any.
        body: Remote error body, if one came back with the failure.
    """

    def __init__(
        self,
        message: str,
        target_url: str,
        classification: str,
        status_code: Optional[int] = None,
        content_type: Optional[str] = None,
        body: Optional[bytes] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, "relay", status_code, details, cause)
        self.target_url = target_url
        self.classification = classification
        self.content_type = content_type
        self.body = body


class NoResponseError(ExternalServiceError):
    """Raised when outbound execution yields neither a response nor a fault."""

    def __init__(self, target_url: str) -> None:
        super().__init__(f"No response received from {target_url}", "relay")
        self.target_url = target_url
