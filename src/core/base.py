"""Base classes and utilities.

This module provides base classes shared by the outbound HTTP clients.
"""

from abc import ABC
from typing import Optional

import structlog


class BaseClient(ABC):
    """Base HTTP client class.

    Provides request/response logging and async context management
    for clients that open their transport on entry and release it on exit.
    """

    def __init__(self, name: str, timeout: Optional[float] = 30) -> None:
        """Initialize the client.

        Args:
            name: Client name for logging.
            timeout: Request timeout in seconds, None to disable.
        """
        self.name = name
        self.timeout = timeout
        self.logger = structlog.get_logger(f"{name}Client")

    async def __aenter__(self):
        """Async context manager entry."""
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def open(self) -> None:
        """Acquire the underlying transport."""

    async def close(self) -> None:
        """Release the underlying transport."""

    def _log_request(self, method: str, url: str) -> None:
        """Log outgoing request.

        Args:
            method: HTTP method.
            url: Request URL.
        """
        self.logger.info(
            "Outgoing request",
            method=method,
            url=url,
            timeout=self.timeout,
        )

    def _log_response(self, method: str, url: str, status_code: int, duration: float) -> None:
        """Log response.

        Args:
            method: HTTP method.
            url: Request URL.
            status_code: Response status code.
            duration: Request duration in seconds.
        """
        self.logger.info(
            "Response received",
            method=method,
            url=url,
            status_code=status_code,
            duration=f"{duration:.4f}s",
        )
