"""Outbound HTTP client for relayed requests.

One client is opened per relayed request and closed with it; nothing
is pooled across requests.
"""

import time
from typing import List, Optional, Tuple

import httpx

from core.base import BaseClient
from core.config import Settings
from core.exceptions import OutboundExecutionError
from core.monitoring import track_error
from models.relay import FailureStatus, OutboundRequest

from .errors import classify
from .stream import ChunkedStreamReader


class OutboundResponse:
    """Successful outbound response with a body still to be read.

    ``read`` follows the sized-read contract of the body reader and turns
    transport failures into :class:`OutboundExecutionError`.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self._reader = ChunkedStreamReader(response.aiter_bytes())
        self.status_code = response.status_code
        self.content_type: Optional[str] = response.headers.get("content-type")

    async def read(self, size: int) -> bytes:
        try:
            return await self._reader.read(size)
        except httpx.RequestError as exc:
            classification = classify(exc)
            track_error(type(exc).__name__, "relay_read")
            raise OutboundExecutionError(
                f"Reading response body failed: {exc}",
                target_url=str(self._response.request.url),
                classification=classification.value,
                cause=exc,
            ) from exc

    async def aclose(self) -> None:
        await self._response.aclose()


class OutboundClient(BaseClient):
    """HTTP client executing outbound relay requests."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Application settings.
            transport: Transport override, used to stand in for remote hosts.
        """
        super().__init__(name="Outbound", timeout=settings.relay_timeout)
        self.follow_redirects = settings.relay_follow_redirects
        self.verify_ssl = settings.relay_verify_ssl
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def open(self) -> None:
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=self.follow_redirects,
            verify=self.verify_ssl,
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def execute(self, request: OutboundRequest) -> OutboundResponse:
        """Send an outbound request and return its unread response.

        Args:
            request: Request to issue.

        Returns:
            OutboundResponse: Response with a 2xx status.

        Raises:
            OutboundExecutionError: If the request could not be sent, or
                the remote host answered with a non-success status.
        """
        if self._client is None:
            raise RuntimeError("OutboundClient used outside of its context")

        method = request.method
        start_time = time.time()
        self._log_request(method, request.url)

        # Building the request fails locally for URLs httpx cannot parse
        # and header values it cannot encode.
        try:
            http_request = self._client.build_request(
                method,
                request.url,
                headers=self._build_headers(request),
                content=request.content,
            )
        except (httpx.InvalidURL, ValueError, TypeError) as exc:
            raise self._execution_error(request, exc) from exc

        try:
            response = await self._client.send(http_request, stream=True)
        except httpx.RequestError as exc:
            raise self._execution_error(request, exc) from exc

        duration = time.time() - start_time
        self._log_response(method, request.url, response.status_code, duration)

        if not response.is_success:
            await self._raise_for_status(request, response)

        return OutboundResponse(response)

    def _execution_error(self, request: OutboundRequest, exc: Exception) -> OutboundExecutionError:
        classification = classify(exc)
        track_error(type(exc).__name__, "relay_execute")
        self.logger.warning(
            "Outbound request failed",
            method=request.method,
            url=request.url,
            classification=classification.value,
            error=str(exc),
        )
        return OutboundExecutionError(
            f"Outbound request failed: {exc}",
            target_url=request.url,
            classification=classification.value,
            cause=exc,
        )

    async def _raise_for_status(self, request: OutboundRequest, response: httpx.Response) -> None:
        """Raise for a non-success response, keeping the remote error body."""
        try:
            body = await response.aread()
        except httpx.RequestError:
            body = b""
        finally:
            await response.aclose()

        track_error("HTTPStatusError", "relay_execute")
        raise OutboundExecutionError(
            f"Remote host answered {response.status_code}",
            target_url=request.url,
            classification=FailureStatus.PROTOCOL_ERROR.value,
            status_code=response.status_code,
            content_type=response.headers.get("content-type"),
            body=body,
        )

    @staticmethod
    def _build_headers(request: OutboundRequest) -> List[Tuple[bytes, bytes]]:
        """Raw outbound headers.

        Inbound values arrive as latin-1 decoded text, so encoding them back
        as latin-1 forwards the caller's exact bytes, UTF-8 included.
        """
        headers = list(request.headers.items())
        if request.accept is not None:
            headers.append(("Accept", request.accept))
        if request.content_type is not None:
            headers.append(("Content-Type", request.content_type))
        if request.content_length is not None:
            headers.append(("Content-Length", str(request.content_length)))
        return [(name.encode("latin-1"), value.encode("latin-1")) for name, value in headers]
