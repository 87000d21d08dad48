"""Relay of a single inbound request.

``relay`` translates the inbound request, executes it through a request
executor, reads the body through the growable buffer and maps every
failure to a :class:`RelayResult`. It keeps no state between calls.
"""

import time
from typing import Optional, Protocol

import structlog

from core.exceptions import MissingTargetError, NoResponseError, OutboundExecutionError
from core.monitoring import track_relay
from models.relay import InboundRequest, OutboundRequest, RelayResult

from .buffer import INITIAL_CAPACITY, read_body
from .client import OutboundResponse
from .errors import failure_result, forbidden_result, no_response_result
from .translator import translate

logger = structlog.get_logger(__name__)


class RequestExecutor(Protocol):
    """Anything able to execute an outbound request."""

    async def execute(self, request: OutboundRequest) -> Optional[OutboundResponse]:
        ...


async def relay(
    inbound: InboundRequest,
    executor: RequestExecutor,
    initial_capacity: int = INITIAL_CAPACITY,
) -> RelayResult:
    """Relay an inbound request to its target URL.

    Args:
        inbound: Request received by the relay endpoint.
        executor: Executes the outbound request.
        initial_capacity: Starting capacity of the body buffer.

    Returns:
        RelayResult: The remote body and content type, or the mapped error.
    """
    method = inbound.method
    start_time = time.time()

    try:
        outbound = translate(inbound)
    except MissingTargetError as exc:
        logger.warning("Relay request rejected", method=method, error=str(exc))
        track_relay(method, "forbidden", time.time() - start_time)
        return forbidden_result()

    try:
        response = await executor.execute(outbound)
        if response is None:
            raise NoResponseError(outbound.url)
    except OutboundExecutionError as exc:
        return _failed(method, start_time, exc)
    except NoResponseError as exc:
        logger.error("Relay produced no response", method=method, error=str(exc))
        track_relay(method, "no_response", time.time() - start_time)
        return no_response_result()

    try:
        body = await read_body(response, initial_capacity)
    except OutboundExecutionError as exc:
        return _failed(method, start_time, exc)
    finally:
        await response.aclose()

    duration = time.time() - start_time
    logger.info(
        "Relay completed",
        method=method,
        target=outbound.url,
        status_code=response.status_code,
        content_type=response.content_type,
        size=len(body),
        duration=f"{duration:.4f}s",
    )
    track_relay(method, "relayed", duration, len(body))

    return RelayResult(
        status_code=response.status_code,
        content_type=response.content_type,
        body=body,
    )


def _failed(method: str, start_time: float, exc: OutboundExecutionError) -> RelayResult:
    logger.warning(
        "Relay failed",
        method=method,
        target=exc.target_url,
        classification=exc.classification,
        remote_status=exc.status_code,
        error=str(exc),
    )
    track_relay(method, "failed", time.time() - start_time)
    return failure_result(exc)
