"""Relay router.

This module provides the FastAPI route of the relay endpoint. The whole
raw query string of a request is its target URL.
"""

from typing import Dict

from fastapi import APIRouter, Depends, Request, Response

from core.config import Settings, get_settings
from models.relay import InboundRequest, RelayResult

from .client import OutboundClient
from .dependencies import get_outbound_client
from .service import relay
from .translator import BODY_METHODS

router = APIRouter()

STATUS_TEXT_HEADER = "X-Status-Text"


@router.api_route(
    "",
    # An empty method set matches every method, extension methods included.
    methods=[],
    operation_id="relay",
    summary="Relay a request to the URL in the query string",
)
async def relay_endpoint(
    request: Request,
    client: OutboundClient = Depends(get_outbound_client),
    settings: Settings = Depends(get_settings),
) -> Response:
    """Relay the request to the target URL and return its body.

    Returns 403 without a target, 500 with the failure classification in
    the ``X-Status-Text`` header when the outbound request fails.
    """
    inbound = await build_inbound_request(request)
    result = await relay(inbound, client, settings.relay_initial_buffer_size)
    return to_response(result)


async def build_inbound_request(request: Request) -> InboundRequest:
    """Capture a Starlette request as an :class:`InboundRequest`."""
    method = request.method

    body = None
    content_length = None
    if method in BODY_METHODS:
        body = await request.body()
        declared = request.headers.get("content-length")
        content_length = int(declared) if declared and declared.isdigit() else len(body)

    return InboundRequest(
        method=method,
        query_string=request.url.query,
        headers=_collapse_headers(request),
        body=body,
        content_length=content_length,
    )


def _collapse_headers(request: Request) -> Dict[str, str]:
    """One entry per header name; repeated headers are comma-joined."""
    headers: Dict[str, str] = {}
    for name in request.headers.keys():
        if name not in headers:
            headers[name] = ", ".join(request.headers.getlist(name))
    return headers


def to_response(result: RelayResult) -> Response:
    """Turn a relay result into the response written to the caller."""
    headers = {}
    # Set as a raw header so no charset gets appended.
    if result.content_type:
        headers["content-type"] = result.content_type
    if result.status_text:
        headers[STATUS_TEXT_HEADER] = result.status_text

    return Response(
        content=result.body,
        status_code=result.status_code,
        headers=headers,
    )
