"""Inbound to outbound request translation.

The target URL is the whole raw query string, percent-decoded. Only its
presence is checked here; whether it parses or resolves is discovered
when the outbound request is executed.
"""

import re
from typing import Dict, Mapping, NamedTuple, Optional
from urllib.parse import unquote_to_bytes

import structlog

from core.exceptions import MissingTargetError
from models.relay import HttpMethod, InboundRequest, OutboundRequest

logger = structlog.get_logger(__name__)

# Hop-specific headers recomputed by the outbound client or suppressed.
EXCLUDED_HEADERS = frozenset({
    "connection",
    "host",
    "referer",
    "user-agent",
    "content-length",
})

BODY_METHODS = frozenset({HttpMethod.POST.value, HttpMethod.PUT.value, HttpMethod.PATCH.value})

_ESCAPE_RUN = re.compile(r"(?:%[0-9A-Fa-f]{2})+")


class FilteredHeaders(NamedTuple):
    """Inbound headers split into the outbound request's fields."""

    headers: Dict[str, str]
    accept: Optional[str]
    content_type: Optional[str]


def _unescape_run(match: "re.Match[str]") -> str:
    run = match.group(0)
    escapes = [run[i:i + 3] for i in range(0, len(run), 3)]
    decoded = unquote_to_bytes(run).decode("utf-8", errors="surrogateescape")

    # Bytes that are not valid UTF-8 come back as lone surrogates; each
    # one stands for exactly one escape of the run.
    parts = []
    offset = 0
    for char in decoded:
        if "\udc80" <= char <= "\udcff":
            parts.append(escapes[offset])
            offset += 1
        else:
            parts.append(char)
            offset += len(char.encode("utf-8"))
    return "".join(parts)


def unescape(text: str) -> str:
    """Percent-decode text, keeping escapes that do not form valid UTF-8.

    ``%`` signs that do not start a two-digit hex escape are left alone,
    and ``+`` is not treated as a space.
    """
    return _ESCAPE_RUN.sub(_unescape_run, text)


def extract_target(query_string: str) -> str:
    """Decode the target URL carried by a raw query string.

    Args:
        query_string: Raw query string of the inbound request.

    Returns:
        str: Decoded target URL.

    Raises:
        MissingTargetError: If the decoded string is empty or blank.
    """
    target = unescape(query_string or "").strip()
    if not target:
        raise MissingTargetError("Relay request carries no target URL")
    return target


def filter_headers(headers: Mapping[str, str]) -> FilteredHeaders:
    """Apply the forwarding policy to inbound headers.

    Args:
        headers: Inbound header mapping.

    Returns:
        FilteredHeaders: Pass-through headers plus the accept and
        content-type values routed to their dedicated fields.
    """
    forwarded: Dict[str, str] = {}
    accept = None
    content_type = None

    for name, value in headers.items():
        key = name.lower()
        if key in EXCLUDED_HEADERS:
            continue
        if key == "accept":
            accept = value
        elif key == "content-type":
            content_type = value
        else:
            forwarded[key] = value

    return FilteredHeaders(forwarded, accept, content_type)


def translate(inbound: InboundRequest) -> OutboundRequest:
    """Build the outbound request for an inbound relay request.

    Args:
        inbound: Request received by the relay endpoint.

    Returns:
        OutboundRequest: Request to issue to the target URL.

    Raises:
        MissingTargetError: If no target URL was supplied.
    """
    target = extract_target(inbound.query_string)
    filtered = filter_headers(inbound.headers)

    content = None
    content_length = None
    if inbound.method in BODY_METHODS:
        content = inbound.body or b""
        content_length = (
            inbound.content_length
            if inbound.content_length is not None
            else len(content)
        )

    logger.debug(
        "Translated relay request",
        method=inbound.method,
        target=target,
        forwarded_headers=sorted(filtered.headers),
        content_length=content_length,
    )

    return OutboundRequest(
        method=inbound.method,
        url=target,
        headers=filtered.headers,
        accept=filtered.accept,
        content_type=filtered.content_type,
        content=content,
        content_length=content_length,
    )
