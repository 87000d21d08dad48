"""Relay module.

This module forwards requests whose target URL travels in the query
string and returns the remote body to the caller.
"""

from .client import OutboundClient, OutboundResponse
from .router import router
from .service import relay

__all__ = [
    "OutboundClient",
    "OutboundResponse",
    "relay",
    "router",
]
