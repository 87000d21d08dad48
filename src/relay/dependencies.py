"""Relay dependencies for FastAPI.

This module provides dependency injection for the outbound client
used by the relay endpoint.
"""

from typing import AsyncGenerator

from fastapi import Depends

from core.config import Settings, get_settings

from .client import OutboundClient


async def get_outbound_client(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[OutboundClient, None]:
    """Provide a fresh outbound client for one relayed request.

    The client is closed once the response has been produced.
    """
    async with OutboundClient(settings) as client:
        yield client
