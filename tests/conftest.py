from typing import Callable, List

import httpx
import pytest
from fastapi.testclient import TestClient

from core.config import Settings
from main import create_app
from relay.client import OutboundClient
from relay.dependencies import get_outbound_client


class RemoteHost:
    """Stand-in for the remote hosts reached through the relay.

    Records every request it receives and answers with ``handler``.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, content=b"")
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def settings():
    """Settings for tests, independent of the environment."""
    return Settings(
        environment="development",
        log_level="DEBUG",
        log_format="text",
        metrics_enabled=False,
    )


@pytest.fixture
def remote():
    return RemoteHost()


@pytest.fixture
def outbound_client(settings, remote):
    return OutboundClient(settings, transport=remote.transport())


@pytest.fixture
def app(settings, remote):
    app = create_app(settings)

    async def _outbound_client():
        async with OutboundClient(settings, transport=remote.transport()) as client:
            yield client

    app.dependency_overrides[get_outbound_client] = _outbound_client
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
