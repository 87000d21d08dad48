from urllib.parse import quote

import httpx
from fastapi.testclient import TestClient

from relay.dependencies import get_outbound_client

def _relay_url(target: str) -> str:
    return "/proxy?" + quote(target, safe="")


class TestRelayEndpoint:
    """Test cases for the relay endpoint."""

    def test_get_relays_body_and_content_type(self, client, remote):
        remote.handler = lambda request: httpx.Response(
            200,
            content=b"<p>hello</p>",
            headers={"Content-Type": "text/html"},
        )

        response = client.get(_relay_url("http://remote.test/page?a=1&b=2"))

        assert response.status_code == 200
        assert response.content == b"<p>hello</p>"
        # Copied verbatim, no charset appended
        assert response.headers["content-type"] == "text/html"
        assert str(remote.last_request.url) == "http://remote.test/page?a=1&b=2"

    def test_large_body_is_relayed_exactly(self, client, remote):
        payload = bytes(i % 251 for i in range(10 * 32768 + 7))
        remote.handler = lambda request: httpx.Response(200, content=payload)

        response = client.get(_relay_url("http://remote.test/big"))

        assert response.content == payload

    def test_missing_target_is_forbidden(self, client, remote):
        response = client.get("/proxy")

        assert response.status_code == 403
        assert response.content == b""
        assert remote.requests == []

    def test_blank_target_is_forbidden(self, client, remote):
        response = client.get("/proxy?%20%20")

        assert response.status_code == 403
        assert response.content == b""

    def test_connection_failure_returns_500_with_status_text(self, client, remote):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        remote.handler = refuse

        response = client.get(_relay_url("http://down.test/"))

        assert response.status_code == 500
        assert response.headers["x-status-text"] == "ConnectFailure"

    def test_remote_error_body_is_forwarded(self, client, remote):
        remote.handler = lambda request: httpx.Response(
            503, content=b"maintenance", headers={"Content-Type": "text/plain"}
        )

        response = client.get(_relay_url("http://remote.test/"))

        assert response.status_code == 500
        assert response.headers["x-status-text"] == "ProtocolError"
        assert response.content == b"maintenance"

    def test_post_forwards_body_and_headers(self, client, remote):
        body = b'{"name": "caf\xc3\xa9"}'

        client.post(
            _relay_url("http://remote.test/items"),
            content=body,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "Referer": "http://testserver/app",
                "X-Session": "s1",
            },
        )

        sent = remote.last_request
        assert sent.method == "POST"
        assert sent.content == body
        assert sent.headers["content-length"] == str(len(body))
        assert sent.headers["content-type"] == "application/json"
        assert sent.headers.get_list("accept") == ["application/json"]
        assert sent.headers["x-session"] == "s1"
        assert "referer" not in sent.headers
        assert sent.headers["host"] == "remote.test"
        assert sent.headers["user-agent"] != "testclient"

    def test_method_is_copied(self, client, remote):
        client.delete(_relay_url("http://remote.test/items/1"))

        assert remote.last_request.method == "DELETE"
        assert remote.last_request.content == b""

    def test_repeated_get_is_identical(self, client, remote):
        remote.handler = lambda request: httpx.Response(200, content=b"\x01\x02stable" * 9000)

        first = client.get(_relay_url("http://remote.test/stable"))
        second = client.get(_relay_url("http://remote.test/stable"))

        assert first.content == second.content

    def test_correlation_id_is_echoed(self, client, remote):
        response = client.get(
            _relay_url("http://remote.test/"),
            headers={"X-Correlation-ID": "abc-123"},
        )

        assert response.headers["x-correlation-id"] == "abc-123"
        assert "x-process-time" in response.headers

    def test_extension_method_is_relayed(self, client, remote):
        remote.handler = lambda request: httpx.Response(
            207, content=b"<multistatus/>", headers={"Content-Type": "application/xml"}
        )

        response = client.request(
            "PROPFIND", _relay_url("http://remote.test/dav/"), headers={"Depth": "1"}
        )

        assert response.status_code == 207
        assert response.content == b"<multistatus/>"
        assert remote.last_request.method == "PROPFIND"
        assert remote.last_request.headers["depth"] == "1"

    def test_non_ascii_header_value_is_forwarded_byte_for_byte(self, client, remote):
        value = "café ✓".encode("utf-8")

        response = client.get(
            _relay_url("http://remote.test/"),
            headers=[(b"X-Name", value)],
        )

        assert response.status_code == 200
        assert (b"x-name", value) in remote.last_request.headers.raw

    def test_undecodable_escape_reaches_remote_unchanged(self, client, remote):
        response = client.get("/proxy?http%3A%2F%2Fremote.test%2Fa%FFb")

        assert response.status_code == 200
        assert remote.last_request.url.raw_path == b"/a%FFb"

    def test_repeated_headers_are_comma_joined(self, client, remote):
        client.get(
            _relay_url("http://remote.test/"),
            headers=[("X-Tag", "a"), ("X-Tag", "b")],
        )

        assert remote.last_request.headers.get_list("x-tag") == ["a, b"]


def test_unexpected_error_returns_internal_error(app):
    class _BrokenClient:
        async def execute(self, request):
            raise RuntimeError("boom")

    app.dependency_overrides[get_outbound_client] = lambda: _BrokenClient()

    with TestClient(app, raise_server_exceptions=False) as test_client:
        response = test_client.get(_relay_url("http://remote.test/"))

    assert response.status_code == 500
    assert response.json()["type"] == "internal_error"
    assert response.json()["detail"] == "Internal server error"


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
