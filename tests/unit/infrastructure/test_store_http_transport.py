"""Unit tests for StoreHttpTransport using httpx.MockTransport."""

import json

import httpx
import pytest

from dispute_sync.domain.errors import (
    AuthRequiredError,
    InvalidAuthTokenError,
    RequestFailedError,
)
from dispute_sync.infrastructure.adapters.store_http_transport import (
    StoreHttpTransport,
)

BASE_URI = "https://store.example.com"


def _transport(handler, auth_token: str | None = "token") -> StoreHttpTransport:
    client = httpx.AsyncClient(base_url=BASE_URI, transport=httpx.MockTransport(handler))
    return StoreHttpTransport(BASE_URI, auth_token=auth_token, client=client)


class TestStoreHttpTransportReads:
    """Tests for GET requests."""

    @pytest.mark.asyncio
    async def test_get_returns_decoded_body(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"address": "0xuser"})

        response = await _transport(handler, auth_token=None).request("GET", "/0xuser")

        assert response.status == 200
        assert response.body == {"address": "0xuser"}
        assert seen[0].url == httpx.URL(f"{BASE_URI}/0xuser")
        assert "authorization" not in seen[0].headers

    @pytest.mark.asyncio
    async def test_get_404_is_absent(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "not found"})

        response = await _transport(handler).request("GET", "/0xuser")

        assert response.status == 404
        assert response.body is None
        assert not response.found

    @pytest.mark.asyncio
    async def test_get_server_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        with pytest.raises(RequestFailedError) as exc_info:
            await _transport(handler).request("GET", "/0xuser")
        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "boom"


class TestStoreHttpTransportWrites:
    """Tests for credentialed writes."""

    @pytest.mark.asyncio
    async def test_post_sends_bearer_token_and_json(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"address": "0xuser", "session": 2})

        response = await _transport(handler).request("POST", "/0xuser", {"session": 2})

        assert response.status == 201
        assert seen[0].headers["authorization"] == "Bearer token"
        assert json.loads(seen[0].content) == {"session": 2}

    @pytest.mark.asyncio
    async def test_write_without_token_sends_nothing(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(201)

        with pytest.raises(AuthRequiredError):
            await _transport(handler, auth_token=None).request("POST", "/0xuser", {})
        assert calls == 0

    @pytest.mark.asyncio
    async def test_401_raises_invalid_token(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": "expired"})

        with pytest.raises(InvalidAuthTokenError) as exc_info:
            await _transport(handler).request("POST", "/0xuser", {})
        assert exc_info.value.detail == {"error": "expired"}

    @pytest.mark.asyncio
    async def test_post_404_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        with pytest.raises(RequestFailedError) as exc_info:
            await _transport(handler).request("POST", "/0xuser/contracts/0xc", {})
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_set_auth_token_replaces_credential(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers["authorization"])
            return httpx.Response(201, json={})

        transport = _transport(handler)
        transport.set_auth_token("fresh")
        await transport.request("POST", "/0xuser", {})

        assert seen == ["Bearer fresh"]
        transport.set_auth_token(None)
        assert not transport.has_auth_token


class TestStoreHttpTransportFailures:
    """Tests for transport-level failures."""

    @pytest.mark.asyncio
    async def test_connection_error_is_wrapped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RequestFailedError) as exc_info:
            await _transport(handler).request("GET", "/0xuser")
        assert exc_info.value.status_code == 0
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_owned_client_is_closed(self) -> None:
        transport = StoreHttpTransport(BASE_URI)
        async with transport:
            assert transport.base_uri == BASE_URI
