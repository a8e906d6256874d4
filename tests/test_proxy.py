"""Tests for the BFF backend proxy."""

from __future__ import annotations

import json

import httpx
import pytest

from server.proxy import ProxyResult, create_error_response, proxy_to_backend


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://backend")


class TestProxyToBackend:
    """Tests for proxy_to_backend."""

    @pytest.mark.asyncio
    async def test_success_passes_through(self) -> None:
        """Status and JSON body are forwarded untouched."""
        payload = [{"id": 1, "branch_id": None, "title": "Root"}]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=payload)

        result = await proxy_to_backend(_client(handler), "/branches1", "GET")

        assert result.ok
        assert result.status_code == 200
        assert result.data == payload

    @pytest.mark.asyncio
    async def test_sends_json_and_no_cache(self) -> None:
        """Body is JSON-encoded and caching is disabled upstream."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"id": 3})

        result = await proxy_to_backend(_client(handler), "/branches2", "POST", body={"title": "A"})

        assert result.status_code == 201
        assert json.loads(seen[0].content) == {"title": "A"}
        assert seen[0].headers["Cache-Control"] == "no-cache"
        assert seen[0].headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_get_sends_no_body(self) -> None:
        """A GET never carries a body."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        await proxy_to_backend(_client(handler), "/branches1", "GET", body={"ignored": True})

        assert seen[0].content == b""

    @pytest.mark.asyncio
    async def test_backend_message_forwarded(self) -> None:
        """A JSON error keeps the backend status and message."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"message": "title required"})

        result = await proxy_to_backend(_client(handler), "/branches1", "POST", body={})

        assert not result.ok
        assert result.status_code == 400
        assert result.error.message == "title required"
        assert result.error.error == "BACKEND_ERROR"

    @pytest.mark.asyncio
    async def test_backend_error_code_kept(self) -> None:
        """The backend's own error code wins over the default."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "NOT_FOUND", "message": "Branch not found"})

        result = await proxy_to_backend(_client(handler), "/branches1/9", "GET")

        assert result.error.error == "NOT_FOUND"
        assert result.error.message == "Branch not found"

    @pytest.mark.asyncio
    async def test_backend_503_is_unavailable(self) -> None:
        """A backend 503 becomes BACKEND_UNAVAILABLE."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"message": "maintenance"})

        result = await proxy_to_backend(_client(handler), "/branches1", "GET")

        assert result.status_code == 503
        assert result.error.error == "BACKEND_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_non_json_error(self) -> None:
        """A non-JSON error reports the status text."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>bad gateway</html>", headers={"content-type": "text/html"})

        result = await proxy_to_backend(_client(handler), "/branches1", "GET")

        assert result.status_code == 502
        assert result.error.message == "Backend returned non-JSON response: Bad Gateway"

    @pytest.mark.asyncio
    async def test_empty_success(self) -> None:
        """A 204 has no payload."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(204)

        result = await proxy_to_backend(_client(handler), "/branches1/1", "DELETE")

        assert result.ok
        assert result.status_code == 204
        assert result.data is None

    @pytest.mark.asyncio
    async def test_empty_json_success(self) -> None:
        """An empty body labelled JSON is still an empty success."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(204, headers={"content-type": "application/json"})

        result = await proxy_to_backend(_client(handler), "/branches1/1", "DELETE")

        assert result.ok
        assert result.status_code == 204
        assert result.data is None

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        """An unreachable backend is a 503 BACKEND_UNAVAILABLE."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = await proxy_to_backend(_client(handler), "/branches1", "GET")

        assert result.status_code == 503
        assert result.error.error == "BACKEND_UNAVAILABLE"
        assert "connection refused" in result.error.message

    @pytest.mark.asyncio
    async def test_malformed_json(self) -> None:
        """A body labelled JSON that does not parse is treated as unavailable."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"{not json", headers={"content-type": "application/json"})

        result = await proxy_to_backend(_client(handler), "/branches1", "GET")

        assert result.status_code == 503
        assert result.error.error == "BACKEND_UNAVAILABLE"


class TestResponses:
    """Tests for response building."""

    def test_error_envelope(self) -> None:
        """Errors use the {error, message, statusCode} shape."""
        response = create_error_response("Invalid branch ID", 400, "VALIDATION_ERROR")

        assert response.status_code == 400
        assert json.loads(response.body) == {
            "error": "VALIDATION_ERROR",
            "message": "Invalid branch ID",
            "statusCode": 400,
        }
        assert response.headers["cache-control"] == "no-store"

    def test_empty_result_response(self) -> None:
        """A result without data becomes an empty response."""
        response = ProxyResult(status_code=204).to_response()

        assert response.status_code == 204
        assert response.body == b""
