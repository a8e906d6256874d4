"""Tests for the BFF client."""

from __future__ import annotations

import json

import httpx
import pytest

from branchdocs.api_client import BranchApi, error_code_for
from branchdocs.exceptions import ApiRequestError
from branchdocs.schemas import ErrorCode
from conftest import FakeBackend, make_record


def _api(handler) -> BranchApi:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BranchApi("http://bff/api", client=client)


class TestErrorCodeFor:
    """Tests for error_code_for function."""

    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [
            (400, ErrorCode.VALIDATION_ERROR),
            (401, ErrorCode.UNAUTHORIZED),
            (403, ErrorCode.FORBIDDEN),
            (404, ErrorCode.NOT_FOUND),
            (500, ErrorCode.SERVER_ERROR),
        ],
    )
    def test_known_statuses(self, status_code: int, expected: ErrorCode) -> None:
        """Well-known statuses map 1:1, whatever the envelope says."""
        assert error_code_for(status_code, "BACKEND_ERROR") is expected

    def test_envelope_code_used_otherwise(self) -> None:
        """Other statuses keep a recognised envelope code."""
        assert error_code_for(503, "BACKEND_UNAVAILABLE") is ErrorCode.BACKEND_UNAVAILABLE

    def test_unknown(self) -> None:
        """Anything else is UNKNOWN_ERROR."""
        assert error_code_for(418, "TEAPOT") is ErrorCode.UNKNOWN_ERROR
        assert error_code_for(502) is ErrorCode.UNKNOWN_ERROR


class TestBranchApi:
    """Tests for BranchApi."""

    @pytest.mark.asyncio
    async def test_get_all(self, fake_backend: FakeBackend) -> None:
        """Records are parsed into Branch models."""
        fake_backend.seed(1, make_record(1, title="Root"), make_record(2))

        branches = await _api(fake_backend).get_all(1)

        assert [branch.title for branch in branches] == ["Root", "Branch 2"]
        assert fake_backend.requests[0].url.path == "/api/branches1"

    @pytest.mark.asyncio
    async def test_create_sends_payload(self, fake_backend: FakeBackend) -> None:
        """The payload goes out as JSON and the created record comes back."""
        created = await _api(fake_backend).create(2, {"branch_id": 1, "title": "Child", "content": "c"})

        assert created.id == 1
        assert created.branch_id == 1
        assert json.loads(fake_backend.calls("POST")[0].content)["title"] == "Child"

    @pytest.mark.asyncio
    async def test_update_targets_payload_id(self, fake_backend: FakeBackend) -> None:
        """update() patches the record named by payload['id']."""
        fake_backend.seed(3, make_record(7, branch_id=2))

        updated = await _api(fake_backend).update(3, {"id": 7, "title": "Renamed"})

        assert updated.title == "Renamed"
        assert fake_backend.calls("PATCH")[0].url.path == "/api/branches3/7"

    @pytest.mark.asyncio
    async def test_delete_empty_body(self, fake_backend: FakeBackend) -> None:
        """A 204 resolves to None."""
        fake_backend.seed(1, make_record(1))

        assert await _api(fake_backend).delete(1, 1) is None
        assert fake_backend.tables[1] == {}

    @pytest.mark.asyncio
    async def test_http_error_envelope(self) -> None:
        """Error envelopes become ApiRequestError with the mapped code."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400, json={"error": "VALIDATION_ERROR", "message": "title: Title is required", "statusCode": 400}
            )

        with pytest.raises(ApiRequestError) as exc_info:
            await _api(handler).create(1, {"title": ""})

        assert exc_info.value.code is ErrorCode.VALIDATION_ERROR
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "title: Title is required"
        assert not exc_info.value.is_transient

    @pytest.mark.asyncio
    async def test_backend_unavailable_is_transient(self) -> None:
        """A proxied 503 keeps BACKEND_UNAVAILABLE and is retryable."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"error": "BACKEND_UNAVAILABLE", "message": "down", "statusCode": 503})

        with pytest.raises(ApiRequestError) as exc_info:
            await _api(handler).get_all(1)

        assert exc_info.value.code is ErrorCode.BACKEND_UNAVAILABLE
        assert exc_info.value.is_transient

    @pytest.mark.asyncio
    async def test_non_json_error_uses_reason(self) -> None:
        """Without a JSON body the status text is the message."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        with pytest.raises(ApiRequestError) as exc_info:
            await _api(handler).get_by_id(1, 1)

        assert exc_info.value.code is ErrorCode.SERVER_ERROR
        assert exc_info.value.message == "Internal Server Error"

    @pytest.mark.asyncio
    async def test_error_without_message(self) -> None:
        """An envelope without message or error falls back to a generic message."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={})

        with pytest.raises(ApiRequestError) as exc_info:
            await _api(handler).get_by_id(1, 5)

        assert exc_info.value.message == "An error occurred"

    @pytest.mark.asyncio
    async def test_network_error(self) -> None:
        """Transport failures are NETWORK_ERROR with status 0."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(ApiRequestError) as exc_info:
            await _api(handler).get_all(1)

        assert exc_info.value.code is ErrorCode.NETWORK_ERROR
        assert exc_info.value.status_code == 0
        assert exc_info.value.is_transient

    @pytest.mark.asyncio
    async def test_malformed_record(self) -> None:
        """A record missing required fields is an ApiRequestError with the issues attached."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"id": 1}])

        with pytest.raises(ApiRequestError) as exc_info:
            await _api(handler).get_all(2)

        assert exc_info.value.code is ErrorCode.UNKNOWN_ERROR
        assert not exc_info.value.is_transient
        assert [issue["path"] for issue in exc_info.value.details["issues"]] == ["title"]

    @pytest.mark.asyncio
    async def test_health(self, fake_backend: FakeBackend) -> None:
        """health() returns the decoded health payload."""
        report = await _api(fake_backend).health()

        assert report["status"] == "OK"
        assert fake_backend.requests[0].url.path == "/api/health"

    @pytest.mark.asyncio
    async def test_invalid_level(self, fake_backend: FakeBackend) -> None:
        """Levels outside 1..5 never hit the network."""
        with pytest.raises(ValueError):
            await _api(fake_backend).get_all(6)

        assert fake_backend.requests == []
