"""Typed client for the BFF branch endpoints."""

from __future__ import annotations

import json
from types import TracebackType
from typing import Any, Final

import httpx
from pydantic import ValidationError

from branchdocs.config import BRANCHDOCS_API_URL, BRANCHDOCS_BACKEND_TIMEOUT_S, BRANCHDOCS_USER_AGENT
from branchdocs.exceptions import ApiRequestError
from branchdocs.levels import endpoint_for
from branchdocs.schemas import Branch, ErrorCode

STATUS_ERROR_CODES: Final[dict[int, ErrorCode]] = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    500: ErrorCode.SERVER_ERROR,
}

_DEFAULT_ERROR_MESSAGE: Final[str] = "An error occurred"


def error_code_for(status_code: int, envelope_code: object = None) -> ErrorCode:
    """Map an HTTP failure to an error category.

    Well-known statuses map 1:1; anything else keeps the envelope's own code
    when it is one of ours (e.g. ``BACKEND_UNAVAILABLE`` from the proxy).
    """
    if status_code in STATUS_ERROR_CODES:
        return STATUS_ERROR_CODES[status_code]
    return ErrorCode.from_value(envelope_code) or ErrorCode.UNKNOWN_ERROR


class BranchApi:
    """Per-level CRUD calls against the BFF.

    Args:
        base_url: BFF root including its API prefix, e.g. ``http://host/api``.
        client: Optional shared ``httpx.AsyncClient``. Without one, each call
            opens its own client unless the API is used as an async context
            manager, which keeps one pooled client open.
    """

    def __init__(self, base_url: str = BRANCHDOCS_API_URL, *, client: httpx.AsyncClient | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client
        self._owns_client = False

    async def __aenter__(self) -> BranchApi:
        if self._client is None:
            self._client = self._new_client()
            self._owns_client = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            self._owns_client = False

    async def get_all(self, level: int) -> list[Branch]:
        """All records of one level."""
        data = await self._request("GET", endpoint_for(level))
        return [_branch(item) for item in data or []]

    async def get_by_id(self, level: int, branch_id: int) -> Branch:
        """One record by id."""
        data = await self._request("GET", f"{endpoint_for(level)}/{branch_id}")
        return _branch(data)

    async def create(self, level: int, payload: dict[str, Any]) -> Branch:
        """Create a record; the server assigns ``id`` and timestamps."""
        data = await self._request("POST", endpoint_for(level), payload)
        return _branch(data)

    async def update(self, level: int, payload: dict[str, Any]) -> Branch:
        """Patch the record whose id is ``payload["id"]``."""
        data = await self._request("PATCH", f"{endpoint_for(level)}/{payload['id']}", payload)
        return _branch(data)

    async def delete(self, level: int, branch_id: int) -> None:
        """Delete one record. Descendants on deeper levels are left alone."""
        await self._request("DELETE", f"{endpoint_for(level)}/{branch_id}")

    async def health(self) -> dict[str, Any]:
        """BFF health report."""
        data = await self._request("GET", "/health")
        return data or {}

    async def _request(self, method: str, path: str, body: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        if self._client is not None:
            return await self._send(self._client, method, url, body)
        async with self._new_client() as client:
            return await self._send(client, method, url, body)

    async def _send(self, client: httpx.AsyncClient, method: str, url: str, body: dict[str, Any] | None) -> Any:
        try:
            response = await client.request(method, url, json=body)
        except httpx.RequestError as exc:
            raise ApiRequestError(ErrorCode.NETWORK_ERROR, str(exc) or "Network error", 0) from exc

        if response.is_error:
            raise _error_from_response(response)

        if not response.content:
            return None
        try:
            return response.json()
        except json.JSONDecodeError as exc:
            raise ApiRequestError(ErrorCode.NETWORK_ERROR, f"Invalid JSON response: {exc}", 0) from exc

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(BRANCHDOCS_BACKEND_TIMEOUT_S),
            headers={"User-Agent": BRANCHDOCS_USER_AGENT, "Accept": "application/json"},
        )


def _error_from_response(response: httpx.Response) -> ApiRequestError:
    envelope_code: object = None
    try:
        payload = response.json()
    except json.JSONDecodeError:
        message = response.reason_phrase or _DEFAULT_ERROR_MESSAGE
    else:
        if isinstance(payload, dict):
            message = payload.get("message") or payload.get("error") or _DEFAULT_ERROR_MESSAGE
            envelope_code = payload.get("error")
        else:
            message = _DEFAULT_ERROR_MESSAGE
    return ApiRequestError(
        error_code_for(response.status_code, envelope_code),
        str(message),
        response.status_code,
    )


def _branch(data: Any) -> Branch:
    """Decode one record, reporting a malformed one as an API error."""
    try:
        return Branch.model_validate(data)
    except ValidationError as exc:
        issues = [
            {"path": ".".join(str(part) for part in err["loc"]), "message": err["msg"], "type": err["type"]}
            for err in exc.errors()
        ]
        raise ApiRequestError(
            ErrorCode.UNKNOWN_ERROR,
            f"Invalid branch record in response: {exc.error_count()} issue(s)",
            502,
            details={"issues": issues},
        ) from exc
