"""Forward BFF requests to the external branch backend."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal

import httpx
from fastapi import status
from fastapi.responses import JSONResponse, Response

from branchdocs.schemas import ErrorCode, ErrorResponse
from branchdocs.utils.logging_config import get_logger

logger = get_logger(__name__)

HttpMethod = Literal["GET", "POST", "PATCH", "PUT", "DELETE"]

NO_STORE_HEADERS = {"Cache-Control": "no-store"}

_REQUEST_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "Cache-Control": "no-cache",
}


def create_error_response(message: str, status_code: int, error: str | None = None) -> JSONResponse:
    """Build the uniform ``{error, message, statusCode}`` error response."""
    envelope = ErrorResponse(error=error or "Request failed", message=message, status_code=status_code)
    return JSONResponse(
        content=envelope.model_dump(by_alias=True),
        status_code=status_code,
        headers=NO_STORE_HEADERS,
    )


@dataclass
class ProxyResult:
    """Normalized outcome of a proxied call.

    Attributes:
        status_code: Status to answer the caller with.
        data: Decoded JSON body on success; None for empty bodies.
        error: Error envelope on failure.
    """

    status_code: int
    data: Any = None
    error: ErrorResponse | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_response(self) -> Response:
        if self.error is not None:
            return create_error_response(self.error.message, self.error.status_code, self.error.error)
        if self.data is None:
            return Response(status_code=self.status_code, headers=NO_STORE_HEADERS)
        return JSONResponse(content=self.data, status_code=self.status_code, headers=NO_STORE_HEADERS)


def _failure(message: str, status_code: int, error: str) -> ProxyResult:
    return ProxyResult(
        status_code=status_code,
        error=ErrorResponse(error=error, message=message, status_code=status_code),
    )


def _default_error_code(status_code: int) -> str:
    if status_code == status.HTTP_503_SERVICE_UNAVAILABLE:
        return ErrorCode.BACKEND_UNAVAILABLE.value
    return ErrorCode.BACKEND_ERROR.value


async def proxy_to_backend(
    client: httpx.AsyncClient,
    endpoint: str,
    method: HttpMethod,
    body: Any = None,
    params: httpx.QueryParams | dict[str, str] | None = None,
) -> ProxyResult:
    """Send one request to the backend and normalize whatever comes back.

    Never raises for backend or transport failures and never retries;
    retrying is the caller's business.

    Args:
        client: Client whose ``base_url`` is the backend root.
        endpoint: Backend path, e.g. ``/branches1`` or ``/branches2/7``.
        method: HTTP verb.
        body: JSON body, ignored for GET.
        params: Query parameters to forward.

    Returns:
        The response status and decoded payload, or an error envelope.
    """
    content = None
    if body is not None and method != "GET":
        content = json.dumps(body)

    try:
        response = await client.request(
            method,
            endpoint,
            content=content,
            params=params or None,
            headers=_REQUEST_HEADERS,
        )
        content_type = response.headers.get("content-type", "")

        if "application/json" not in content_type or not response.content:
            if response.is_error:
                _log_failure(method, endpoint, response.status_code, response.reason_phrase)
                return _failure(
                    f"Backend returned non-JSON response: {response.reason_phrase}",
                    response.status_code,
                    _default_error_code(response.status_code),
                )
            return ProxyResult(status_code=response.status_code)

        data = response.json()
    except (httpx.RequestError, json.JSONDecodeError) as exc:
        logger.error(
            "BFF proxy error",
            extra={"method": method, "endpoint": endpoint, "error": repr(exc)},
        )
        message = str(exc) or "Failed to connect to backend"
        return _failure(message, status.HTTP_503_SERVICE_UNAVAILABLE, ErrorCode.BACKEND_UNAVAILABLE.value)

    if response.is_error:
        error_data = data if isinstance(data, dict) else {}
        message = error_data.get("message") or error_data.get("error") or "Backend request failed"
        _log_failure(method, endpoint, response.status_code, message)
        return _failure(
            str(message),
            response.status_code,
            str(error_data.get("error") or _default_error_code(response.status_code)),
        )

    return ProxyResult(status_code=response.status_code, data=data)


def _log_failure(method: str, endpoint: str, status_code: int, detail: str) -> None:
    logger.error(
        "Backend request failed",
        extra={"method": method, "endpoint": endpoint, "status_code": status_code, "error": detail},
    )
