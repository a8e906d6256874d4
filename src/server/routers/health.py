"""Health endpoint: is the BFF up, and can it reach the backend?"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from branchdocs.schemas import ErrorCode, HealthCheckResponse
from branchdocs.utils.logging_config import get_logger
from server.models import BffHealthResponse, HealthStatus
from server.proxy import NO_STORE_HEADERS, proxy_to_backend
from server.routers.branches import get_backend_client

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=BffHealthResponse)
async def health(request: Request) -> JSONResponse:
    """Report BFF and backend health.

    **Returns**

    - **200** ``OK``: the backend health check answered 200
    - **200** ``DEGRADED``: the backend answered with an error or an unrecognised payload
    - **503** ``ERROR``: the backend could not be reached

    """
    timestamp = datetime.now(timezone.utc).isoformat()
    result = await proxy_to_backend(get_backend_client(request), "/health", "GET")

    backend = _backend_health(result.data) if result.ok and result.status_code == status.HTTP_200_OK else None

    if backend is not None:
        body = BffHealthResponse(status=HealthStatus.OK, timestamp=timestamp, backend=backend)
        status_code = status.HTTP_200_OK
    elif result.error is not None and result.error.error == ErrorCode.BACKEND_UNAVAILABLE.value:
        logger.error("Health check failed", extra={"error": result.error.message})
        body = BffHealthResponse(status=HealthStatus.ERROR, timestamp=timestamp, error="Backend unreachable")
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        body = BffHealthResponse(status=HealthStatus.DEGRADED, timestamp=timestamp, error="Backend health check failed")
        status_code = status.HTTP_200_OK

    return JSONResponse(
        content=body.model_dump(mode="json", exclude_none=True),
        status_code=status_code,
        headers=NO_STORE_HEADERS,
    )


def _backend_health(data: object) -> HealthCheckResponse | None:
    """The backend's health payload, or None if it is not one."""
    try:
        return HealthCheckResponse.model_validate(data)
    except ValidationError:
        logger.warning("Backend health payload is malformed", extra={"payload": repr(data)[:200]})
        return None
