"""BFF application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from branchdocs.config import (
    BRANCHDOCS_API_PREFIX,
    BRANCHDOCS_BACKEND_TIMEOUT_S,
    BRANCHDOCS_BACKEND_URL,
    BRANCHDOCS_USER_AGENT,
)
from branchdocs.schemas import ErrorCode
from server.proxy import create_error_response
from server.routers import branches, health
from server.server_config import (
    BFF_VERSION,
    CORS_ALLOW_CREDENTIALS,
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
    CORS_ALLOW_ORIGINS,
)

_STATUS_ERROR_CODES = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
}


def create_backend_client(base_url: str = BRANCHDOCS_BACKEND_URL) -> httpx.AsyncClient:
    """Pooled client for the external backend."""
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=httpx.Timeout(BRANCHDOCS_BACKEND_TIMEOUT_S),
        headers={"User-Agent": BRANCHDOCS_USER_AGENT},
    )


def create_app(
    backend_client: httpx.AsyncClient | None = None,
    *,
    api_prefix: str = BRANCHDOCS_API_PREFIX,
) -> FastAPI:
    """Build the BFF app.

    Args:
        backend_client: Client for the backend. When omitted one is opened at
            startup and closed at shutdown.
        api_prefix: Path every route is mounted under.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.backend_client is not None:
            yield
            return
        app.state.backend_client = create_backend_client()
        try:
            yield
        finally:
            await app.state.backend_client.aclose()
            app.state.backend_client = None

    app = FastAPI(title="branchdocs BFF", version=BFF_VERSION, lifespan=lifespan)
    app.state.backend_client = backend_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_credentials=CORS_ALLOW_CREDENTIALS,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
    )

    app.include_router(branches.router, prefix=api_prefix)
    app.include_router(health.router, prefix=api_prefix)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # noqa: ARG001
        code = _STATUS_ERROR_CODES.get(exc.status_code, ErrorCode.UNKNOWN_ERROR)
        return create_error_response(str(exc.detail), exc.status_code, code.value)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: ARG001
        message = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return create_error_response(message or "Validation failed", 400, ErrorCode.VALIDATION_ERROR.value)

    return app


app = create_app()
