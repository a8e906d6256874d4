"""Pydantic models for BFF responses."""

from __future__ import annotations

from enum import Enum
from pydantic import BaseModel, Field

from branchdocs.schemas import HealthCheckResponse
from server.server_config import BFF_VERSION


class HealthStatus(str, Enum):
    """Overall health reported by ``GET /health``."""

    OK = "OK"
    DEGRADED = "DEGRADED"
    ERROR = "ERROR"


class BffStatus(BaseModel):
    """Status of the BFF process itself.

    Attributes
    ----------
    status : str
        Always ``"OK"``: the BFF answered.
    version : str
        BFF release.

    """

    status: str = Field(default="OK", description="BFF status")
    version: str = Field(default=BFF_VERSION, description="BFF version")


class BffHealthResponse(BaseModel):
    """Response model for the /health endpoint.

    Attributes
    ----------
    status : HealthStatus
        ``OK`` when the backend is healthy, ``DEGRADED`` when it answered with
        an error, ``ERROR`` when it could not be reached.
    timestamp : str
        ISO-8601 time of the check.
    bff : BffStatus
        Status of the BFF itself.
    backend : HealthCheckResponse | None
        The backend's own health payload, when healthy.
    error : str | None
        Short description of what failed.

    """

    status: HealthStatus = Field(..., description="Overall health")
    timestamp: str = Field(..., description="ISO-8601 time of the check")
    bff: BffStatus = Field(default_factory=BffStatus, description="BFF status")
    backend: HealthCheckResponse | None = Field(default=None, description="Backend health payload")
    error: str | None = Field(default=None, description="Failure description")
