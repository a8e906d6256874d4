"""Wire models shared by the BFF and its clients."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ErrorCode(str, Enum):
    """Error categories carried in the ``error`` field of every error envelope."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    SERVER_ERROR = "SERVER_ERROR"
    BACKEND_ERROR = "BACKEND_ERROR"
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"

    @classmethod
    def from_value(cls, value: object) -> ErrorCode | None:
        """Return the member whose value is ``value``, or None."""
        try:
            return cls(value)
        except ValueError:
            return None


class ErrorResponse(BaseModel):
    """Uniform error envelope.

    Attributes:
        error: Error category, usually an ``ErrorCode`` value; the backend
            may supply its own.
        message: Human-readable description.
        status_code: HTTP status, serialized as ``statusCode``.
    """

    model_config = ConfigDict(populate_by_name=True)

    error: str = Field(..., description="Error category")
    message: str = Field(..., description="Human-readable error message")
    status_code: int = Field(..., alias="statusCode", description="HTTP status code")


class HealthCheckResponse(BaseModel):
    """Health payload reported by the external backend."""

    model_config = ConfigDict(extra="allow")

    status: str
    timestamp: str | None = None
    uptime: float | None = None
    environment: str | None = None
    database: str | None = None
    version: str | None = None
