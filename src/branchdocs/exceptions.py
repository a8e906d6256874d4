"""Custom exceptions for branchdocs."""

from __future__ import annotations

from typing import Any

from branchdocs.schemas.api import ErrorCode

TRANSIENT_ERROR_CODES = frozenset({ErrorCode.NETWORK_ERROR, ErrorCode.BACKEND_UNAVAILABLE})


class BranchdocsError(Exception):
    """Base exception for branchdocs operations."""


class ApiRequestError(BranchdocsError):
    """A request to the BFF failed.

    Carries the normalized error envelope so callers never see raw
    transport exceptions.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details

    @property
    def is_transient(self) -> bool:
        """Whether retrying the same request could succeed."""
        return self.code in TRANSIENT_ERROR_CODES

    def __repr__(self) -> str:
        return f"ApiRequestError(code={self.code.value!r}, status_code={self.status_code}, message={self.message!r})"


class InvalidLevelError(BranchdocsError, ValueError):
    """Branch level outside 1..5, or a child requested below the last level."""


class EditorStateError(BranchdocsError):
    """Editor session asked to do something its current mode does not allow."""
