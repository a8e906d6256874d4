"""Shared schemas for branchdocs."""

from branchdocs.schemas.api import ErrorCode, ErrorResponse, HealthCheckResponse
from branchdocs.schemas.branch import Branch, BranchState

__all__ = ["Branch", "BranchState", "ErrorCode", "ErrorResponse", "HealthCheckResponse"]
