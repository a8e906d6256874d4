"""Request payload validation for branch create/update calls."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticCustomError

MAX_TITLE_LENGTH = 500

_ID_PATTERN = re.compile(r"^\d+$")

ParentId = Annotated[StrictInt, Field(gt=0)]


def _check_title(value: str, empty_message: str) -> str:
    if len(value) < 1:
        raise PydanticCustomError("title_empty", empty_message)
    if len(value) > MAX_TITLE_LENGTH:
        raise PydanticCustomError("title_too_long", "Title is too long")
    return value


class CreateBranchInput(BaseModel):
    """Payload accepted by ``POST /branchesN``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    branch_id: ParentId | None = None
    title: StrictStr
    content: StrictStr
    is_show: StrictBool = Field(default=False, alias="isShow")
    is_add: StrictBool = Field(default=False, alias="isAdd")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Require a 1-500 character title."""
        return _check_title(v, "Title is required")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Require non-empty content."""
        if not v:
            raise PydanticCustomError("content_empty", "Content is required")
        return v


class UpdateBranchInput(BaseModel):
    """Payload accepted by ``PATCH /branchesN/{id}``; every field optional."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    branch_id: ParentId | None = None
    title: StrictStr | None = None
    content: StrictStr | None = None
    is_show: StrictBool | None = Field(default=None, alias="isShow")
    is_add: StrictBool | None = Field(default=None, alias="isAdd")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        """An explicit title still has to be 1-500 characters."""
        if v is None:
            raise PydanticCustomError("title_null", "Title cannot be empty")
        return _check_title(v, "Title cannot be empty")

    @field_validator("content", "is_show", "is_add")
    @classmethod
    def reject_null(cls, v: object) -> object:
        """Optional means omitted, not null."""
        if v is None:
            raise PydanticCustomError("null_value", "Value cannot be null")
        return v

    @model_validator(mode="after")
    def require_any_field(self) -> UpdateBranchInput:
        """Reject an update that sets nothing."""
        if not self.model_fields_set:
            raise PydanticCustomError("empty_update", "At least one field must be provided for update")
        return self


SchemaName = Literal["create", "update"]
BranchSchema = Union[type[CreateBranchInput], type[UpdateBranchInput]]

SCHEMAS: dict[str, BranchSchema] = {
    "create": CreateBranchInput,
    "update": UpdateBranchInput,
}


@dataclass
class ValidationResult:
    """Outcome of :func:`validate`.

    Attributes:
        success: True when the payload matched the schema.
        data: Normalized payload (wire field names) on success.
        error: ``"path: message"`` pairs joined with ``"; "`` on failure.
        details: One dict per violated rule with ``path``, ``message`` and ``type``.
    """

    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    details: list[dict[str, str]] = field(default_factory=list)


def validate(schema: SchemaName | BranchSchema, payload: object) -> ValidationResult:
    """Validate an untyped payload against the create or update schema."""
    model_cls = SCHEMAS[schema] if isinstance(schema, str) else schema
    try:
        model = model_cls.model_validate(payload)
    except ValidationError as exc:
        details = [
            {
                "path": ".".join(str(part) for part in issue["loc"]),
                "message": issue["msg"],
                "type": issue["type"],
            }
            for issue in exc.errors()
        ]
        error = "; ".join(
            f"{detail['path']}: {detail['message']}" if detail["path"] else detail["message"] for detail in details
        )
        return ValidationResult(success=False, error=error or "Validation failed", details=details)
    return ValidationResult(success=True, data=_normalize(model))


def _normalize(model: BaseModel) -> dict[str, Any]:
    """Dump the fields the caller sent, plus the create defaults for the UI flags."""
    include = set(model.model_fields_set)
    if isinstance(model, CreateBranchInput):
        include |= {"is_show", "is_add"}
    return model.model_dump(by_alias=True, include=include)


def parse_id(raw: str | int) -> int | None:
    """Parse a path id; anything but a run of digits is rejected."""
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw if raw >= 0 else None
    if isinstance(raw, str) and _ID_PATTERN.match(raw):
        return int(raw)
    return None
