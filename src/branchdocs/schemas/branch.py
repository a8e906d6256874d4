"""Branch record models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Branch(BaseModel):
    """One document node as stored by the backend.

    All five level tables share this shape. ``branch_id`` points at a record
    in the previous level's table and is None only for level-1 roots.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int
    branch_id: int | None = None
    title: str
    content: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BranchState(Branch):
    """A branch plus the client-only flags the tree view keeps for it.

    Attributes:
        is_show: Children are expanded in the tree (``isShow`` on the wire).
        is_add: Record is the current context-menu / add target (``isAdd``).
    """

    is_show: bool = Field(default=False, alias="isShow")
    is_add: bool = Field(default=False, alias="isAdd")

    def merged(self, fields: dict[str, Any]) -> BranchState:
        """Return a copy with ``fields`` (wire or python names) applied."""
        data = self.model_dump()
        for key, value in fields.items():
            data[_FLAG_NAMES.get(key, key)] = value
        return BranchState.model_validate(data)


_FLAG_NAMES = {"isShow": "is_show", "isAdd": "is_add"}
