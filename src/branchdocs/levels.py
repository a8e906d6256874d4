"""Tree level helpers.

The tree has exactly five levels, each backed by its own flat collection
(``/branches1`` .. ``/branches5``). Parent/child relations are only ever
``branch_id`` references into the previous level.
"""

from __future__ import annotations

from typing import Final, Literal

from branchdocs.exceptions import InvalidLevelError

BranchLevel = Literal[1, 2, 3, 4, 5]

MIN_LEVEL: Final[int] = 1
MAX_LEVEL: Final[int] = 5
LEVELS: Final[tuple[int, ...]] = tuple(range(MIN_LEVEL, MAX_LEVEL + 1))

_TYPE_PREFIX: Final[str] = "branch"


def check_level(level: int) -> int:
    """Return ``level`` unchanged, or raise InvalidLevelError if it is not 1..5."""
    if isinstance(level, bool) or not isinstance(level, int) or not MIN_LEVEL <= level <= MAX_LEVEL:
        raise InvalidLevelError(f"Branch level must be between {MIN_LEVEL} and {MAX_LEVEL}, got {level!r}")
    return level


def next_level(level: int) -> int | None:
    """Level that children of ``level`` live on, or None below the last level."""
    check_level(level)
    return level + 1 if level < MAX_LEVEL else None


def endpoint_for(level: int) -> str:
    """Collection path for a level, e.g. ``/branches3``."""
    return f"/branches{check_level(level)}"


def branch_type(level: int) -> str:
    """Editor type tag for a level, e.g. ``branch3``."""
    return f"{_TYPE_PREFIX}{check_level(level)}"


def level_from_type(value: str) -> int:
    """Inverse of :func:`branch_type`."""
    suffix = value[len(_TYPE_PREFIX):] if value.startswith(_TYPE_PREFIX) else ""
    if not suffix.isdigit():
        raise InvalidLevelError(f"Unknown branch type: {value!r}")
    return check_level(int(suffix))
