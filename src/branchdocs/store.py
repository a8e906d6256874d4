"""Per-level branch collections with client-only UI flags.

Each of the five levels is an independent flat list. Every operation reads
and replaces exactly one level's list, so a change on one level can never
disturb another. Nesting is never stored; see :mod:`branchdocs.tree`.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Union

from branchdocs.levels import LEVELS, check_level
from branchdocs.schemas import Branch, BranchState

Listener = Callable[[str], None]
RecordLike = Union[Branch, dict[str, Any]]

# Client-only flags never come from a fetched record.
_UI_FLAGS = frozenset({"is_show", "is_add", "isShow", "isAdd"})


class BranchDataStore:
    """Observable holder of the five level collections."""

    def __init__(self) -> None:
        self._levels: dict[int, list[BranchState]] = {level: [] for level in LEVELS}
        self._listeners: list[Listener] = []

    # -- observation -------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(action)`` after every change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, level: int, records: list[BranchState], action: str) -> None:
        self._levels[level] = records
        for listener in list(self._listeners):
            listener(action)

    # -- reads -------------------------------------------------------------

    def get(self, level: int) -> list[BranchState]:
        return list(self._levels[check_level(level)])

    def find(self, level: int, branch_id: int) -> BranchState | None:
        for record in self._levels[check_level(level)]:
            if record.id == branch_id:
                return record
        return None

    def children_of(self, level: int, parent_id: int) -> list[BranchState]:
        """Records on ``level`` whose ``branch_id`` is ``parent_id``."""
        return [record for record in self._levels[check_level(level)] if record.branch_id == parent_id]

    def snapshot(self) -> dict[int, list[BranchState]]:
        return {level: list(records) for level, records in self._levels.items()}

    # -- mutations ---------------------------------------------------------

    def set_collection(self, level: int, records: Iterable[RecordLike]) -> None:
        """Replace a level with freshly fetched records.

        ``is_show`` survives for ids already present; everything else starts
        collapsed. ``is_add`` is always cleared.
        """
        check_level(level)
        previous = {record.id: record.is_show for record in self._levels[level]}
        fresh = []
        for record in records:
            fields = _server_fields(record)
            fields["is_show"] = previous.get(fields["id"], False)
            fields["is_add"] = False
            fresh.append(BranchState.model_validate(fields))
        self._commit(level, fresh, f"setCollection{level}")

    def toggle_expanded(self, level: int, branch_id: int) -> None:
        check_level(level)
        self._commit(
            level,
            [
                record.model_copy(update={"is_show": not record.is_show}) if record.id == branch_id else record
                for record in self._levels[level]
            ],
            f"toggleExpanded{level}",
        )

    def set_add_target(self, level: int, branch_id: int) -> None:
        """Flag one record as the context-menu / add target."""
        check_level(level)
        self._commit(
            level,
            [
                record.model_copy(update={"is_add": True}) if record.id == branch_id else record
                for record in self._levels[level]
            ],
            f"setAddTarget{level}",
        )

    def reset_add_targets(self, level: int) -> None:
        check_level(level)
        self._commit(
            level,
            [record.model_copy(update={"is_add": False}) for record in self._levels[level]],
            f"resetAddTargets{level}",
        )

    def reset_all_add_targets(self) -> None:
        for level in LEVELS:
            self.reset_add_targets(level)

    def apply_create(self, level: int, record: RecordLike) -> None:
        """Append a record the server just created, collapsed and unflagged."""
        check_level(level)
        fields = _server_fields(record)
        created = BranchState.model_validate({**fields, "is_show": False, "is_add": False})
        self._commit(level, [*self._levels[level], created], f"applyCreate{level}")

    def apply_update(self, level: int, record: RecordLike) -> None:
        """Merge server fields into the record with the same id; unknown ids are ignored."""
        check_level(level)
        fields = _server_fields(record)
        self._commit(
            level,
            [
                existing.merged(fields) if existing.id == fields["id"] else existing
                for existing in self._levels[level]
            ],
            f"applyUpdate{level}",
        )

    def apply_delete(self, level: int, branch_id: int) -> None:
        """Drop one record. Its descendants stay in their own levels, unreachable."""
        check_level(level)
        self._commit(
            level,
            [record for record in self._levels[level] if record.id != branch_id],
            f"applyDelete{level}",
        )

    def reset(self) -> None:
        for level in LEVELS:
            self._commit(level, [], f"reset{level}")


def _server_fields(record: RecordLike) -> dict[str, Any]:
    if isinstance(record, BranchState):
        data = record.model_dump(include=set(Branch.model_fields))
    elif isinstance(record, Branch):
        data = record.model_dump(exclude_unset=True)
    else:
        data = dict(record)
    for flag in _UI_FLAGS:
        data.pop(flag, None)
    return data
