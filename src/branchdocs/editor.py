"""Editor session: what the editor panel is currently creating or editing."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable

from bs4 import BeautifulSoup

from branchdocs.exceptions import EditorStateError, InvalidLevelError
from branchdocs.levels import MAX_LEVEL, branch_type, check_level
from branchdocs.schemas import Branch

DEFAULT_EDITOR_CONTENT = '<h1 class="branch-name" id="branch-name"></h1>'

_TITLE_ID = "branch-name"
_HEADINGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

Listener = Callable[[str], None]


class EditorMode(str, Enum):
    """Operational states of the editor panel."""

    CLOSED = "closed"
    ADD = "add"
    EDIT = "edit"


@dataclass(frozen=True)
class EditorState:
    """Immutable snapshot of the session.

    Attributes:
        mode: Closed, adding a new record, or editing an existing one.
        level: Level being created/edited; None when closed.
        old_branch: Record being edited, or the parent when adding a child.
        selected_parent_id: Parent id for a new record; None for roots.
        content: Draft HTML.
    """

    mode: EditorMode = EditorMode.CLOSED
    level: int | None = None
    old_branch: Branch | None = None
    selected_parent_id: int | None = None
    content: str = DEFAULT_EDITOR_CONTENT

    @property
    def is_open(self) -> bool:
        return self.mode is not EditorMode.CLOSED

    @property
    def is_update(self) -> bool:
        return self.mode is EditorMode.EDIT

    @property
    def branch_type(self) -> str | None:
        return branch_type(self.level) if self.level is not None else None


class EditorSession:
    """State machine for the editor panel: closed, add-mode, edit-mode."""

    def __init__(self) -> None:
        self._state = EditorState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> EditorState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, state: EditorState, action: str) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(action)

    def open_for_add(self, parent: Branch | None, target_level: int) -> None:
        """Enter add-mode for a new record on ``target_level`` under ``parent``.

        Raises:
            InvalidLevelError: If ``target_level`` is past the last level, or
                does not sit directly below the parent (level 1 for roots).
        """
        if isinstance(target_level, int) and target_level > MAX_LEVEL:
            raise InvalidLevelError(f"Cannot add a branch below level {MAX_LEVEL}")
        check_level(target_level)
        if parent is None and target_level != 1:
            raise InvalidLevelError("A branch without a parent must be added on level 1")
        if parent is not None and target_level == 1:
            raise InvalidLevelError("Level 1 branches cannot have a parent")
        self._set(
            EditorState(
                mode=EditorMode.ADD,
                level=target_level,
                old_branch=parent,
                selected_parent_id=parent.id if parent is not None else None,
            ),
            "openForAdd",
        )

    def open_for_root(self) -> None:
        """Enter add-mode for a new level-1 record."""
        self.open_for_add(None, 1)

    def open_for_edit(self, record: Branch, level: int) -> None:
        """Enter edit-mode on ``record``, loading its stored content as the draft."""
        check_level(level)
        self._set(
            EditorState(
                mode=EditorMode.EDIT,
                level=level,
                old_branch=record,
                selected_parent_id=record.branch_id,
                content=record.content,
            ),
            "openForEdit",
        )

    def close(self) -> None:
        self._set(EditorState(), "close")

    def set_content(self, content: str) -> None:
        if not self._state.is_open:
            raise EditorStateError("Editor is closed")
        self._set(replace(self._state, content=content), "setContent")

    def reset_content(self) -> None:
        self._set(replace(self._state, content=DEFAULT_EDITOR_CONTENT), "resetContent")

    def build_payload(self) -> dict[str, Any]:
        """Create or update payload for the current draft.

        Raises:
            EditorStateError: If the editor is closed.
        """
        state = self._state
        if not state.is_open:
            raise EditorStateError("Editor is closed")
        title = extract_title(state.content)
        if state.is_update and state.old_branch is not None:
            # Edited content without a heading keeps the stored title.
            return {"id": state.old_branch.id, "title": title or state.old_branch.title, "content": state.content}
        return {"branch_id": state.selected_parent_id, "title": title, "content": state.content}


def extract_title(html: str) -> str:
    """Title of a draft: the ``branch-name`` heading, else the first heading."""
    soup = BeautifulSoup(html or "", "html.parser")
    heading = soup.find(id=_TITLE_ID)
    if heading is None:
        heading = soup.find(_HEADINGS)
    if heading is None:
        return ""
    return heading.get_text(" ", strip=True)
