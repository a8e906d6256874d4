"""Context menu state for the branch tree."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from branchdocs.levels import MAX_LEVEL, check_level
from branchdocs.schemas import Branch

Listener = Callable[[str], None]


@dataclass(frozen=True)
class ContextMenuState:
    is_open: bool = False
    x: float = 0
    y: float = 0
    branch: Branch | None = None
    level: int | None = None

    @property
    def can_add_child(self) -> bool:
        """"Add child" is offered for every level except the last."""
        return self.is_open and self.level is not None and self.level < MAX_LEVEL


class ContextMenu:
    """Open/closed state of the right-click (or long-press) menu."""

    def __init__(self) -> None:
        self._state = ContextMenuState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> ContextMenuState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def open(self, x: float, y: float, branch: Branch, level: int) -> None:
        check_level(level)
        self._set(ContextMenuState(is_open=True, x=x, y=y, branch=branch, level=level), "openMenu")

    def close(self) -> None:
        if self._state.is_open:
            self._set(ContextMenuState(), "closeMenu")

    def _set(self, state: ContextMenuState, action: str) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(action)
