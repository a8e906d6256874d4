"""Nested tree view derived from the flat level collections, and the gestures on it."""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Union

from branchdocs.config import BRANCHDOCS_LONG_PRESS_S
from branchdocs.context_menu import ContextMenu
from branchdocs.editor import EditorSession
from branchdocs.levels import MAX_LEVEL, next_level
from branchdocs.query_cache import MutationResult
from branchdocs.schemas import BranchState
from branchdocs.store import BranchDataStore
from branchdocs.sync import BranchSync
from branchdocs.utils.logging_config import get_logger

logger = get_logger(__name__)

DELETE_CONFIRMATION = "Are you sure you want to delete this branch?"

Confirm = Callable[[str], Union[bool, Awaitable[bool]]]


@dataclass
class TreeNode:
    """One rendered record.

    ``children`` is filled only while the record is expanded;
    ``has_children`` tells whether there is anything to expand.
    """

    branch: BranchState
    level: int
    has_children: bool = False
    children: list[TreeNode] = field(default_factory=list)

    @property
    def expanded(self) -> bool:
        return self.branch.is_show


def build_tree(store: BranchDataStore) -> list[TreeNode]:
    """Level-1 records as roots, each expanded record carrying its children."""
    return [_build_node(store, 1, record) for record in store.get(1)]


def _build_node(store: BranchDataStore, level: int, record: BranchState) -> TreeNode:
    child_level = next_level(level)
    kids = store.children_of(child_level, record.id) if child_level is not None else []
    node = TreeNode(branch=record, level=level, has_children=bool(kids))
    if record.is_show and child_level is not None:
        node.children = [_build_node(store, child_level, kid) for kid in kids]
    return node


def render_text(nodes: list[TreeNode], indent: str = "  ") -> str:
    """Plain-text outline: ``+`` collapsed with children, ``-`` expanded, ``*`` leaf."""
    lines: list[str] = []

    def walk(items: list[TreeNode], depth: int) -> None:
        for node in items:
            marker = "*" if not node.has_children else ("-" if node.expanded else "+")
            lines.append(f"{indent * depth}{marker} {node.branch.title}")
            walk(node.children, depth + 1)

    walk(nodes, 0)
    return "\n".join(lines)


class TreeInteraction:
    """Click, toggle, context-menu and long-press handling for the tree.

    Args:
        sync: Branch reads/writes, and the store the tree renders from.
        editor: Editor session opened by clicks and "add" actions.
        menu: Context menu state; a fresh one is created if omitted.
        confirm: Asked before a delete is sent; may be sync or async.
        long_press_s: Touch hold time that opens the context menu.
    """

    def __init__(
        self,
        sync: BranchSync,
        editor: EditorSession,
        menu: ContextMenu | None = None,
        *,
        confirm: Confirm,
        long_press_s: float = BRANCHDOCS_LONG_PRESS_S,
    ) -> None:
        self.sync = sync
        self.editor = editor
        self.menu = menu or ContextMenu()
        self.confirm = confirm
        self.long_press_s = long_press_s
        self._long_press: asyncio.TimerHandle | None = None

    @property
    def store(self) -> BranchDataStore:
        return self.sync.store

    def render(self) -> list[TreeNode]:
        return build_tree(self.store)

    def click(self, level: int, branch_id: int) -> None:
        """Open the record in the editor."""
        record = self.store.find(level, branch_id)
        if record is None:
            return
        self.editor.open_for_edit(record, level)
        self.dismiss()

    def toggle(self, level: int, branch_id: int) -> None:
        self.store.toggle_expanded(level, branch_id)

    def open_context_menu(self, level: int, branch_id: int, x: float = 0, y: float = 0) -> None:
        record = self.store.find(level, branch_id)
        if record is None:
            return
        self.store.reset_all_add_targets()
        self.store.set_add_target(level, branch_id)
        self.menu.open(x, y, record, level)

    def touch_start(self, level: int, branch_id: int, x: float = 0, y: float = 0) -> None:
        """Begin a long press; the menu opens if the touch is held long enough."""
        self.touch_end()
        loop = asyncio.get_running_loop()
        self._long_press = loop.call_later(self.long_press_s, self._fire_long_press, level, branch_id, x, y)

    def touch_end(self) -> None:
        if self._long_press is not None:
            self._long_press.cancel()
            self._long_press = None

    touch_move = touch_end

    def _fire_long_press(self, level: int, branch_id: int, x: float, y: float) -> None:
        self._long_press = None
        self.open_context_menu(level, branch_id, x, y)

    def add_root(self) -> None:
        self.editor.open_for_root()
        self.dismiss()

    def add_child(self) -> bool:
        """Open the editor for a child of the menu's record.

        Returns False when the record is on the last level; the menu is
        dismissed and the editor left untouched.
        """
        state = self.menu.state
        if not state.is_open or state.branch is None or state.level is None:
            return False
        if state.level >= MAX_LEVEL:
            logger.info("Refused to add a child below the last level", extra={"branch_id": state.branch.id})
            self.dismiss()
            return False
        self.editor.open_for_add(state.branch, state.level + 1)
        self.dismiss()
        return True

    async def delete(self) -> MutationResult[None] | None:
        """Delete the menu's record after confirmation; None if nothing was sent."""
        state = self.menu.state
        if not state.is_open or state.branch is None or state.level is None:
            return None
        level, branch_id = state.level, state.branch.id
        answer = self.confirm(DELETE_CONFIRMATION)
        if inspect.isawaitable(answer):
            answer = await answer
        self.dismiss()
        if not answer:
            return None
        return await self.sync.delete_branch(level, branch_id)

    def dismiss(self) -> None:
        """Close the menu and clear every add-target highlight."""
        self.menu.close()
        self.store.reset_all_add_targets()
