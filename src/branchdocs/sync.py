"""Glue between the remote client, the query cache and the tree store.

Fetches write through to :class:`~branchdocs.store.BranchDataStore`; confirmed
mutations are applied to the store and then invalidate the affected keys.
Nothing is applied optimistically, so a failed mutation leaves the store as
it was.
"""

from __future__ import annotations

import asyncio
from typing import Any

from branchdocs.api_client import BranchApi
from branchdocs.editor import EditorSession
from branchdocs.exceptions import ApiRequestError, EditorStateError
from branchdocs.levels import LEVELS, check_level
from branchdocs.query_cache import MutationResult, QueryClient, QueryFn, QueryObserver, query_keys
from branchdocs.schemas import Branch, BranchState, ErrorCode
from branchdocs.store import BranchDataStore
from branchdocs.utils.logging_config import get_logger
from branchdocs.validation import validate

logger = get_logger(__name__)


class BranchSync:
    """Branch reads and writes for one client session.

    Args:
        api: Remote data client.
        query_client: Cache to read through; a default one is created if omitted.
        store: Tree state store to keep in step; a new one is created if omitted.
    """

    def __init__(
        self,
        api: BranchApi,
        query_client: QueryClient | None = None,
        store: BranchDataStore | None = None,
    ) -> None:
        self.api = api
        self.query_client = query_client or QueryClient()
        self.store = store or BranchDataStore()
        self._observers: list[QueryObserver] = []

    # -- reads -------------------------------------------------------------

    async def mount(self) -> None:
        """Start observing every level, fetching the stale ones."""
        if self._observers:
            return
        results = await asyncio.gather(
            *(self.query_client.watch(query_keys.level(level), self._level_fetcher(level)) for level in LEVELS),
            return_exceptions=True,
        )
        observers = [result for result in results if isinstance(result, QueryObserver)]
        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            for observer in observers:
                observer.close()
            raise failures[0]
        self._observers = observers

    def unmount(self) -> None:
        for observer in self._observers:
            observer.close()
        self._observers = []

    @property
    def errors(self) -> dict[int, ApiRequestError]:
        """Last fetch error per mounted level."""
        return {
            observer.key[1]: observer.error for observer in self._observers if observer.error is not None
        }

    async def load_level(self, level: int, *, force: bool = False) -> list[BranchState]:
        """Fetch a level through the cache and return the store's view of it."""
        await self.query_client.fetch_query(query_keys.level(level), self._level_fetcher(level), force=force)
        return self.store.get(level)

    async def load_tree(self) -> dict[int, list[BranchState]]:
        levels = await asyncio.gather(*(self.load_level(level) for level in LEVELS))
        return dict(zip(LEVELS, levels))

    async def get_branch(self, level: int, branch_id: int) -> Branch:
        check_level(level)

        async def fetch() -> Branch:
            return await self.api.get_by_id(level, branch_id)

        return await self.query_client.fetch_query(query_keys.detail(level, branch_id), fetch)

    def on_focus(self) -> asyncio.Task[None]:
        return self.query_client.on_focus()

    def on_reconnect(self) -> asyncio.Task[None]:
        return self.query_client.on_reconnect()

    def _level_fetcher(self, level: int) -> QueryFn:
        check_level(level)

        async def fetch() -> list[Branch]:
            records = await self.api.get_all(level)
            self.store.set_collection(level, records)
            return records

        return fetch

    # -- writes ------------------------------------------------------------

    async def create_branch(self, level: int, payload: dict[str, Any]) -> MutationResult[Branch]:
        check_level(level)
        result = validate("create", payload)
        if not result.success:
            return _rejected(result.error, result.details)

        async def on_success(branch: Branch) -> None:
            self.store.apply_create(level, branch)
            await self.query_client.invalidate_queries(query_keys.level(level))

        return await self.query_client.mutate(self.api.create, level, result.data, on_success=on_success)

    async def update_branch(self, level: int, payload: dict[str, Any]) -> MutationResult[Branch]:
        """Patch the record ``payload["id"]`` with the other fields of ``payload``."""
        check_level(level)
        branch_id = payload.get("id")
        if not isinstance(branch_id, int) or isinstance(branch_id, bool):
            return _rejected("id: Branch id is required", [])
        fields = {key: value for key, value in payload.items() if key != "id"}
        result = validate("update", fields)
        if not result.success:
            return _rejected(result.error, result.details)

        async def on_success(branch: Branch) -> None:
            self.store.apply_update(level, branch)
            await self.query_client.invalidate_queries(query_keys.level(level))
            await self.query_client.invalidate_queries(query_keys.detail(level, branch.id))

        return await self.query_client.mutate(
            self.api.update, level, {"id": branch_id, **result.data}, on_success=on_success
        )

    async def delete_branch(self, level: int, branch_id: int) -> MutationResult[None]:
        """Delete one record. Descendants are neither deleted nor re-parented."""
        check_level(level)

        async def on_success(_: None) -> None:
            self.store.apply_delete(level, branch_id)
            await self.query_client.invalidate_queries(query_keys.level(level))

        return await self.query_client.mutate(self.api.delete, level, branch_id, on_success=on_success)

    async def save_editor(self, session: EditorSession) -> MutationResult[Branch]:
        """Persist the editor draft; the session is closed only on success.

        Raises:
            EditorStateError: If the editor is closed.
        """
        state = session.state
        if not state.is_open or state.level is None:
            raise EditorStateError("Nothing to save: editor is closed")
        payload = session.build_payload()
        if state.is_update:
            result = await self.update_branch(state.level, payload)
        else:
            result = await self.create_branch(state.level, payload)
        if result.success:
            session.close()
        return result


def _rejected(message: str | None, details: list[dict[str, str]]) -> MutationResult[Any]:
    error = ApiRequestError(
        ErrorCode.VALIDATION_ERROR,
        message or "Validation failed",
        400,
        details={"issues": details},
    )
    logger.info("Mutation rejected before sending", extra={"error": error.message})
    return MutationResult(success=False, error=error)
