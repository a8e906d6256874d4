"""Asynchronous query cache with de-duplication, staleness, retries and invalidation.

Every cached value lives under a tuple key (see :data:`query_keys`). A key
has at most one request in flight; concurrent readers of the same key await
that single request. Data is fresh for ``stale_time`` seconds, after which
the next read refetches. Unobserved entries are evicted ``gc_time`` seconds
after their last observer left.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, TypeVar

from branchdocs.cache_utils import backoff_delay, is_expired, is_fresh
from branchdocs.config import (
    BRANCHDOCS_GC_TIME_S,
    BRANCHDOCS_MUTATION_RETRY,
    BRANCHDOCS_MUTATION_RETRY_DELAY_S,
    BRANCHDOCS_QUERY_RETRY,
    BRANCHDOCS_RETRY_BASE_S,
    BRANCHDOCS_RETRY_MAX_S,
    BRANCHDOCS_STALE_TIME_S,
)
from branchdocs.exceptions import ApiRequestError
from branchdocs.levels import check_level
from branchdocs.utils.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

QueryKey = tuple[Any, ...]
QueryFn = Callable[[], Awaitable[Any]]


class QueryKeys:
    """Factory for the cache keys used across the app."""

    all: QueryKey = ("branches",)
    health: QueryKey = ("health",)

    @staticmethod
    def level(level: int) -> QueryKey:
        return ("branches", check_level(level))

    @staticmethod
    def detail(level: int, branch_id: int) -> QueryKey:
        return ("branches", check_level(level), branch_id)


query_keys = QueryKeys()


@dataclass
class QueryState:
    """Cache entry for one key."""

    data: Any = None
    data_updated_at: float | None = None
    error: ApiRequestError | None = None
    is_invalidated: bool = False
    fetch_count: int = 0
    observers: int = 0
    inactive_since: float | None = None
    fn: QueryFn | None = None
    task: asyncio.Task[Any] | None = field(default=None, repr=False)

    @property
    def has_data(self) -> bool:
        return self.data_updated_at is not None

    @property
    def is_fetching(self) -> bool:
        return self.task is not None and not self.task.done()


@dataclass
class MutationResult(Generic[T]):
    """Outcome of :meth:`QueryClient.mutate`; errors are returned, not raised."""

    success: bool
    data: T | None = None
    error: ApiRequestError | None = None


class QueryObserver:
    """Handle for a mounted view reading one key. Close it on unmount."""

    def __init__(self, client: QueryClient, key: QueryKey) -> None:
        self._client = client
        self.key = key
        self.closed = False

    @property
    def data(self) -> Any:
        return self._client.get_query_data(self.key)

    @property
    def error(self) -> ApiRequestError | None:
        state = self._client.get_state(self.key)
        return state.error if state else None

    @property
    def is_fetching(self) -> bool:
        state = self._client.get_state(self.key)
        return bool(state and state.is_fetching)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._client._release(self.key)


class QueryClient:
    """Query cache.

    Args:
        stale_time: Seconds fetched data is served without refetching.
        gc_time: Seconds an unobserved entry is retained.
        retry: Extra attempts for a query failing with a transient error.
        retry_base: First backoff delay; doubles per attempt.
        retry_max: Cap for a single backoff delay.
        mutation_retry: Extra attempts for a mutation failing transiently.
        mutation_retry_delay: Fixed delay before a mutation retry.
        clock: Monotonic time source, in seconds.
        sleep: Coroutine used to wait between retries.
    """

    def __init__(
        self,
        *,
        stale_time: float = BRANCHDOCS_STALE_TIME_S,
        gc_time: float = BRANCHDOCS_GC_TIME_S,
        retry: int = BRANCHDOCS_QUERY_RETRY,
        retry_base: float = BRANCHDOCS_RETRY_BASE_S,
        retry_max: float = BRANCHDOCS_RETRY_MAX_S,
        mutation_retry: int = BRANCHDOCS_MUTATION_RETRY,
        mutation_retry_delay: float = BRANCHDOCS_MUTATION_RETRY_DELAY_S,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.stale_time = stale_time
        self.gc_time = gc_time
        self.retry = retry
        self.retry_base = retry_base
        self.retry_max = retry_max
        self.mutation_retry = mutation_retry
        self.mutation_retry_delay = mutation_retry_delay
        self._clock = clock
        self._sleep = sleep
        self._queries: dict[QueryKey, QueryState] = {}

    # -- reads -------------------------------------------------------------

    async def fetch_query(self, key: QueryKey, fn: QueryFn, *, force: bool = False) -> Any:
        """Return cached data for ``key`` when fresh, else fetch it with ``fn``.

        Raises:
            ApiRequestError: If the fetch still fails after retries.
        """
        self.collect_garbage()
        state = self._state_for(key)
        state.fn = fn
        if not force and not self._is_stale(state):
            return state.data
        return await self._fetch(key, state)

    async def watch(self, key: QueryKey, fn: QueryFn) -> QueryObserver:
        """Register an observer for ``key`` and fetch if the data is stale.

        A failed fetch is kept on the entry (``observer.error``) instead of
        being raised.
        """
        self.collect_garbage()
        state = self._state_for(key)
        state.fn = fn
        state.observers += 1
        state.inactive_since = None
        observer = QueryObserver(self, key)
        if self._is_stale(state):
            try:
                await self._fetch(key, state)
            except ApiRequestError:
                pass
            except BaseException:
                observer.close()
                raise
        return observer

    def is_stale(self, key: QueryKey) -> bool:
        state = self._queries.get(key)
        return state is None or self._is_stale(state)

    def get_query_data(self, key: QueryKey) -> Any:
        state = self._queries.get(key)
        return state.data if state else None

    def set_query_data(self, key: QueryKey, data: Any) -> None:
        """Store ``data`` as freshly fetched; a callable receives the old data."""
        state = self._state_for(key)
        state.data = data(state.data) if callable(data) else data
        state.data_updated_at = self._clock()
        state.is_invalidated = False
        state.error = None

    def get_state(self, key: QueryKey) -> QueryState | None:
        return self._queries.get(key)

    def keys(self) -> list[QueryKey]:
        return list(self._queries)

    # -- invalidation ------------------------------------------------------

    async def invalidate_queries(self, prefix: QueryKey = ()) -> None:
        """Mark every key starting with ``prefix`` stale and refetch the observed ones."""
        refetches = []
        for key, state in self._matching(prefix):
            state.is_invalidated = True
            if state.observers > 0 and state.fn is not None:
                refetches.append(self._refetch(key, state))
        if refetches:
            await self._gather_logged(refetches)

    def on_focus(self) -> asyncio.Task[None]:
        """Window regained focus: refetch observed stale keys in the background."""
        return self._refetch_active_stale("focus")

    def on_reconnect(self) -> asyncio.Task[None]:
        """Network came back: refetch observed stale keys in the background."""
        return self._refetch_active_stale("reconnect")

    def remove_queries(self, prefix: QueryKey = ()) -> None:
        for key, _ in self._matching(prefix):
            del self._queries[key]

    def clear(self) -> None:
        self._queries.clear()

    def collect_garbage(self) -> list[QueryKey]:
        """Evict unobserved, idle entries past their retention window."""
        now = self._clock()
        expired = [
            key
            for key, state in self._queries.items()
            if state.observers == 0 and not state.is_fetching and is_expired(state.inactive_since, self.gc_time, now)
        ]
        for key in expired:
            del self._queries[key]
        if expired:
            logger.debug("Evicted cached queries", extra={"keys": expired})
        return expired

    # -- mutations ---------------------------------------------------------

    async def mutate(
        self,
        fn: Callable[..., Awaitable[T]],
        *args: Any,
        on_success: Callable[[T], Any] | None = None,
        on_error: Callable[[ApiRequestError], Any] | None = None,
    ) -> MutationResult[T]:
        """Run a mutation, retrying transient failures ``mutation_retry`` times."""
        attempt = 0
        while True:
            try:
                data = await fn(*args)
            except ApiRequestError as exc:
                if exc.is_transient and attempt < self.mutation_retry:
                    logger.warning(
                        "Retrying mutation after transient failure",
                        extra={"attempt": attempt + 1, "error": exc.message},
                    )
                    await self._sleep(self.mutation_retry_delay)
                    attempt += 1
                    continue
                logger.error(
                    "Mutation failed",
                    extra={"code": exc.code.value, "status_code": exc.status_code, "error": exc.message},
                )
                if on_error is not None:
                    await _maybe_await(on_error(exc))
                return MutationResult(success=False, error=exc)
            if on_success is not None:
                await _maybe_await(on_success(data))
            return MutationResult(success=True, data=data)

    # -- internals ---------------------------------------------------------

    def _state_for(self, key: QueryKey) -> QueryState:
        state = self._queries.get(key)
        if state is None:
            state = QueryState(inactive_since=self._clock())
            self._queries[key] = state
        return state

    def _is_stale(self, state: QueryState) -> bool:
        if not state.has_data or state.is_invalidated:
            return True
        return not is_fresh(state.data_updated_at, self.stale_time, self._clock())

    def _matching(self, prefix: QueryKey) -> list[tuple[QueryKey, QueryState]]:
        return [(key, state) for key, state in self._queries.items() if key[: len(prefix)] == prefix]

    def _release(self, key: QueryKey) -> None:
        state = self._queries.get(key)
        if state is None or state.observers == 0:
            return
        state.observers -= 1
        if state.observers == 0:
            state.inactive_since = self._clock()

    async def _fetch(self, key: QueryKey, state: QueryState) -> Any:
        if not state.is_fetching:
            state.task = asyncio.get_running_loop().create_task(self._run(key, state))
            state.task.add_done_callback(_consume_exception)
        # Shielded so one cancelled caller does not cancel the shared request.
        return await asyncio.shield(state.task)

    async def _refetch(self, key: QueryKey, state: QueryState) -> Any:
        # A request already in flight may predate the change being refetched for.
        if state.task is not None and not state.task.done():
            await asyncio.wait({state.task})
        return await self._fetch(key, state)

    async def _run(self, key: QueryKey, state: QueryState) -> Any:
        fn = state.fn
        if fn is None:
            raise RuntimeError(f"No query function registered for {key!r}")
        attempt = 0
        while True:
            try:
                data = await fn()
            except ApiRequestError as exc:
                if exc.is_transient and attempt < self.retry:
                    delay = backoff_delay(attempt, self.retry_base, self.retry_max)
                    logger.warning(
                        "Retrying query after transient failure",
                        extra={"key": key, "attempt": attempt + 1, "delay_s": delay, "error": exc.message},
                    )
                    await self._sleep(delay)
                    attempt += 1
                    continue
                state.error = exc
                raise
            state.data = data
            state.data_updated_at = self._clock()
            state.is_invalidated = False
            state.error = None
            state.fetch_count += 1
            if state.observers == 0:
                state.inactive_since = state.data_updated_at
            return data

    def _refetch_active_stale(self, reason: str) -> asyncio.Task[None]:
        refetches = [
            self._refetch(key, state)
            for key, state in self._queries.items()
            if state.observers > 0 and state.fn is not None and self._is_stale(state)
        ]
        logger.debug("Refetching active queries", extra={"reason": reason, "count": len(refetches)})
        return asyncio.get_running_loop().create_task(self._gather_logged(refetches))

    async def _gather_logged(self, coros: list[Awaitable[Any]]) -> None:
        results = await asyncio.gather(*coros, return_exceptions=True)
        for result in results:
            if isinstance(result, ApiRequestError):
                logger.warning("Background refetch failed", extra={"error": result.message})
            elif isinstance(result, BaseException):
                raise result


def _consume_exception(task: asyncio.Task[Any]) -> None:
    if not task.cancelled():
        task.exception()


async def _maybe_await(value: Any) -> None:
    if inspect.isawaitable(value):
        await value
