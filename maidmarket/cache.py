"""In-process server-state cache with supersession and invalidation.

Views read query results through :class:`QueryCache` instead of calling the
API directly. Each key remembers the coroutine factory that produced it so an
:meth:`QueryCache.invalidate` can refetch without the caller knowing how.
Starting a newer fetch, or calling :meth:`QueryCache.cancel`, supersedes the
in-flight one: its task is cancelled and any late result is discarded, so a
stale response can never overwrite fresher state.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

_FAVORITE_LIST_KEY = "favorites:list"
_FAVORITE_CHECK_PREFIX = "favorites:check"

_DEFAULT_STALE_SECONDS = 30.0

Fetcher = Callable[[], Awaitable[Any]]
QueryListener = Callable[[str], None]


def favorite_list_key() -> str:
    return _FAVORITE_LIST_KEY


def favorite_check_key(maid_id: str) -> str:
    return f"{_FAVORITE_CHECK_PREFIX}:{maid_id}"


def favorite_check_prefix() -> str:
    return _FAVORITE_CHECK_PREFIX


def maid_id_from_check_key(key: str) -> str | None:
    """Return the maid id embedded in a check key, ``None`` for other keys."""

    prefix = f"{_FAVORITE_CHECK_PREFIX}:"
    if not key.startswith(prefix):
        return None
    return key[len(prefix) :]


@dataclass
class _QueryEntry:
    data: Any = None
    has_data: bool = False
    updated_at: float | None = None
    invalidated: bool = False
    fetcher: Fetcher | None = None
    task: asyncio.Task[Any] | None = None
    generation: int = 0


def _current_task_cancelling() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


class QueryCache:
    """Keyed cache of server responses shared by every view in the process."""

    def __init__(
        self,
        *,
        stale_seconds: float = _DEFAULT_STALE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._stale_seconds = stale_seconds
        self._clock = clock
        self._entries: dict[str, _QueryEntry] = {}
        self._listeners: dict[str, list[QueryListener]] = {}
        self._global_listeners: list[QueryListener] = []

    # -- reads ------------------------------------------------------------------

    def get_data(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        return entry.data if entry is not None else None

    def has_data(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.has_data

    def is_fetching(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.task is not None and not entry.task.done()

    def is_stale(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is None or not entry.has_data or entry.invalidated:
            return True
        if entry.updated_at is None:
            return True
        return self._clock() - entry.updated_at > self._stale_seconds

    def keys(self) -> list[str]:
        return list(self._entries)

    # -- writes -----------------------------------------------------------------

    def set_data(self, key: str, value: Any) -> None:
        """Replace the cached value for ``key`` and notify subscribers."""

        entry = self._entries.setdefault(key, _QueryEntry())
        self._store(key, entry, value)

    def _store(self, key: str, entry: _QueryEntry, value: Any) -> None:
        entry.data = value
        entry.has_data = True
        entry.updated_at = self._clock()
        entry.invalidated = False
        self._notify(key)

    async def fetch(
        self,
        key: str,
        fetcher: Fetcher | None = None,
        *,
        stale_ok: bool = False,
    ) -> Any:
        """Return the result of ``fetcher`` for ``key``.

        An in-flight fetch for the same key is joined rather than duplicated.
        With ``stale_ok`` fresh cached data is returned without any I/O. When
        the fetch is superseded while the caller waits, the caller receives
        whatever data the cache holds at that point.
        """

        entry = self._entries.setdefault(key, _QueryEntry())
        if fetcher is not None:
            entry.fetcher = fetcher
        if entry.fetcher is None:
            raise LookupError(f"No fetcher registered for query {key!r}")

        if stale_ok and not self.is_stale(key):
            return entry.data

        if entry.task is None or entry.task.done():
            self._start(key, entry)
        return await self._await_task(entry)

    def cancel(self, *keys: str) -> None:
        """Abort in-flight fetches for ``keys`` leaving cached data untouched."""

        for key in keys:
            entry = self._entries.get(key)
            if entry is None:
                continue
            entry.generation += 1
            if entry.task is not None and not entry.task.done():
                logger.debug(f"Cancelling in-flight query {key}")
                entry.task.cancel()
            entry.task = None

    async def invalidate(
        self,
        *keys: str,
        prefixes: Iterable[str] = (),
        refetch: bool = True,
    ) -> None:
        """Mark entries stale and refetch those with a registered fetcher.

        Refetch failures are logged and keep the previous data in place.
        """

        prefix_list = tuple(prefixes)
        targets = [key for key in keys if key in self._entries]
        if prefix_list:
            targets.extend(
                key
                for key in self._entries
                if key not in targets
                and any(key.startswith(prefix) for prefix in prefix_list)
            )

        tasks: list[tuple[str, asyncio.Task[Any]]] = []
        for key in targets:
            entry = self._entries[key]
            entry.invalidated = True
            if not refetch or entry.fetcher is None:
                continue
            self.cancel(key)
            tasks.append((key, self._start(key, entry)))

        if not tasks:
            return

        results = await asyncio.gather(
            *(task for _, task in tasks), return_exceptions=True
        )
        for (key, _), result in zip(tasks, results):
            if isinstance(result, asyncio.CancelledError):
                continue
            if isinstance(result, Exception):
                logger.warning(f"Refetch of {key} failed: {result}")

    def clear(self) -> None:
        """Drop every entry, cancelling in-flight fetches."""

        for entry in self._entries.values():
            if entry.task is not None and not entry.task.done():
                entry.task.cancel()
        self._entries.clear()

    # -- subscriptions ----------------------------------------------------------

    def subscribe(self, key: str, listener: QueryListener) -> Callable[[], None]:
        listeners = self._listeners.setdefault(key, [])
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def subscribe_all(self, listener: QueryListener) -> Callable[[], None]:
        self._global_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._global_listeners:
                self._global_listeners.remove(listener)

        return unsubscribe

    def _notify(self, key: str) -> None:
        for listener in [*self._listeners.get(key, ()), *self._global_listeners]:
            try:
                listener(key)
            except Exception:  # pragma: no cover
                logger.exception(f"Query listener failed for {key}")

    # -- internals --------------------------------------------------------------

    def _start(self, key: str, entry: _QueryEntry) -> asyncio.Task[Any]:
        assert entry.fetcher is not None
        entry.generation += 1
        entry.task = asyncio.get_running_loop().create_task(
            self._run(key, entry, entry.generation, entry.fetcher),
            name=f"query:{key}",
        )
        return entry.task

    async def _run(
        self, key: str, entry: _QueryEntry, generation: int, fetcher: Fetcher
    ) -> Any:
        result = await fetcher()
        if entry.generation != generation:
            logger.debug(f"Discarding superseded result for {key}")
            return entry.data
        self._store(key, entry, result)
        return result

    async def _await_task(self, entry: _QueryEntry) -> Any:
        task = entry.task
        assert task is not None
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled() and not _current_task_cancelling():
                return entry.data
            raise


__all__ = [
    "Fetcher",
    "QueryCache",
    "QueryListener",
    "favorite_check_key",
    "favorite_check_prefix",
    "favorite_list_key",
    "maid_id_from_check_key",
]
