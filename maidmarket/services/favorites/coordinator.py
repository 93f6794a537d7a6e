"""Toggle-and-persist workflow for a single favorite relation.

A toggle moves ``IDLE -> PENDING -> {COMMITTED, ROLLED_BACK} -> IDLE``:

* ``toggle`` writes the optimistic override before it returns and cancels
  favorites refreshes that could land a stale answer.
* The add/remove request then runs in a background task, bounded by the
  mutation timeout.
* On success the override is cleared. On failure it is first set back to the
  original value, the maid's row in the cached list is restored from the
  snapshot taken at toggle time, and then it is cleared. Either way the
  favorites queries are refetched.

Toggles for the same maid are serialized behind a per-maid lock and carry a
generation number. Only the newest toggle for a maid may clear or roll back
its override, so an older settlement never erases a newer intent.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from maidmarket.api.favorites import FavoritesRemote
from maidmarket.cache import QueryCache, favorite_check_key, favorite_list_key
from maidmarket.errors import ApiError, ToggleMutationFailed
from maidmarket.schemas.error import ErrorType
from maidmarket.schemas.favorites import FavoriteItem
from maidmarket.services.favorites.overrides import OptimisticToggleStore

logger = logging.getLogger(__name__)


class ToggleState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class ToggleCoordinator:
    """Own the optimistic overrides and drive remote favorite mutations."""

    def __init__(
        self,
        *,
        store: OptimisticToggleStore,
        cache: QueryCache,
        remote: FavoritesRemote,
        mutation_timeout: float | None = None,
    ) -> None:
        self._store = store
        self._cache = cache
        self._remote = remote
        self._mutation_timeout = mutation_timeout
        # Generations and locks exist only while a maid has an unsettled toggle.
        self._generations: dict[str, int] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        # One entry per maid toggled in this process, bounded by the catalogue.
        self._outcomes: dict[str, ToggleState] = {}
        self._tasks: set[asyncio.Task[bool]] = set()

    def state(self, maid_id: str) -> ToggleState:
        """Return ``PENDING`` while a toggle for ``maid_id`` is unsettled."""

        if maid_id in self._locks:
            return ToggleState.PENDING
        return ToggleState.IDLE

    def last_outcome(self, maid_id: str) -> ToggleState | None:
        """Return how the newest settled toggle for ``maid_id`` ended."""

        return self._outcomes.get(maid_id)

    def toggle(self, maid_id: str, current_is_favorite: bool) -> asyncio.Task[bool]:
        """Flip ``maid_id`` optimistically and persist it in the background.

        The override is visible to every subscriber by the time this method
        returns. The returned task resolves to the committed value or raises
        :class:`ToggleMutationFailed`.
        """

        loop = asyncio.get_running_loop()
        original = bool(current_is_favorite)
        intended = not original

        generation = self._generations.get(maid_id, 0) + 1
        self._generations[maid_id] = generation
        lock = self._locks.setdefault(maid_id, asyncio.Lock())

        self._store.set_override(maid_id, intended)
        self._cache.cancel(favorite_list_key(), favorite_check_key(maid_id))
        snapshot = self._cache.get_data(favorite_list_key())

        logger.debug(
            f"Toggle {maid_id} -> {intended} (generation {generation}) scheduled"
        )
        task = loop.create_task(
            self._persist(maid_id, original, intended, generation, lock, snapshot),
            name=f"favorite-toggle:{maid_id}:{generation}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait until every scheduled toggle has settled."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _is_latest(self, maid_id: str, generation: int) -> bool:
        return self._generations.get(maid_id) == generation

    async def _persist(
        self,
        maid_id: str,
        original: bool,
        intended: bool,
        generation: int,
        lock: asyncio.Lock,
        snapshot: list[FavoriteItem] | None,
    ) -> bool:
        try:
            async with lock:
                await self._mutate(maid_id, intended)
        except ToggleMutationFailed as exc:
            if self._is_latest(maid_id, generation):
                self._store.set_override(maid_id, original)
                self._restore_row(maid_id, snapshot)
                self._outcomes[maid_id] = ToggleState.ROLLED_BACK
                logger.warning(f"{exc}; reverted to {original}")
            else:
                logger.warning(f"{exc}; superseded by a newer toggle")
            raise
        else:
            if self._is_latest(maid_id, generation):
                self._outcomes[maid_id] = ToggleState.COMMITTED
            logger.debug(f"Toggle {maid_id} -> {intended} committed")
            return intended
        finally:
            if self._is_latest(maid_id, generation):
                self._store.clear_override(maid_id)
                self._locks.pop(maid_id, None)
                self._generations.pop(maid_id, None)
                await self._cache.invalidate(
                    favorite_list_key(), favorite_check_key(maid_id)
                )

    async def _mutate(self, maid_id: str, intended: bool) -> None:
        call = self._remote.add(maid_id) if intended else self._remote.remove(maid_id)
        try:
            if self._mutation_timeout is not None:
                await asyncio.wait_for(call, timeout=self._mutation_timeout)
            else:
                await call
        except TimeoutError as exc:
            raise ToggleMutationFailed(
                maid_id,
                intended,
                reason=ErrorType.TIMEOUT_ERROR,
                detail=f"no response within {self._mutation_timeout}s",
            ) from exc
        except ApiError as exc:
            raise ToggleMutationFailed(
                maid_id, intended, reason=exc.error_type, detail=exc.message
            ) from exc
        except Exception as exc:  # noqa: BLE001
            raise ToggleMutationFailed(
                maid_id, intended, reason=ErrorType.INTERNAL_ERROR, detail=str(exc)
            ) from exc

    def _restore_row(
        self, maid_id: str, snapshot: list[FavoriteItem] | None
    ) -> None:
        """Put ``maid_id``'s row in the cached list back to its snapshot state.

        Rows of other maids are taken from the current list, which may hold a
        newer server response than the snapshot.
        """

        current = self._cache.get_data(favorite_list_key())
        if snapshot is None or current is None or current is snapshot:
            return
        before = [item for item in snapshot if item.maid_id == maid_id]
        now = [item for item in current if item.maid_id == maid_id]
        if now == before:
            return

        rows = [item for item in current if item.maid_id != maid_id]
        for item in before:
            position = next(
                index for index, row in enumerate(snapshot) if row is item
            )
            rows.insert(min(position, len(rows)), item)
        self._cache.set_data(favorite_list_key(), rows)


__all__ = ["ToggleCoordinator", "ToggleState"]
