"""Effective favorite state combining overrides with confirmed server data."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from maidmarket.cache import (
    QueryCache,
    favorite_check_key,
    favorite_list_key,
    maid_id_from_check_key,
)
from maidmarket.schemas.favorites import FavoriteItem
from maidmarket.services.favorites.overrides import OptimisticToggleStore

logger = logging.getLogger(__name__)

# Receives the affected maid id, or ``None`` after a list refresh that may
# have changed any item.
ProjectionListener = Callable[[str | None], None]


def _confirmed_set(items: Iterable[FavoriteItem] | None) -> frozenset[str]:
    if items is None:
        return frozenset()
    return frozenset(item.maid_id for item in items)


class FavoritesProjector:
    """Answer ``is_favorite`` for list rows without scanning the list.

    The confirmed id set is rebuilt only when the favorites list query
    changes. Until that list has been loaded once, the per-maid check query
    (used by the detail screen) is consulted instead.
    """

    def __init__(self, store: OptimisticToggleStore, cache: QueryCache) -> None:
        self._store = store
        self._cache = cache
        self._listeners: list[ProjectionListener] = []
        self._confirmed: frozenset[str] = frozenset()
        self._list_loaded = False
        self._rebuild()
        self._unsubscribers = [
            store.subscribe(self._on_override),
            cache.subscribe_all(self._on_query),
        ]

    def is_favorite(self, maid_id: str) -> bool:
        override = self._store.get_override(maid_id)
        if override is not None:
            return override
        if self._list_loaded:
            return maid_id in self._confirmed
        checked = self._cache.get_data(favorite_check_key(maid_id))
        return bool(checked) if checked is not None else False

    def confirmed_ids(self) -> frozenset[str]:
        return self._confirmed

    def subscribe(self, listener: ProjectionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Detach from the store and cache."""

        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._listeners.clear()

    def _rebuild(self) -> None:
        self._list_loaded = self._cache.has_data(favorite_list_key())
        self._confirmed = _confirmed_set(self._cache.get_data(favorite_list_key()))

    def _on_override(self, maid_id: str) -> None:
        self._emit(maid_id)

    def _on_query(self, key: str) -> None:
        if key == favorite_list_key():
            self._rebuild()
            self._emit(None)
            return
        maid_id = maid_id_from_check_key(key)
        if maid_id is not None:
            self._emit(maid_id)

    def _emit(self, maid_id: str | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(maid_id)
            except Exception:
                logger.exception(f"Projection listener failed for {maid_id}")


__all__ = ["FavoritesProjector", "ProjectionListener"]
