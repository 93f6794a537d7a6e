"""View-facing favorites API.

Responsibilities delegated to the :mod:`maidmarket.services.favorites`
collaborators:

* :class:`OptimisticToggleStore` – process-wide pending overrides.
* :class:`FavoritesProjector` – ``is_favorite`` reads and change fan-out.
* :class:`ToggleCoordinator` – optimistic toggle, remote mutation, rollback.

:class:`FavoritesService` registers the favorites queries with the shared
:class:`QueryCache` so that invalidations issued by the coordinator know how
to refetch them.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable

import httpx

from maidmarket.api import ApiClient, FavoritesApi, FavoritesRemote
from maidmarket.cache import (
    QueryCache,
    favorite_check_key,
    favorite_check_prefix,
    favorite_list_key,
)
from maidmarket.schemas.favorites import FavoriteItem
from maidmarket.services.favorites import (
    FavoritesProjector,
    OptimisticToggleStore,
    ToggleCoordinator,
    get_override_store,
)
from maidmarket.services.favorites.projector import ProjectionListener
from maidmarket.settings import AppSettings, get_settings


class FavoritesService:
    """Orchestrates the override store, projector, coordinator and cache."""

    def __init__(
        self,
        *,
        remote: FavoritesRemote,
        store: OptimisticToggleStore,
        cache: QueryCache,
        mutation_timeout: float | None = None,
        api_client: ApiClient | None = None,
    ) -> None:
        self._remote = remote
        self._store = store
        self._cache = cache
        self._api_client = api_client
        self._projector = FavoritesProjector(store, cache)
        self._coordinator = ToggleCoordinator(
            store=store,
            cache=cache,
            remote=remote,
            mutation_timeout=mutation_timeout,
        )

    @property
    def projector(self) -> FavoritesProjector:
        return self._projector

    @property
    def coordinator(self) -> ToggleCoordinator:
        return self._coordinator

    def is_favorite(self, maid_id: str) -> bool:
        return self._projector.is_favorite(maid_id)

    def toggle(
        self, maid_id: str, current_is_favorite: bool | None = None
    ) -> asyncio.Task[bool]:
        """Flip ``maid_id``; the current state defaults to what views show now."""

        if current_is_favorite is None:
            current_is_favorite = self.is_favorite(maid_id)
        return self._coordinator.toggle(maid_id, current_is_favorite)

    async def list_favorites(self, *, refresh: bool = False) -> list[FavoriteItem]:
        items = await self._cache.fetch(
            favorite_list_key(), self._remote.list, stale_ok=not refresh
        )
        return list(items or [])

    async def check(self, maid_id: str, *, refresh: bool = False) -> bool:
        """Return the effective flag, loading the confirmed value when needed."""

        confirmed = await self._cache.fetch(
            favorite_check_key(maid_id),
            functools.partial(self._remote.check, maid_id),
            stale_ok=not refresh,
        )
        override = self._store.get_override(maid_id)
        if override is not None:
            return override
        return bool(confirmed)

    async def refresh(self) -> None:
        """Refetch the favorites list and every cached per-maid check."""

        await self._cache.invalidate(
            favorite_list_key(), prefixes=(favorite_check_prefix(),)
        )

    def subscribe(self, listener: ProjectionListener) -> Callable[[], None]:
        return self._projector.subscribe(listener)

    def pending_ids(self) -> frozenset[str]:
        return self._store.pending_ids()

    async def drain(self) -> None:
        await self._coordinator.drain()

    async def aclose(self) -> None:
        """Settle outstanding toggles and release the HTTP client."""

        await self._coordinator.drain()
        self._projector.close()
        if self._api_client is not None:
            await self._api_client.aclose()


def get_favorites_service(
    settings: AppSettings | None = None,
    *,
    remote: FavoritesRemote | None = None,
    cache: QueryCache | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FavoritesService:
    """Wire a service against the configured backend.

    The override store is always the process-wide instance so that every
    service built in this process observes the same pending toggles.
    """

    resolved = settings or get_settings()
    api_client: ApiClient | None = None
    if remote is None:
        api_client = ApiClient.from_settings(resolved, transport=transport)
        remote = FavoritesApi(api_client)
    return FavoritesService(
        remote=remote,
        store=get_override_store(),
        cache=cache or QueryCache(stale_seconds=resolved.query_stale_seconds),
        mutation_timeout=resolved.mutation_timeout_seconds,
        api_client=api_client,
    )


__all__ = ["FavoritesService", "get_favorites_service"]
