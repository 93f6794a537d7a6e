"""Shared fixtures wiring the favorites synchronizer against in-memory doubles."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
import pytest_asyncio

from maidmarket.cache import QueryCache
from maidmarket.services.favorites import OptimisticToggleStore, reset_override_store
from maidmarket.services.favorites_service import FavoritesService
from tests.maidmarket.support.in_memory_remote import InMemoryFavoritesRemote


@pytest.fixture(autouse=True)
def fresh_override_store() -> Iterator[None]:
    """Give each test a clean process-wide override store."""

    reset_override_store()
    yield
    reset_override_store()


@pytest.fixture
def store() -> OptimisticToggleStore:
    return OptimisticToggleStore()


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache(stale_seconds=60.0)


@pytest.fixture
def remote() -> InMemoryFavoritesRemote:
    """Backend whose confirmed favorites start as ``{"m1"}``."""

    return InMemoryFavoritesRemote(["m1"])


@pytest_asyncio.fixture
async def service(
    store: OptimisticToggleStore,
    cache: QueryCache,
    remote: InMemoryFavoritesRemote,
) -> AsyncIterator[FavoritesService]:
    """Service with the favorites list already loaded."""

    favorites_service = FavoritesService(
        remote=remote,
        store=store,
        cache=cache,
        mutation_timeout=1.0,
    )
    await favorites_service.list_favorites()
    yield favorites_service
    await favorites_service.aclose()
