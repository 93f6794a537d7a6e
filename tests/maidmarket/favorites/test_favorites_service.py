"""Tests for the view-facing favorites service."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from maidmarket.cache import QueryCache
from maidmarket.services.favorites import OptimisticToggleStore, get_override_store
from maidmarket.services.favorites_service import FavoritesService, get_favorites_service
from maidmarket.settings import AppSettings
from tests.maidmarket.support.in_memory_remote import InMemoryFavoritesRemote


@pytest.mark.asyncio
async def test_two_views_observe_the_same_pending_toggle(
    service: FavoritesService, remote: InMemoryFavoritesRemote
) -> None:
    """A search list and a favorites list see a toggle at the same instant."""

    search_view: list[bool] = []
    favorites_view: list[bool] = []
    service.subscribe(lambda _: search_view.append(service.is_favorite("m2")))
    service.subscribe(lambda _: favorites_view.append(service.is_favorite("m2")))

    gate = remote.hold("m2")
    task = service.toggle("m2")

    assert search_view == [True]
    assert favorites_view == [True]

    gate.set()
    await task
    assert search_view[-1] is True
    assert favorites_view[-1] is True


@pytest.mark.asyncio
async def test_toggle_defaults_to_the_displayed_state(
    service: FavoritesService, remote: InMemoryFavoritesRemote
) -> None:
    assert await service.toggle("m1") is False
    assert service.is_favorite("m1") is False
    assert remote.mutation_calls() == [("remove", "m1")]


@pytest.mark.asyncio
async def test_list_favorites_serves_fresh_cache(
    service: FavoritesService, remote: InMemoryFavoritesRemote
) -> None:
    calls_before = len(remote.calls)

    items = await service.list_favorites()
    assert [item.maid_id for item in items] == ["m1"]
    assert len(remote.calls) == calls_before

    await service.list_favorites(refresh=True)
    assert len(remote.calls) == calls_before + 1


@pytest.mark.asyncio
async def test_check_reports_override_while_pending(
    service: FavoritesService, remote: InMemoryFavoritesRemote
) -> None:
    assert await service.check("m1") is True
    assert await service.check("m5") is False

    gate = remote.hold("m5")
    task = service.toggle("m5", False)
    assert await service.check("m5") is True
    gate.set()
    await task

    assert await service.check("m5", refresh=True) is True


@pytest.mark.asyncio
async def test_refresh_picks_up_backend_changes(
    service: FavoritesService, remote: InMemoryFavoritesRemote
) -> None:
    await service.check("m9")
    remote.favorites.clear()

    await service.refresh()

    assert service.is_favorite("m1") is False
    assert service.projector.confirmed_ids() == frozenset()
    assert ("check", "m9") in remote.calls[-2:]


@pytest.mark.asyncio
async def test_pending_ids_and_drain(
    service: FavoritesService, remote: InMemoryFavoritesRemote
) -> None:
    gate = remote.hold("m3")
    service.toggle("m3", False)
    service.toggle("m4", False)
    assert service.pending_ids() == frozenset({"m3", "m4"})

    await asyncio.sleep(0)
    gate.set()
    await service.drain()
    assert service.pending_ids() == frozenset()


@pytest.mark.asyncio
async def test_factory_uses_shared_store_and_http_backend() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={"success": True, "data": [{"id": "f1", "maidId": "m1"}]},
        )

    settings = AppSettings(api_url="https://api.example.test/", api_token="secret")
    favorites_service = get_favorites_service(
        settings, transport=httpx.MockTransport(handler)
    )
    try:
        items = await favorites_service.list_favorites()
    finally:
        await favorites_service.aclose()

    assert [item.maid_id for item in items] == ["m1"]
    assert str(requests[0].url) == "https://api.example.test/favorites"
    assert requests[0].headers["Authorization"] == "Bearer secret"

    other = get_favorites_service(settings, remote=InMemoryFavoritesRemote())
    assert other.coordinator is not favorites_service.coordinator
    await other.aclose()


@pytest.mark.asyncio
async def test_services_sharing_the_store_see_each_others_overrides() -> None:
    shared: OptimisticToggleStore = get_override_store()
    remote = InMemoryFavoritesRemote()
    search = FavoritesService(remote=remote, store=shared, cache=QueryCache())
    detail = FavoritesService(remote=remote, store=shared, cache=QueryCache())

    gate = remote.hold("m2")
    task = search.toggle("m2", False)
    assert detail.is_favorite("m2") is True

    gate.set()
    await task
    await search.aclose()
    await detail.aclose()
