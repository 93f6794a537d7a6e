"""Tests for the in-process query cache."""

from __future__ import annotations

import asyncio

import pytest

from maidmarket.cache import (
    QueryCache,
    favorite_check_key,
    favorite_check_prefix,
    favorite_list_key,
    maid_id_from_check_key,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_key_helpers_round_trip_maid_ids() -> None:
    assert favorite_list_key() == "favorites:list"
    assert favorite_check_key("m1") == "favorites:check:m1"
    assert favorite_check_key("m1").startswith(favorite_check_prefix())
    assert maid_id_from_check_key(favorite_check_key("a:b")) == "a:b"
    assert maid_id_from_check_key(favorite_list_key()) is None


@pytest.mark.asyncio
async def test_fetch_stores_result_and_notifies() -> None:
    cache = QueryCache()
    notified: list[str] = []
    cache.subscribe("k", notified.append)

    async def fetcher() -> list[str]:
        return ["a"]

    assert await cache.fetch("k", fetcher) == ["a"]
    assert cache.get_data("k") == ["a"]
    assert cache.has_data("k")
    assert notified == ["k"]


@pytest.mark.asyncio
async def test_concurrent_fetches_share_one_request() -> None:
    cache = QueryCache()
    calls = 0
    gate = asyncio.Event()

    async def fetcher() -> int:
        nonlocal calls
        calls += 1
        await gate.wait()
        return calls

    waiters = [asyncio.create_task(cache.fetch("k", fetcher)) for _ in range(3)]
    await asyncio.sleep(0)
    gate.set()

    assert await asyncio.gather(*waiters) == [1, 1, 1]
    assert calls == 1


@pytest.mark.asyncio
async def test_stale_ok_respects_stale_time() -> None:
    clock = FakeClock()
    cache = QueryCache(stale_seconds=10.0, clock=clock)
    calls = 0

    async def fetcher() -> int:
        nonlocal calls
        calls += 1
        return calls

    assert await cache.fetch("k", fetcher, stale_ok=True) == 1
    clock.now += 5
    assert await cache.fetch("k", stale_ok=True) == 1
    clock.now += 6
    assert cache.is_stale("k")
    assert await cache.fetch("k", stale_ok=True) == 2


@pytest.mark.asyncio
async def test_cancel_discards_late_result() -> None:
    cache = QueryCache()
    cache.set_data("k", ["old"])
    gate = asyncio.Event()

    async def slow() -> list[str]:
        await gate.wait()
        return ["late"]

    waiter = asyncio.create_task(cache.fetch("k", slow))
    await asyncio.sleep(0)
    assert cache.is_fetching("k")

    cache.cancel("k")
    gate.set()

    assert await waiter == ["old"]
    assert cache.get_data("k") == ["old"]
    assert not cache.is_fetching("k")


@pytest.mark.asyncio
async def test_invalidate_refetches_registered_queries_only() -> None:
    cache = QueryCache()
    values = iter([1, 2])

    async def fetcher() -> int:
        return next(values)

    await cache.fetch("registered", fetcher)
    cache.set_data("manual", "kept")

    await cache.invalidate("registered", "manual", "unknown")

    assert cache.get_data("registered") == 2
    assert cache.get_data("manual") == "kept"
    assert cache.is_stale("manual")
    assert not cache.is_stale("registered")


@pytest.mark.asyncio
async def test_invalidate_by_prefix() -> None:
    cache = QueryCache()
    fetched: list[str] = []

    def make_fetcher(key: str):
        async def fetcher() -> str:
            fetched.append(key)
            return key

        return fetcher

    for key in ("favorites:check:a", "favorites:check:b", "favorites:list"):
        await cache.fetch(key, make_fetcher(key))
    fetched.clear()

    await cache.invalidate(prefixes=(favorite_check_prefix(),))

    assert sorted(fetched) == ["favorites:check:a", "favorites:check:b"]


@pytest.mark.asyncio
async def test_failed_refetch_keeps_previous_data() -> None:
    cache = QueryCache()
    attempts = 0

    async def flaky() -> str:
        nonlocal attempts
        attempts += 1
        if attempts > 1:
            raise RuntimeError("backend down")
        return "first"

    await cache.fetch("k", flaky)
    await cache.invalidate("k")

    assert cache.get_data("k") == "first"
    assert attempts == 2


@pytest.mark.asyncio
async def test_fetch_errors_propagate_to_caller() -> None:
    cache = QueryCache()

    async def broken() -> None:
        raise ValueError("bad payload")

    with pytest.raises(ValueError):
        await cache.fetch("k", broken)
    assert not cache.has_data("k")


@pytest.mark.asyncio
async def test_fetch_without_fetcher_raises() -> None:
    cache = QueryCache()

    with pytest.raises(LookupError):
        await cache.fetch("never-registered")


def test_subscribe_all_and_unsubscribe() -> None:
    cache = QueryCache()
    seen: list[str] = []
    unsubscribe = cache.subscribe_all(seen.append)

    cache.set_data("a", 1)
    unsubscribe()
    cache.set_data("b", 2)

    assert seen == ["a"]


@pytest.mark.asyncio
async def test_clear_drops_entries() -> None:
    cache = QueryCache()
    cache.set_data("a", 1)

    cache.clear()

    assert cache.keys() == []
    assert cache.get_data("a") is None
