"""Pytest configuration shared by every test module."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from maidmarket.settings import get_settings


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Iterator[None]:
    """Drop the cached settings so environment tweaks apply per test."""

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
