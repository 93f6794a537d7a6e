"""Endpoint wrappers for ``/favorites``."""

from __future__ import annotations

import logging
from typing import Protocol

from pydantic import ValidationError

from maidmarket.api.client import ApiClient
from maidmarket.errors import ApiError
from maidmarket.schemas.error import ErrorType
from maidmarket.schemas.favorites import FavoriteCheck, FavoriteCreate, FavoriteItem

logger = logging.getLogger(__name__)


class FavoritesRemote(Protocol):
    """Remote operations the favorites synchronizer depends on."""

    async def list(self) -> list[FavoriteItem]: ...

    async def add(self, maid_id: str) -> FavoriteItem | None: ...

    async def remove(self, maid_id: str) -> None: ...

    async def check(self, maid_id: str) -> bool: ...


class FavoritesApi:
    """HTTP implementation of :class:`FavoritesRemote`."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list(self) -> list[FavoriteItem]:
        """Return every favorite of the session user, newest first."""

        envelope = await self._client.request("GET", "/favorites")
        rows = envelope.data or []
        try:
            return [FavoriteItem.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise ApiError(
                f"Malformed favorites payload: {exc}",
                error_type=ErrorType.SERVER_ERROR,
            ) from exc

    async def add(self, maid_id: str) -> FavoriteItem | None:
        """Favorite ``maid_id``. Adding an existing favorite is a no-op."""

        body = FavoriteCreate(maid_id=maid_id).model_dump(by_alias=True)
        envelope = await self._client.request("POST", "/favorites", json=body)
        if envelope.message:
            logger.debug(f"Add favorite {maid_id}: {envelope.message}")
        if not isinstance(envelope.data, dict):
            return None
        try:
            return FavoriteItem.model_validate(envelope.data)
        except ValidationError:
            return None

    async def remove(self, maid_id: str) -> None:
        """Unfavorite ``maid_id``. A maid that is not favorited counts as removed."""

        envelope = await self._client.request(
            "DELETE", f"/favorites/{maid_id}", allow_status=(404,)
        )
        if not envelope.success:
            logger.debug(
                f"Remove favorite {maid_id}: {envelope.error or 'already absent'}"
            )

    async def check(self, maid_id: str) -> bool:
        """Ask the backend whether ``maid_id`` is currently favorited."""

        envelope = await self._client.request("GET", f"/favorites/check/{maid_id}")
        if not isinstance(envelope.data, dict):
            return False
        try:
            return FavoriteCheck.model_validate(envelope.data).is_favorite
        except ValidationError as exc:
            raise ApiError(
                f"Malformed favorite check payload: {exc}",
                error_type=ErrorType.SERVER_ERROR,
            ) from exc


__all__ = ["FavoritesApi", "FavoritesRemote"]
