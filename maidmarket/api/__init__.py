"""HTTP access to the marketplace backend."""

from .client import ApiClient
from .favorites import FavoritesApi, FavoritesRemote

__all__ = ["ApiClient", "FavoritesApi", "FavoritesRemote"]
