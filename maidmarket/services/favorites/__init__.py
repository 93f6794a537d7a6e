"""Favorites synchronizer components split by responsibility.

The override store holds pending optimistic values, the projector combines
them with confirmed server state, and the coordinator runs the
toggle-and-persist workflow that owns the overrides.
"""

from .coordinator import ToggleCoordinator, ToggleState
from .overrides import OptimisticToggleStore, get_override_store, reset_override_store
from .projector import FavoritesProjector

__all__ = [
    "FavoritesProjector",
    "OptimisticToggleStore",
    "ToggleCoordinator",
    "ToggleState",
    "get_override_store",
    "reset_override_store",
]
