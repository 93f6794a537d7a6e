"""Process-wide store of pending favorite overrides."""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

OverrideListener = Callable[[str], None]


class OptimisticToggleStore:
    """Map ``maid_id -> pending favorite flag`` with synchronous change notification.

    Only the toggle coordinator writes here. Every write notifies all
    listeners before returning, so any view that re-reads the projector in
    its listener already sees the new value. Listeners receive the affected
    maid id; one failing listener does not stop the others.
    """

    def __init__(self) -> None:
        self._overrides: dict[str, bool] = {}
        self._listeners: list[OverrideListener] = []

    def get_override(self, maid_id: str) -> bool | None:
        """Return the pending value, or ``None`` when no toggle is in flight."""

        return self._overrides.get(maid_id)

    def has_override(self, maid_id: str) -> bool:
        return maid_id in self._overrides

    def pending_ids(self) -> frozenset[str]:
        return frozenset(self._overrides)

    def set_override(self, maid_id: str, pending_value: bool) -> None:
        self._overrides[maid_id] = bool(pending_value)
        self._notify(maid_id)

    def clear_override(self, maid_id: str) -> None:
        if maid_id not in self._overrides:
            return
        del self._overrides[maid_id]
        self._notify(maid_id)

    def subscribe(self, listener: OverrideListener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def reset(self) -> None:
        """Forget every override and listener."""

        self._overrides.clear()
        self._listeners.clear()

    def _notify(self, maid_id: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(maid_id)
            except Exception:
                logger.exception(f"Override listener failed for {maid_id}")


_store: OptimisticToggleStore | None = None


def get_override_store() -> OptimisticToggleStore:
    """Return the store shared by every view in this process."""

    global _store
    if _store is None:
        _store = OptimisticToggleStore()
    return _store


def reset_override_store() -> OptimisticToggleStore:
    """Replace the shared store with a fresh instance (test isolation)."""

    global _store
    if _store is not None:
        _store.reset()
    _store = OptimisticToggleStore()
    return _store


__all__ = [
    "OptimisticToggleStore",
    "OverrideListener",
    "get_override_store",
    "reset_override_store",
]
