from __future__ import annotations
"""Selection state over the currently projected entries."""
import logging
from typing import Iterable

LOGGER = logging.getLogger(__name__)


class SelectionManager:
    """Tracks selected entry keys.

    The selection is always a subset of the keys passed to
    :meth:`set_available`.
    """

    def __init__(self) -> None:
        self._available: tuple[str, ...] = ()
        self._selected: set[str] = set()

    @property
    def selected(self) -> frozenset[str]:
        return frozenset(self._selected)

    @property
    def available(self) -> tuple[str, ...]:
        return self._available

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, key: object) -> bool:
        return key in self._selected

    def ordered(self) -> list[str]:
        """Selected keys in projection order."""

        return [key for key in self._available if key in self._selected]

    def set_available(self, keys: Iterable[str]) -> None:
        self._available = tuple(keys)
        available = set(self._available)
        dropped = self._selected - available
        if dropped:
            LOGGER.debug("Dropping %d stale selected key(s)", len(dropped))
            self._selected &= available

    def toggle(self, key: str) -> bool:
        """Flip membership of ``key`` and return whether it is now selected."""

        if key not in self._available:
            raise ValueError(f"'{key}' is not a visible entry")
        if key in self._selected:
            self._selected.discard(key)
            return False
        self._selected.add(key)
        return True

    def select_all(self) -> None:
        if self._available and len(self._selected) == len(self._available):
            self._selected.clear()
        else:
            self._selected = set(self._available)

    def clear(self) -> None:
        self._selected.clear()
