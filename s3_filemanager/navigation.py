from __future__ import annotations
"""Current folder path and debounced search query."""
import asyncio
import logging
from typing import Callable

from .models import Breadcrumb
from .ui_utils import breadcrumbs, normalize_folder_path, parent_path

LOGGER = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3

PathListener = Callable[[str], None]
QueryListener = Callable[[str], None]


class NavigationController:
    """State machine over ``(current_path, search_query)``.

    Keystrokes passed to :meth:`set_search_query` start (or restart) a timer
    on the running event loop; the query only becomes visible through
    :attr:`search_query` once no new keystroke arrived for
    ``debounce_seconds``. Clearing the query commits immediately.
    """

    def __init__(
        self,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        on_path_changed: PathListener | None = None,
        on_query_changed: QueryListener | None = None,
    ):
        self._debounce_seconds = max(float(debounce_seconds), 0.0)
        self._on_path_changed = on_path_changed
        self._on_query_changed = on_query_changed
        self._current_path = ""
        self._search_query = ""
        self._pending_query: str | None = None
        self._timer: asyncio.TimerHandle | None = None

    @property
    def current_path(self) -> str:
        return self._current_path

    @property
    def search_query(self) -> str:
        return self._search_query

    @property
    def debounce_seconds(self) -> float:
        return self._debounce_seconds

    @property
    def is_searching(self) -> bool:
        return self._pending_query is not None

    @property
    def breadcrumbs(self) -> list[Breadcrumb]:
        return breadcrumbs(self._current_path)

    def navigate_to_folder(self, key: str) -> str:
        """Enter the folder ``key``; clears any pending or committed search."""

        path = normalize_folder_path(key)
        LOGGER.debug("Navigating to folder '%s'", path)
        self._cancel_timer()
        self._set_query("")
        self._set_path(path)
        return path

    def navigate_back(self) -> str:
        if not self._current_path:
            return self._current_path
        path = parent_path(self._current_path)
        LOGGER.debug("Navigating back to '%s'", path)
        self._set_path(path)
        return path

    def set_search_query(self, raw: str) -> None:
        if not raw.strip():
            self._cancel_timer()
            self._set_query("")
            return
        self._cancel_timer()
        if self._debounce_seconds <= 0:
            self._set_query(raw)
            return
        self._pending_query = raw
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._debounce_seconds, self.flush_search)

    def flush_search(self) -> None:
        """Commit a pending query without waiting for the quiet period."""

        pending = self._pending_query
        self._cancel_timer()
        if pending is not None:
            self._set_query(pending)

    def close(self) -> None:
        self._cancel_timer()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending_query = None

    def _set_path(self, path: str) -> None:
        if path == self._current_path:
            return
        self._current_path = path
        if self._on_path_changed:
            self._on_path_changed(path)

    def _set_query(self, query: str) -> None:
        if query == self._search_query:
            return
        LOGGER.debug("Search query committed: '%s'", query)
        self._search_query = query
        if self._on_query_changed:
            self._on_query_changed(query)
