from __future__ import annotations
"""Single and bulk deletes, including recursive folder deletes."""
import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Iterable, Optional

from . import notifications
from .backends import Backend
from .errors import NotFoundError, ValidationError
from .models import BatchResult, ObjectRecord
from .notifications import NotificationSink, log_notification

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 8

RefreshFn = Callable[[], Awaitable[object]]


def expand_selection(selection: Iterable[str], records: Iterable[ObjectRecord]) -> list[str]:
    """Resolve selected keys into the object keys that have to be deleted.

    Folder keys (ending with ``/``) expand to every record under them, the
    store having no prefix delete. Duplicates are removed, order is kept.
    """

    records = tuple(records)
    expanded: dict[str, None] = {}
    for key in selection:
        if key.endswith("/"):
            matched = [record.key for record in records if record.key.startswith(key)]
            LOGGER.debug("Folder '%s' expands to %d object(s)", key, len(matched))
            expanded.update(dict.fromkeys(matched))
        else:
            expanded[key] = None
    return list(expanded)


class DeleteOrchestrator:
    """Issues one delete request per object key and aggregates the outcome."""

    def __init__(
        self,
        backend: Backend,
        *,
        notify: NotificationSink | None = None,
        on_complete: RefreshFn | None = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        self._backend = backend
        self._notify = notify or log_notification
        self._on_complete = on_complete
        self._max_concurrency = max(int(max_concurrency), 0)

    async def delete_one(self, key: str) -> BatchResult:
        if not key or key.endswith("/"):
            raise ValidationError("Only files can be deleted individually")
        result = await self._delete_keys([key])
        if result.failure_count:
            self._notify(notifications.error("Delete Failed", result.failed[key]))
        else:
            self._notify(notifications.success("File Deleted", f"'{key}' deleted successfully"))
        await self._finish()
        return result

    async def bulk_delete(
        self,
        selection: Iterable[str],
        records: Iterable[ObjectRecord],
    ) -> BatchResult:
        """Delete every selected entry; folders are deleted recursively."""

        selected = list(selection)
        if not selected:
            LOGGER.debug("Bulk delete requested with an empty selection")
            return BatchResult()

        keys = expand_selection(selected, records)
        LOGGER.debug("Deleting %d object(s) for %d selected item(s)", len(keys), len(selected))
        result = await self._delete_keys(keys)
        self._notify(self._summary(result))
        await self._finish()
        return result

    async def _delete_keys(self, keys: list[str]) -> BatchResult:
        limit = asyncio.Semaphore(self._max_concurrency) if self._max_concurrency else None
        outcomes = await asyncio.gather(*(self._delete(key, limit) for key in keys))
        result = BatchResult()
        for key, error in zip(keys, outcomes):
            if error is None:
                result.succeeded.append(key)
            else:
                result.failed[key] = error
        return result

    async def _delete(self, key: str, limit: Optional[asyncio.Semaphore]) -> str | None:
        async with limit or contextlib.nullcontext():
            try:
                await self._backend.delete_object(key)
            except NotFoundError:
                LOGGER.debug("Object '%s' was already deleted", key)
            except Exception as exc:
                LOGGER.exception("Delete of '%s' failed", key)
                return str(exc) or exc.__class__.__name__
        return None

    async def _finish(self) -> None:
        if self._on_complete:
            await self._on_complete()

    @staticmethod
    def _summary(result: BatchResult) -> notifications.Notification:
        if result.failure_count:
            return notifications.error(
                "Delete Failed",
                f"{result.success_count} item(s) deleted, {result.failure_count} failed",
            )
        if not result.success_count:
            return notifications.info("Nothing Deleted", "0 item(s) deleted")
        return notifications.success(
            "Items Deleted", f"{result.success_count} item(s) deleted successfully"
        )
