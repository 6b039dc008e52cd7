from __future__ import annotations
"""Holds the last fetched flat listing of the bucket."""
import logging
from typing import Iterable

from .backends import Backend
from .models import ObjectRecord

LOGGER = logging.getLogger(__name__)


class ObjectCatalog:
    """Immutable snapshot of object records, swapped wholesale on refresh.

    A failed refresh leaves the previous snapshot in place.
    """

    def __init__(self, backend: Backend, records: Iterable[ObjectRecord] = ()):
        self._backend = backend
        self._records: tuple[ObjectRecord, ...] = tuple(records)
        self._prefix = ""
        self._version = 0
        self._requested = 0
        self._applied = 0
        self._in_flight = 0

    @property
    def records(self) -> tuple[ObjectRecord, ...]:
        return self._records

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def version(self) -> int:
        return self._version

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return any(record.key == key for record in self._records)

    def get(self, key: str) -> ObjectRecord | None:
        for record in self._records:
            if record.key == key:
                return record
        return None

    def replace(self, records: Iterable[ObjectRecord], *, prefix: str = "") -> None:
        self._records = tuple(records)
        self._prefix = prefix
        self._version += 1

    async def refresh(self, prefix: str = "") -> tuple[ObjectRecord, ...]:
        """Fetch the listing for ``prefix`` and replace the snapshot.

        Refreshes may overlap; a reply is only applied when no later
        refresh has already been applied, so an older listing never
        replaces a newer one.

        Raises:
            TransportError: when the listing could not be fetched.
        """

        self._requested += 1
        request = self._requested
        LOGGER.debug("Refreshing catalog for prefix '%s' (request %d)", prefix, request)
        self._in_flight += 1
        try:
            records = await self._backend.list_objects(prefix)
        finally:
            self._in_flight -= 1
        if request < self._applied:
            LOGGER.debug("Dropping listing of request %d, request %d already applied", request, self._applied)
            return self._records
        self._applied = request
        self.replace(records, prefix=prefix)
        LOGGER.debug("Catalog now holds %d object(s)", len(self._records))
        return self._records
