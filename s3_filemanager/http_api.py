from __future__ import annotations
"""Client for the file-manager HTTP endpoints that front the bucket.

The endpoints hold the store credentials and hand out presigned URLs:

* ``GET /api/files?prefix=...`` lists objects as ``[{Key, Size, LastModified}]``
* ``POST /api/upload`` with ``{fileName, fileType}`` returns ``{signedUrl}``
* ``POST /api/preview`` with ``{key}`` returns an inline ``{signedUrl}``
* ``POST /api/files`` with ``{key, action: "download"}`` returns ``{signedUrl}``
* ``DELETE /api/files`` with ``{key}`` deletes one object
"""
import asyncio
from datetime import datetime
import logging
from typing import Any

import aiohttp

from .errors import NotFoundError, TransportError
from .models import ObjectRecord

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=60)


def parse_timestamp(value: Any) -> datetime | None:
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        LOGGER.debug("Ignoring unparsable timestamp '%s'", value)
        return None


def parse_listing(payload: Any) -> list[ObjectRecord]:
    """Convert the JSON listing into records, skipping entries without a key."""

    if not isinstance(payload, list):
        return []
    records: list[ObjectRecord] = []
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        key = entry.get("Key")
        if not key or not isinstance(key, str):
            continue
        try:
            size = max(int(entry.get("Size") or 0), 0)
        except (TypeError, ValueError):
            size = 0
        records.append(
            ObjectRecord(key=key, size=size, last_modified=parse_timestamp(entry.get("LastModified")))
        )
    return records


class FileApiClient:
    """Implements the backend contract over the HTTP endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        session: aiohttp.ClientSession | None = None,
        timeout: aiohttp.ClientTimeout = DEFAULT_TIMEOUT,
    ):
        self._base_url = base_url.rstrip("/")
        self._session = session
        self._owns_session = session is None
        self._timeout = timeout

    async def __aenter__(self) -> "FileApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def list_objects(self, prefix: str = "") -> list[ObjectRecord]:
        params = {"prefix": prefix} if prefix else None
        payload = await self._request("GET", "/api/files", params=params)
        return parse_listing(payload)

    async def issue_upload_url(self, key: str, content_type: str) -> str:
        payload = await self._request(
            "POST",
            "/api/upload",
            json={"fileName": key, "fileType": content_type},
        )
        return self._signed_url(payload, key)

    async def issue_download_url(self, key: str, *, inline: bool) -> str:
        if inline:
            payload = await self._request("POST", "/api/preview", json={"key": key})
        else:
            payload = await self._request("POST", "/api/files", json={"key": key, "action": "download"})
        return self._signed_url(payload, key)

    async def delete_object(self, key: str) -> None:
        try:
            await self._request("DELETE", "/api/files", json={"key": key})
        except NotFoundError:
            LOGGER.debug("Object '%s' already absent", key)

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        session = self._get_session()
        url = f"{self._base_url}{path}"
        try:
            async with session.request(method, url, **kwargs) as response:
                if response.status == 404:
                    raise NotFoundError(f"{method} {path} returned 404")
                if response.status >= 400:
                    raise TransportError(
                        f"{method} {path} failed: {response.status} {response.reason}",
                        status=response.status,
                    )
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc
        except ValueError as exc:
            raise TransportError(f"{method} {path} returned invalid JSON") from exc

    @staticmethod
    def _signed_url(payload: Any, key: str) -> str:
        url = payload.get("signedUrl") if isinstance(payload, dict) else None
        if not url:
            raise TransportError(f"No signed URL returned for '{key}'")
        return url

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session
