from __future__ import annotations
"""Backend contracts consumed by the core and a boto3-backed implementation."""
import asyncio
import logging
from typing import Protocol

from botocore.exceptions import BotoCoreError, ClientError

from .errors import NotFoundError, TransportError
from .models import ObjectRecord
from .services import S3BucketService
from .ui_utils import content_disposition

LOGGER = logging.getLogger(__name__)

MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


class Backend(Protocol):
    """Single-object primitives offered by the store (or a proxy in front of it)."""

    async def list_objects(self, prefix: str = "") -> list[ObjectRecord]:
        ...

    async def issue_upload_url(self, key: str, content_type: str) -> str:
        ...

    async def issue_download_url(self, key: str, *, inline: bool) -> str:
        ...

    async def delete_object(self, key: str) -> None:
        ...


def _translate_boto_error(exc: Exception, action: str) -> Exception:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = str(error.get("Code", ""))
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if code in MISSING_KEY_CODES:
            return NotFoundError(f"{action} failed: {error.get('Message') or code}")
        return TransportError(f"{action} failed: {exc}", status=status)
    return TransportError(f"{action} failed: {exc}")


class BucketBackend:
    """Talks to the bucket directly with credentials from a connection profile."""

    def __init__(self, service: S3BucketService, *, expires_in: int = 3600):
        self._service = service
        self._expires_in = expires_in

    async def list_objects(self, prefix: str = "") -> list[ObjectRecord]:
        try:
            return await asyncio.to_thread(self._service.list_objects, prefix=prefix)
        except (BotoCoreError, ClientError) as exc:
            raise _translate_boto_error(exc, "Listing objects") from exc

    async def issue_upload_url(self, key: str, content_type: str) -> str:
        try:
            return await asyncio.to_thread(
                self._service.generate_presigned_url,
                key=key,
                method="put",
                expires_in=self._expires_in,
                content_type=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise _translate_boto_error(exc, f"Signing upload of '{key}'") from exc

    async def issue_download_url(self, key: str, *, inline: bool) -> str:
        try:
            return await asyncio.to_thread(
                self._service.generate_presigned_url,
                key=key,
                method="get",
                expires_in=self._expires_in,
                content_disposition=content_disposition(key, inline=inline),
            )
        except (BotoCoreError, ClientError) as exc:
            raise _translate_boto_error(exc, f"Signing download of '{key}'") from exc

    async def delete_object(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._service.delete_object, key=key)
        except (BotoCoreError, ClientError) as exc:
            translated = _translate_boto_error(exc, f"Deleting '{key}'")
            if isinstance(translated, NotFoundError):
                LOGGER.debug("Object '%s' already absent", key)
                return
            raise translated from exc
