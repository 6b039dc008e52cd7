from __future__ import annotations
"""HTTP transfers against presigned URLs."""
import asyncio
import logging
from typing import AsyncIterator, Callable, Optional

import aiohttp

from .errors import CancellationError, TransportError
from .models import LocalFile

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE = 256 * 1024
DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=None, sock_connect=30, sock_read=300)

ProgressFn = Callable[[int, int], None]


class CancellationToken:
    """Batch-scoped cancel signal shared by every task of one batch.

    Tasks check :meth:`raise_if_cancelled` at their I/O points; tasks that
    are blocked inside a request are registered with :meth:`register` and
    cancelled outright.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._tasks: set[asyncio.Task] = set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        for task in list(self._tasks):
            if not task.done():
                task.cancel()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise CancellationError("Transfer cancelled by user")

    def register(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


class ObjectTransfer:
    """Uploads request bodies to presigned PUT URLs with aiohttp."""

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        *,
        chunk_size: int = CHUNK_SIZE,
        timeout: aiohttp.ClientTimeout = DEFAULT_TIMEOUT,
    ):
        self._session = session
        self._owns_session = session is None
        self._chunk_size = chunk_size
        self._timeout = timeout

    async def __aenter__(self) -> "ObjectTransfer":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def put(
        self,
        url: str,
        source: LocalFile,
        *,
        progress_callback: Optional[ProgressFn] = None,
        cancel_token: CancellationToken | None = None,
    ) -> int:
        """Stream ``source`` to ``url`` and return the HTTP status.

        ``progress_callback`` receives ``(bytes_sent, bytes_total)``.

        Raises:
            TransportError: on a non-2xx status or a network failure.
            CancellationError: when ``cancel_token`` is cancelled mid-transfer.
        """

        headers = {
            "Content-Type": source.content_type,
            "Content-Length": str(source.size),
        }
        body = self._read_chunks(source, progress_callback, cancel_token)
        return await self._send(url, body, headers, cancel_token)

    async def put_bytes(
        self,
        url: str,
        data: bytes,
        *,
        content_type: str = "application/octet-stream",
    ) -> int:
        headers = {"Content-Type": content_type}
        return await self._send(url, data, headers, None)

    async def _send(self, url, body, headers, cancel_token: CancellationToken | None) -> int:
        if cancel_token:
            cancel_token.raise_if_cancelled()
        session = self._get_session()
        try:
            async with session.put(url, data=body, headers=headers) as response:
                if not 200 <= response.status < 300:
                    raise TransportError(
                        f"Upload failed with status {response.status}",
                        status=response.status,
                    )
                return response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            if cancel_token and cancel_token.cancelled:
                raise CancellationError("Transfer cancelled by user") from exc
            raise TransportError(f"Upload failed: {exc}") from exc

    async def _read_chunks(
        self,
        source: LocalFile,
        progress_callback: Optional[ProgressFn],
        cancel_token: CancellationToken | None,
    ) -> AsyncIterator[bytes]:
        sent = 0
        with open(source.path, "rb") as handle:
            while True:
                if cancel_token:
                    cancel_token.raise_if_cancelled()
                chunk = await asyncio.to_thread(handle.read, self._chunk_size)
                if not chunk:
                    break
                yield chunk
                sent += len(chunk)
                if progress_callback:
                    progress_callback(sent, source.size)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session
