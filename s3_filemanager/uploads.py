from __future__ import annotations
"""Queue of local files and concurrent upload batches."""
import asyncio
import contextlib
import logging
import os
from typing import Awaitable, Callable, Iterable, Optional, Union

from . import notifications
from .backends import Backend
from .errors import CancellationError, UploadInProgressError
from .models import BatchResult, LocalFile, UploadStatus, UploadTask
from .notifications import NotificationSink, log_notification
from .transfer import CancellationToken, ObjectTransfer
from .ui_utils import compose_key

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 4

FileSource = Union[LocalFile, str, "os.PathLike[str]"]
RefreshFn = Callable[[], Awaitable[object]]
TaskListener = Callable[[UploadTask], None]


class UploadOrchestrator:
    """Uploads every queued file through its own presigned PUT URL.

    All files of a batch run concurrently (bounded by ``max_concurrency``,
    ``0`` meaning unbounded). A failing file never stops its siblings; the
    batch only reports once every task has settled.
    """

    def __init__(
        self,
        backend: Backend,
        transfer: ObjectTransfer,
        *,
        notify: NotificationSink | None = None,
        on_complete: RefreshFn | None = None,
        on_task_update: TaskListener | None = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        self._backend = backend
        self._transfer = transfer
        self._notify = notify or log_notification
        self._on_complete = on_complete
        self._on_task_update = on_task_update
        self._max_concurrency = max(int(max_concurrency), 0)
        self._tasks: list[UploadTask] = []
        self._token: CancellationToken | None = None

    @property
    def tasks(self) -> list[UploadTask]:
        return list(self._tasks)

    @property
    def is_uploading(self) -> bool:
        return self._token is not None

    def enqueue(self, files: Iterable[FileSource]) -> list[UploadTask]:
        added = [UploadTask(file=self._as_local_file(item)) for item in files]
        if not added:
            return []
        self._tasks.extend(added)
        LOGGER.debug("Queued %d file(s) for upload", len(added))
        self._notify(
            notifications.success("Files Added", f"{len(added)} file(s) added to upload queue")
        )
        return added

    def remove(self, index: int) -> UploadTask:
        if self.is_uploading:
            raise UploadInProgressError("Cannot change the queue while uploading")
        return self._tasks.pop(index)

    def clear(self) -> None:
        if self.is_uploading:
            raise UploadInProgressError("Cannot change the queue while uploading")
        self._tasks.clear()

    def cancel(self) -> bool:
        """Abort every in-flight transfer of the running batch."""

        if self._token is None:
            return False
        LOGGER.debug("Cancelling upload batch")
        self._token.cancel()
        return True

    async def upload(self, current_path: str = "") -> BatchResult:
        """Upload the whole queue into ``current_path``.

        Raises:
            UploadInProgressError: when a batch is already running.
        """

        if self.is_uploading:
            raise UploadInProgressError("An upload is already in progress")
        if not self._tasks:
            LOGGER.debug("Upload requested with an empty queue")
            return BatchResult()

        token = CancellationToken()
        self._token = token
        batch = list(self._tasks)
        limit = asyncio.Semaphore(self._max_concurrency) if self._max_concurrency else None
        LOGGER.debug("Starting upload of %d file(s) into '%s'", len(batch), current_path)
        for task in batch:
            task.progress = 0.0
            task.status = UploadStatus.QUEUED
            task.error = None

        try:
            keys = [self.target_key(current_path, task.file) for task in batch]
            runners = [
                asyncio.ensure_future(self._run_task(task, key, token, limit))
                for task, key in zip(batch, keys)
            ]
            for runner in runners:
                token.register(runner)
            await asyncio.gather(*(self._settle(runner, task, token) for runner, task in zip(runners, batch)))
        finally:
            self._token = None

        result = BatchResult()
        for key, task in zip(keys, batch):
            if task.status is UploadStatus.COMPLETED:
                result.succeeded.append(key)
            elif task.status is UploadStatus.CANCELLED:
                result.cancelled.append(key)
            else:
                result.failed[key] = task.error or "Upload failed"

        LOGGER.debug(
            "Upload batch settled: %d succeeded, %d failed, %d cancelled",
            result.success_count,
            result.failure_count,
            result.cancelled_count,
        )
        self._notify(self._summary(result))
        settled = {id(task) for task in batch}
        self._tasks = [task for task in self._tasks if id(task) not in settled]
        if self._on_complete:
            await self._on_complete()
        return result

    async def _settle(
        self,
        runner: asyncio.Future,
        task: UploadTask,
        token: CancellationToken,
    ) -> None:
        try:
            await runner
        except asyncio.CancelledError:
            if not token.cancelled:
                raise
            self._mark(task, UploadStatus.CANCELLED, "Upload cancelled")

    async def _run_task(
        self,
        task: UploadTask,
        key: str,
        token: CancellationToken,
        limit: Optional[asyncio.Semaphore],
    ) -> None:
        async with limit or contextlib.nullcontext():
            try:
                token.raise_if_cancelled()
                self._mark(task, UploadStatus.UPLOADING)
                url = await self._backend.issue_upload_url(key, task.file.content_type)
                token.raise_if_cancelled()
                await self._transfer.put(
                    url,
                    task.file,
                    progress_callback=lambda sent, total: self._report_progress(task, sent, total),
                    cancel_token=token,
                )
            except CancellationError:
                self._mark(task, UploadStatus.CANCELLED, "Upload cancelled")
            except Exception as exc:
                LOGGER.exception("Upload of '%s' failed", key)
                self._mark(task, UploadStatus.FAILED, str(exc) or exc.__class__.__name__)
            else:
                task.progress = 100.0
                self._mark(task, UploadStatus.COMPLETED)

    def _report_progress(self, task: UploadTask, sent: int, total: int) -> None:
        task.progress = min(sent / total * 100, 100.0) if total else 100.0
        if self._on_task_update:
            self._on_task_update(task)

    def _mark(self, task: UploadTask, status: UploadStatus, error: str | None = None) -> None:
        task.status = status
        task.error = error
        if self._on_task_update:
            self._on_task_update(task)

    @staticmethod
    def _summary(result: BatchResult) -> notifications.Notification:
        if result.failure_count:
            message = (
                f"{result.success_count} file(s) uploaded successfully, "
                f"{result.failure_count} failed"
            )
            if result.cancelled_count:
                message += f", {result.cancelled_count} cancelled"
            return notifications.error("Upload Errors", message)
        if result.cancelled_count:
            return notifications.info(
                "Upload Cancelled",
                f"{result.success_count} file(s) uploaded, {result.cancelled_count} cancelled",
            )
        return notifications.success(
            "Upload Complete", f"{result.success_count} file(s) uploaded successfully"
        )

    @staticmethod
    def _as_local_file(item: FileSource) -> LocalFile:
        if isinstance(item, LocalFile):
            return item
        return LocalFile.from_path(item)

    @staticmethod
    def target_key(current_path: str, source: LocalFile) -> str:
        return compose_key(current_path, source.name)
