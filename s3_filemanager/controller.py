from __future__ import annotations
"""Session controller that ties catalog, projection and operations together."""
import logging
from typing import Iterable

from . import notifications
from .backends import Backend, BucketBackend
from .catalog import ObjectCatalog
from .deletes import DeleteOrchestrator
from .errors import FileManagerError, NotFoundError, ValidationError
from .http_api import FileApiClient
from .models import (
    BatchResult,
    Breadcrumb,
    ObjectRecord,
    SortField,
    SortOrder,
    UploadTask,
    VirtualEntry,
)
from .navigation import NavigationController
from .notifications import NotificationSink, log_notification
from .profiles import ConnectionProfile
from .projection import project
from .selection import SelectionManager
from .services import S3BucketService
from .settings import AppSettings
from .transfer import ObjectTransfer
from .ui_utils import validate_folder_name
from .uploads import FileSource, UploadOrchestrator

LOGGER = logging.getLogger(__name__)

FOLDER_MARKER = ".keep"


class FileManagerController:
    """Coordinates one browsing session over a bucket.

    Views read :attr:`entries`, :attr:`breadcrumbs` and friends and call the
    operations below; every change to the catalog, path, query or sort order
    recomputes the projection.
    """

    def __init__(
        self,
        backend: Backend,
        *,
        transfer: ObjectTransfer | None = None,
        settings: AppSettings | None = None,
        notify: NotificationSink | None = None,
    ):
        self._settings = settings or AppSettings()
        self._backend = backend
        self._transfer = transfer or ObjectTransfer()
        self._notify = notify or log_notification
        self._catalog = ObjectCatalog(backend)
        self._selection = SelectionManager()
        self._navigation = NavigationController(
            debounce_seconds=self._settings.search_debounce_ms / 1000,
            on_path_changed=self._on_path_changed,
            on_query_changed=self._on_query_changed,
        )
        self._sort_by = SortField(self._settings.sort_by)
        self._sort_order = SortOrder(self._settings.sort_order)
        self._entries: tuple[VirtualEntry, ...] = ()
        self._uploads = UploadOrchestrator(
            backend,
            self._transfer,
            notify=self._notify,
            on_complete=self.refresh,
            max_concurrency=self._settings.upload_max_concurrency,
        )
        self._deletes = DeleteOrchestrator(
            backend,
            notify=self._notify,
            on_complete=self._after_delete,
            max_concurrency=self._settings.delete_max_concurrency,
        )

    @classmethod
    def from_profile(
        cls,
        profile: ConnectionProfile,
        *,
        settings: AppSettings | None = None,
        notify: NotificationSink | None = None,
    ) -> "FileManagerController":
        settings = settings or AppSettings()
        service = S3BucketService(
            endpoint_url=profile.endpoint_url,
            bucket_name=profile.bucket,
            access_key=profile.access_key,
            secret_key=profile.secret_key,
            region=profile.region,
        )
        backend = BucketBackend(service, expires_in=settings.presigned_url_expiry)
        return cls(backend, settings=settings, notify=notify)

    @classmethod
    def from_api(
        cls,
        base_url: str | None = None,
        *,
        settings: AppSettings | None = None,
        notify: NotificationSink | None = None,
    ) -> "FileManagerController":
        """Session over the HTTP endpoints; ``base_url`` defaults to the saved one.

        Raises:
            ValidationError: when neither ``base_url`` nor the settings name one.
        """

        settings = settings or AppSettings()
        url = (base_url or settings.api_base_url).strip()
        if not url:
            raise ValidationError("No API base URL configured")
        return cls(FileApiClient(url), settings=settings, notify=notify)

    async def close(self) -> None:
        self._navigation.close()
        await self._transfer.close()
        close_backend = getattr(self._backend, "close", None)
        if close_backend is not None:
            await close_backend()

    # State -----------------------------------------------------------------

    @property
    def entries(self) -> tuple[VirtualEntry, ...]:
        return self._entries

    @property
    def records(self) -> tuple[ObjectRecord, ...]:
        return self._catalog.records

    @property
    def current_path(self) -> str:
        return self._navigation.current_path

    @property
    def breadcrumbs(self) -> list[Breadcrumb]:
        return self._navigation.breadcrumbs

    @property
    def search_query(self) -> str:
        return self._navigation.search_query

    @property
    def is_searching(self) -> bool:
        return self._navigation.is_searching

    @property
    def is_loading(self) -> bool:
        return self._catalog.is_loading

    @property
    def selection(self) -> frozenset[str]:
        return self._selection.selected

    @property
    def sort_by(self) -> SortField:
        return self._sort_by

    @property
    def sort_order(self) -> SortOrder:
        return self._sort_order

    @property
    def upload_tasks(self) -> list[UploadTask]:
        return self._uploads.tasks

    @property
    def is_uploading(self) -> bool:
        return self._uploads.is_uploading

    # Catalog and navigation -------------------------------------------------

    async def refresh(self) -> bool:
        """Re-read the bucket listing; keeps the previous listing on failure."""

        try:
            await self._catalog.refresh("")
        except FileManagerError as exc:
            LOGGER.warning("Catalog refresh failed: %s", exc)
            self._notify(notifications.error("Error", f"Failed to fetch files: {exc}"))
            return False
        self._reproject()
        return True

    async def navigate_to_folder(self, key: str) -> bool:
        self._navigation.navigate_to_folder(key)
        self._selection.clear()
        return await self.refresh()

    async def navigate_back(self) -> bool:
        previous = self.current_path
        if self._navigation.navigate_back() == previous:
            return True
        return await self.refresh()

    def set_search_query(self, raw: str) -> None:
        self._navigation.set_search_query(raw)

    def flush_search(self) -> None:
        self._navigation.flush_search()

    def set_sort(self, sort_by: SortField | str, sort_order: SortOrder | str | None = None) -> None:
        self._sort_by = SortField(sort_by)
        if sort_order is not None:
            self._sort_order = SortOrder(sort_order)
        self._reproject()

    def toggle_sort_order(self) -> SortOrder:
        self._sort_order = SortOrder.DESC if self._sort_order is SortOrder.ASC else SortOrder.ASC
        self._reproject()
        return self._sort_order

    # Selection --------------------------------------------------------------

    def toggle_select(self, key: str) -> bool:
        return self._selection.toggle(key)

    def select_all(self) -> None:
        self._selection.select_all()

    def clear_selection(self) -> None:
        self._selection.clear()

    # Uploads ----------------------------------------------------------------

    def add_files(self, files: Iterable[FileSource]) -> list[UploadTask]:
        return self._uploads.enqueue(files)

    def remove_file(self, index: int) -> UploadTask:
        return self._uploads.remove(index)

    def clear_files(self) -> None:
        self._uploads.clear()

    async def upload(self) -> BatchResult:
        return await self._uploads.upload(self.current_path)

    def cancel_upload(self) -> bool:
        return self._uploads.cancel()

    # Deletes ----------------------------------------------------------------

    async def delete_one(self, key: str) -> BatchResult:
        return await self._deletes.delete_one(key)

    async def bulk_delete(self) -> BatchResult:
        return await self._deletes.bulk_delete(self._selection.ordered(), self._catalog.records)

    # Other file operations --------------------------------------------------

    async def create_folder(self, name: str) -> str:
        """Create ``name`` under the current path by writing a marker object.

        Raises:
            ValidationError: when the name is empty or has invalid characters.
        """

        folder_name = validate_folder_name(name)
        key = f"{self.current_path}{folder_name}/{FOLDER_MARKER}"
        try:
            url = await self._backend.issue_upload_url(key, "text/plain")
            await self._transfer.put_bytes(url, b"", content_type="text/plain")
        except FileManagerError as exc:
            LOGGER.warning("Creating folder '%s' failed: %s", folder_name, exc)
            self._notify(notifications.error("Failed to Create Folder", "Error creating folder"))
            raise
        self._notify(
            notifications.success("Folder Created", f'Folder "{folder_name}" created successfully')
        )
        await self.refresh()
        return f"{self.current_path}{folder_name}/"

    async def preview_url(self, key: str) -> str:
        """Inline URL for showing ``key`` in a previewer.

        Raises:
            NotFoundError: when ``key`` is not part of the current listing.
        """

        if key not in self._catalog:
            raise NotFoundError(f"'{key}' is not in the current listing")
        return await self._backend.issue_download_url(key, inline=True)

    async def download_url(self, key: str) -> str | None:
        try:
            url = await self._backend.issue_download_url(key, inline=False)
        except FileManagerError as exc:
            LOGGER.warning("Download URL for '%s' failed: %s", key, exc)
            self._notify(notifications.error("Download Failed", "Error downloading file"))
            return None
        self._notify(notifications.success("Download Started", "File download has started"))
        return url

    # Internals --------------------------------------------------------------

    async def _after_delete(self) -> None:
        self._selection.clear()
        await self.refresh()

    def _on_path_changed(self, path: str) -> None:
        self._selection.clear()
        self._reproject()

    def _on_query_changed(self, query: str) -> None:
        self._selection.clear()
        self._reproject()

    def _reproject(self) -> None:
        self._entries = project(
            self._catalog.records,
            self._navigation.current_path,
            self._navigation.search_query,
            self._sort_by,
            self._sort_order,
        )
        self._selection.set_available(entry.key for entry in self._entries)
