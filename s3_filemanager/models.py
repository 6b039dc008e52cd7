from __future__ import annotations
"""Data models for the flat object listing and its folder projection."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import mimetypes
import os
from pathlib import Path
from typing import Optional, Union


class FileType(str, Enum):
    FOLDER = "folder"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    CODE = "code"
    ARCHIVE = "archive"
    SPREADSHEET = "spreadsheet"
    PRESENTATION = "presentation"
    FILE = "file"


class SortField(str, Enum):
    NAME = "name"
    DATE = "date"
    SIZE = "size"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class UploadStatus(str, Enum):
    QUEUED = "queued"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadStatus.COMPLETED, UploadStatus.FAILED, UploadStatus.CANCELLED)


@dataclass(frozen=True)
class ObjectRecord:
    """A single object as returned by a listing of the store."""

    key: str
    size: int = 0
    last_modified: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("Object key cannot be empty")
        if self.size < 0:
            raise ValueError("Object size cannot be negative")


@dataclass(frozen=True)
class FolderEntry:
    """Synthetic folder derived from the key prefixes of one or more objects."""

    key: str
    name: str
    full_path: Optional[str] = None

    is_folder = True
    file_type = FileType.FOLDER


@dataclass(frozen=True)
class FileEntry:
    """A real object shown as a leaf of the folder projection."""

    key: str
    name: str
    size: int = 0
    last_modified: Optional[datetime] = None
    full_path: Optional[str] = None
    file_type: FileType = FileType.FILE

    is_folder = False


VirtualEntry = Union[FolderEntry, FileEntry]


@dataclass(frozen=True)
class Breadcrumb:
    name: str
    path: str


@dataclass(frozen=True)
class LocalFile:
    """A file on the local filesystem that can be uploaded."""

    path: str
    name: str
    size: int
    content_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> "LocalFile":
        local_path = Path(path)
        content_type, _ = mimetypes.guess_type(local_path.name)
        return cls(
            path=str(local_path),
            name=local_path.name,
            size=local_path.stat().st_size,
            content_type=content_type or "application/octet-stream",
        )


@dataclass
class UploadTask:
    """Tracks the state of one queued file through an upload batch."""

    file: LocalFile
    progress: float = 0.0
    status: UploadStatus = UploadStatus.QUEUED
    error: Optional[str] = None


@dataclass
class BatchResult:
    """Aggregated outcome of an upload or delete batch."""

    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    cancelled: list[str] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def cancelled_count(self) -> int:
        return len(self.cancelled)

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count + self.cancelled_count
