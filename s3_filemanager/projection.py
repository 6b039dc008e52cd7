from __future__ import annotations
"""Projection of a flat object listing onto folders and files.

Object stores only know flat keys such as ``docs/2024/report.pdf``. The
functions in this module derive, for a given folder path or search query,
the ordered list of entries a user sees: one synthetic :class:`FolderEntry`
per distinct next path segment and one :class:`FileEntry` per object that
lives directly in the folder.

Everything here is pure and synchronous so it can be recomputed whenever the
catalog, path, query or sort settings change.
"""
import re
import unicodedata
from typing import Iterable

from .file_types import get_file_type
from .models import (
    FileEntry,
    FolderEntry,
    ObjectRecord,
    SortField,
    SortOrder,
    VirtualEntry,
)
from .ui_utils import base_name, normalize_folder_path

_DIGITS = re.compile(r"(\d+)")


def project(
    records: Iterable[ObjectRecord],
    current_path: str = "",
    search_query: str = "",
    sort_by: SortField | str = SortField.NAME,
    sort_order: SortOrder | str = SortOrder.ASC,
) -> tuple[VirtualEntry, ...]:
    """Return the sorted entries visible at ``current_path``.

    A non-blank ``search_query`` switches to search mode, in which the whole
    listing is searched regardless of ``current_path``.
    """

    query = search_query.strip()
    if query:
        entries = search_entries(records, query)
    else:
        entries = folder_entries(records, current_path)
    return sort_entries(entries, sort_by, sort_order)


def folder_entries(records: Iterable[ObjectRecord], current_path: str) -> list[VirtualEntry]:
    """Entries directly under ``current_path``, in listing order."""

    current_path = normalize_folder_path(current_path)
    folders: list[VirtualEntry] = []
    files: list[VirtualEntry] = []
    seen_folders: set[str] = set()

    for record in records:
        if not record.key.startswith(current_path):
            continue
        relative_path = record.key[len(current_path):]
        if "/" in relative_path:
            folder_name = relative_path.split("/", 1)[0]
            if folder_name in seen_folders:
                continue
            seen_folders.add(folder_name)
            folders.append(FolderEntry(key=f"{current_path}{folder_name}/", name=folder_name))
        elif relative_path:
            files.append(
                FileEntry(
                    key=record.key,
                    name=relative_path,
                    size=record.size,
                    last_modified=record.last_modified,
                    file_type=get_file_type(relative_path),
                )
            )
    return folders + files


def search_entries(records: Iterable[ObjectRecord], query: str) -> list[VirtualEntry]:
    """Entries from the whole listing whose name contains ``query``.

    Files match on their base name, folders match on any of their path
    segments. Results are deduplicated by key.
    """

    needle = query.strip().lower()
    entries: dict[str, VirtualEntry] = {}
    if not needle:
        return []

    for record in records:
        segments = record.key.split("/")
        for depth, segment in enumerate(segments[:-1]):
            if needle not in segment.lower():
                continue
            folder_key = "/".join(segments[: depth + 1]) + "/"
            if folder_key not in entries:
                entries[folder_key] = FolderEntry(key=folder_key, name=segment, full_path=folder_key)

        file_name = base_name(record.key)
        if file_name and needle in file_name.lower() and record.key not in entries:
            entries[record.key] = FileEntry(
                key=record.key,
                name=file_name,
                size=record.size,
                last_modified=record.last_modified,
                full_path=record.key,
                file_type=get_file_type(file_name),
            )
    return list(entries.values())


def sort_entries(
    entries: Iterable[VirtualEntry],
    sort_by: SortField | str = SortField.NAME,
    sort_order: SortOrder | str = SortOrder.ASC,
) -> tuple[VirtualEntry, ...]:
    """Sort entries with folders always ahead of files.

    ``sort_order`` only reverses the ordering within the folder and file
    groups. The sort is stable, so sorting twice gives the same result.
    """

    field = SortField(sort_by)
    reverse = SortOrder(sort_order) is SortOrder.DESC
    folders = [entry for entry in entries if entry.is_folder]
    files = [entry for entry in entries if not entry.is_folder]

    def key(entry: VirtualEntry):
        return sort_key(entry, field)

    folders.sort(key=key, reverse=reverse)
    files.sort(key=key, reverse=reverse)
    return tuple(folders + files)


def sort_key(entry: VirtualEntry, field: SortField):
    if field is SortField.NAME:
        return natural_key(entry.name)
    if isinstance(entry, FolderEntry):
        return 0
    if field is SortField.DATE:
        return entry.last_modified.timestamp() if entry.last_modified else 0
    return entry.size or 0


def natural_key(name: str) -> tuple:
    """Case and accent insensitive key that orders embedded numbers numerically."""

    folded = unicodedata.normalize("NFKD", name.casefold())
    folded = "".join(char for char in folded if not unicodedata.combining(char))
    parts = []
    for chunk in _DIGITS.split(folded):
        if not chunk:
            continue
        if _DIGITS.fullmatch(chunk):
            parts.append((0, int(chunk), ""))
        else:
            parts.append((1, 0, chunk))
    return tuple(parts)
