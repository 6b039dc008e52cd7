from __future__ import annotations
"""UI-agnostic helpers for formatting, key composition and name validation."""
from datetime import datetime
import re

from .errors import ValidationError
from .models import Breadcrumb

INVALID_NAME_CHARS = re.compile(r'[<>:"/\\|?*]')


def format_size(size: int | None) -> str:
    if size is None:
        return "-"
    suffixes = ["B", "KB", "MB", "GB", "TB"]
    value = float(max(size, 0))
    for suffix in suffixes:
        if value < 1024 or suffix == suffixes[-1]:
            return f"{value:.1f} {suffix}" if suffix != "B" else f"{int(value)} {suffix}"
        value /= 1024
    return f"{size} B"


def format_last_modified(last_modified: datetime | None) -> str:
    if not last_modified:
        return "-"
    return last_modified.strftime("%Y-%m-%d %H:%M:%S %Z").strip() or last_modified.isoformat()


def normalize_folder_path(path: str) -> str:
    """Strip leading slashes and make sure a non-root path ends with ``/``."""

    cleaned = path.strip().lstrip("/")
    if cleaned and not cleaned.endswith("/"):
        cleaned += "/"
    return cleaned


def compose_key(prefix: str, name: str) -> str:
    key_name = name.strip()
    if not key_name:
        raise ValidationError("Object name cannot be empty")
    return f"{normalize_folder_path(prefix)}{key_name}"


def base_name(key: str) -> str:
    return key.rsplit("/", 1)[-1]


def parent_path(path: str) -> str:
    """Return the folder path one level above ``path`` (``""`` at the root)."""

    parts = [part for part in path.split("/") if part]
    if parts:
        parts.pop()
    return "/".join(parts) + "/" if parts else ""


def breadcrumbs(path: str) -> list[Breadcrumb]:
    parts = [part for part in path.split("/") if part]
    return [
        Breadcrumb(name=part, path="/".join(parts[: index + 1]) + "/")
        for index, part in enumerate(parts)
    ]


def is_valid_name(name: str) -> bool:
    return bool(name.strip()) and not INVALID_NAME_CHARS.search(name)


def sanitize_name(name: str) -> str:
    return INVALID_NAME_CHARS.sub("_", name).strip()


def validate_folder_name(name: str) -> str:
    """Return the trimmed folder name or raise :class:`ValidationError`."""

    trimmed = name.strip()
    if not trimmed:
        raise ValidationError("Folder name cannot be empty")
    if not is_valid_name(trimmed):
        raise ValidationError(
            "Folder name contains invalid characters",
            suggestion=sanitize_name(trimmed) or None,
        )
    return trimmed


def content_disposition(key: str, *, inline: bool) -> str:
    if inline:
        return "inline"
    filename = base_name(key.rstrip("/")) or "download"
    return f'attachment; filename="{filename}"'
