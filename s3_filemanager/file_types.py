from __future__ import annotations
"""Mapping from file-name extensions to display categories."""
from .models import FileType

FILE_TYPE_EXTENSIONS: dict[str, FileType] = {
    **dict.fromkeys(("jpg", "jpeg", "png", "gif", "webp", "svg", "bmp", "ico"), FileType.IMAGE),
    **dict.fromkeys(("mp4", "avi", "mov", "wmv", "webm", "mkv", "flv", "m4v"), FileType.VIDEO),
    **dict.fromkeys(("mp3", "wav", "ogg", "flac", "aac", "m4a", "wma"), FileType.AUDIO),
    **dict.fromkeys(("pdf", "doc", "docx", "txt", "rtf", "odt"), FileType.DOCUMENT),
    **dict.fromkeys(
        (
            "js", "ts", "html", "css", "json", "xml", "py", "java",
            "cpp", "c", "php", "rb", "go", "rs", "swift",
        ),
        FileType.CODE,
    ),
    **dict.fromkeys(("zip", "rar", "7z", "tar", "gz", "bz2", "xz"), FileType.ARCHIVE),
    **dict.fromkeys(("xlsx", "xls", "csv"), FileType.SPREADSHEET),
    **dict.fromkeys(("ppt", "pptx"), FileType.PRESENTATION),
}


def file_extension(name: str) -> str:
    _, dot, ext = name.rpartition(".")
    return ext.lower() if dot else ""


def get_file_type(name: str) -> FileType:
    """Return the display category for a file name."""

    return FILE_TYPE_EXTENSIONS.get(file_extension(name), FileType.FILE)
