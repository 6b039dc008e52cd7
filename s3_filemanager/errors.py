from __future__ import annotations
"""Exception types raised by the file manager core."""


class FileManagerError(RuntimeError):
    """Base class for all file manager errors."""


class TransportError(FileManagerError):
    """Raised when a network or HTTP failure interrupts a store operation."""

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status


class NotFoundError(FileManagerError):
    """Raised when an operation references a key that does not exist."""


class ValidationError(FileManagerError, ValueError):
    """Raised when user input (such as a folder name) is not acceptable."""

    def __init__(self, message: str, *, suggestion: str | None = None):
        super().__init__(message)
        self.suggestion = suggestion


class CancellationError(FileManagerError):
    """Raised when an operation was terminated by a user-initiated cancel."""


class UploadInProgressError(FileManagerError):
    """Raised when an upload batch is started while another one is running."""
