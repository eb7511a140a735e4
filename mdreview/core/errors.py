"""Domain error hierarchy shared by services and API handlers."""


class MdReviewError(Exception):
    """Base error for md-review operations.

    ``status_code`` and ``error`` are used by the API exception handler to
    build an ``ErrorResponse``.
    """

    status_code = 500
    error = "internal_error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class FileServiceError(MdReviewError):
    """The served markdown content is unavailable."""

    error = "file_unavailable"


class FileAccessError(FileServiceError):
    """Requested path escapes the served directory."""

    status_code = 403
    error = "invalid_path"


class FileReadError(FileServiceError):
    """Requested file does not exist or cannot be read."""

    status_code = 404
    error = "file_not_found"


class StorageError(MdReviewError):
    """Local key-value storage could not be read or written."""

    error = "storage_failure"


class ClipboardError(MdReviewError):
    """Text could not be written to the clipboard."""

    error = "clipboard_failure"


class EmptyCommentError(MdReviewError, ValueError):
    """Comment text is empty after trimming."""

    status_code = 422
    error = "empty_comment"

    def __init__(self, message: str = "Comment text cannot be empty"):
        super().__init__(message)
