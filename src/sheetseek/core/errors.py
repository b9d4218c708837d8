class SheetSeekError(Exception):
    """Base error for all user-facing SheetSeek exceptions."""


class ProjectNotInitializedError(SheetSeekError):
    """Raised when .sheetseek metadata is missing."""


class UploadRejectedError(SheetSeekError):
    """Raised when an upload is refused before parsing (missing, unnamed or wrong type)."""


class ParseError(SheetSeekError):
    """Raised when workbook bytes cannot be read as a workbook."""


class DuplicateUploadError(SheetSeekError):
    """Raised when an upload matches an existing file by name and size."""


class PersistenceError(SheetSeekError):
    """Raised when the backing store fails during a read or write."""


class SearchFailedError(PersistenceError):
    """Raised when a row search cannot be evaluated by the backing store."""


class NotFoundError(SheetSeekError):
    """Raised when a file id does not resolve."""
