"""Exceptions for marksync."""


class MarksyncError(Exception):
    """Base class for all marksync errors."""


class PathConflictError(MarksyncError):
    """Raised when two nodes of one tree resolve to the same path.

    The source data is ambiguous; the sync pass is aborted rather than
    guessing which node is meant.
    """


class NotFoundError(MarksyncError):
    """A folder or bookmark the operation needs does not exist."""


class FolderNotFoundError(NotFoundError):
    """Raised when a folder lookup by id or path fails."""

    def __init__(self, key):
        super().__init__(f"Folder not found: {key}")
        self.key = key


class BookmarkNotFoundError(NotFoundError):
    """Raised when a bookmark lookup by path fails."""

    def __init__(self, path):
        super().__init__(f"Bookmark not found: {path}")
        self.path = path


class SyncValidationError(MarksyncError):
    """Prerequisites for a sync pass are not met (token, sync folder, ...)."""


class SourceError(MarksyncError):
    """The source collection could not be fetched."""
