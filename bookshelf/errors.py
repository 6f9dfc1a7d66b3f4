"""Error kinds raised by the catalog import pipeline.

Callers branch on the exception class rather than on message text.
"""
from typing import Optional


class BookshelfError(Exception):
    """Base class for every failure raised by this package."""


class InvalidInput(BookshelfError, ValueError):
    """Blank or malformed caller argument."""


class ExternalServiceError(BookshelfError):
    """Network failure, timeout or non-2xx response from the external catalog."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFound(BookshelfError, LookupError):
    """External id or local book id does not exist."""


class MappingError(BookshelfError):
    """External record is missing a field required to build a draft."""


class DuplicateError(BookshelfError):
    """Import rejected because the book already exists locally."""

    def __init__(self, title: str, isbn: Optional[str] = None):
        super().__init__(f"Book already exists in your library: {title}")
        self.title = title
        self.isbn = isbn


class PersistenceError(BookshelfError):
    """Write or read failure in the catalog store."""
