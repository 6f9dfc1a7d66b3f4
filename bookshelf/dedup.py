"""Detect whether a draft already exists in the local library."""
import logging
from typing import Optional

from bookshelf.models import Book, CanonicalBookDraft
from bookshelf.normalize import normalize_title
from bookshelf.store import CatalogStore

logger = logging.getLogger(__name__)


def titles_similar(title1: Optional[str], title2: Optional[str]) -> bool:
    """
    Compare titles after normalization.

    Equal titles match, and so do titles where one contains the other
    ("Clean Code" vs "Clean Code: A Handbook"). The containment rule also
    matches a sequel whose title extends the original's.
    """
    if title1 is None or title2 is None:
        return False

    normalized1 = normalize_title(title1)
    normalized2 = normalize_title(title2)
    if not normalized1 and not normalized2:
        # Punctuation-only titles: compare them as written
        return title1.strip().casefold() == title2.strip().casefold()
    # An empty string would be contained in everything
    if not normalized1 or not normalized2:
        return False

    if normalized1 == normalized2:
        return True
    return normalized1 in normalized2 or normalized2 in normalized1


class DuplicateDetector:
    """ISBN-then-title duplicate check against the local catalog."""

    def __init__(self, store: CatalogStore):
        self.store = store

    def find_conflict(self, draft: CanonicalBookDraft) -> Optional[Book]:
        """Return the local book the draft collides with, if any."""
        isbn = (draft.isbn or "").strip()
        if isbn:
            existing = self.store.find_book_by_isbn(isbn)
            if existing is not None:
                logger.warning(f"Book already exists with ISBN {isbn}")
                return existing

        title = (draft.title or "").strip()
        if title:
            for candidate in self.store.search_local_by_title(title):
                if titles_similar(candidate.title, title):
                    logger.warning(f"Book already exists with title similar to '{title}'")
                    return candidate

        return None

    def is_duplicate(self, draft: CanonicalBookDraft) -> bool:
        return self.find_conflict(draft) is not None
