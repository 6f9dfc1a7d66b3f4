"""Fill missing fields of local books from the external catalog."""
import logging
from typing import Any, Dict

from bookshelf.client import GoogleBooksClient
from bookshelf.mapper import to_draft
from bookshelf.models import Book, CanonicalBookDraft
from bookshelf.store import CatalogStore

logger = logging.getLogger(__name__)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, int):
        return value == 0
    return False


def compute_patch(book: Book, draft: CanonicalBookDraft) -> Dict[str, Any]:
    """
    Fields of `book` that are empty and that the draft can supply.

    Populated fields are never part of the patch.
    """
    patch: Dict[str, Any] = {}

    if _is_blank(book.description) and not _is_blank(draft.description):
        patch["description"] = draft.description
    if _is_blank(book.isbn) and not _is_blank(draft.isbn):
        patch["isbn"] = draft.isbn
    if _is_blank(book.total_pages) and draft.total_pages is not None and draft.total_pages > 0:
        patch["total_pages"] = draft.total_pages
    if _is_blank(book.publisher) and not _is_blank(draft.publisher):
        patch["publisher"] = draft.publisher

    return patch


class EnrichmentEngine:
    """Merge external data into an existing book without overwriting it."""

    def __init__(self, client: GoogleBooksClient, store: CatalogStore):
        self.client = client
        self.store = store

    def enrich(self, book_id: int, external_id: str) -> Book:
        """
        Enrich local book `book_id` with volume `external_id`.

        Raises:
            NotFound: the local book or the external volume does not exist
        """
        logger.info(f"Enriching book {book_id} with Google Books volume {external_id}")

        book = self.store.get_book_by_id(book_id)
        draft = to_draft(self.client.fetch_by_id(external_id))

        patch = compute_patch(book, draft)
        if not patch:
            logger.info(f"No additional data to enrich book {book_id}")
            return book

        updated = self.store.update_book(book_id, patch)
        logger.info(f"Enriched book {book_id}: {', '.join(sorted(patch))}")
        return updated
