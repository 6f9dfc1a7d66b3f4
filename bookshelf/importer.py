"""Import books from the external catalog into the local library."""
import logging
from typing import List, Optional

from bookshelf.client import GoogleBooksClient
from bookshelf.dedup import DuplicateDetector
from bookshelf.errors import BookshelfError, DuplicateError
from bookshelf.mapper import to_draft
from bookshelf.models import Book, BookStatus, CanonicalBookDraft, ExternalBookRecord
from bookshelf.resolver import EntityResolver
from bookshelf.store import CatalogStore

logger = logging.getLogger(__name__)


class ImportOrchestrator:
    """
    fetch -> map -> duplicate check -> resolve authors/genres -> create.

    A single author or genre that fails to resolve is logged and skipped.
    Gateway, mapping and duplicate errors abort the import before anything
    is written.
    """

    def __init__(
        self,
        client: GoogleBooksClient,
        store: CatalogStore,
        resolver: Optional[EntityResolver] = None,
        detector: Optional[DuplicateDetector] = None
    ):
        self.client = client
        self.store = store
        self.resolver = resolver or EntityResolver(store)
        self.detector = detector or DuplicateDetector(store)

    def import_by_external_id(self, external_id: str,
                              initial_status: BookStatus = BookStatus.WISHLIST) -> Book:
        logger.info(f"Importing Google Books volume {external_id}")
        record = self.client.fetch_by_id(external_id)
        return self.import_record(record, initial_status)

    def import_record(self, record: ExternalBookRecord,
                      initial_status: BookStatus = BookStatus.WISHLIST) -> Book:
        draft = to_draft(record)

        conflict = self.detector.find_conflict(draft)
        if conflict is not None:
            raise DuplicateError(conflict.title, conflict.isbn)

        author_ids = self._resolve_authors(draft)
        genre_ids = self._resolve_genres(draft)

        book = self.store.create_book(draft, author_ids, genre_ids, initial_status or BookStatus.WISHLIST)
        logger.info(
            f"Imported '{book.title}' (id={book.id}): "
            f"{len(author_ids)} authors, {len(genre_ids)} genres"
        )
        return book

    def _resolve_authors(self, draft: CanonicalBookDraft) -> List[int]:
        author_ids: List[int] = []
        for full_name in draft.author_names:
            try:
                author = self.resolver.resolve_author_name(full_name)
            except BookshelfError as e:
                logger.warning(f"Skipping author '{full_name}': {e}")
                continue
            if author.id not in author_ids:
                author_ids.append(author.id)

        if not author_ids:
            author_ids.append(self.resolver.unknown_author().id)
        return author_ids

    def _resolve_genres(self, draft: CanonicalBookDraft) -> List[int]:
        genre_ids: List[int] = []
        for name in draft.genre_names:
            try:
                genre = self.resolver.find_or_create_genre(name)
            except BookshelfError as e:
                logger.warning(f"Skipping genre '{name}': {e}")
                continue
            if genre.id not in genre_ids:
                genre_ids.append(genre.id)

        if not genre_ids:
            genre_ids.append(self.resolver.general_genre().id)
        return genre_ids
