"""Catalog store interface consumed by the import pipeline."""
from typing import Any, Dict, Iterable, List, Optional, Protocol

from bookshelf.models import Author, Book, BookStatus, CanonicalBookDraft, Genre

# Columns the enrichment path may patch on an existing book
PATCHABLE_FIELDS = ("title", "description", "isbn", "total_pages", "publisher", "published_date")


class CatalogStore(Protocol):
    """
    Persistence operations for books, authors and genres.

    Implementations must enforce ISBN uniqueness and the author/genre identity
    keys at the storage layer, so that `upsert_*` is atomic and a second
    `create_book` with the same ISBN raises DuplicateError.
    """

    def exists_by_isbn(self, isbn: str) -> bool: ...

    def find_book_by_isbn(self, isbn: str) -> Optional[Book]: ...

    def search_local_by_title(self, title: str) -> List[Book]: ...

    def get_book_by_id(self, book_id: int) -> Book: ...

    def create_book(
        self,
        draft: CanonicalBookDraft,
        author_ids: Iterable[int],
        genre_ids: Iterable[int],
        status: BookStatus,
    ) -> Book: ...

    def update_book(self, book_id: int, patch: Dict[str, Any]) -> Book: ...

    def upsert_author(self, first_name: str, last_name: str) -> Author: ...

    def upsert_genre(self, name: str) -> Genre: ...
