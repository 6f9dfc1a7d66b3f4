"""Entry points combining the local library with the external catalog."""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from bookshelf.client import GoogleBooksClient
from bookshelf.enrich import EnrichmentEngine
from bookshelf.errors import ExternalServiceError, InvalidInput
from bookshelf.importer import ImportOrchestrator
from bookshelf.models import Book, BookStatus, ExternalBookRecord
from bookshelf.parse import deduplicate_records
from bookshelf.store import CatalogStore

logger = logging.getLogger(__name__)

EXTERNAL_UNAVAILABLE = "External search temporarily unavailable"
AUTOCOMPLETE_DEFAULT_LIMIT = 8
AUTOCOMPLETE_MAX_LIMIT = 20
MAX_SIMILAR = 3
MAX_EXTERNAL_SUGGESTIONS = 5


class Recommendation(Enum):
    EXISTS = "EXISTS"
    SIMILAR = "SIMILAR"
    CREATE = "CREATE"


RECOMMENDATION_MESSAGES = {
    Recommendation.EXISTS: "This book is already in your library",
    Recommendation.SIMILAR: "Similar books found in your library, check before creating",
    Recommendation.CREATE: "No matches found, safe to create",
}


@dataclass
class HybridSearchResult:
    query: str
    local: List[Book] = field(default_factory=list)
    external: List[ExternalBookRecord] = field(default_factory=list)
    note: Optional[str] = None


@dataclass
class CreationSuggestion:
    title: str
    author: str
    exact_match: Optional[Book]
    similar: List[Book]
    external: List[ExternalBookRecord]
    recommendation: Recommendation

    @property
    def message(self) -> str:
        return RECOMMENDATION_MESSAGES[self.recommendation]


class CatalogService:
    """Facade used by the CLI: searches, imports, enrichment and suggestions."""

    def __init__(self, client: GoogleBooksClient, store: CatalogStore):
        self.client = client
        self.store = store
        self.importer = ImportOrchestrator(client, store)
        self.enricher = EnrichmentEngine(client, store)

    # Gateway passthroughs

    def search(self, query: str) -> List[ExternalBookRecord]:
        return self.client.search(query)

    def search_by_title(self, title: str) -> List[ExternalBookRecord]:
        return self.client.search_by_title(title)

    def search_by_author(self, author: str) -> List[ExternalBookRecord]:
        return self.client.search_by_author(author)

    def search_by_isbn(self, isbn: str) -> Optional[ExternalBookRecord]:
        return self.client.search_by_isbn(isbn)

    def import_by_external_id(self, external_id: str,
                              initial_status: BookStatus = BookStatus.WISHLIST) -> Book:
        return self.importer.import_by_external_id(external_id, initial_status)

    def enrich(self, book_id: int, external_id: str) -> Book:
        return self.enricher.enrich(book_id, external_id)

    # Combined local + external views

    def hybrid_search(self, query: str, include_external: bool = True) -> HybridSearchResult:
        """
        Search the local library and, optionally, the external catalog.

        An external failure does not fail the search; local results are
        returned with a note instead.
        """
        if query is None or not query.strip():
            raise InvalidInput("Search query cannot be empty")
        query = query.strip()

        result = HybridSearchResult(query=query, local=self.store.search_local_by_title(query))
        if not include_external:
            return result

        try:
            result.external = self.client.search(query)
        except ExternalServiceError as e:
            logger.warning(f"External search failed for '{query}': {e}")
            result.note = EXTERNAL_UNAVAILABLE
        return result

    def creation_suggestions(self, title: str, author: Optional[str] = None) -> CreationSuggestion:
        """Help decide whether a book about to be created already exists."""
        if title is None or not title.strip():
            raise InvalidInput("Title cannot be empty")
        title = title.strip()
        author = (author or "").strip()

        local = self.store.search_local_by_title(title)
        exact = [b for b in local if b.title.lower() == title.lower()]
        similar = [b for b in local if b.title.lower() != title.lower()][:MAX_SIMILAR]

        external: List[ExternalBookRecord] = []
        try:
            query = f'intitle:"{title}"'
            if author:
                query += f' inauthor:"{author}"'
            external = deduplicate_records(self.client.search(query))[:MAX_EXTERNAL_SUGGESTIONS]
        except ExternalServiceError as e:
            logger.warning(f"External suggestions failed for '{title}': {e}")

        if exact:
            recommendation = Recommendation.EXISTS
        elif similar:
            recommendation = Recommendation.SIMILAR
        else:
            recommendation = Recommendation.CREATE

        return CreationSuggestion(
            title=title,
            author=author,
            exact_match=exact[0] if exact else None,
            similar=similar,
            external=external,
            recommendation=recommendation,
        )

    def autocomplete(self, query: str, limit: int = AUTOCOMPLETE_DEFAULT_LIMIT) -> List[Tuple[str, str]]:
        """
        Title suggestions as (title, source) pairs, source being "local" or "external".

        Local titles fill at most half of the slots.
        """
        if query is None or len(query.strip()) < 2:
            return []
        if limit < 1 or limit > AUTOCOMPLETE_MAX_LIMIT:
            limit = AUTOCOMPLETE_DEFAULT_LIMIT
        query = query.strip()

        suggestions: List[Tuple[str, str]] = []
        seen = set()
        for book in self.store.search_local_by_title(query)[:limit // 2]:
            if book.title not in seen:
                seen.add(book.title)
                suggestions.append((book.title, "local"))

        if len(suggestions) < limit:
            try:
                external = self.client.search(f'intitle:"{query}"')
            except ExternalServiceError as e:
                logger.warning(f"External autocomplete failed for '{query}': {e}")
                external = []
            for record in external:
                if len(suggestions) >= limit:
                    break
                if record.title and record.title not in seen:
                    seen.add(record.title)
                    suggestions.append((record.title, "external"))

        return suggestions
