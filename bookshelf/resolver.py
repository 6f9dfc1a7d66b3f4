"""Find-or-create resolution of authors and genres."""
import logging
from typing import Optional

from bookshelf.models import Author, Genre
from bookshelf.normalize import normalize_genre_name, normalize_person_name, split_full_name
from bookshelf.store import CatalogStore

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = ("Unknown", "Author")
GENERAL_GENRE = "General"


class EntityResolver:
    """
    Resolve author and genre names to stored entities without duplicating them.

    Lookups go through the store's upsert, keyed on the normalized identity,
    so repeated calls with case/whitespace variants return the same row.
    Persistence failures propagate unchanged.
    """

    def __init__(self, store: CatalogStore):
        self.store = store

    def find_or_create_author(self, first_name: Optional[str], last_name: Optional[str]) -> Author:
        first = normalize_person_name(first_name)
        last = normalize_person_name(last_name)

        if not last:
            if not first:
                logger.warning("Blank author name, using sentinel author")
                return self.unknown_author()
            # A lone name is kept as the last name
            first, last = "", first

        return self.store.upsert_author(first, last)

    def resolve_author_name(self, full_name: Optional[str]) -> Author:
        """Split a display name ("Robert C. Martin") and resolve it."""
        parts = split_full_name(full_name)
        if parts is None:
            logger.warning(f"Malformed author name {full_name!r}, using sentinel author")
            return self.unknown_author()
        return self.find_or_create_author(*parts)

    def find_or_create_genre(self, name: Optional[str]) -> Genre:
        normalized = normalize_genre_name(name)
        if not normalized:
            logger.warning(f"Malformed genre name {name!r}, using {GENERAL_GENRE}")
            normalized = GENERAL_GENRE
        return self.store.upsert_genre(normalized)

    def unknown_author(self) -> Author:
        return self.store.upsert_author(*UNKNOWN_AUTHOR)

    def general_genre(self) -> Genre:
        return self.store.upsert_genre(GENERAL_GENRE)
