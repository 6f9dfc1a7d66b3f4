"""Data models for books, authors and genres."""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, List, Tuple

UNKNOWN_FIRST_NAME = "Unknown"

# Largest image first
IMAGE_SIZES = ("extraLarge", "large", "medium", "small", "thumbnail", "smallThumbnail")


class BookStatus(Enum):
    """Reading status of a book in the local library."""
    WISHLIST = "WISHLIST"
    READING = "READING"
    FINISHED = "FINISHED"
    ABANDONED = "ABANDONED"
    ON_HOLD = "ON_HOLD"


@dataclass(frozen=True)
class IndustryIdentifier:
    """Identifier pair reported by the external catalog (ISBN_10, ISBN_13, OTHER...)."""
    type: str
    identifier: str


@dataclass(frozen=True)
class ExternalBookRecord:
    """Book as returned by the external catalog. Never persisted directly."""
    external_id: str
    title: str
    authors: Tuple[str, ...] = ()
    description: Optional[str] = None
    page_count: Optional[int] = None
    published_date: Optional[str] = None
    publisher: Optional[str] = None
    categories: Tuple[str, ...] = ()
    identifiers: Tuple[IndustryIdentifier, ...] = ()
    image_links: Tuple[Tuple[str, str], ...] = ()
    language: Optional[str] = None

    @property
    def thumbnail(self) -> Optional[str]:
        """Best available cover image URL."""
        links = dict(self.image_links)
        for size in IMAGE_SIZES:
            if links.get(size):
                return links[size]
        return None

    @property
    def authors_str(self) -> str:
        """Format authors as comma-separated string."""
        return ", ".join(self.authors) if self.authors else "Unknown"

    @property
    def categories_str(self) -> str:
        """Format categories as comma-separated string."""
        return ", ".join(self.categories) if self.categories else "None"


@dataclass
class CanonicalBookDraft:
    """Catalog-agnostic book representation, prior to persistence."""
    title: str
    isbn: Optional[str] = None
    total_pages: Optional[int] = None
    published_date: Optional[str] = None
    publisher: Optional[str] = None
    description: Optional[str] = None
    author_names: List[str] = field(default_factory=list)
    genre_names: List[str] = field(default_factory=list)


@dataclass
class Author:
    id: Optional[int]
    first_name: str
    last_name: str
    biography: Optional[str] = None
    nationality: Optional[str] = None
    birth_date: Optional[date] = None

    @property
    def full_name(self) -> str:
        first = self.first_name or UNKNOWN_FIRST_NAME
        return f"{first} {self.last_name}".strip()


@dataclass
class Genre:
    id: Optional[int]
    name: str
    description: Optional[str] = None


@dataclass
class Book:
    """Book stored in the local library."""
    id: Optional[int]
    title: str
    isbn: Optional[str] = None
    total_pages: Optional[int] = None
    current_page: int = 0
    status: BookStatus = BookStatus.WISHLIST
    published_date: Optional[str] = None
    publisher: Optional[str] = None
    description: Optional[str] = None
    authors: List[Author] = field(default_factory=list)
    genres: List[Genre] = field(default_factory=list)

    @property
    def authors_str(self) -> str:
        """Format authors as comma-separated string."""
        return ", ".join(a.full_name for a in self.authors) if self.authors else "Unknown"

    @property
    def genres_str(self) -> str:
        """Format genres as comma-separated string."""
        return ", ".join(g.name for g in self.genres) if self.genres else "None"
