"""Shared fixtures: in-memory catalog store, stub gateway and sample volumes."""
import copy
from dataclasses import replace

import pytest

from bookshelf.errors import DuplicateError, ExternalServiceError, NotFound, PersistenceError
from bookshelf.models import Author, Book, Genre
from bookshelf.normalize import author_identity_key, genre_identity_key
from bookshelf.parse import parse_record
from bookshelf.store import PATCHABLE_FIELDS


CLEAN_CODE_VOLUME = {
    "kind": "books#volume",
    "id": "hjEFCAAAQBAJ",
    "volumeInfo": {
        "title": "Clean Code",
        "authors": ["Robert C. Martin"],
        "publisher": "Pearson Education",
        "publishedDate": "2008-08-01",
        "description": "Even bad code can function.",
        "industryIdentifiers": [
            {"type": "ISBN_10", "identifier": "0132350882"},
            {"type": "ISBN_13", "identifier": "9780132350884"}
        ],
        "pageCount": 431,
        "categories": ["Computers", "computers", "Computers"],
        "imageLinks": {
            "smallThumbnail": "http://books.google.com/small.jpg",
            "thumbnail": "http://books.google.com/thumb.jpg"
        },
        "language": "en"
    }
}

PRAGMATIC_VOLUME = {
    "id": "5wBQEp6ruIAC",
    "volumeInfo": {
        "title": "The Pragmatic Programmer",
        "authors": ["Andrew Hunt", "David Thomas"],
        "publishedDate": "1999",
        "industryIdentifiers": [{"type": "ISBN_10", "identifier": "020161622X"}],
        "pageCount": 352,
        "categories": ["sci-fi"]
    }
}


class FakeCatalogStore:
    """In-memory store enforcing ISBN and identity-key uniqueness."""

    def __init__(self):
        self.books = {}
        self.authors = {}
        self.genres = {}
        self.failing_authors = set()
        self.failing_genres = set()
        self.create_calls = 0
        self.update_calls = 0
        self._next_id = 1

    def _new_id(self):
        value = self._next_id
        self._next_id += 1
        return value

    def add_book(self, title, **fields):
        book = Book(id=self._new_id(), title=title, **fields)
        self.books[book.id] = book
        return copy.deepcopy(book)

    def exists_by_isbn(self, isbn):
        return self.find_book_by_isbn(isbn) is not None

    def find_book_by_isbn(self, isbn):
        for book in self.books.values():
            if book.isbn and book.isbn == isbn:
                return copy.deepcopy(book)
        return None

    def search_local_by_title(self, title):
        needle = title.strip().lower()
        return [
            copy.deepcopy(b) for b in sorted(self.books.values(), key=lambda b: b.title)
            if needle in b.title.lower() or b.title.lower() in needle
        ]

    def get_book_by_id(self, book_id):
        if book_id not in self.books:
            raise NotFound(f"Book not found with id: {book_id}")
        return copy.deepcopy(self.books[book_id])

    def create_book(self, draft, author_ids, genre_ids, status):
        self.create_calls += 1
        if draft.isbn:
            existing = self.find_book_by_isbn(draft.isbn)
            if existing:
                raise DuplicateError(existing.title, draft.isbn)

        authors_by_id = {a.id: a for a in self.authors.values()}
        genres_by_id = {g.id: g for g in self.genres.values()}
        book = Book(
            id=self._new_id(),
            title=draft.title,
            isbn=draft.isbn,
            total_pages=draft.total_pages,
            current_page=0,
            status=status,
            published_date=draft.published_date,
            publisher=draft.publisher,
            description=draft.description,
            authors=[authors_by_id[i] for i in dict.fromkeys(author_ids)],
            genres=[genres_by_id[i] for i in dict.fromkeys(genre_ids)],
        )
        self.books[book.id] = book
        return copy.deepcopy(book)

    def update_book(self, book_id, patch):
        self.update_calls += 1
        assert set(patch) <= set(PATCHABLE_FIELDS)
        if book_id not in self.books:
            raise NotFound(f"Book not found with id: {book_id}")
        self.books[book_id] = replace(self.books[book_id], **patch)
        return copy.deepcopy(self.books[book_id])

    def upsert_author(self, first_name, last_name):
        if (first_name, last_name) in self.failing_authors:
            raise PersistenceError(f"cannot store {first_name} {last_name}")
        key = author_identity_key(first_name, last_name)
        if key not in self.authors:
            self.authors[key] = Author(id=self._new_id(), first_name=first_name, last_name=last_name)
        return self.authors[key]

    def upsert_genre(self, name):
        if name in self.failing_genres:
            raise PersistenceError(f"cannot store {name}")
        key = genre_identity_key(name)
        if key not in self.genres:
            self.genres[key] = Genre(id=self._new_id(), name=name, description="Auto-created genre")
        return self.genres[key]


class StubClient:
    """Gateway stand-in serving records from a dict."""

    def __init__(self, volumes=()):
        self.records = {}
        for volume in volumes:
            self.add(volume)
        self.search_results = []
        self.search_error = None
        self.queries = []

    def add(self, volume):
        record = parse_record(volume)
        self.records[record.external_id] = record
        return record

    def fetch_by_id(self, external_id):
        if external_id not in self.records:
            raise NotFound(f"Book not found in Google Books with ID: {external_id}")
        return self.records[external_id]

    def search(self, query):
        self.queries.append(query)
        if self.search_error:
            raise self.search_error
        return list(self.search_results)

    def search_by_title(self, title):
        return self.search(f'intitle:"{title}"')

    def search_by_author(self, author):
        return self.search(f'inauthor:"{author}"')

    def search_by_isbn(self, isbn):
        results = self.search(f"isbn:{isbn}")
        return results[0] if results else None


@pytest.fixture
def store():
    return FakeCatalogStore()


@pytest.fixture
def client():
    return StubClient([CLEAN_CODE_VOLUME, PRAGMATIC_VOLUME])


@pytest.fixture
def clean_code_volume():
    return copy.deepcopy(CLEAN_CODE_VOLUME)


@pytest.fixture
def unavailable():
    return ExternalServiceError("Google Books returned HTTP 503", status_code=503)
