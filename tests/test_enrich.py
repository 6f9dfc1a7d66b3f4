"""Tests for enriching local books from the external catalog."""
import pytest

from bookshelf.enrich import EnrichmentEngine, compute_patch
from bookshelf.errors import NotFound
from bookshelf.models import Book, CanonicalBookDraft


def test_enrich_fills_missing_fields_only(client, store):
    """Missing description is filled; the existing ISBN is kept."""
    local = store.add_book("Clean Code", isbn="9780132350884", description=None)

    book = EnrichmentEngine(client, store).enrich(local.id, "hjEFCAAAQBAJ")

    assert book.description == "Even bad code can function."
    assert book.isbn == "9780132350884"
    assert book.total_pages == 431
    assert book.publisher == "Pearson Education"
    assert store.update_calls == 1


def test_enrich_never_overwrites(client, store):
    local = store.add_book(
        "My Clean Code", isbn="1111111111", description="Mine",
        total_pages=12, publisher="Self"
    )

    book = EnrichmentEngine(client, store).enrich(local.id, "hjEFCAAAQBAJ")

    assert (book.title, book.isbn, book.description, book.total_pages, book.publisher) == (
        "My Clean Code", "1111111111", "Mine", 12, "Self"
    )
    assert store.update_calls == 0


def test_zero_pages_count_as_missing(client, store):
    local = store.add_book("Clean Code", total_pages=0, description="x", publisher="y", isbn="z")

    book = EnrichmentEngine(client, store).enrich(local.id, "hjEFCAAAQBAJ")

    assert book.total_pages == 431


def test_missing_book_is_not_found(client, store):
    with pytest.raises(NotFound):
        EnrichmentEngine(client, store).enrich(999, "hjEFCAAAQBAJ")
    assert store.update_calls == 0


def test_missing_volume_is_not_found(client, store):
    local = store.add_book("Clean Code")

    with pytest.raises(NotFound):
        EnrichmentEngine(client, store).enrich(local.id, "nonexistent-id")


def test_compute_patch_skips_blank_and_non_positive_values():
    book = Book(id=1, title="T", description="  ", total_pages=None)
    draft = CanonicalBookDraft(title="T", description="   ", total_pages=-3, publisher="P")

    assert compute_patch(book, draft) == {"publisher": "P"}
