"""Tests for author/genre find-or-create."""
import pytest

from bookshelf.errors import PersistenceError
from bookshelf.resolver import EntityResolver


def test_author_is_normalized_and_idempotent(store):
    """Case and whitespace variants resolve to the same author."""
    resolver = EntityResolver(store)

    first = resolver.find_or_create_author("robert  c.", "MARTIN")
    second = resolver.find_or_create_author(" Robert C. ", "martin")

    assert first.id == second.id
    assert (first.first_name, first.last_name) == ("Robert C.", "Martin")
    assert len(store.authors) == 1


def test_single_token_name_is_last_name_only(store):
    resolver = EntityResolver(store)

    author = resolver.resolve_author_name("Homer")

    assert author.first_name == ""
    assert author.last_name == "Homer"
    assert author.full_name == "Unknown Homer"
    assert resolver.find_or_create_author("homer", "").id == author.id


def test_resolve_author_name_splits_on_first_space(store):
    author = EntityResolver(store).resolve_author_name("ursula k. le guin")

    assert (author.first_name, author.last_name) == ("Ursula", "K. Le Guin")


@pytest.mark.parametrize("name", ["", "   ", None])
def test_blank_author_degrades_to_sentinel(store, name):
    """Malformed names never raise; they resolve to Unknown Author."""
    author = EntityResolver(store).resolve_author_name(name)

    assert author.full_name == "Unknown Author"


def test_genre_aliases_resolve_to_same_genre(store):
    """"sci-fi" and "Science Fiction" are the same genre."""
    resolver = EntityResolver(store)

    a = resolver.find_or_create_genre("sci-fi")
    b = resolver.find_or_create_genre("Science Fiction")
    c = resolver.find_or_create_genre("  SCIENCE fiction")

    assert a.id == b.id == c.id
    assert a.name == "Science Fiction"


def test_blank_genre_degrades_to_general(store):
    genre = EntityResolver(store).find_or_create_genre("  ")

    assert genre.name == "General"


def test_persistence_failure_propagates(store):
    store.failing_genres.add("Poetry")

    with pytest.raises(PersistenceError):
        EntityResolver(store).find_or_create_genre("poetry")
