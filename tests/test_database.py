"""Tests for the PostgreSQL store (connection pool mocked)."""
from unittest.mock import MagicMock

import psycopg2
import psycopg2.pool
import pytest
from psycopg2 import errors

from bookshelf.database import Database
from bookshelf.errors import DuplicateError, InvalidInput, NotFound, PersistenceError
from bookshelf.models import BookStatus, CanonicalBookDraft
from bookshelf.normalize import genre_identity_key

CLEAN_CODE_ROW = (7, "Clean Code", "9780132350884", 431, 0, "WISHLIST", "2008-08-01", None, None)


@pytest.fixture
def cursor():
    return MagicMock()


@pytest.fixture
def db(monkeypatch, cursor):
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    pool = MagicMock()
    pool.getconn.return_value = conn
    monkeypatch.setattr(psycopg2.pool, "SimpleConnectionPool", MagicMock(return_value=pool))
    return Database("postgresql://localhost/bookshelf")


def test_pool_failure_is_persistence_error(monkeypatch):
    monkeypatch.setattr(
        psycopg2.pool, "SimpleConnectionPool",
        MagicMock(side_effect=psycopg2.OperationalError("connection refused"))
    )

    with pytest.raises(PersistenceError):
        Database("postgresql://localhost/bookshelf")


def test_get_book_by_id_loads_relations(db, cursor):
    cursor.fetchall.side_effect = [
        [CLEAN_CODE_ROW],
        [(1, "Robert", "C. Martin", None, None, None)],
        [(2, "Computers", "Auto-created genre")],
    ]

    book = db.get_book_by_id(7)

    assert book.title == "Clean Code"
    assert book.status == BookStatus.WISHLIST
    assert book.authors_str == "Robert C. Martin"
    assert book.genres_str == "Computers"


def test_get_book_by_id_missing(db, cursor):
    cursor.fetchall.return_value = []

    with pytest.raises(NotFound):
        db.get_book_by_id(999)


def test_create_book_unique_violation_is_duplicate(db, cursor):
    """A concurrent insert of the same ISBN surfaces as DuplicateError."""
    cursor.execute.side_effect = [errors.UniqueViolation("duplicate key"), None, None, None]
    cursor.fetchall.side_effect = [[CLEAN_CODE_ROW], [], []]
    draft = CanonicalBookDraft(title="Clean Code (2nd printing)", isbn="9780132350884")

    with pytest.raises(DuplicateError) as exc_info:
        db.create_book(draft, [1], [2])

    assert exc_info.value.title == "Clean Code"
    db.connection_pool.getconn.return_value.rollback.assert_called()


def test_create_book_requires_title(db):
    with pytest.raises(InvalidInput):
        db.create_book(CanonicalBookDraft(title=" "), [], [])
    db.connection_pool.getconn.assert_not_called()


def test_update_book_rejects_unknown_fields(db):
    with pytest.raises(InvalidInput):
        db.update_book(7, {"current_page": 50})
    db.connection_pool.getconn.assert_not_called()


def test_update_book_missing_row(db, cursor):
    cursor.rowcount = 0

    with pytest.raises(NotFound):
        db.update_book(999, {"description": "x"})


def test_upsert_author_uses_identity_keys(db, cursor):
    cursor.fetchone.return_value = (3, "Robert C.", "Martin", None, None, None)

    author = db.upsert_author("Robert C.", "Martin")

    assert author.id == 3
    args, _ = cursor.execute.call_args
    assert "ON CONFLICT (first_name_key, last_name_key)" in args[0]
    assert args[1] == ("Robert C.", "Martin", "robert c.", "martin")


def test_driver_error_is_persistence_error(db, cursor):
    cursor.execute.side_effect = psycopg2.OperationalError("server closed the connection")

    with pytest.raises(PersistenceError):
        db.upsert_genre("Poetry")


def test_title_search_escapes_like_wildcards(db, cursor):
    """Backslash, % and _ in a title are matched literally."""
    cursor.fetchall.return_value = []

    assert db.search_local_by_title("  100%_pure\\ ") == []

    sql, params = cursor.execute.call_args[0]
    assert params == ("%100\\%\\_pure\\\\%", "100%_pure\\")
    assert sql.count("ESCAPE '\\'") == 2
    assert "replace(" in sql


def test_upsert_genre_uses_identity_key(db, cursor):
    cursor.fetchone.return_value = (4, "Science Fiction", "Auto-created genre")

    genre = db.upsert_genre("Science Fiction")

    assert genre.name == "Science Fiction"
    assert cursor.execute.call_args[0][1] == ("Science Fiction", genre_identity_key("Science Fiction"))
