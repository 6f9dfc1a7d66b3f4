"""PostgreSQL catalog store for books, authors and genres."""
import psycopg2
from psycopg2 import errors, pool
from typing import Optional, List, Dict, Any, Iterable
import logging

from bookshelf.errors import DuplicateError, InvalidInput, NotFound, PersistenceError
from bookshelf.models import Author, Book, BookStatus, CanonicalBookDraft, Genre
from bookshelf.normalize import author_identity_key, genre_identity_key
from bookshelf.store import PATCHABLE_FIELDS

logger = logging.getLogger(__name__)

BOOK_COLUMNS = """
    id, title, isbn, total_pages, current_page, status,
    published_date, publisher, description
"""

# Stored titles used as LIKE patterns need the same escaping as escape_like()
ESCAPED_TITLE_SQL = r"replace(replace(replace(title, '\', '\\'), '%%', '\%%'), '_', '\_')"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so `value` matches literally (escape char is backslash)."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class Database:
    """PostgreSQL database with connection pooling."""

    def __init__(self, connection_string: str, min_conn: int = 1, max_conn: int = 10):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
        """
        try:
            self.connection_pool = psycopg2.pool.SimpleConnectionPool(
                min_conn,
                max_conn,
                connection_string
            )
        except psycopg2.Error as e:
            raise PersistenceError(f"Failed to create connection pool: {e}") from e

        logger.info("Database connection pool created successfully")

    def init_schema(self):
        """Create database tables if they don't exist."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS books (
                        id SERIAL PRIMARY KEY,
                        title TEXT NOT NULL,
                        isbn VARCHAR(20) UNIQUE,
                        total_pages INTEGER,
                        current_page INTEGER NOT NULL DEFAULT 0,
                        status VARCHAR(20) NOT NULL DEFAULT 'WISHLIST',
                        published_date VARCHAR(50),
                        publisher VARCHAR(200),
                        description TEXT,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                # Identity keys are the lowercased normalized names
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS authors (
                        id SERIAL PRIMARY KEY,
                        first_name VARCHAR(100) NOT NULL,
                        last_name VARCHAR(100) NOT NULL,
                        first_name_key VARCHAR(100) NOT NULL,
                        last_name_key VARCHAR(100) NOT NULL,
                        biography TEXT,
                        nationality VARCHAR(100),
                        birth_date DATE,
                        UNIQUE (first_name_key, last_name_key)
                    )
                """)

                cur.execute("""
                    CREATE TABLE IF NOT EXISTS genres (
                        id SERIAL PRIMARY KEY,
                        name VARCHAR(100) NOT NULL,
                        name_key VARCHAR(100) NOT NULL UNIQUE,
                        description TEXT
                    )
                """)

                cur.execute("""
                    CREATE TABLE IF NOT EXISTS book_authors (
                        book_id INTEGER REFERENCES books(id) ON DELETE CASCADE,
                        author_id INTEGER REFERENCES authors(id),
                        PRIMARY KEY (book_id, author_id)
                    )
                """)

                cur.execute("""
                    CREATE TABLE IF NOT EXISTS book_genres (
                        book_id INTEGER REFERENCES books(id) ON DELETE CASCADE,
                        genre_id INTEGER REFERENCES genres(id),
                        PRIMARY KEY (book_id, genre_id)
                    )
                """)

                cur.execute("""
                    CREATE INDEX IF NOT EXISTS idx_books_title_lower
                    ON books (lower(title))
                """)

                conn.commit()
                logger.info("Database schema initialized successfully")
        except psycopg2.Error as e:
            conn.rollback()
            raise PersistenceError(f"Failed to initialize schema: {e}") from e
        finally:
            self.connection_pool.putconn(conn)

    # Books

    def exists_by_isbn(self, isbn: str) -> bool:
        if not isbn or not isbn.strip():
            return False
        return self.find_book_by_isbn(isbn) is not None

    def find_book_by_isbn(self, isbn: str) -> Optional[Book]:
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                books = self._select_books(cur, "WHERE isbn = %s", (isbn.strip(),))
                return books[0] if books else None
        except psycopg2.Error as e:
            conn.rollback()
            raise PersistenceError(f"Failed to look up ISBN {isbn}: {e}") from e
        finally:
            self.connection_pool.putconn(conn)

    def search_local_by_title(self, title: str) -> List[Book]:
        """
        Books whose title contains `title`, or is contained in it (case-insensitive).
        """
        if not title or not title.strip():
            return []
        title = title.strip()

        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                return self._select_books(
                    cur,
                    f"WHERE title ILIKE %s ESCAPE '\\' "
                    f"OR %s ILIKE '%%' || {ESCAPED_TITLE_SQL} || '%%' ESCAPE '\\' "
                    f"ORDER BY title",
                    (f"%{escape_like(title)}%", title),
                )
        except psycopg2.Error as e:
            conn.rollback()
            raise PersistenceError(f"Failed to search books: {e}") from e
        finally:
            self.connection_pool.putconn(conn)

    def get_book_by_id(self, book_id: int) -> Book:
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                books = self._select_books(cur, "WHERE id = %s", (book_id,))
        except psycopg2.Error as e:
            conn.rollback()
            raise PersistenceError(f"Failed to load book {book_id}: {e}") from e
        finally:
            self.connection_pool.putconn(conn)

        if not books:
            raise NotFound(f"Book not found with id: {book_id}")
        return books[0]

    def create_book(
        self,
        draft: CanonicalBookDraft,
        author_ids: Iterable[int],
        genre_ids: Iterable[int],
        status: BookStatus = BookStatus.WISHLIST
    ) -> Book:
        """
        Insert a book and its author/genre links in one transaction.

        Raises:
            DuplicateError: another book already holds the draft's ISBN
        """
        if not draft.title or not draft.title.strip():
            raise InvalidInput("Book title is required")
        isbn = draft.isbn.strip() if draft.isbn and draft.isbn.strip() else None

        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                try:
                    cur.execute("""
                        INSERT INTO books (
                            title, isbn, total_pages, current_page, status,
                            published_date, publisher, description
                        ) VALUES (%s, %s, %s, 0, %s, %s, %s, %s)
                        RETURNING id
                    """, (
                        draft.title, isbn, draft.total_pages, status.value,
                        draft.published_date, draft.publisher, draft.description
                    ))
                    book_id = cur.fetchone()[0]

                    for author_id in dict.fromkeys(author_ids):
                        cur.execute(
                            "INSERT INTO book_authors (book_id, author_id) VALUES (%s, %s)",
                            (book_id, author_id),
                        )
                    for genre_id in dict.fromkeys(genre_ids):
                        cur.execute(
                            "INSERT INTO book_genres (book_id, genre_id) VALUES (%s, %s)",
                            (book_id, genre_id),
                        )
                    conn.commit()
                except errors.UniqueViolation as e:
                    conn.rollback()
                    existing = self._select_books(cur, "WHERE isbn = %s", (isbn,))
                    title = existing[0].title if existing else draft.title
                    raise DuplicateError(title, isbn) from e

                logger.info(f"Stored book '{draft.title}' with id {book_id}")
                return self._select_books(cur, "WHERE id = %s", (book_id,))[0]
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Failed to insert book: {e}")
            raise PersistenceError(f"Failed to insert book: {e}") from e
        finally:
            self.connection_pool.putconn(conn)

    def update_book(self, book_id: int, patch: Dict[str, Any]) -> Book:
        """
        Update the given columns of a book.

        Raises:
            InvalidInput: patch names a column that cannot be patched
            NotFound: no book with this id
            DuplicateError: the new ISBN belongs to another book
        """
        unknown = set(patch) - set(PATCHABLE_FIELDS)
        if unknown:
            raise InvalidInput(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if not patch:
            return self.get_book_by_id(book_id)

        columns = [name for name in PATCHABLE_FIELDS if name in patch]
        set_clause = ", ".join(f"{name} = %s" for name in columns)
        params = [patch[name] for name in columns] + [book_id]

        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                try:
                    cur.execute(
                        f"UPDATE books SET {set_clause}, updated_at = CURRENT_TIMESTAMP WHERE id = %s",
                        params,
                    )
                except errors.UniqueViolation as e:
                    conn.rollback()
                    isbn = patch.get("isbn")
                    existing = self._select_books(cur, "WHERE isbn = %s", (isbn,))
                    title = existing[0].title if existing else patch.get("title", "")
                    raise DuplicateError(title, isbn) from e
                updated = cur.rowcount
                conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Failed to update book {book_id}: {e}")
            raise PersistenceError(f"Failed to update book {book_id}: {e}") from e
        finally:
            self.connection_pool.putconn(conn)

        if not updated:
            raise NotFound(f"Book not found with id: {book_id}")
        return self.get_book_by_id(book_id)

    # Authors and genres

    def upsert_author(self, first_name: str, last_name: str) -> Author:
        """Return the author with this identity, creating it if needed."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                # DO UPDATE (not DO NOTHING) so RETURNING yields the existing row
                cur.execute("""
                    INSERT INTO authors (first_name, last_name, first_name_key, last_name_key)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (first_name_key, last_name_key) DO UPDATE
                        SET first_name_key = EXCLUDED.first_name_key
                    RETURNING id, first_name, last_name, biography, nationality, birth_date
                """, (first_name, last_name, *author_identity_key(first_name, last_name)))
                row = cur.fetchone()
                conn.commit()
                return Author(*row)
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Failed to upsert author {first_name} {last_name}: {e}")
            raise PersistenceError(f"Failed to upsert author: {e}") from e
        finally:
            self.connection_pool.putconn(conn)

    def upsert_genre(self, name: str) -> Genre:
        """Return the genre with this name (case-insensitive), creating it if needed."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO genres (name, name_key, description)
                    VALUES (%s, %s, 'Auto-created genre')
                    ON CONFLICT (name_key) DO UPDATE
                        SET name_key = EXCLUDED.name_key
                    RETURNING id, name, description
                """, (name, genre_identity_key(name)))
                row = cur.fetchone()
                conn.commit()
                return Genre(*row)
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Failed to upsert genre {name}: {e}")
            raise PersistenceError(f"Failed to upsert genre: {e}") from e
        finally:
            self.connection_pool.putconn(conn)

    def get_stats(self) -> Dict[str, Any]:
        """Get database statistics."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) FROM books")
                book_count = cur.fetchone()[0]

                cur.execute("SELECT COUNT(*) FROM authors")
                author_count = cur.fetchone()[0]

                cur.execute("SELECT COUNT(*) FROM genres")
                genre_count = cur.fetchone()[0]

                cur.execute("SELECT status, COUNT(*) FROM books GROUP BY status")
                by_status = dict(cur.fetchall())

                return {
                    "total_books": book_count,
                    "total_authors": author_count,
                    "total_genres": genre_count,
                    "books_by_status": by_status
                }
        finally:
            self.connection_pool.putconn(conn)

    def _select_books(self, cur, where: str, params: tuple) -> List[Book]:
        cur.execute(f"SELECT {BOOK_COLUMNS} FROM books {where}", params)
        rows = cur.fetchall()

        books = []
        for row in rows:
            book = Book(
                id=row[0],
                title=row[1],
                isbn=row[2],
                total_pages=row[3],
                current_page=row[4],
                status=BookStatus(row[5]),
                published_date=row[6],
                publisher=row[7],
                description=row[8],
            )

            cur.execute("""
                SELECT a.id, a.first_name, a.last_name, a.biography, a.nationality, a.birth_date
                FROM authors a JOIN book_authors ba ON ba.author_id = a.id
                WHERE ba.book_id = %s ORDER BY a.id
            """, (book.id,))
            book.authors = [Author(*r) for r in cur.fetchall()]

            cur.execute("""
                SELECT g.id, g.name, g.description
                FROM genres g JOIN book_genres bg ON bg.genre_id = g.id
                WHERE bg.book_id = %s ORDER BY g.id
            """, (book.id,))
            book.genres = [Genre(*r) for r in cur.fetchall()]

            books.append(book)

        return books

    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
