#!/usr/bin/env python3
"""Bookshelf Explorer CLI - external catalog search, import and enrichment."""
import argparse
import sys
import json
from tabulate import tabulate
from bookshelf.client import GoogleBooksClient
from bookshelf.database import Database
from bookshelf.errors import (
    BookshelfError,
    DuplicateError,
    ExternalServiceError,
    InvalidInput,
    MappingError,
    NotFound,
)
from bookshelf.models import BookStatus
from bookshelf.service import CatalogService
from bookshelf.config import Config
import logging

logger = logging.getLogger(__name__)

EXIT_CODES = {
    InvalidInput: 2,
    NotFound: 3,
    DuplicateError: 4,
    MappingError: 5,
    ExternalServiceError: 6,
}


def setup_logging(config: Config):
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def setup_database(config: Config) -> Database:
    """Initialize database."""
    db = Database(config.DATABASE_URL)
    db.init_schema()
    return db


def _truncate(text, width: int) -> str:
    text = text or ""
    return text[:width] + "..." if len(text) > width else text


def display_records(records, format_type: str):
    """Display external catalog records in specified format."""
    if format_type == "table":
        headers = ["ID", "Title", "Authors", "Published", "Pages", "Categories"]
        rows = [
            [
                record.external_id,
                _truncate(record.title, 50),
                _truncate(record.authors_str, 30),
                record.published_date or "Unknown",
                record.page_count or "N/A",
                _truncate(record.categories_str, 30)
            ]
            for record in records
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        records_dict = [
            {
                "id": record.external_id,
                "title": record.title,
                "authors": list(record.authors),
                "published_date": record.published_date,
                "publisher": record.publisher,
                "description": record.description,
                "page_count": record.page_count,
                "categories": list(record.categories),
                "identifiers": [{"type": i.type, "identifier": i.identifier} for i in record.identifiers],
                "thumbnail": record.thumbnail,
                "language": record.language
            }
            for record in records
        ]
        print(json.dumps(records_dict, indent=2))

    elif format_type == "compact":
        for i, record in enumerate(records, 1):
            print(f"{i}. [{record.external_id}] {record.title} - {record.authors_str}")


def display_books(books):
    """Display local books as a table."""
    headers = ["ID", "Title", "Authors", "ISBN", "Pages", "Status", "Genres"]
    rows = [
        [
            book.id,
            _truncate(book.title, 50),
            _truncate(book.authors_str, 30),
            book.isbn or "",
            f"{book.current_page}/{book.total_pages or '?'}",
            book.status.value,
            _truncate(book.genres_str, 30)
        ]
        for book in books
    ]
    print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))


def search_external(args, service: CatalogService):
    """Search the external catalog."""
    if args.by == "title":
        records = service.search_by_title(args.query)
    elif args.by == "author":
        records = service.search_by_author(args.query)
    elif args.by == "isbn":
        record = service.search_by_isbn(args.query)
        records = [record] if record else []
    else:
        records = service.search(args.query)

    logger.info(f"Found {len(records)} books")
    display_records(records, args.format)


def search_hybrid(args, service: CatalogService):
    """Search the local library and the external catalog together."""
    result = service.hybrid_search(args.query, include_external=not args.local_only)

    print(f"\nLocal library ({len(result.local)})")
    display_books(result.local)

    if not args.local_only:
        print(f"\nGoogle Books ({len(result.external)})")
        display_records(result.external, "table")
    if result.note:
        print(f"\n⚠️  {result.note}")


def import_book(args, service: CatalogService):
    """Import a volume into the local library."""
    book = service.import_by_external_id(args.external_id, BookStatus[args.status])
    print(f"✅ Imported '{book.title}' (id={book.id})")
    display_books([book])


def enrich_book(args, service: CatalogService):
    """Fill missing fields of a local book from a volume."""
    book = service.enrich(args.book_id, args.external_id)
    display_books([book])


def suggest(args, service: CatalogService):
    """Show creation suggestions for a title."""
    suggestion = service.creation_suggestions(args.title, args.author)

    print(f"\n{suggestion.recommendation.value}: {suggestion.message}")
    if suggestion.exact_match:
        display_books([suggestion.exact_match])
    if suggestion.similar:
        print("\nSimilar books in your library")
        display_books(suggestion.similar)
    if suggestion.external:
        print("\nGoogle Books suggestions")
        display_records(suggestion.external, "compact")


def show_stats(args, db: Database):
    """Show database statistics."""
    stats = db.get_stats()

    print("\n" + "=" * 50)
    print("LIBRARY STATISTICS")
    print("=" * 50)
    print(f"Total books: {stats['total_books']}")
    print(f"Authors: {stats['total_authors']}")
    print(f"Genres: {stats['total_genres']}")
    for status, count in sorted(stats["books_by_status"].items()):
        print(f"  {status}: {count}")
    print("=" * 50 + "\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bookshelf Explorer - Google Books import CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Search Google Books
  %(prog)s search "clean code"
  %(prog)s search 9780132350884 --by isbn

  # Import a volume as wishlist entry
  %(prog)s import hjEFCAAAQBAJ --status WISHLIST

  # Fill missing fields of local book 12
  %(prog)s enrich 12 hjEFCAAAQBAJ

  # Show statistics
  %(prog)s stats
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    search_parser = subparsers.add_parser("search", help="Search Google Books")
    search_parser.add_argument("query", help="Search query")
    search_parser.add_argument("--by", choices=["any", "title", "author", "isbn"], default="any",
                               help="Field to search (default: any)")
    search_parser.add_argument("--format", choices=["table", "json", "compact"], default="table",
                               help="Output format")

    hybrid_parser = subparsers.add_parser("hybrid", help="Search local library and Google Books")
    hybrid_parser.add_argument("query", help="Search query")
    hybrid_parser.add_argument("--local-only", action="store_true", help="Skip the external search")

    import_parser = subparsers.add_parser("import", help="Import a Google Books volume")
    import_parser.add_argument("external_id", help="Google Books volume id")
    import_parser.add_argument("--status", choices=[s.name for s in BookStatus], default="WISHLIST",
                               help="Initial status (default: WISHLIST)")

    enrich_parser = subparsers.add_parser("enrich", help="Fill missing fields of a local book")
    enrich_parser.add_argument("book_id", type=int, help="Local book id")
    enrich_parser.add_argument("external_id", help="Google Books volume id")

    suggest_parser = subparsers.add_parser("suggest", help="Check a title before creating a book")
    suggest_parser.add_argument("title", help="Title to check")
    suggest_parser.add_argument("--author", help="Author name")

    subparsers.add_parser("stats", help="Show library statistics")

    return parser


def main():
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = Config()
    setup_logging(config)

    try:
        if args.command == "search":
            with GoogleBooksClient.from_config(config) as client:
                search_external(args, CatalogService(client, store=None))
            return

        with setup_database(config) as db, GoogleBooksClient.from_config(config) as client:
            service = CatalogService(client, db)

            if args.command == "hybrid":
                search_hybrid(args, service)
            elif args.command == "import":
                import_book(args, service)
            elif args.command == "enrich":
                enrich_book(args, service)
            elif args.command == "suggest":
                suggest(args, service)
            elif args.command == "stats":
                show_stats(args, db)

    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except DuplicateError as e:
        logger.error(f"❌ Already in your library: {e.title}")
        sys.exit(EXIT_CODES[DuplicateError])
    except BookshelfError as e:
        logger.error(f"❌ {e}")
        sys.exit(EXIT_CODES.get(type(e), 1))
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
