"""Map external catalog records to canonical book drafts."""
from typing import Iterable, List, Optional

from bookshelf.errors import MappingError
from bookshelf.models import CanonicalBookDraft, ExternalBookRecord, IndustryIdentifier

ISBN_PREFERENCE = ("ISBN_13", "ISBN_10")


def select_isbn(identifiers: Iterable[IndustryIdentifier]) -> Optional[str]:
    """Pick ISBN-13 if present, else ISBN-10; first match in catalog order wins."""
    identifiers = list(identifiers)
    for wanted in ISBN_PREFERENCE:
        for ident in identifiers:
            if ident.type == wanted and ident.identifier.strip():
                return ident.identifier.strip()
    return None


def _unique(values: Iterable[str]) -> List[str]:
    # exact-string dedup; normalization happens in the resolver
    seen = set()
    result = []
    for value in values:
        if not value or not value.strip() or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def extract_author_names(record: ExternalBookRecord) -> List[str]:
    return _unique(record.authors)


def extract_genre_names(record: ExternalBookRecord) -> List[str]:
    return _unique(record.categories)


def to_draft(record: ExternalBookRecord) -> CanonicalBookDraft:
    """
    Convert an external record into a canonical draft.

    Raises:
        MappingError: the record has no usable title
    """
    if not record.title or not record.title.strip():
        raise MappingError(f"External record {record.external_id} has no title")

    return CanonicalBookDraft(
        title=record.title,
        isbn=select_isbn(record.identifiers),
        total_pages=record.page_count,
        published_date=record.published_date,
        publisher=record.publisher,
        description=record.description,
        author_names=extract_author_names(record),
        genre_names=extract_genre_names(record),
    )
