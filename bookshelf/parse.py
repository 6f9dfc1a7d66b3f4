"""Parse Google Books API responses into external records."""
import logging
from typing import Dict, Any, List, Optional

from bookshelf.models import ExternalBookRecord, IndustryIdentifier

logger = logging.getLogger(__name__)


def _string_list(value: Any) -> tuple:
    if not isinstance(value, list):
        return ()
    return tuple(v for v in value if isinstance(v, str))


def _page_count(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def parse_record(item: Dict[str, Any]) -> Optional[ExternalBookRecord]:
    """
    Parse a single volume from the Google Books API.

    Args:
        item: Single item from a volumes response, or a volume fetched by id

    Returns:
        ExternalBookRecord or None if the item carries no id
    """
    if not isinstance(item, dict):
        return None

    record_id = item.get("id") or ""
    if not record_id:
        return None

    volume_info = item.get("volumeInfo") or {}

    identifiers = tuple(
        IndustryIdentifier(type=str(ident.get("type", "")), identifier=str(ident.get("identifier", "")))
        for ident in volume_info.get("industryIdentifiers") or []
        if isinstance(ident, dict) and ident.get("identifier")
    )

    image_links = volume_info.get("imageLinks") or {}
    links = tuple(
        (size, url) for size, url in image_links.items()
        if isinstance(url, str) and url
    )

    return ExternalBookRecord(
        external_id=record_id,
        title=volume_info.get("title") or "",
        authors=_string_list(volume_info.get("authors")),
        description=volume_info.get("description"),
        page_count=_page_count(volume_info.get("pageCount")),
        published_date=volume_info.get("publishedDate"),
        publisher=volume_info.get("publisher"),
        categories=_string_list(volume_info.get("categories")),
        identifiers=identifiers,
        image_links=links,
        language=volume_info.get("language"),
    )


def parse_records_response(response_json: Dict[str, Any]) -> List[ExternalBookRecord]:
    """
    Parse a full volumes search response.

    Args:
        response_json: Complete API response JSON

    Returns:
        List of records (empty if no items found)
    """
    if not response_json or response_json.get("totalItems") == 0:
        return []

    records = []
    for item in response_json.get("items") or []:
        record = parse_record(item)
        if record:
            records.append(record)
        else:
            logger.warning("Skipping volume without id")

    return records


def deduplicate_records(records: List[ExternalBookRecord]) -> List[ExternalBookRecord]:
    """
    Remove duplicate records by external id.

    Args:
        records: List of records

    Returns:
        Deduplicated list, first occurrence kept
    """
    seen_ids = set()
    unique_records = []

    for record in records:
        if record.external_id not in seen_ids:
            seen_ids.add(record.external_id)
            unique_records.append(record)

    return unique_records
