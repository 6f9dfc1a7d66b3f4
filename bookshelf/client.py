"""HTTP client for the Google Books catalog."""
import logging
from typing import Optional, Dict, Any, List
from urllib.parse import quote

import requests

from bookshelf.errors import ExternalServiceError, InvalidInput, NotFound
from bookshelf.models import ExternalBookRecord
from bookshelf.normalize import clean_isbn
from bookshelf.parse import parse_record, parse_records_response

logger = logging.getLogger(__name__)

MAX_RESULTS_LIMIT = 40


def _require(value: Optional[str], what: str) -> str:
    if value is None or not value.strip():
        raise InvalidInput(f"{what} cannot be empty")
    return value.strip()


class GoogleBooksClient:
    """
    Search gateway for the Google Books API.

    Each call is a single GET bounded by the configured timeout. Failures are
    not retried.
    """

    BASE_URL = "https://www.googleapis.com/books/v1/volumes"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 5,
        max_results: int = 10,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize Google Books API client.

        Args:
            api_key: Optional API key (increases rate limits)
            timeout: Request timeout in seconds
            max_results: Result-count bound sent with every search (1-40)
            base_url: Volumes endpoint override
            session: Pre-built session (mostly for tests)
        """
        self.api_key = api_key
        self.timeout = timeout
        self.max_results = max(1, min(max_results, MAX_RESULTS_LIMIT))
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

        # Create session for connection pooling
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> "GoogleBooksClient":
        return cls(
            api_key=config.GOOGLE_BOOKS_API_KEY,
            timeout=config.GOOGLE_BOOKS_TIMEOUT,
            max_results=config.GOOGLE_BOOKS_MAX_RESULTS,
            base_url=config.GOOGLE_BOOKS_API_URL,
        )

    def search(self, query: str) -> List[ExternalBookRecord]:
        """
        Search for books by free text.

        Args:
            query: Search query string

        Returns:
            Matching records, empty when the catalog reports zero matches
        """
        query = _require(query, "Search query")

        params: Dict[str, Any] = {"q": query, "maxResults": self.max_results}
        if self.api_key:
            params["key"] = self.api_key

        logger.info(f"Searching Google Books: {query}")
        data = self._get(self.base_url, params)
        records = parse_records_response(data)

        if records:
            logger.info(f"Found {len(records)} books for: {query}")
        else:
            logger.info(f"No results for: {query}")
        return records

    def search_by_title(self, title: str) -> List[ExternalBookRecord]:
        title = _require(title, "Title")
        return self.search(f'intitle:"{title}"')

    def search_by_author(self, author: str) -> List[ExternalBookRecord]:
        author = _require(author, "Author name")
        return self.search(f'inauthor:"{author}"')

    def search_by_isbn(self, isbn: str) -> Optional[ExternalBookRecord]:
        """
        Look up a single book by ISBN (hyphens and spaces are ignored).

        Returns:
            First matching record, or None
        """
        isbn = clean_isbn(_require(isbn, "ISBN"))
        if not isbn:
            raise InvalidInput("ISBN cannot be empty")

        results = self.search(f"isbn:{isbn}")
        if not results:
            logger.info(f"No book found with ISBN: {isbn}")
            return None
        return results[0]

    def fetch_by_id(self, external_id: str) -> ExternalBookRecord:
        """
        Get a single volume by its Google Books id.

        Raises:
            InvalidInput: blank id
            NotFound: the catalog has no volume with this id
            ExternalServiceError: transport failure or unexpected status
        """
        external_id = _require(external_id, "Book ID")

        params: Dict[str, Any] = {}
        if self.api_key:
            params["key"] = self.api_key

        url = f"{self.base_url}/{quote(external_id, safe='')}"
        logger.info(f"Fetching Google Books volume: {external_id}")

        try:
            data = self._get(url, params)
        except ExternalServiceError as e:
            # 400 also covers a rejected API key, so only 404 means "no such volume"
            if e.status_code == 404:
                raise NotFound(f"Book not found in Google Books with ID: {external_id}") from e
            raise

        record = parse_record(data)
        if record is None:
            raise NotFound(f"Book not found in Google Books with ID: {external_id}")

        logger.info(f"Fetched volume: {record.title}")
        return record

    def _get(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Make a single GET request and decode its JSON body.

        Raises:
            ExternalServiceError: on timeout, connection error, non-2xx or bad JSON
        """
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.error(f"Google Books request timed out after {self.timeout}s")
            raise ExternalServiceError(f"Google Books request timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Error calling Google Books API: {e}")
            raise ExternalServiceError(f"Error calling Google Books API: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.error(f"Google Books error ({response.status_code}): {response.text[:200]}")
            raise ExternalServiceError(
                f"Google Books returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError("Google Books returned a non-JSON body",
                                       status_code=response.status_code) from e

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
