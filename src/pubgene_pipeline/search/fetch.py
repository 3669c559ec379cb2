"""Fetch PubMed identifiers matching a search term via NCBI esearch.

The search runs in two stages: a first request with retmax=1 reads the total
hit count, then one or more requests retrieve that many identifiers. The two
stages are not transactional; records added or removed between them can make
the returned set incomplete. This is accepted rather than corrected, since
E-utilities offers no snapshot semantics for plain esearch.
"""

import warnings
import xml.etree.ElementTree as ET
from typing import Optional
from urllib.parse import quote_plus

import requests
import structlog

from pubgene_pipeline.api_clients.base import CachedAPIClient
from pubgene_pipeline.config.schema import SearchConfig
from pubgene_pipeline.errors import (
    EmptyResultWarning,
    ResponseFormatError,
    TransportError,
)
from pubgene_pipeline.search.models import (
    COUNT_PATH,
    ERROR_PATH,
    ESEARCH_URL,
    ID_LIST_PATH,
    PUBMED_MAX_RECORDS,
    TERM_ESCAPES,
    TERM_SAFE_CHARS,
    TOOL_NAME,
)

logger = structlog.get_logger()


def encode_term(term: str) -> str:
    """Encode a free-text term for the esearch query string.

    Spaces become "+", and the characters '"', "'", "-" and "/" are
    percent-encoded. Other reserved characters are percent-encoded too,
    except PubMed syntax characters such as brackets and parentheses.

    Args:
        term: Operator-supplied search term

    Returns:
        Encoded term, ready to drop into a URL

    Raises:
        ValueError: If the term is empty or whitespace only
    """
    term = term.strip() if term else ""
    if not term:
        raise ValueError("Search term must be non-empty")

    encoded = quote_plus(term, safe=TERM_SAFE_CHARS)
    for char, escape in TERM_ESCAPES.items():
        encoded = encoded.replace(char, escape)
    return encoded


def build_search_url(
    term: str,
    retmax: int,
    retstart: int = 0,
    database: str = "pubmed",
    email: Optional[str] = None,
    api_key: Optional[str] = None,
) -> str:
    """Build an esearch URL. The query string is assembled by hand so the
    term keeps exactly the encoding produced by encode_term."""
    query = f"db={database}&term={encode_term(term)}&retmax={retmax}"
    if retstart:
        query += f"&retstart={retstart}"
    query += f"&tool={TOOL_NAME}"
    if email:
        query += f"&email={quote_plus(email)}"
    if api_key:
        query += f"&api_key={api_key}"
    return f"{ESEARCH_URL}?{query}"


def _parse_root(content: bytes) -> ET.Element:
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise ResponseFormatError(f"esearch returned malformed XML: {e}") from e

    if root.tag != "eSearchResult":
        raise ResponseFormatError(
            f"Unexpected esearch root element <{root.tag}>"
        )

    error = root.find(ERROR_PATH)
    if error is not None:
        raise ResponseFormatError(f"esearch reported an error: {error.text}")

    return root


def parse_result_count(content: bytes) -> int:
    """Read the total hit count from an esearch XML response.

    Raises:
        ResponseFormatError: If the XML is malformed, reports an error,
            or the count is missing, non-numeric or negative
    """
    root = _parse_root(content)
    node = root.find(COUNT_PATH)
    if node is None or node.text is None:
        raise ResponseFormatError("esearch response has no <Count> element")

    try:
        count = int(node.text.strip())
    except ValueError as e:
        raise ResponseFormatError(
            f"esearch <Count> is not an integer: {node.text!r}"
        ) from e

    if count < 0:
        raise ResponseFormatError(f"esearch reported a negative count: {count}")

    return count


def parse_id_list(content: bytes) -> list[str]:
    """Extract identifiers from <IdList>/<Id> elements of an esearch response."""
    root = _parse_root(content)
    return [node.text.strip() for node in root.findall(ID_LIST_PATH) if node.text]


def _esearch(client: CachedAPIClient, url: str) -> bytes:
    try:
        response = client.get(url)
    except requests.RequestException as e:
        raise TransportError(f"esearch request failed: {e}") from e
    return response.content


def fetch_record_ids(
    term: str,
    client: CachedAPIClient,
    search_config: Optional[SearchConfig] = None,
) -> frozenset[str]:
    """Return every PubMed identifier matching a search term.

    Args:
        term: Free-text search term
        client: HTTP client used for the esearch calls
        search_config: Database, page size and NCBI credentials

    Returns:
        Set of record identifiers; empty when the search has no hits, in
        which case an EmptyResultWarning is issued. PubMed only pages out
        the first 9,999 records, so larger hit counts are truncated with an
        esearch_truncated warning.

    Raises:
        ValueError: If the term is empty
        TransportError: On network failure or non-2xx status after retries
        ResponseFormatError: If a response cannot be parsed
    """
    if search_config is None:
        search_config = SearchConfig()

    url_kwargs = {
        "database": search_config.database,
        "email": search_config.email,
        "api_key": search_config.api_key,
    }

    count_url = build_search_url(term, retmax=1, **url_kwargs)
    count = parse_result_count(_esearch(client, count_url))

    logger.info("esearch_count", term=term, count=count)

    if count == 0:
        warnings.warn(
            f"Search term {term!r} matched no records",
            EmptyResultWarning,
            stacklevel=2,
        )
        return frozenset()

    retrievable = count
    if search_config.database == "pubmed" and count > PUBMED_MAX_RECORDS:
        retrievable = PUBMED_MAX_RECORDS
        logger.warning(
            "esearch_truncated",
            term=term,
            reported=count,
            retrievable=retrievable,
        )

    record_ids: set[str] = set()
    page_size = search_config.page_size

    for retstart in range(0, retrievable, page_size):
        retmax = min(page_size, retrievable - retstart)
        page_url = build_search_url(
            term, retmax=retmax, retstart=retstart, **url_kwargs
        )
        page_ids = parse_id_list(_esearch(client, page_url))
        record_ids.update(page_ids)

        logger.debug(
            "esearch_page",
            retstart=retstart,
            retmax=retmax,
            returned=len(page_ids),
        )

    if len(record_ids) != retrievable:
        logger.warning(
            "esearch_count_mismatch",
            reported=retrievable,
            retrieved=len(record_ids),
        )

    logger.info("esearch_complete", term=term, record_count=len(record_ids))

    return frozenset(record_ids)
