"""Destination endpoint resolver - reads document and table ids from a URL."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, unquote, urlparse

logger = logging.getLogger(__name__)

DOC_MARKERS = ("doc", "d", "docs")
TABLE_MARKERS = ("p", "tables")
TABLE_QUERY_PARAMS = ("tableId", "table")
ORG_MARKER = "o"
API_PREFIX = "api"


@dataclass
class DestinationEndpoint:
    """Where a destination table lives."""
    doc_id: str
    base_url: str
    table_id: Optional[str] = None
    doc_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "doc_id": self.doc_id,
            "table_id": self.table_id,
            "base_url": self.base_url,
            "doc_name": self.doc_name,
        }


def _segment_after(parts: List[str], markers, start: int = 0) -> Optional[int]:
    """Index of the segment that follows the first marker, if there is one."""
    for index in range(start, len(parts) - 1):
        if parts[index] in markers:
            return index + 1
    return None


def _table_from_path(parts: List[str], start: int) -> Optional[str]:
    index = _segment_after(parts, TABLE_MARKERS, start)
    return parts[index] if index is not None else None


def _table_from_query(query: str) -> Optional[str]:
    params = parse_qs(query)
    for name in TABLE_QUERY_PARAMS:
        values = params.get(name)
        if values and values[0]:
            return values[0]
    return None


def parse_destination_url(url: Optional[str]) -> Optional[DestinationEndpoint]:
    """
    Parse a destination URL into document id, table id and base URL.

    Accepted forms:
    - /doc/{docId}, /d/{docId}, /o/{org}/doc/{docId}, /api/docs/{docId}
    - /{docId}/{docName}/p/{page} (the short form the web app shows)
    - a trailing /p/{table} or /tables/{table} segment
    - tableId= or table= in the query, which wins over the path

    Args:
        url: The URL to parse

    Returns:
        DestinationEndpoint, or None when the URL is invalid or names no document
    """
    if not url or not isinstance(url, str):
        return None

    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return None

    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None

    parts = [unquote(part) for part in parsed.path.split("/") if part]
    base_url = f"{parsed.scheme}://{parsed.netloc}"
    doc_name = None

    # Markers only count at the start of the path, after any /o/{org} or /api
    start = 2 if len(parts) > 2 and parts[0] == ORG_MARKER else 0
    if start < len(parts) and parts[start] == API_PREFIX:
        start += 1

    if start < len(parts) - 1 and parts[start] in DOC_MARKERS:
        doc_id = parts[start + 1]
        table_id = _table_from_path(parts, start + 2)
    else:
        # Short form: the first segment is the document
        page_index = _segment_after(parts, ("p",), start + 1)
        if page_index is None:
            return None
        doc_id = parts[start]
        table_id = parts[page_index]
        if page_index - 1 > start + 1:
            doc_name = "/".join(parts[start + 1:page_index - 1])

    if not doc_id:
        return None

    table_id = _table_from_query(parsed.query) or table_id
    endpoint = DestinationEndpoint(
        doc_id=doc_id,
        base_url=base_url,
        table_id=table_id,
        doc_name=doc_name,
    )
    logger.debug(f"Resolved {url} to {endpoint}")
    return endpoint


def is_valid_destination_url(url: Optional[str]) -> bool:
    """True when the URL names a document."""
    return parse_destination_url(url) is not None
