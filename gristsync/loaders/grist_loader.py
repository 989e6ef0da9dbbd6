"""Grist REST destination."""

import logging
from typing import Any, Dict, List, Optional

import requests

from .base import BaseDestination
from ..errors import ConfigurationError, TransportError
from ..models.record import AccessCheck, CallResult, DestinationColumn, DestinationRecord
from ..services.endpoint_resolver import parse_destination_url

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://docs.getgrist.com"


class GristClient(BaseDestination):
    """
    Destination backed by one table of a Grist document.

    Supports:
    - Reading records and columns
    - Batch add / update of records
    - Batch creation of columns
    - Public documents (no token) and private ones (Bearer token)
    """

    def __init__(
        self,
        doc_id: str,
        table_id: str,
        api_url: Optional[str] = None,
        api_token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None
    ):
        """
        Initialize the client.

        Args:
            doc_id: Document identifier
            table_id: Table identifier inside the document
            api_url: Base URL of the Grist server
            api_token: API token; omitted for public documents
            session: Custom requests session
            timeout: Per-request timeout in seconds, None to wait indefinitely
        """
        if not doc_id:
            raise ConfigurationError("A document id is required", field="doc_id")
        if not table_id:
            raise ConfigurationError("A table id is required", field="table_id")

        self.doc_id = doc_id
        self.table_id = table_id
        self.api_url = (api_url or DEFAULT_API_URL).rstrip("/")
        self.api_token = api_token or None
        self.timeout = timeout
        self._session = session or requests.Session()
        self._configure_session()

    @classmethod
    def from_url(
        cls,
        url: str,
        api_token: Optional[str] = None,
        table_id: Optional[str] = None,
        **kwargs
    ) -> "GristClient":
        """
        Build a client from a document URL.

        Raises:
            ConfigurationError: If the URL names no document or no table
        """
        endpoint = parse_destination_url(url)
        if endpoint is None:
            raise ConfigurationError(f"Not a document URL: {url}", field="url")

        table = table_id or endpoint.table_id
        if not table:
            raise ConfigurationError(f"No table id in URL: {url}", field="table_id")

        return cls(
            doc_id=endpoint.doc_id,
            table_id=table,
            api_url=endpoint.base_url,
            api_token=api_token,
            **kwargs,
        )

    def _configure_session(self) -> None:
        """Set JSON and authentication headers on the session."""
        self._session.headers["Content-Type"] = "application/json"
        if self.api_token:
            self._session.headers["Authorization"] = f"Bearer {self.api_token}"

    @property
    def table_url(self) -> str:
        return f"{self.api_url}/api/docs/{self.doc_id}/tables/{self.table_id}"

    @property
    def description(self) -> str:
        return f"Grist table {self.table_id} in document {self.doc_id}"

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None
    ) -> CallResult:
        """Send one request and turn the outcome into a CallResult."""
        url = f"{self.table_url}/{endpoint}"
        logger.debug(f"{method} {url}")

        try:
            response = self._session.request(
                method,
                url,
                params=params,
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            return CallResult.fail(TransportError.from_exception(e))

        if not response.ok:
            error = TransportError.from_response(response)
            logger.error(f"{method} {url} failed: {error.message}")
            return CallResult.fail(error)

        if not response.content:
            return CallResult.ok({})

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"{method} {url} returned invalid JSON: {e}")
            return CallResult.fail(
                TransportError(f"Invalid JSON response: {e}", body=response.text, cause=e)
            )

        if data is None:
            return CallResult.ok({})
        if not isinstance(data, dict):
            logger.error(f"{method} {url} returned {type(data).__name__}, expected an object")
            return CallResult.fail(
                TransportError(
                    f"Unexpected response: expected a JSON object, got {type(data).__name__}",
                    body=response.text[:500],
                )
            )
        return CallResult.ok(data)

    def fetch_records(self, limit: Optional[int] = None) -> CallResult:
        """Fetch the table rows as DestinationRecord objects."""
        params = {"limit": limit} if limit else None
        result = self._request("GET", "records", params=params)
        if not result.success:
            return result

        records = [DestinationRecord.from_dict(item) for item in result.data.get("records", [])]
        logger.info(f"Fetched {len(records)} records from {self.table_id}")
        return CallResult.ok(records)

    def fetch_columns(self) -> CallResult:
        """Fetch the table columns as DestinationColumn objects."""
        result = self._request("GET", "columns")
        if not result.success:
            return result

        columns = [DestinationColumn.from_api(item) for item in result.data.get("columns", [])]
        return CallResult.ok(columns)

    def add_records(self, rows: List[Dict[str, Any]]) -> CallResult:
        """Append rows; the result data is the list of new row ids."""
        if not rows:
            raise ConfigurationError("No records to add", field="records")

        payload = {"records": [{"fields": row} for row in rows]}
        result = self._request("POST", "records", payload=payload)
        if not result.success:
            return result

        ids = [item.get("id") for item in result.data.get("records", [])]
        logger.info(f"Added {len(rows)} records to {self.table_id}")
        return CallResult.ok(ids)

    def add_columns(self, columns: List[DestinationColumn]) -> CallResult:
        """Create columns; the result data is the list of created column ids."""
        if not columns:
            raise ConfigurationError("No columns to add", field="columns")

        payload = {"columns": [column.to_api() for column in columns]}
        result = self._request("POST", "columns", payload=payload)
        if not result.success:
            return result

        created = [item.get("id") for item in result.data.get("columns", [])]
        logger.info(f"Created {len(columns)} columns in {self.table_id}")
        return CallResult.ok(created or [column.id for column in columns])

    def update_records(self, updates: List[Dict[str, Any]]) -> CallResult:
        """Patch rows given as {"id": ..., "fields": {...}} items."""
        if not updates:
            raise ConfigurationError("No records to update", field="records")

        payload = {
            "records": [{"id": item["id"], "fields": item["fields"]} for item in updates]
        }
        result = self._request("PATCH", "records", payload=payload)
        if not result.success:
            return result

        logger.info(f"Updated {len(updates)} records in {self.table_id}")
        return CallResult.ok([item["id"] for item in updates])

    def check_access(self) -> AccessCheck:
        """
        Probe the document and explain what access we have.

        Returns:
            AccessCheck; needs_auth is set when the document is private
        """
        try:
            response = self._session.get(
                f"{self.table_url}/records",
                params={"limit": 1},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"Access check failed: {e}")
            return AccessCheck(valid=False, message=f"Network error: {e}", needs_auth=False)

        if response.status_code == 401:
            return AccessCheck(
                valid=False,
                message="This document is private, an API token is required",
                needs_auth=True,
            )
        if response.status_code == 403:
            return AccessCheck(
                valid=False,
                message="Invalid API token or insufficient permissions",
                needs_auth=True,
            )
        if response.ok:
            if self.api_token:
                return AccessCheck(valid=True, message="Authenticated access")
            return AccessCheck(valid=True, message="Public document, no token needed")

        return AccessCheck(valid=False, message=f"HTTP {response.status_code}")
