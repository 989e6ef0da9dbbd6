"""REST API source adapter."""

import logging
import os
import re
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .base import BaseExtractor, unwrap_records
from ..errors import ConfigurationError, TransportError

logger = logging.getLogger(__name__)

ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(value: str) -> str:
    """Replace ${NAME} with the environment variable; unset ones become ""."""
    def lookup(match):
        name = match.group(1)
        if name not in os.environ:
            logger.warning(f"Environment variable {name} is not set")
        return os.environ.get(name, "")

    return ENV_PATTERN.sub(lookup, value)


class RestExtractor(BaseExtractor):
    """
    Extractor for REST API data sources.

    Supports:
    - Any JSON endpoint returning a list or a wrapped list
    - Custom headers with ${ENV} expansion
    - A dotted data path to the records
    - Retry of transient HTTP failures on the session
    """

    def __init__(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        data_path: Optional[str] = None,
        retry_attempts: int = 0,
        retry_delay: float = 1.0,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None
    ):
        """
        Initialize the REST extractor.

        Args:
            url: Endpoint returning the records
            method: HTTP method
            headers: Extra request headers, ${ENV} references allowed
            data_path: Dotted path to the record list in the response
            retry_attempts: Retries on 429/5xx and connection errors
            retry_delay: Backoff factor between retries, in seconds
            session: Custom requests session
            timeout: Request timeout in seconds
        """
        super().__init__()
        self.url = url
        self.method = (method or "GET").upper()
        self.headers = headers or {}
        self.data_path = data_path
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session with retry logic."""
        session = requests.Session()

        retries = Retry(
            total=self.retry_attempts,
            backoff_factor=self.retry_delay,
            status_forcelist=[429, 500, 502, 503, 504],
            raise_on_status=False,
        )

        adapter = HTTPAdapter(max_retries=retries)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        return session

    @property
    def description(self) -> str:
        return f"{self.method} {self.url}"

    def _request_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        headers.update({name: expand_env_vars(value) for name, value in self.headers.items()})
        return headers

    def fetch(self) -> List[Any]:
        """
        Fetch and unwrap the records.

        Raises:
            ConfigurationError: If no URL is configured
            TransportError: On network failure, non-2xx status or invalid JSON
            SyncError: If data_path does not lead to a list
        """
        if not self.url:
            raise ConfigurationError("The REST source requires a URL", field="url")

        try:
            response = self._session.request(
                self.method,
                self.url,
                headers=self._request_headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError.from_exception(e) from e

        if not response.ok:
            raise TransportError.from_response(response)

        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON response: {e}", body=response.text, cause=e) from e

        records = unwrap_records(payload, self.data_path)
        if not records:
            self.warn(f"{self.url} returned no records")
        return records
