"""Base extractor interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from ..errors import SyncError
from ..services.field_mapper import extract_value

logger = logging.getLogger(__name__)

WRAPPER_KEYS = ("data", "results", "items", "records")


def unwrap_records(payload: Any, data_path: Optional[str] = None) -> List[Any]:
    """
    Turn a source response into a list of records.

    Args:
        payload: Decoded response body
        data_path: Optional dotted path to the list inside the payload

    Returns:
        A top-level list as-is, the list found under a known wrapper key,
        or the payload wrapped in a single-element list

    Raises:
        SyncError: If data_path is given and does not lead to a list
    """
    if data_path:
        found = extract_value(payload, data_path)
        if not isinstance(found, list):
            raise SyncError(f"Data at path '{data_path}' is not a list", error_code="SOURCE_SHAPE")
        return found

    if isinstance(payload, list):
        return payload

    if isinstance(payload, dict):
        for key in WRAPPER_KEYS:
            if isinstance(payload.get(key), list):
                return payload[key]

    if payload is None:
        return []
    return [payload]


@dataclass
class ExtractionResult:
    """Records read from a source, with the failures and warnings met on the way."""
    records: List[Any] = field(default_factory=list)
    errors: List[SyncError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def total_extracted(self) -> int:
        return len(self.records)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_extracted": self.total_extracted,
            "errors": [{"message": e.message, "error_code": e.error_code} for e in self.errors],
            "warnings": self.warnings,
            "duration_seconds": self.duration_seconds,
        }


class BaseExtractor(ABC):
    """
    Base class for source adapters.

    Subclasses implement fetch(), which returns the raw records and raises
    SyncError on failure. They may call warn() for problems that do not stop
    the read. extract() wraps both into an ExtractionResult.
    """

    def __init__(self):
        self._warnings: List[str] = []

    @abstractmethod
    def fetch(self) -> List[Any]:
        """
        Fetch all records from the source.

        Returns:
            List of heterogeneous records

        Raises:
            SyncError: If the source cannot be read
        """
        pass

    def extract(self) -> ExtractionResult:
        """Fetch records, collecting the failure instead of raising it."""
        self._warnings = []
        result = ExtractionResult(started_at=datetime.utcnow())

        try:
            result.records = self.fetch()
            logger.info(f"Extracted {result.total_extracted} records from {self.description}")
        except SyncError as e:
            logger.error(f"Extraction from {self.description} failed: {e.message}")
            result.errors.append(e)

        result.warnings = list(self._warnings)
        result.completed_at = datetime.utcnow()
        return result

    def test_connection(self) -> bool:
        """Check the source can be read."""
        try:
            self.fetch()
            return True
        except SyncError as e:
            logger.error(f"Source connection test failed: {e.message}")
            return False

    @property
    def description(self) -> str:
        return self.__class__.__name__

    def warn(self, message: str) -> None:
        """Record a problem that did not stop the read."""
        self._warnings.append(message)
        logger.warning(f"{self.description}: {message}")
