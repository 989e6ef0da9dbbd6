"""CSV/JSON file source adapter."""

import csv
import json
import logging
from pathlib import Path
from typing import Any, List, Optional, Union

from .base import BaseExtractor, unwrap_records
from ..errors import ConfigurationError, SyncError

logger = logging.getLogger(__name__)


class FileExtractor(BaseExtractor):
    """
    Extractor for CSV and JSON files.

    Supports:
    - JSON files holding a list or a wrapped list
    - CSV files with a header row (one dict per row, values as strings)
    """

    def __init__(
        self,
        path: Union[str, Path],
        data_path: Optional[str] = None,
        encoding: str = "utf-8",
        delimiter: str = ","
    ):
        """
        Initialize the file extractor.

        Args:
            path: File to read
            data_path: Dotted path to the record list (JSON only)
            encoding: File encoding
            delimiter: CSV delimiter character
        """
        super().__init__()
        self.path = Path(path)
        self.data_path = data_path
        self.encoding = encoding
        self.delimiter = delimiter

    @property
    def description(self) -> str:
        return str(self.path)

    def fetch(self) -> List[Any]:
        """
        Read every record of the file.

        Raises:
            ConfigurationError: If the file is missing or has an unknown extension
            SyncError: If the file cannot be parsed
        """
        if not self.path.exists():
            raise ConfigurationError(f"File not found: {self.path}", field="path")

        suffix = self.path.suffix.lower()
        if suffix == ".json":
            return self._read_json()
        if suffix == ".csv":
            return self._read_csv()
        raise ConfigurationError(f"Unsupported file type: {suffix or self.path.name}", field="path")

    def _read_json(self) -> List[Any]:
        try:
            with open(self.path, encoding=self.encoding) as f:
                payload = json.load(f)
        except json.JSONDecodeError as e:
            raise SyncError(f"Invalid JSON in {self.path}: {e}", error_code="SOURCE_PARSE") from e
        return unwrap_records(payload, self.data_path)

    def _read_csv(self) -> List[Any]:
        try:
            with open(self.path, encoding=self.encoding, newline="") as f:
                rows = [dict(row) for row in csv.DictReader(f, delimiter=self.delimiter)]
        except csv.Error as e:
            raise SyncError(f"Invalid CSV in {self.path}: {e}", error_code="SOURCE_PARSE") from e

        if not rows:
            self.warn(f"No rows in {self.path}")
        return rows


class StaticExtractor(BaseExtractor):
    """Serves records held in memory, e.g. inline in a settings file."""

    def __init__(self, records: Any):
        super().__init__()
        self.records = records

    @property
    def description(self) -> str:
        return "inline records"

    def fetch(self) -> List[Any]:
        return unwrap_records(self.records)
