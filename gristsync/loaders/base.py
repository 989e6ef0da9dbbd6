"""Base destination interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models.record import CallResult, DestinationColumn


class BaseDestination(ABC):
    """
    Base class for tabular destinations.

    A destination is one table. Every call returns a CallResult instead of
    raising on transport failures; only invalid arguments raise.
    """

    @abstractmethod
    def fetch_records(self, limit: Optional[int] = None) -> CallResult:
        """
        Fetch the current rows of the table.

        Args:
            limit: Maximum number of rows, None for all

        Returns:
            CallResult whose data is a list of DestinationRecord
        """
        pass

    @abstractmethod
    def fetch_columns(self) -> CallResult:
        """
        Fetch the column definitions of the table.

        Returns:
            CallResult whose data is a list of DestinationColumn
        """
        pass

    @abstractmethod
    def add_records(self, rows: List[Dict[str, Any]]) -> CallResult:
        """
        Append rows in one batch.

        Args:
            rows: Mapped rows to insert

        Returns:
            CallResult whose data is the list of new row ids

        Raises:
            ConfigurationError: If rows is empty
        """
        pass

    @abstractmethod
    def add_columns(self, columns: List[DestinationColumn]) -> CallResult:
        """
        Create columns in one batch.

        Raises:
            ConfigurationError: If columns is empty
        """
        pass

    @abstractmethod
    def update_records(self, updates: List[Dict[str, Any]]) -> CallResult:
        """
        Patch existing rows in one batch.

        Args:
            updates: Items of the form {"id": ..., "fields": {...}}

        Raises:
            ConfigurationError: If updates is empty
        """
        pass

    def test_connection(self) -> bool:
        """Check the table can be read."""
        return self.fetch_records(limit=1).success

    @property
    def description(self) -> str:
        return self.__class__.__name__
