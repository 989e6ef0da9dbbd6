"""Destination-side models: columns, records and per-call results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..errors import SyncError


class ColumnType(str, Enum):
    """Column types the destination understands."""
    TEXT = "Text"
    INT = "Int"
    NUMERIC = "Numeric"
    BOOL = "Bool"
    DATETIME = "DateTime"


@dataclass
class DestinationColumn:
    """A column of the destination table."""
    id: str
    type: ColumnType = ColumnType.TEXT
    label: Optional[str] = None

    def to_api(self) -> Dict[str, Any]:
        """Body item for the column creation call."""
        return {
            "id": self.id,
            "fields": {
                "colId": self.id,
                "label": self.label or self.id,
                "type": self.type.value,
            },
        }

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "DestinationColumn":
        """Create from a column listing item (`{id, fields: {label, type}}`)."""
        fields = data.get("fields") or {}
        column_id = data.get("id") or fields.get("colId", "")
        try:
            column_type = ColumnType(fields.get("type", "Text"))
        except ValueError:
            # Ref:, Choice and friends are treated as text
            column_type = ColumnType.TEXT
        return cls(id=column_id, type=column_type, label=fields.get("label"))


@dataclass
class DestinationRecord:
    """A row stored in the destination. `id` is assigned by the destination."""
    id: Any
    fields: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "fields": self.fields}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DestinationRecord":
        return cls(id=data.get("id"), fields=dict(data.get("fields") or {}))


@dataclass
class CallResult:
    """Outcome of one destination call: either data or an error, never raised."""
    success: bool
    data: Any = None
    error: Optional[SyncError] = None

    @classmethod
    def ok(cls, data: Any = None) -> "CallResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: SyncError) -> "CallResult":
        return cls(success=False, error=error)


@dataclass
class AccessCheck:
    """Result of probing a destination document for access."""
    valid: bool
    message: str
    needs_auth: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "message": self.message,
            "needs_auth": self.needs_auth,
        }


MappedRow = Dict[str, Any]