"""Data models for the sync engine."""

from .mapping import FieldMapping
from .record import (
    AccessCheck,
    CallResult,
    ColumnType,
    DestinationColumn,
    DestinationRecord,
    MappedRow,
)
from .sync import (
    DryRunResult,
    FieldChange,
    RecordUpdate,
    SyncConfig,
    SyncMode,
    SyncResult,
    SyncStatus,
    UnchangedRecord,
)

__all__ = [
    "FieldMapping",
    "AccessCheck",
    "CallResult",
    "ColumnType",
    "DestinationColumn",
    "DestinationRecord",
    "MappedRow",
    "DryRunResult",
    "FieldChange",
    "RecordUpdate",
    "SyncConfig",
    "SyncMode",
    "SyncResult",
    "SyncStatus",
    "UnchangedRecord",
]
