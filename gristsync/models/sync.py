"""Sync run configuration and results."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import ConfigurationError


class SyncMode(str, Enum):
    """How incoming rows are applied to the destination."""
    ADD = "add"  # Append every row
    UPDATE = "update"  # Only touch rows that already exist
    UPSERT = "upsert"  # Update existing rows, append the rest


@dataclass
class SyncConfig:
    """Configuration of one sync run."""
    mode: SyncMode = SyncMode.ADD
    unique_key: Optional[str] = None
    auto_create_columns: bool = True
    dry_run: bool = False

    # Recorded for callers; the engine never retries
    retry_attempts: int = 0
    retry_delay: float = 1.0

    def __post_init__(self):
        if not isinstance(self.mode, SyncMode):
            try:
                self.mode = SyncMode(str(self.mode).lower())
            except ValueError:
                raise ConfigurationError(f"Unknown sync mode: {self.mode}", field="mode")

    @property
    def requires_unique_key(self) -> bool:
        return self.mode in (SyncMode.UPDATE, SyncMode.UPSERT)

    def validate(self) -> None:
        """
        Check preconditions that must hold before any I/O.

        Raises:
            ConfigurationError: If the mode needs a unique key and none is set
        """
        if self.requires_unique_key and not self.unique_key:
            raise ConfigurationError(
                f"A unique key is required for {self.mode.value} mode",
                field="unique_key",
            )

    def with_dry_run(self) -> "SyncConfig":
        """Copy of this config with dry-run switched on."""
        return replace(self, dry_run=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "unique_key": self.unique_key,
            "auto_create_columns": self.auto_create_columns,
            "dry_run": self.dry_run,
            "retry_attempts": self.retry_attempts,
            "retry_delay": self.retry_delay,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncConfig":
        return cls(
            mode=data.get("mode", SyncMode.ADD),
            unique_key=data.get("unique_key") or None,
            auto_create_columns=data.get("auto_create_columns", True),
            dry_run=data.get("dry_run", False),
            retry_attempts=data.get("retry_attempts", 0),
            retry_delay=data.get("retry_delay", 1.0),
        )


@dataclass
class SyncResult:
    """Counts and messages of an executed sync run."""
    added: int = 0
    updated: int = 0
    unchanged: int = 0
    errors: int = 0
    details: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def success(self) -> bool:
        return self.errors == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "success": self.success,
            "added": self.added,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "errors": self.errors,
            "details": self.details,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
        }


@dataclass
class FieldChange:
    """Old and new value of one differing field."""
    old: Any
    new: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"old": self.old, "new": self.new}


@dataclass
class RecordUpdate:
    """An existing record that will receive new field values."""
    id: Any
    fields: Dict[str, Any]
    changes: Dict[str, FieldChange] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "fields": self.fields,
            "changes": {name: change.to_dict() for name, change in self.changes.items()},
        }


@dataclass
class UnchangedRecord:
    """An existing record that already matches its incoming row."""
    id: Any
    fields: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "fields": self.fields}


@dataclass
class DryRunResult:
    """Full classification of a sync run that made no changes."""
    to_add: List[Dict[str, Any]] = field(default_factory=list)
    to_update: List[RecordUpdate] = field(default_factory=list)
    unchanged: List[UnchangedRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """False when the classification could not be computed."""
        return not self.errors

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "to_add": len(self.to_add),
            "to_update": len(self.to_update),
            "unchanged": len(self.unchanged),
            "total": len(self.to_add) + len(self.to_update) + len(self.unchanged),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON serialisable dictionary."""
        return {
            "to_add": self.to_add,
            "to_update": [update.to_dict() for update in self.to_update],
            "unchanged": [record.to_dict() for record in self.unchanged],
            "summary": self.summary,
            "errors": self.errors,
        }


@dataclass
class SyncStatus:
    """Running state of a sync service across runs."""
    running: bool = False
    last_run: Optional[datetime] = None
    last_success: Optional[datetime] = None
    last_error: Optional[str] = None
    total_synced: int = 0
    total_errors: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_success": self.last_success.isoformat() if self.last_success else None,
            "last_error": self.last_error,
            "total_synced": self.total_synced,
            "total_errors": self.total_errors,
        }
