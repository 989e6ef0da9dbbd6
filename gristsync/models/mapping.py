"""Field mapping models: how a source path lands in a destination column."""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


@dataclass
class FieldMapping:
    """Maps a dot-separated source path onto a destination column."""
    destination_column: str
    source_path: str
    enabled: bool = True
    transform: Optional[Callable[[Any], Any]] = None  # Receives the raw value

    @property
    def is_valid(self) -> bool:
        """Both the column and the path are non-empty."""
        return bool(self.destination_column) and bool(self.source_path)

    @property
    def is_active(self) -> bool:
        """Valid and not switched off."""
        return self.is_valid and self.enabled is not False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation. Transforms are not serialisable."""
        return {
            "destination_column": self.destination_column,
            "source_path": self.source_path,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldMapping":
        """Create from dictionary. Accepts camelCase keys as well."""
        return cls(
            destination_column=data.get("destination_column", data.get("destinationColumn", "")),
            source_path=data.get("source_path", data.get("sourcePath", "")),
            enabled=data.get("enabled", True),
        )
