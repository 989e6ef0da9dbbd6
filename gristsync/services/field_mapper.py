"""Field mapper - turns nested source records into flat destination rows."""

import json
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from dateutil import tz

from ..models.mapping import FieldMapping

logger = logging.getLogger(__name__)

# The destination reserves `id` for its own row identifier
RESERVED_COLUMNS = {"id": "api_id"}

LIST_SEPARATOR = ";"


def extract_value(record: Any, path: str) -> Any:
    """
    Resolve a dot-separated path inside a nested record.

    Args:
        record: Source record (nested dicts, lists and scalars)
        path: Path such as "address.city"

    Returns:
        The value at the path, or None when any segment is missing or
        an intermediate value is not a mapping
    """
    current = record
    for segment in path.split("."):
        if not isinstance(current, dict) or segment not in current:
            return None
        current = current[segment]
    return current


def _format_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz.tzutc())
    else:
        value = value.astimezone(tz.tzutc())
    return value.strftime("%Y-%m-%dT%H:%M:%S") + f".{value.microsecond // 1000:03d}Z"


def _to_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def _list_item(value: Any) -> str:
    """Render one list element before joining."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return _to_json(value)
    return str(serialize(value))


def serialize(value: Any) -> Any:
    """
    Convert an extracted value into something a destination cell can hold.

    - None stays None
    - datetimes become UTC ISO-8601 strings with milliseconds
    - lists are joined with ";" (dict elements JSON-encoded first)
    - dicts become compact JSON
    - bools, numbers and strings are returned unchanged
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _format_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return LIST_SEPARATOR.join(_list_item(item) for item in value)
    if isinstance(value, dict):
        return _to_json(value)
    return value


def map_record(record: Any, mappings: List[FieldMapping]) -> Dict[str, Any]:
    """
    Build one flat row from a source record.

    Mappings are applied in order, so a later mapping to the same column
    overwrites an earlier one. Disabled and incomplete mappings are skipped.
    """
    row: Dict[str, Any] = {}
    for mapping in mappings:
        if not mapping.is_active:
            continue

        raw = extract_value(record, mapping.source_path)
        if mapping.transform is None:
            row[mapping.destination_column] = serialize(raw)
            continue

        try:
            row[mapping.destination_column] = mapping.transform(raw)
        except Exception as e:
            logger.warning(
                f"Transform for {mapping.destination_column} failed on {raw!r}: {e}"
            )
            row[mapping.destination_column] = None
    return row


def map_records(records: Any, mappings: List[FieldMapping]) -> List[Dict[str, Any]]:
    """Map every record independently. Anything but a list yields []."""
    if not isinstance(records, (list, tuple)):
        return []
    return [map_record(record, mappings) for record in records]


def get_valid_mappings(mappings: List[FieldMapping]) -> List[FieldMapping]:
    """Mappings with both a destination column and a source path."""
    return [mapping for mapping in mappings if mapping.is_valid]


def extract_all_keys(sample: Any, prefix: str = "", max_depth: int = 5) -> List[str]:
    """
    List every dotted path reachable through nested mappings.

    Intermediate paths are included, lists are not descended into.
    `max_depth` counts path segments: depth 3 reaches "a.b.c" but not "a.b.c.d".
    """
    keys: List[str] = []
    if max_depth <= 0 or not isinstance(sample, dict):
        return keys

    for key, value in sample.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        keys.append(path)
        if isinstance(value, dict):
            keys.extend(extract_all_keys(value, path, max_depth - 1))
    return keys


def column_name_for_path(path: str) -> str:
    """Destination column suggested for a source path."""
    if path in RESERVED_COLUMNS:
        return RESERVED_COLUMNS[path]
    return path.replace(".", "_")


def generate_mappings_from_sample(
    sample: Optional[Dict[str, Any]],
    max_depth: int = 5,
    enabled: bool = True
) -> List[FieldMapping]:
    """
    Suggest one mapping per path found in a sample record.

    Args:
        sample: A representative source record
        max_depth: Deepest path (in segments) to suggest
        enabled: Initial state of every suggested mapping

    Returns:
        List of FieldMapping, in the sample's key order
    """
    if not isinstance(sample, dict):
        return []

    mappings = [
        FieldMapping(
            destination_column=column_name_for_path(path),
            source_path=path,
            enabled=enabled,
        )
        for path in extract_all_keys(sample, max_depth=max_depth)
    ]
    logger.debug(f"Suggested {len(mappings)} mappings from sample")
    return mappings
