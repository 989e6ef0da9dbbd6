"""Record reconciler - classifies incoming rows against the destination's rows."""

import json
import logging
from typing import Any, Dict, List, Optional

from ..models.record import DestinationRecord
from ..models.sync import DryRunResult, FieldChange, RecordUpdate, SyncMode, UnchangedRecord

logger = logging.getLogger(__name__)


def normalize_key(value: Any) -> Optional[str]:
    """
    String form of a unique-key value used for matching.

    1, 1.0 and "1" all match; True and "true" match.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _normalize_numbers(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {key: _normalize_numbers(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_numbers(item) for item in value]
    return value


def canonical_json(value: Any) -> str:
    """Type-sensitive canonical form: 1 and 1.0 agree, 1 and "1" do not."""
    return json.dumps(
        _normalize_numbers(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def diff_fields(row: Dict[str, Any], existing: Dict[str, Any]) -> Dict[str, FieldChange]:
    """
    Compare the fields present in `row` with the stored fields.

    A field the destination does not have compares as None.
    """
    changes = {}
    for name, new in row.items():
        old = existing.get(name)
        if canonical_json(old) != canonical_json(new):
            changes[name] = FieldChange(old=old, new=new)
    return changes


def build_index(records: List[DestinationRecord], unique_key: str) -> Dict[str, DestinationRecord]:
    """Index existing records by unique-key value. The first record wins on duplicates."""
    index: Dict[str, DestinationRecord] = {}
    for record in records:
        key = normalize_key(record.fields.get(unique_key))
        if key is None:
            continue
        if key in index:
            logger.warning(f"Duplicate {unique_key} value {key!r} in destination, keeping record {index[key].id}")
            continue
        index[key] = record
    return index


def classify(
    rows: List[Dict[str, Any]],
    existing: List[DestinationRecord],
    mode: SyncMode,
    unique_key: Optional[str] = None
) -> DryRunResult:
    """
    Sort incoming rows into add / update / unchanged buckets.

    Args:
        rows: Mapped rows
        existing: Current destination records (ignored in add mode)
        mode: Sync mode
        unique_key: Column correlating rows with records

    Returns:
        DryRunResult holding the three buckets
    """
    result = DryRunResult()

    if mode == SyncMode.ADD or not unique_key:
        result.to_add = list(rows)
        return result

    index = build_index(existing, unique_key)
    dropped = 0

    for row in rows:
        key = normalize_key(row.get(unique_key))
        match = index.get(key) if key is not None else None

        if match is None:
            if mode == SyncMode.UPSERT:
                result.to_add.append(row)
            else:
                dropped += 1
            continue

        changes = diff_fields(row, match.fields)
        if changes:
            result.to_update.append(RecordUpdate(id=match.id, fields=row, changes=changes))
        else:
            result.unchanged.append(UnchangedRecord(id=match.id, fields=row))

    if dropped:
        logger.debug(f"{dropped} rows had no matching {unique_key} and were skipped")

    return result
