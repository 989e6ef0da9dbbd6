"""Schema reconciler - creates destination columns that incoming rows need."""

import logging
import re
from typing import Any, Dict, List, Optional

from ..errors import SchemaEvolutionWarning
from ..loaders.base import BaseDestination
from ..logsink import EventEmitter
from ..models.record import ColumnType, DestinationColumn

logger = logging.getLogger(__name__)

SAMPLE_SIZE = 10
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}")


def _value_type(value: Any) -> ColumnType:
    # bool is a subclass of int, so it goes first
    if isinstance(value, bool):
        return ColumnType.BOOL
    if isinstance(value, int):
        return ColumnType.INT
    if isinstance(value, float):
        return ColumnType.INT if value.is_integer() else ColumnType.NUMERIC
    if isinstance(value, str) and DATE_PATTERN.match(value):
        return ColumnType.DATETIME
    return ColumnType.TEXT


def infer_type(rows: List[Dict[str, Any]], column_id: str) -> ColumnType:
    """
    Guess a column type from the first non-null values of a column.

    Up to SAMPLE_SIZE values are inspected. They must all agree, except that
    Int and Numeric samples together give Numeric. Anything else is Text.

    Args:
        rows: Mapped rows
        column_id: Column to inspect

    Returns:
        The inferred ColumnType, Text when there is no sample
    """
    samples = []
    for row in rows:
        value = row.get(column_id)
        if value is None:
            continue
        samples.append(value)
        if len(samples) >= SAMPLE_SIZE:
            break

    if not samples:
        return ColumnType.TEXT

    types = {_value_type(value) for value in samples}
    if len(types) == 1:
        return types.pop()
    if types == {ColumnType.INT, ColumnType.NUMERIC}:
        return ColumnType.NUMERIC
    return ColumnType.TEXT


def required_columns(rows: List[Dict[str, Any]]) -> List[str]:
    """Union of the keys of every row, in first-seen order."""
    seen: Dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)


def ensure_columns(
    rows: List[Dict[str, Any]],
    destination: BaseDestination,
    emitter: Optional[EventEmitter] = None
) -> List[str]:
    """
    Create the columns the rows need and the destination lacks.

    Never raises for transport failures: a failed listing or creation is
    reported as a SchemaEvolutionWarning and the sync goes on.

    Args:
        rows: Mapped rows about to be written
        destination: Table to evolve
        emitter: Receives progress and warning events

    Returns:
        Ids of the columns that were created
    """
    emitter = emitter or EventEmitter()
    required = required_columns(rows)
    if not required:
        return []

    listing = destination.fetch_columns()
    if not listing.success:
        _report(emitter, SchemaEvolutionWarning(required, listing.error))
        return []

    existing = {column.id for column in listing.data}
    missing = [column_id for column_id in required if column_id not in existing]
    if not missing:
        logger.debug("All columns already exist")
        return []

    columns = [
        DestinationColumn(id=column_id, type=infer_type(rows, column_id), label=column_id)
        for column_id in missing
    ]
    emitter.info(f"Creating {len(columns)} missing columns: {', '.join(missing)}")

    created = destination.add_columns(columns)
    if not created.success:
        _report(emitter, SchemaEvolutionWarning(missing, created.error))
        return []

    emitter.success(f"Created columns: {', '.join(missing)}")
    return missing


def _report(emitter: EventEmitter, warning: SchemaEvolutionWarning) -> None:
    logger.warning(str(warning))
    emitter.warning(str(warning))
