"""Mapping, reconciliation and endpoint services."""

from .field_mapper import (
    extract_value,
    serialize,
    map_record,
    map_records,
    generate_mappings_from_sample,
)
from .endpoint_resolver import DestinationEndpoint, parse_destination_url
from .record_reconciler import classify
from .schema_reconciler import ensure_columns, infer_type

__all__ = [
    "extract_value",
    "serialize",
    "map_record",
    "map_records",
    "generate_mappings_from_sample",
    "DestinationEndpoint",
    "parse_destination_url",
    "classify",
    "ensure_columns",
    "infer_type",
]
