from gristsync.logsink import EventEmitter, Severity
from gristsync.models.record import ColumnType
from gristsync.services.schema_reconciler import ensure_columns, infer_type, required_columns


def test_infer_type_basic():
    assert infer_type([{"c": 5}], "c") == ColumnType.INT
    assert infer_type([{"c": 5.5}], "c") == ColumnType.NUMERIC
    assert infer_type([{"c": True}], "c") == ColumnType.BOOL
    assert infer_type([{"c": "2024-01-01"}], "c") == ColumnType.DATETIME
    assert infer_type([{"c": "x"}], "c") == ColumnType.TEXT


def test_infer_type_values():
    assert infer_type([{"c": 5}], "c").value == "Int"
    assert infer_type([{"c": "2024-01-01T10:00:00Z"}], "c").value == "DateTime"


def test_infer_type_without_samples_is_text():
    assert infer_type([], "c") == ColumnType.TEXT
    assert infer_type([{"c": None}, {"other": 1}], "c") == ColumnType.TEXT


def test_infer_type_skips_nulls_and_mixes():
    assert infer_type([{"c": None}, {"c": 3}], "c") == ColumnType.INT
    assert infer_type([{"c": 1}, {"c": 2.5}], "c") == ColumnType.NUMERIC
    assert infer_type([{"c": 1}, {"c": "x"}], "c") == ColumnType.TEXT


def test_infer_type_only_samples_first_ten():
    rows = [{"c": 1} for _ in range(10)] + [{"c": "text"}]
    assert infer_type(rows, "c") == ColumnType.INT


def test_required_columns_is_union_in_order():
    assert required_columns([{"a": 1}, {"b": 2, "a": 3}]) == ["a", "b"]


def test_ensure_columns_creates_missing(destination, events):
    sink, collected = events
    rows = [{"k": "a", "v": 1, "score": 2.5, "when": "2024-05-01"}]

    created = ensure_columns(rows, destination, EventEmitter(sink))

    assert created == ["score", "when"]
    name, columns = destination.calls[-1]
    assert name == "add_columns"
    assert [(c.id, c.type, c.label) for c in columns] == [
        ("score", ColumnType.NUMERIC, "score"),
        ("when", ColumnType.DATETIME, "when"),
    ]
    assert any(event.severity == Severity.SUCCESS for event in collected)


def test_ensure_columns_nothing_missing(destination):
    assert ensure_columns([{"k": "a"}], destination) == []
    assert destination.mutating_calls == []


def test_ensure_columns_failure_is_a_warning(destination, events):
    sink, collected = events
    destination.fail("add_columns", status_code=403, message="forbidden")

    created = ensure_columns([{"new": 1}], destination, EventEmitter(sink))

    assert created == []
    warnings = [event for event in collected if event.severity == Severity.WARNING]
    assert len(warnings) == 1
    assert "new" in warnings[0].message


def test_ensure_columns_listing_failure_is_a_warning(destination, events):
    sink, collected = events
    destination.fail("fetch_columns")

    assert ensure_columns([{"new": 1}], destination, EventEmitter(sink)) == []
    assert destination.mutating_calls == []
    assert collected[-1].severity == Severity.WARNING
