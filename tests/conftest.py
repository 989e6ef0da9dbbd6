import pytest

from gristsync.errors import TransportError
from gristsync.loaders.base import BaseDestination
from gristsync.logsink import collecting_sink
from gristsync.models.record import CallResult, DestinationColumn, DestinationRecord


class FakeDestination(BaseDestination):
    """In-memory table that records every call made to it."""

    def __init__(self, records=None, columns=None):
        self.records = [DestinationRecord(id=r["id"], fields=dict(r["fields"])) for r in (records or [])]
        self.columns = [DestinationColumn(id=c) for c in (columns or [])]
        self.calls = []
        self.failures = {}
        self._next_id = max([r.id for r in self.records] or [0]) + 1

    def fail(self, operation, status_code=500, message="boom"):
        self.failures[operation] = TransportError(
            f"HTTP {status_code}: {message}", status_code=status_code, body=message
        )

    def _failure(self, operation):
        error = self.failures.get(operation)
        return CallResult.fail(error) if error else None

    @property
    def mutating_calls(self):
        return [name for name, _ in self.calls if name in ("add_records", "add_columns", "update_records")]

    def fetch_records(self, limit=None):
        self.calls.append(("fetch_records", limit))
        failed = self._failure("fetch_records")
        if failed:
            return failed
        records = [DestinationRecord(id=r.id, fields=dict(r.fields)) for r in self.records]
        return CallResult.ok(records[:limit] if limit else records)

    def fetch_columns(self):
        self.calls.append(("fetch_columns", None))
        return self._failure("fetch_columns") or CallResult.ok(list(self.columns))

    def add_records(self, rows):
        self.calls.append(("add_records", rows))
        failed = self._failure("add_records")
        if failed:
            return failed
        ids = []
        for row in rows:
            self.records.append(DestinationRecord(id=self._next_id, fields=dict(row)))
            ids.append(self._next_id)
            self._next_id += 1
        return CallResult.ok(ids)

    def add_columns(self, columns):
        self.calls.append(("add_columns", columns))
        failed = self._failure("add_columns")
        if failed:
            return failed
        self.columns.extend(columns)
        return CallResult.ok([c.id for c in columns])

    def update_records(self, updates):
        self.calls.append(("update_records", updates))
        failed = self._failure("update_records")
        if failed:
            return failed
        by_id = {r.id: r for r in self.records}
        for item in updates:
            by_id[item["id"]].fields.update(item["fields"])
        return CallResult.ok([item["id"] for item in updates])


@pytest.fixture
def destination():
    return FakeDestination(
        records=[{"id": 1, "fields": {"k": "a", "v": 1}}],
        columns=["k", "v"],
    )


@pytest.fixture
def events():
    return collecting_sink()


@pytest.fixture
def make_destination():
    return FakeDestination
