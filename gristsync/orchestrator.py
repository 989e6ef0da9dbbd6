"""Sync orchestrator - coordinates one sync run against a destination table."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from .errors import describe_error, format_error_short
from .loaders.base import BaseDestination
from .logsink import EventEmitter, Sink
from .models.mapping import FieldMapping
from .models.record import CallResult
from .models.sync import DryRunResult, SyncConfig, SyncMode, SyncResult
from .services.field_mapper import map_records
from .services.record_reconciler import classify
from .services.schema_reconciler import ensure_columns

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """
    Orchestrates a sync run.

    Handles:
    - Precondition checks before any I/O
    - Best-effort creation of missing columns
    - One read of the existing rows, then classification
    - Batch add and batch update, each failing independently
    - Dry-run reporting with no mutating call

    Destination calls are issued one after the other, never concurrently.
    """

    def __init__(self, destination: BaseDestination, sink: Optional[Sink] = None):
        """
        Initialize the orchestrator.

        Args:
            destination: Table to sync into
            sink: Receives LogEvent objects; None disables events
        """
        self.destination = destination
        self.events = EventEmitter(sink)

    def sync_records(
        self,
        records: Any,
        mappings: List[FieldMapping],
        config: SyncConfig
    ) -> Union[SyncResult, DryRunResult]:
        """Map raw source records, then sync the rows."""
        config.validate()
        rows = map_records(records, mappings)
        self.events.info(f"Mapped {len(rows)} records")
        return self.sync(rows, config)

    def preview(self, rows: List[Dict[str, Any]], config: SyncConfig) -> DryRunResult:
        """Classify rows without changing anything."""
        return self.sync(rows, config.with_dry_run())

    def sync(
        self,
        rows: List[Dict[str, Any]],
        config: SyncConfig
    ) -> Union[SyncResult, DryRunResult]:
        """
        Run the sync.

        Args:
            rows: Mapped rows
            config: Sync configuration

        Returns:
            DryRunResult when config.dry_run is set, SyncResult otherwise

        Raises:
            ConfigurationError: If update/upsert is requested without a unique key
        """
        config.validate()

        if config.dry_run:
            return self._dry_run(rows, config)

        result = SyncResult(started_at=datetime.utcnow())
        self.events.info(f"Starting {config.mode.value} sync of {len(rows)} rows")

        if config.auto_create_columns and rows:
            ensure_columns(rows, self.destination, self.events)

        if config.mode == SyncMode.ADD:
            self._add(rows, result)
        else:
            classification = self._classify(rows, config, result)
            if classification is not None:
                result.unchanged = len(classification.unchanged)
                if config.mode == SyncMode.UPSERT:
                    self._add(classification.to_add, result)
                self._update(classification, result)

        result.completed_at = datetime.utcnow()
        self._finish(result)
        return result

    def _dry_run(self, rows: List[Dict[str, Any]], config: SyncConfig) -> DryRunResult:
        self.events.info(f"Dry run: classifying {len(rows)} rows")

        if config.mode == SyncMode.ADD:
            preview = classify(rows, [], config.mode)
        else:
            fetched = self.destination.fetch_records()
            if not fetched.success:
                message = f"Fetching existing records failed: {self._describe(fetched)}"
                self.events.error(message)
                logger.error(f"Dry run aborted: {message}")
                return DryRunResult(errors=[message])
            preview = classify(rows, fetched.data, config.mode, config.unique_key)

        summary = preview.summary
        self.events.success(
            f"Dry run: {summary['to_add']} to add, {summary['to_update']} to update, "
            f"{summary['unchanged']} unchanged"
        )
        return preview

    def _classify(
        self,
        rows: List[Dict[str, Any]],
        config: SyncConfig,
        result: SyncResult
    ) -> Optional[DryRunResult]:
        """Fetch existing records once and classify. None when the fetch failed."""
        self.events.info("Fetching existing records...")
        fetched = self.destination.fetch_records()
        if not fetched.success:
            self._record_error(result, "Fetching existing records failed", fetched)
            return None

        classification = classify(rows, fetched.data, config.mode, config.unique_key)
        summary = classification.summary
        self.events.info(
            f"{summary['to_add']} to add, {summary['to_update']} to update, "
            f"{summary['unchanged']} unchanged"
        )
        return classification

    def _add(self, rows: List[Dict[str, Any]], result: SyncResult) -> None:
        if not rows:
            return

        self.events.info(f"Adding {len(rows)} records...")
        added = self.destination.add_records(rows)
        if added.success:
            result.added += len(rows)
            result.details.append(f"Added {len(rows)} records")
            self.events.success(f"Added {len(rows)} records")
        else:
            self._record_error(result, "Adding records failed", added)

    def _update(self, classification: DryRunResult, result: SyncResult) -> None:
        if not classification.to_update:
            return

        updates = [{"id": update.id, "fields": update.fields} for update in classification.to_update]
        self.events.info(f"Updating {len(updates)} records...")
        updated = self.destination.update_records(updates)
        if updated.success:
            result.updated += len(updates)
            result.details.append(f"Updated {len(updates)} records")
            self.events.success(f"Updated {len(updates)} records")
        else:
            self._record_error(result, "Updating records failed", updated)

    def _describe(self, call: CallResult) -> str:
        if call.error is None:
            return "unknown error"
        return format_error_short(describe_error(call.error, context="destination"))

    def _record_error(self, result: SyncResult, step: str, call: CallResult) -> None:
        message = f"{step}: {self._describe(call)}"
        result.errors += 1
        result.details.append(message)
        self.events.error(message)
        logger.error(message)

    def _finish(self, result: SyncResult) -> None:
        summary = (
            f"Sync finished: {result.added} added, {result.updated} updated, "
            f"{result.unchanged} unchanged, {result.errors} errors"
        )
        if result.success:
            self.events.success(summary)
        else:
            self.events.warning(summary)
        logger.info(summary)
