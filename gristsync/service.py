"""Sync service - source fetch, mapping and orchestration for one configured sync."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from .config import SyncSettings
from .errors import ConfigurationError, SyncError, describe_error, format_error_short
from .extractors.base import BaseExtractor
from .loaders.base import BaseDestination
from .logsink import EventEmitter, Sink
from .models.mapping import FieldMapping
from .models.sync import DryRunResult, SyncResult, SyncStatus
from .orchestrator import SyncOrchestrator
from .services.field_mapper import generate_mappings_from_sample, map_records

logger = logging.getLogger(__name__)


class SyncService:
    """
    Runs a configured sync end to end.

    Handles:
    - Building the destination client and source adapter from settings
    - Connection checks on both sides
    - Fetch, map and sync, never raising for source or destination failures
    - Status tracking across runs
    """

    def __init__(
        self,
        settings: SyncSettings,
        destination: Optional[BaseDestination] = None,
        extractor: Optional[BaseExtractor] = None,
        sink: Optional[Sink] = None
    ):
        """
        Initialize the service.

        Args:
            settings: Validated settings
            destination: Overrides the client built from settings.destination
            extractor: Overrides the adapter built from settings.source
            sink: Receives LogEvent objects

        Raises:
            ConfigurationError: If the sync section is inconsistent or no source is set
        """
        self.settings = settings
        self.config = settings.sync_config()
        self.config.validate()

        self.destination = destination or settings.destination.create_client()
        if extractor is None:
            if settings.source is None:
                raise ConfigurationError("No source configured", field="source")
            extractor = settings.source.create_extractor(
                retry_attempts=self.config.retry_attempts,
                retry_delay=self.config.retry_delay,
            )
        self.extractor = extractor

        self.orchestrator = SyncOrchestrator(self.destination, sink=sink)
        self.events = EventEmitter(sink)
        self.status = SyncStatus()
        self.last_preview: Optional[DryRunResult] = None

    def test_connections(self) -> Dict[str, bool]:
        """Check both ends can be read."""
        results = {
            "destination": self.destination.test_connection(),
            "source": self.extractor.test_connection(),
        }
        logger.info(f"Connection test: {results}")
        return results

    def mappings_for(self, records: List[Any]) -> List[FieldMapping]:
        """Configured mappings, or mappings suggested from the first record."""
        configured = self.settings.field_mappings()
        if configured or not records:
            return configured

        suggested = generate_mappings_from_sample(records[0])
        self.events.info(f"No mapping configured, using {len(suggested)} columns from the first record")
        return suggested

    def sync(self) -> SyncResult:
        """
        Fetch, map and sync once.

        Returns:
            SyncResult; a failed source fetch counts as one error
        """
        self.status.running = True
        self.status.last_run = datetime.utcnow()
        result = SyncResult(started_at=self.status.last_run)
        context = "source"

        try:
            result.details.append("Fetching data from source...")
            extraction = self.extractor.extract()
            for warning in extraction.warnings:
                result.details.append(f"Source warning: {warning}")
                self.events.warning(warning)
            if not extraction.success:
                raise extraction.errors[0]

            records = extraction.records
            result.details.append(f"Fetched {len(records)} records from source")

            rows = map_records(records, self.mappings_for(records))
            result.details.append(f"Mapped {len(rows)} records")
            self.events.info(f"Mapped {len(rows)} records")

            context = "destination"
            outcome = self.orchestrator.sync(rows, self.config)

            if isinstance(outcome, DryRunResult):
                self.last_preview = outcome
                if outcome.errors:
                    result.errors += len(outcome.errors)
                    result.details.extend(outcome.errors)
                else:
                    summary = outcome.summary
                    result.details.append(
                        f"Dry run completed: {summary['to_add']} to add, "
                        f"{summary['to_update']} to update, {summary['unchanged']} unchanged"
                    )
            else:
                result.added = outcome.added
                result.updated = outcome.updated
                result.unchanged = outcome.unchanged
                result.errors = outcome.errors
                result.details.extend(outcome.details)

        except SyncError as e:
            message = format_error_short(describe_error(e, context=context))
            result.errors += 1
            result.details.append(f"Synchronization failed: {message}")
            self.events.error(f"Synchronization failed: {message}")
            logger.error(f"Synchronization failed: {e.message}")

        finally:
            result.completed_at = datetime.utcnow()
            self._record(result)

        return result

    def _record(self, result: SyncResult) -> None:
        self.status.running = False
        self.status.total_synced += result.added + result.updated
        self.status.total_errors += result.errors
        if result.success:
            self.status.last_success = result.completed_at
            result.details.append("Synchronization completed successfully")
        else:
            failures = [line for line in result.details if "failed" in line]
            self.status.last_error = failures[-1] if failures else f"{result.errors} errors"

    def get_status(self) -> SyncStatus:
        """Snapshot of the status; changing it does not affect the service."""
        return replace(self.status)
