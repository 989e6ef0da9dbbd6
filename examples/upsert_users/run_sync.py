#!/usr/bin/env python3
"""
Example: upsert users from an API into a Grist table

Rows are matched on their email. Existing rows are updated, new ones are
added, and columns that only exist in Grist are left alone.

Usage:
    # Preview what would change
    python run_sync.py --dry-run

    # Offline demo against in-memory records
    python run_sync.py --demo --dry-run

    # Real sync with a settings file
    python run_sync.py --config settings.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from gristsync.config import SyncSettings
from gristsync.extractors.file_extractor import StaticExtractor
from gristsync.logsink import logging_sink
from gristsync.service import SyncService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

SAMPLE_USERS = [
    {"email": "alice@example.com", "name": "Alice Dupont",
     "org": {"department": "Engineering", "role": "Senior Developer"}},
    {"email": "bob@example.com", "name": "Bob Martin",
     "org": {"department": "Marketing", "role": "Marketing Manager"}},
    {"email": "charlie@example.com", "name": "Charlie Bernard",
     "org": {"department": "Engineering", "role": "DevOps Engineer"}},
]


def run(settings: SyncSettings, demo: bool) -> int:
    extractor = StaticExtractor(SAMPLE_USERS) if demo else None
    service = SyncService(settings, extractor=extractor, sink=logging_sink())

    result = service.sync()

    logger.info("=" * 60)
    logger.info("SYNC COMPLETE")
    logger.info("=" * 60)
    logger.info(f"Added: {result.added}")
    logger.info(f"Updated: {result.updated}")
    logger.info(f"Unchanged: {result.unchanged}")
    logger.info(f"Errors: {result.errors}")

    if service.last_preview is not None:
        logger.info(json.dumps(service.last_preview.to_dict(), indent=2, default=str))

    return 0 if result.success else 1


def main():
    parser = argparse.ArgumentParser(description="Upsert users into a Grist table")
    parser.add_argument(
        "--config",
        default=str(Path(__file__).parent / "settings.json"),
        help="Settings file",
    )
    parser.add_argument("--dry-run", action="store_true", help="Classify without writing")
    parser.add_argument("--demo", action="store_true", help="Use built-in sample users as the source")
    args = parser.parse_args()

    settings = SyncSettings.load(args.config)
    if args.dry_run:
        settings.sync.dry_run = True

    sys.exit(run(settings, args.demo))


if __name__ == "__main__":
    main()
