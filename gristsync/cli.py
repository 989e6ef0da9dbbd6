"""Command line interface for the sync engine."""

import argparse
import json
import logging
import sys
from typing import Any, Dict, Optional

from .config import SyncSettings
from .errors import ConfigurationError, SyncError, describe_error, format_error_for_log
from .logsink import logging_sink
from .service import SyncService
from .services.endpoint_resolver import parse_destination_url
from .services.field_mapper import generate_mappings_from_sample

logger = logging.getLogger(__name__)


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Grist Sync - keep a Grist table in step with an external data source"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Run a sync
    run_parser = subparsers.add_parser("run", help="Run a sync")
    run_parser.add_argument("--config", required=True, help="Path to the settings file")
    run_parser.add_argument("--dry-run", action="store_true", help="Classify rows without changing anything")
    run_parser.add_argument("--report", help="Write the result as JSON to this file")
    run_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # Preview
    preview_parser = subparsers.add_parser("preview", help="Show what a sync would change")
    preview_parser.add_argument("--config", required=True, help="Path to the settings file")
    preview_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # Suggest mappings
    suggest_parser = subparsers.add_parser("suggest", help="Suggest mappings from a sample record")
    suggest_parser.add_argument("--input", required=True, help="Path to a sample JSON record (or list)")
    suggest_parser.add_argument("--max-depth", type=int, default=5, help="Deepest path to suggest")
    suggest_parser.add_argument("--output", help="Output file path")

    # Resolve a URL
    resolve_parser = subparsers.add_parser("resolve", help="Read document and table ids from a URL")
    resolve_parser.add_argument("url", help="Document URL")

    # Check connections
    check_parser = subparsers.add_parser("check", help="Check destination access and source connectivity")
    check_parser.add_argument("--config", required=True, help="Path to the settings file")
    check_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    args = parser.parse_args(argv)

    # Set up logging
    log_level = logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    commands = {
        "run": run_sync,
        "preview": run_preview,
        "suggest": run_suggest,
        "resolve": run_resolve,
        "check": run_check,
    }
    if args.command not in commands:
        parser.print_help()
        return 1

    try:
        return commands[args.command](args)
    except SyncError as e:
        print(format_error_for_log(describe_error(e)), file=sys.stderr)
        return 2


def _load_service(path: str, dry_run: bool = False) -> SyncService:
    settings = SyncSettings.load(path)
    if dry_run:
        settings.sync.dry_run = True
    return SyncService(settings, sink=logging_sink())


def _print_json(data: Dict[str, Any]) -> None:
    print(json.dumps(data, indent=2, default=str))


def run_sync(args) -> int:
    """Run a sync from a settings file."""
    service = _load_service(args.config, dry_run=args.dry_run)
    result = service.sync()

    print("\n" + "=" * 60)
    print("SYNC COMPLETE" if not service.config.dry_run else "DRY RUN COMPLETE")
    print("=" * 60)
    print(f"Added: {result.added}")
    print(f"Updated: {result.updated}")
    print(f"Unchanged: {result.unchanged}")
    print(f"Errors: {result.errors}")
    if result.duration_seconds is not None:
        print(f"Duration: {result.duration_seconds:.2f} seconds")
    for line in result.details:
        print(f"  {line}")

    if args.report:
        report = result.to_dict()
        if service.last_preview is not None:
            report["preview"] = service.last_preview.to_dict()
        with open(args.report, "w") as f:
            json.dump(report, f, indent=2, default=str)
        print(f"Report saved to {args.report}")

    return 0 if result.success else 1


def run_preview(args) -> int:
    """Print the classification a sync would produce."""
    service = _load_service(args.config, dry_run=True)
    result = service.sync()
    if service.last_preview is None or not result.success:
        for line in result.details:
            print(line, file=sys.stderr)
        return 1

    _print_json(service.last_preview.to_dict())
    return 0


def run_suggest(args) -> int:
    """Suggest mappings from a sample file."""
    try:
        with open(args.input) as f:
            sample = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read sample {args.input}: {e}", field="input") from e

    if isinstance(sample, list):
        sample = sample[0] if sample else None

    mappings = generate_mappings_from_sample(sample, max_depth=args.max_depth)
    output = {"mapping": [mapping.to_dict() for mapping in mappings]}

    if args.output:
        with open(args.output, "w") as f:
            json.dump(output, f, indent=2)
        print(f"{len(mappings)} mappings saved to {args.output}")
    else:
        _print_json(output)
    return 0


def run_resolve(args) -> int:
    """Print the endpoint a URL resolves to."""
    endpoint = parse_destination_url(args.url)
    if endpoint is None:
        print(f"Not a document URL: {args.url}", file=sys.stderr)
        return 1

    _print_json(endpoint.to_dict())
    return 0


def run_check(args) -> int:
    """Check destination access and source connectivity."""
    service = _load_service(args.config)

    access = None
    check_access = getattr(service.destination, "check_access", None)
    if check_access is not None:
        access = check_access()
        print(f"Destination access: {access.message}")

    connections = service.test_connections()
    print(f"Destination: {'ok' if connections['destination'] else 'FAILED'}")
    print(f"Source: {'ok' if connections['source'] else 'FAILED'}")

    if access is not None and access.needs_auth:
        print("Set api_token in the settings file or the GRIST_API_TOKEN environment variable")

    return 0 if all(connections.values()) else 1


if __name__ == "__main__":
    sys.exit(main())
