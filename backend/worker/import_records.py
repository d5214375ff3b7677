"""Worker: import legacy claimers, booster parties and whitelist into the database.

Reads claimers.json, twitter_campaign.json and twitter_whitelisted.json from
the given directory. Records that already exist are kept as they are.

Usage:
    python -m worker.import_records --source ./legacy-store
    python -m worker.import_records --source ./legacy-store --dry-run
"""

import argparse
from pathlib import Path

import structlog

from migrations.migrate import migrate
from pacrewards.services.record_import import ImportResult, import_directory
from pacrewards.services.record_store import RecordStore

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def main(argv: list[str] | None = None) -> ImportResult:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Import legacy JSON record documents",
    )
    parser.add_argument(
        "--source",
        "-s",
        required=True,
        type=Path,
        help="Directory holding the legacy JSON documents",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and count records without writing",
    )
    args: argparse.Namespace = parser.parse_args(argv)

    if not args.source.is_dir():
        parser.error(f"not a directory: {args.source}")

    logger.info("Starting legacy import", source=str(args.source), dry_run=args.dry_run)

    if not args.dry_run:
        migrate()
    store: RecordStore = RecordStore() if args.dry_run else RecordStore.open()
    result: ImportResult = import_directory(store, args.source, dry_run=args.dry_run)

    logger.info(
        "Import complete",
        claims=result.claims,
        parties=result.parties,
        whitelist=result.whitelist,
    )
    for note in result.skipped:
        logger.warning("import_skipped", detail=note)
    return result


if __name__ == "__main__":
    main()
