"""Command-line entry point: run one MLS sync and print the result."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from mls_sync.config import settings
from mls_sync.database import SessionLocal, create_tables
from mls_sync.services import sync_service
from mls_sync.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def setup_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sync listings from the MLS feed into the local database.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=settings.mls_default_page_size,
        help="Page size requested from the MLS feed.",
    )
    parser.add_argument(
        "--status",
        default=settings.mls_default_status,
        help="MLS status filter passed to the feed.",
    )
    parser.add_argument("--log-level", default=settings.log_level)
    return parser


async def run_sync(limit: int, status: str) -> dict[str, int]:
    db = SessionLocal()
    try:
        result = await sync_service.sync_listings(db, limit=limit, status=status)
    finally:
        db.close()
    return result.model_dump(by_alias=True)


def main(argv: list[str] | None = None) -> int:
    parser = setup_arg_parser()
    args = parser.parse_args(argv)
    if args.limit < 1:
        parser.error("--limit must be >= 1")
    setup_logging(level=args.log_level)
    create_tables()

    logger.info("Starting MLS sync...")
    try:
        result = asyncio.run(run_sync(args.limit, args.status))
    except Exception as e:
        logger.error("MLS sync failed: %s", e)
        return 1

    logger.info("MLS sync completed")
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
