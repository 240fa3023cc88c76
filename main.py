"""
Live Flight Snapshot Service - Entry Point

Run the refresh scheduler:
    python main.py

One refresh, a route lookup, or a manual cleanup:
    python main.py --run-once
    python main.py --lookup 4b1805
    python main.py --reap 1718000000000

Or import and use programmatically:
    from src.ingestion import run_refresh, current_states, start_scheduler

Environment variables:
    SCHEDULER_INTERVAL_SECONDS: Refresh interval (default: 300s)
    SCHEDULER_RUN_ON_START: Run immediately on start (default: true)
    OPENSKY_CLIENT_ID / OPENSKY_CLIENT_SECRET: OAuth2 client credentials
"""

import argparse
import json
import sys

from src.utils.logger import setup_logger, logger
from src.ingestion.config import settings

from dotenv import load_dotenv
load_dotenv()


def main():
    """Main entry point for the services."""
    parser = argparse.ArgumentParser(
        description="Live Flight Snapshot Service"
    )
    parser.add_argument(
        "--run-once",
        action="store_true",
        help="Run a single refresh instead of scheduling",
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Refresh interval in seconds (default: from settings)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (default: from settings)",
    )
    parser.add_argument(
        "--lookup",
        metavar="ICAO24",
        default=None,
        help="Print the most recent route of one aircraft and exit",
    )
    parser.add_argument(
        "--reap",
        metavar="SNAPSHOT_TIME",
        type=int,
        default=None,
        help="Delete a superseded snapshot left behind by a partial run",
    )

    args = parser.parse_args()

    # Configure logging
    log_level = args.log_level or settings.logging.level
    setup_logger(
        log_level=log_level,
        log_dir=settings.logging.log_dir,
        log_file=settings.logging.log_file,
        rotation=settings.logging.rotation,
        retention=settings.logging.retention,
        serialize=settings.logging.serialize,
    )

    if args.lookup:
        from src.ingestion import RouteLookup, create_client

        detail = RouteLookup(create_client()).lookup(args.lookup)
        if detail is None:
            logger.warning(f"No recent flight found for {args.lookup}")
            sys.exit(1)
        print(json.dumps(detail.to_document(), indent=2))
        return

    if args.reap is not None:
        from src.ingestion import RefreshJob
        from src.utils.exceptions import FlightServiceError

        try:
            result = RefreshJob().reap(args.reap)
        except FlightServiceError as e:
            logger.error(f"Cleanup of snapshot {args.reap} failed: {e}")
            sys.exit(1)
        logger.info(f"Deleted {result.rows_deleted} rows of snapshot {result.snapshot_time} in {result.batches} batches")
        return

    logger.info("=" * 60)
    logger.info("LIVE FLIGHT SNAPSHOT SERVICE")
    logger.info("=" * 60)
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Database: {settings.database.full_path}")
    logger.info(f"Run once: {args.run_once}")

    if not settings.opensky.has_credentials:
        logger.warning("OPENSKY_CLIENT_ID / OPENSKY_CLIENT_SECRET not set, every refresh will fail with AUTH")

    if args.run_once:
        from src.ingestion import run_refresh

        result = run_refresh()
        logger.info(f"Refresh result: {result.status.value}")
        logger.info(f"Aircraft: {result.state_count}, with route: {result.enriched_count}")
        if result.snapshot_time:
            logger.info(f"Active snapshot: {result.snapshot_time}")
        if result.error_message:
            logger.error(f"Error: {result.error_message}")
    else:
        from src.ingestion import create_scheduler

        interval = args.interval or settings.scheduler.interval_seconds
        logger.info(f"Starting scheduler with {interval}s interval")

        scheduler = create_scheduler(interval_seconds=interval)
        scheduler.start()


if __name__ == "__main__":
    main()
