#!/usr/bin/env python3
"""
CLI entry point for the transcript worker.

Runs one batch of transcript acquisition, or a Taddy health check.

Usage:
    uv run -m src.worker
    uv run -m src.worker --dry-run
    uv run -m src.worker --health-check

Examples:
    # Regular run, configuration from environment / .env
    uv run -m src.worker

    # See which episodes would be fetched
    uv run -m src.worker --dry-run --lookback-hours 72

    # Re-check the most recent episodes, ignoring existing transcripts
    uv run -m src.worker --last10

    # Write artifacts to a local directory instead of the bucket
    uv run -m src.worker --local data/transcripts --no-lock
"""

import argparse
import asyncio
import dataclasses
import sys
from typing import Optional

from rich.console import Console
from rich.table import Table

from src.db import check_database_connection, configure_database
from src.logger import setup_logging, default_log_file
from src.storage import BaseStorage, CloudStorage, LocalStorage
from src.taddy import TaddyBusinessClient, TaddyConfig
from src.transcription import TranscriptService
from .config import TranscriptWorkerConfig, load_transcript_worker_config
from .transcript_worker import RunSummary, TranscriptWorker


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fetch podcast episode transcripts from Taddy and store them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  uv run -m src.worker                          # Regular run
  uv run -m src.worker --dry-run                # List candidates only
  uv run -m src.worker --health-check           # Check Taddy connectivity and plan
  uv run -m src.worker --check-db               # Check database access and tables
  uv run -m src.worker --max-requests 5 --concurrency 2
  uv run -m src.worker --local data/transcripts --no-lock
        """,
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Select candidates without fetching"
    )
    parser.add_argument(
        "--health-check", action="store_true", help="Check Taddy API access and exit"
    )
    parser.add_argument(
        "--check-db",
        action="store_true",
        help="Check database access and the worker tables, then exit",
    )
    parser.add_argument(
        "--lookback-hours", type=int, help="Override TRANSCRIPT_LOOKBACK (1-168)"
    )
    parser.add_argument(
        "--max-requests", type=int, help="Override TRANSCRIPT_MAX_REQUESTS (1-100)"
    )
    parser.add_argument(
        "--concurrency", type=int, help="Override TRANSCRIPT_CONCURRENCY (1-50)"
    )
    parser.add_argument(
        "--no-lock", action="store_true", help="Run without the cross-instance lock"
    )
    parser.add_argument(
        "--last10",
        action="store_true",
        help="Re-check the most recent episodes, ignoring existing transcripts",
    )
    parser.add_argument(
        "--local",
        metavar="DIR",
        help="Store artifacts under DIR instead of the cloud bucket",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Detailed console output"
    )
    return parser


def apply_overrides(
    config: TranscriptWorkerConfig, args: argparse.Namespace
) -> TranscriptWorkerConfig:
    """Return a copy of ``config`` with CLI overrides applied (and validated)."""
    overrides = {}
    if args.lookback_hours is not None:
        overrides["lookback_hours"] = args.lookback_hours
    if args.max_requests is not None:
        overrides["max_requests"] = args.max_requests
    if args.concurrency is not None:
        overrides["concurrency"] = args.concurrency
    if args.no_lock:
        overrides["use_advisory_lock"] = False
    if args.last10:
        overrides["last10_mode"] = True
    return dataclasses.replace(config, **overrides)


def print_summary(summary: RunSummary) -> None:
    table = Table(title="Transcript worker run")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in summary.to_dict().items():
        if isinstance(value, float):
            value = f"{value:.1f}"
        table.add_row(key.replace("_", " "), str(value))
    console.print(table)


async def run_health_check(client: TaddyBusinessClient) -> bool:
    """Print connectivity and plan tier. Healthy means reachable, whatever the tier."""
    async with client:
        result = await client.health_check()

    if not result.connected:
        console.print(f"Taddy API not reachable: {result.error}", style="red")
        return False

    console.print("Taddy API reachable", style="green")
    if result.is_business_plan:
        console.print("  Plan: Business")
    else:
        console.print("  Plan: not Business (on-demand transcripts unavailable)", style="yellow")
    console.print(
        f"  On-demand transcripts: {result.transcripts_usage} / {result.transcripts_limit}"
    )
    return True


def run_database_check() -> bool:
    healthy, detail = check_database_connection()
    console.print(detail, style="green" if healthy else "red")
    return healthy


async def run_worker(
    config: TranscriptWorkerConfig, storage: Optional[BaseStorage], dry_run: bool
) -> RunSummary:
    if dry_run:
        # No remote calls or uploads, so no Taddy or bucket credentials needed
        return await TranscriptWorker(config, None, storage, dry_run=True).run()

    async with TranscriptService(TaddyBusinessClient(TaddyConfig.from_env())) as service:
        worker = TranscriptWorker(config, service, storage, dry_run=dry_run)
        return await worker.run()


def main():
    """
    Entry point for the transcript worker CLI.

    Exits with code 0 on success, 1 on error or a failed health or database
    check, and 130 when interrupted by the user.
    """
    parser = build_parser()
    args = parser.parse_args()

    logger = setup_logging(
        logger_name="transcript_worker",
        log_file=default_log_file("transcript_worker"),
        verbose=args.verbose,
    )

    try:
        if args.health_check:
            client = TaddyBusinessClient(TaddyConfig.from_env())
            healthy = asyncio.run(run_health_check(client))
            sys.exit(0 if healthy else 1)

        if args.check_db:
            configure_database()
            sys.exit(0 if run_database_check() else 1)

        config = apply_overrides(load_transcript_worker_config(), args)
        configure_database()

        if args.dry_run:
            storage = None
        elif args.local:
            storage = LocalStorage(args.local)
        else:
            storage = CloudStorage(config.bucket_name)

        summary = asyncio.run(run_worker(config, storage, args.dry_run))
        print_summary(summary)

        if config.enabled and config.use_advisory_lock and not summary.lock_acquired:
            console.print("Another run holds the lock, nothing done", style="yellow")
        if summary.quota_exhausted:
            console.print("Taddy quota exhausted, remaining episodes skipped", style="yellow")
        if summary.error_count > 0:
            console.print("Check logs/transcript_worker.log for detailed error information")
        sys.exit(0)

    except KeyboardInterrupt:
        console.print("\nRun interrupted by user")
        sys.exit(130)
    except ValueError as e:
        console.print(f"Configuration error: {e}", style="red")
        logger.error(f"Configuration error: {e}")
        sys.exit(1)
    except Exception as e:
        console.print(f"Transcript worker failed: {e}", style="red")
        logger.error(f"Transcript worker failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
