"""Command-line entry point for the daily backfill.

    cycle-tracker-backfill --user-id 0b1c... [--through 2026-02-22] [--dry-run]

Without ``--user-id`` the ``BACKFILL_USER_ID`` setting is used.  Exits 1 on
any failure so a scheduler can alert on it.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date
from uuid import UUID

from cycle_tracker.config import ConfigurationError, Settings, load_settings
from cycle_tracker.engine.date_math import parse_date
from cycle_tracker.main import configure_logging
from cycle_tracker.services.supabase import Database
from cycle_tracker.sync.backfill import BackfillResult, BackfillRunner

log = logging.getLogger("cycle_tracker.sync.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Insert one cycle_data row per missing day up to yesterday.")
    parser.add_argument("--user-id", type=UUID, default=None, help="user to backfill (defaults to BACKFILL_USER_ID)")
    parser.add_argument("--through", type=parse_date, default=None, help="last date to fill, YYYY-MM-DD")
    parser.add_argument("--dry-run", action="store_true", help="plan only, write nothing")
    return parser


async def run_backfill(
    settings: Settings,
    user_id: UUID,
    through: date | None = None,
    dry_run: bool = False,
) -> BackfillResult:
    db = await Database.connect(settings, min_size=1, max_size=2)
    try:
        runner = BackfillRunner(db, tz_name=settings.backfill_timezone)
        return await runner.run(user_id, through=through, dry_run=dry_run)
    finally:
        await db.close()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        configure_logging()
        log.error("%s", exc)
        return 1

    configure_logging(settings.log_level)
    user_id = args.user_id or settings.backfill_user_id
    if user_id is None:
        log.error("No user given: pass --user-id or set BACKFILL_USER_ID")
        return 1

    log.info("Starting daily data filler for %s", user_id)
    try:
        result = asyncio.run(run_backfill(settings, user_id, args.through, args.dry_run))
    except Exception:
        log.exception("Backfill failed")
        return 1

    log.info(
        "Backfill %s: %d planned, %d inserted",
        result.status, len(result.planned), len(result.inserted),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
