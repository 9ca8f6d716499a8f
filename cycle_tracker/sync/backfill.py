"""Daily backfill of missing ``cycle_data`` rows.

Every day should have a row.  When days were not logged, the backfill
continues from the last logged entry up to "yesterday" in the configured
time zone, one row per missing day:

- ``cycle_day`` increments by one and wraps to 1 after day 35
- ``is_period`` is true for cycle days 2 through 5

This rule is independent of the live predictor, which uses
the computed average length and a five-day period from day 1.

Usage::

    runner = BackfillRunner(db)
    result = await runner.run(user_id)
    logger.info("Backfill inserted %d row(s)", len(result.inserted))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from uuid import UUID

from cycle_tracker.engine.config_loader import (
    BackfillRuleConfig,
    PredictionConfig,
    get_prediction_config,
)
from cycle_tracker.engine.date_math import add_days, date_range, today_in
from cycle_tracker.engine.entries import LoggedEntry
from cycle_tracker.services import cycle_data
from cycle_tracker.services.supabase import Database

logger = logging.getLogger("cycle_tracker.sync.backfill")


@dataclass(frozen=True)
class PlannedEntry:
    """A row the backfill intends to insert."""

    date: date
    cycle_day: int
    is_period: bool


@dataclass
class BackfillResult:
    """Outcome of one backfill run.

    Attributes:
        user_id:         User that was backfilled.
        through:         Last date the run aimed to fill.
        last_entry_date: Date of the latest row before the run (None if no rows).
        planned:         Rows the run intended to insert.
        inserted:        Rows actually written.
        dry_run:         True if nothing was written on purpose.
    """

    user_id: UUID
    through: date
    last_entry_date: date | None = None
    planned: list[PlannedEntry] = field(default_factory=list)
    inserted: list[LoggedEntry] = field(default_factory=list)
    dry_run: bool = False

    @property
    def status(self) -> str:
        if self.last_entry_date is None:
            return "no_entries"
        if not self.planned:
            return "up_to_date"
        if self.dry_run:
            return "dry_run"
        return "filled"


def next_cycle_day(cycle_day: int, rule: BackfillRuleConfig) -> int:
    """Increment a cycle day, wrapping to 1 above the maximum."""
    following = cycle_day + 1
    return 1 if following > rule.max_cycle_day else following


def is_backfill_period_day(cycle_day: int, rule: BackfillRuleConfig) -> bool:
    return rule.period_start_day <= cycle_day <= rule.period_end_day


def plan_backfill(
    last_entry: LoggedEntry,
    through: date,
    config: PredictionConfig | None = None,
) -> list[PlannedEntry]:
    """Rows needed to fill every day after ``last_entry`` through ``through``."""
    rule = (config or get_prediction_config()).backfill
    planned = []
    cycle_day = last_entry.cycle_day
    for day in date_range(add_days(last_entry.date, 1), through):
        cycle_day = next_cycle_day(cycle_day, rule)
        planned.append(
            PlannedEntry(date=day, cycle_day=cycle_day, is_period=is_backfill_period_day(cycle_day, rule))
        )
    return planned


def yesterday_in(tz_name: str) -> date:
    return today_in(tz_name) - timedelta(days=1)


class BackfillRunner:
    """Fill the gap between a user's last entry and yesterday.

    Inserts are sequential; the first failure aborts the run and propagates,
    leaving earlier days in place so the next run resumes after them.
    """

    def __init__(
        self,
        db: Database,
        tz_name: str = "UTC",
        config: PredictionConfig | None = None,
    ) -> None:
        self._db = db
        self._tz_name = tz_name
        self._config = config or get_prediction_config()

    async def run(
        self,
        user_id: UUID,
        through: date | None = None,
        dry_run: bool = False,
    ) -> BackfillResult:
        through = through or yesterday_in(self._tz_name)
        result = BackfillResult(user_id=user_id, through=through, dry_run=dry_run)

        last_entry = await cycle_data.get_last_entry(self._db, user_id)
        if last_entry is None:
            logger.info("No previous entries found for %s", user_id)
            return result

        result.last_entry_date = last_entry.date
        logger.info(
            "Last entry for %s: %s (cycle day %d)",
            user_id, last_entry.date, last_entry.cycle_day,
        )

        result.planned = plan_backfill(last_entry, through, self._config)
        if not result.planned:
            logger.info("Entries already present through %s", through)
            return result

        if dry_run:
            logger.info("Dry run: would insert %d row(s)", len(result.planned))
            return result

        for planned in result.planned:
            entry = await cycle_data.insert_entry(
                self._db,
                user_id,
                planned.date,
                planned.cycle_day,
                planned.is_period,
                max_cycle_day=self._config.backfill.max_cycle_day,
            )
            result.inserted.append(entry)

        logger.info(
            "Backfill for %s complete: %d row(s) through %s",
            user_id, len(result.inserted), through,
        )
        return result
