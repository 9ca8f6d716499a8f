"""Read and write ``cycle_data`` rows.

Table layout (managed in Supabase)::

    cycle_data(id bigserial, user_id uuid, date date, cycle_day int,
               period bool, UNIQUE (user_id, date))

Rows come back newest date first and are converted to ``LoggedEntry``.
"""

from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

import asyncpg

from cycle_tracker.engine.config_loader import PredictionConfig, get_prediction_config
from cycle_tracker.engine.date_math import month_bounds
from cycle_tracker.engine.entries import CycleStart, LoggedEntry
from cycle_tracker.services.supabase import Database

logger = logging.getLogger("cycle_tracker.services.cycle_data")


class DuplicateEntryError(Exception):
    """An entry for this user and date already exists."""

    def __init__(self, user_id: UUID, entry_date: date) -> None:
        self.user_id = user_id
        self.entry_date = entry_date
        super().__init__(f"An entry for {entry_date.isoformat()} already exists")


def _to_entry(row) -> LoggedEntry:
    return LoggedEntry(
        id=row["id"],
        user_id=row["user_id"],
        date=row["date"],
        cycle_day=row["cycle_day"],
        is_period=row["period"],
    )


async def get_cycle_data(db: Database, user_id: UUID, limit: int | None = None) -> list[LoggedEntry]:
    """All entries for a user, newest first."""
    query = "SELECT * FROM cycle_data WHERE user_id = $1 ORDER BY date DESC"
    params: list = [user_id]
    if limit is not None:
        query += " LIMIT $2"
        params.append(limit)
    rows = await db.fetch(query, *params, user_id=user_id)
    return [_to_entry(r) for r in rows]


async def get_cycle_data_for_month(db: Database, user_id: UUID, month_date: date) -> list[LoggedEntry]:
    """Entries within the calendar month containing ``month_date``, newest first."""
    first, last = month_bounds(month_date)
    rows = await db.fetch(
        """
        SELECT * FROM cycle_data
        WHERE user_id = $1 AND date >= $2 AND date <= $3
        ORDER BY date DESC
        """,
        user_id,
        first,
        last,
        user_id=user_id,
    )
    return [_to_entry(r) for r in rows]


async def get_last_cycle_starts(
    db: Database,
    user_id: UUID,
    limit: int | None = None,
    config: PredictionConfig | None = None,
) -> list[CycleStart]:
    """The most recent cycle starts (cycle_day = 1), newest first."""
    if limit is None:
        limit = (config or get_prediction_config()).cycle_length.history_limit
    rows = await db.fetch(
        """
        SELECT date FROM cycle_data
        WHERE user_id = $1 AND cycle_day = 1
        ORDER BY date DESC
        LIMIT $2
        """,
        user_id,
        limit,
        user_id=user_id,
    )
    return [CycleStart(date=r["date"]) for r in rows]


async def get_last_entry(db: Database, user_id: UUID) -> LoggedEntry | None:
    row = await db.fetchrow(
        "SELECT * FROM cycle_data WHERE user_id = $1 ORDER BY date DESC LIMIT 1",
        user_id,
        user_id=user_id,
    )
    return _to_entry(row) if row else None


async def get_entry_for_date(db: Database, user_id: UUID, entry_date: date) -> LoggedEntry | None:
    row = await db.fetchrow(
        "SELECT * FROM cycle_data WHERE user_id = $1 AND date = $2",
        user_id,
        entry_date,
        user_id=user_id,
    )
    return _to_entry(row) if row else None


async def insert_entry(
    db: Database,
    user_id: UUID,
    entry_date: date,
    cycle_day: int,
    is_period: bool,
    max_cycle_day: int | None = None,
) -> LoggedEntry:
    """Insert one entry.

    Raises:
        ValueError:          If ``cycle_day`` is outside 1..max_cycle_day.
        DuplicateEntryError: If the user already has an entry on ``entry_date``.
    """
    if max_cycle_day is None:
        max_cycle_day = get_prediction_config().backfill.max_cycle_day
    if not 1 <= cycle_day <= max_cycle_day:
        raise ValueError(f"Invalid cycle day {cycle_day} (expected 1..{max_cycle_day})")

    try:
        row = await db.fetchrow(
            """
            INSERT INTO cycle_data (user_id, date, cycle_day, period)
            VALUES ($1, $2, $3, $4)
            RETURNING *
            """,
            user_id,
            entry_date,
            cycle_day,
            is_period,
            user_id=user_id,
        )
    except asyncpg.UniqueViolationError as exc:
        raise DuplicateEntryError(user_id, entry_date) from exc

    entry = _to_entry(row)
    logger.info(
        "Inserted cycle entry for %s on %s (day %d, period=%s)",
        user_id, entry.date, entry.cycle_day, entry.is_period,
    )
    return entry


async def log_period(db: Database, user_id: UUID, today: date) -> LoggedEntry:
    """Record ``today`` as the first day of a new cycle."""
    return await insert_entry(db, user_id, today, cycle_day=1, is_period=True)
