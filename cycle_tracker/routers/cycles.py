"""Cycle entries, predictions, calendar months and period logging."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any
from zoneinfo import ZoneInfoNotFoundError

import asyncpg
from fastapi import APIRouter, HTTPException, Path, Query

from cycle_tracker.dependencies import AppSettings, CalendarClient, CurrentUser, Db
from cycle_tracker.engine.config_loader import get_prediction_config
from cycle_tracker.engine.date_math import add_months, month_bounds, today_in
from cycle_tracker.engine.entries import LoggedEntry
from cycle_tracker.engine.month_view import build_month_view
from cycle_tracker.engine.predictor import CyclePredictor
from cycle_tracker.models.base import ErrorDetail
from cycle_tracker.models.cycles import (
    CalendarDayRead,
    CalendarSyncStatus,
    CycleDayRead,
    CycleStartRead,
    LoggedEntryRead,
    LogPeriodResponse,
    MonthViewRead,
    PmsWindowRead,
    PredictedEntryRead,
    PredictionSummary,
    PredictionWindowRead,
)
from cycle_tracker.services import cycle_data
from cycle_tracker.services.cycle_data import DuplicateEntryError
from cycle_tracker.services.google_calendar import CalendarSyncError, GoogleCalendarClient
from cycle_tracker.services.predictions import load_prediction_inputs
from cycle_tracker.services.supabase import Database

router = APIRouter(prefix="/cycles", tags=["cycles"])
logger = logging.getLogger("cycle_tracker.routers.cycles")

RECENT_ENTRIES = 5


def _resolve_today(tz_name: str) -> date:
    try:
        return today_in(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise HTTPException(status_code=400, detail=f"Unknown time zone: {tz_name}")


def _window_read(window) -> PredictionWindowRead:
    return PredictionWindowRead(
        cycle_start_date=window.cycle_start_date,
        period_dates=sorted(window.period_dates),
        pms_dates=sorted(window.pms_dates),
        ovulation_date=window.ovulation_date,
    )


def _can_log_period(latest: LoggedEntry | None) -> bool:
    """A new period can be logged once the latest day is late in a non-period stretch."""
    min_day = get_prediction_config().log_button_min_cycle_day
    return latest is not None and not latest.is_period and latest.cycle_day >= min_day


# ---------- Entries ----------

@router.get("", response_model=list[LoggedEntryRead])
async def list_entries(
    user: CurrentUser,
    db: Db,
    limit: int | None = Query(default=None, ge=1, le=1000),
) -> Any:
    return await cycle_data.get_cycle_data(db, user.user_id, limit=limit)


@router.get("/starts", response_model=list[CycleStartRead])
async def list_cycle_starts(user: CurrentUser, db: Db) -> Any:
    return await cycle_data.get_last_cycle_starts(db, user.user_id)


# ---------- Predictions ----------

@router.get("/predictions", response_model=PredictionSummary)
async def get_predictions(
    user: CurrentUser,
    db: Db,
    settings: AppSettings,
    as_of: date | None = Query(default=None),
    cycles: int | None = Query(default=None, ge=1, le=12),
) -> Any:
    config = get_prediction_config()
    inputs = await load_prediction_inputs(db, user.user_id, config)
    recent = await cycle_data.get_cycle_data(db, user.user_id, limit=RECENT_ENTRIES)
    predictor = inputs.predictor(config)

    summary = PredictionSummary(
        average_cycle_length=inputs.average_cycle_length,
        last_cycle_start=inputs.last_cycle_start,
        recent_entries=[LoggedEntryRead.model_validate(e) for e in recent],
        can_log_period=_can_log_period(recent[0] if recent else None),
    )
    if not predictor.is_determined:
        return summary

    window = predictor.next_window()
    summary.next_period_start = window.cycle_start_date
    summary.pms_window = PmsWindowRead(start=window.pms_window.start, end=window.pms_window.end)
    summary.next_ovulation_date = window.ovulation_date

    from_date = as_of or _resolve_today(settings.default_timezone)
    upcoming = predictor.project_cycles(from_date, cycles or config.prediction.forecast_cycles)
    summary.upcoming = [_window_read(w) for w in upcoming]
    return summary


@router.get("/cycle-day", response_model=CycleDayRead)
async def get_cycle_day(
    user: CurrentUser,
    db: Db,
    target: date = Query(alias="date"),
) -> Any:
    inputs = await load_prediction_inputs(db, user.user_id)
    logged = await cycle_data.get_entry_for_date(db, user.user_id, target)
    if logged is not None:
        return CycleDayRead(date=target, cycle_day=logged.cycle_day)
    return CycleDayRead(date=target, cycle_day=inputs.predictor().predicted_cycle_day(target))


# ---------- Calendar months ----------

@router.get("/months/{year}/{month}", response_model=MonthViewRead)
async def get_month(
    user: CurrentUser,
    db: Db,
    year: int = Path(ge=1900, le=2200),
    month: int = Path(ge=1, le=12),
) -> Any:
    month_date = date(year, month, 1)
    inputs = await load_prediction_inputs(db, user.user_id)

    logged = await cycle_data.get_cycle_data_for_month(db, user.user_id, month_date)
    # Starts early next month put PMS / ovulation days into this one
    following = await cycle_data.get_cycle_data_for_month(db, user.user_id, add_months(month_date, 1))

    days = build_month_view(
        month_date,
        logged + following,
        inputs.average_cycle_length,
        inputs.last_cycle_start,
    )

    if logged:
        entries: list = [LoggedEntryRead.model_validate(e) for e in logged]
    else:
        entries = [
            PredictedEntryRead.model_validate(e)
            for e in inputs.predictor().predicted_entries(month_date, user.user_id)
        ]

    first, _ = month_bounds(month_date)
    return MonthViewRead(
        year=first.year,
        month=first.month,
        average_cycle_length=inputs.average_cycle_length,
        days=[CalendarDayRead.model_validate(d) for d in days],
        entries=entries,
    )


# ---------- Period logging ----------

async def _sync_calendar(
    calendar: GoogleCalendarClient,
    db: Database,
    entry: LoggedEntry,
    tz_name: str,
) -> CalendarSyncStatus:
    """Create calendar events for the cycle after ``entry``.  Never raises."""
    status = CalendarSyncStatus(attempted=True)
    try:
        inputs = await load_prediction_inputs(db, entry.user_id)
        next_start = CyclePredictor(inputs.average_cycle_length, entry.date).next_period_start()
        if next_start is None:
            status.error = "Not enough history to predict the next period"
            return status
        status.next_period_start = next_start
        await calendar.create_cycle_events(entry.user_id, next_start, tz_name)
        status.synced = True
    except (CalendarSyncError, asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
        # OSError covers TimeoutError and dropped pool connections
        logger.warning("Calendar sync failed for user %s: %r", entry.user_id, exc)
        status.error = str(exc) or type(exc).__name__
    return status


@router.post(
    "/period",
    response_model=LogPeriodResponse,
    status_code=201,
    responses={400: {"model": ErrorDetail}, 409: {"model": ErrorDetail}},
)
async def log_period(
    user: CurrentUser,
    db: Db,
    settings: AppSettings,
    calendar: CalendarClient,
    timezone: str | None = Query(default=None),
) -> Any:
    tz_name = timezone or settings.default_timezone
    today = _resolve_today(tz_name)

    try:
        entry = await cycle_data.log_period(db, user.user_id, today)
    except DuplicateEntryError as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    if settings.calendar_sync_enabled:
        sync = await _sync_calendar(calendar, db, entry, tz_name)
    else:
        sync = CalendarSyncStatus()

    return LogPeriodResponse(entry=LoggedEntryRead.model_validate(entry), calendar_sync=sync)
