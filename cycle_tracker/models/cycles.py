"""Pydantic models for cycle entries, predictions and calendar views."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated, Literal

from pydantic import Field

from cycle_tracker.models.base import TrackerBase


# ---------- Entries ----------

class LoggedEntryRead(TrackerBase):
    kind: Literal["logged"] = "logged"
    id: int
    user_id: uuid.UUID
    date: date
    cycle_day: int = Field(ge=1)
    is_period: bool


class PredictedEntryRead(TrackerBase):
    kind: Literal["predicted"] = "predicted"
    user_id: uuid.UUID
    date: date
    cycle_day: int = Field(ge=1)
    is_period: bool


CycleEntryRead = Annotated[LoggedEntryRead | PredictedEntryRead, Field(discriminator="kind")]


class CycleStartRead(TrackerBase):
    date: date


# ---------- Predictions ----------

class PmsWindowRead(TrackerBase):
    start: date
    end: date


class PredictionWindowRead(TrackerBase):
    cycle_start_date: date
    period_dates: list[date]
    pms_dates: list[date]
    ovulation_date: date | None = None


class PredictionSummary(TrackerBase):
    """Everything the predictions panel renders.

    ``average_cycle_length`` and the single-cycle fields are null when there
    is not enough history to predict.
    """

    average_cycle_length: int | None = None
    last_cycle_start: date | None = None
    next_period_start: date | None = None
    pms_window: PmsWindowRead | None = None
    next_ovulation_date: date | None = None
    upcoming: list[PredictionWindowRead] = Field(default_factory=list)
    recent_entries: list[LoggedEntryRead] = Field(default_factory=list)
    can_log_period: bool = False


class CycleDayRead(TrackerBase):
    date: date
    cycle_day: int | None = None


# ---------- Calendar ----------

class CalendarDayRead(TrackerBase):
    date: date
    cycle_day: int | None = None
    is_period: bool = False
    is_predicted_period: bool = False
    is_pms: bool = False
    is_ovulation: bool = False
    kind: Literal["logged", "predicted"]


class MonthViewRead(TrackerBase):
    year: int
    month: int = Field(ge=1, le=12)
    average_cycle_length: int | None = None
    days: list[CalendarDayRead]
    entries: list[CycleEntryRead] = Field(default_factory=list)


# ---------- Logging ----------

class CalendarSyncStatus(TrackerBase):
    attempted: bool = False
    synced: bool = False
    next_period_start: date | None = None
    error: str | None = None


class LogPeriodResponse(TrackerBase):
    entry: LoggedEntryRead
    calendar_sync: CalendarSyncStatus


# ---------- Google OAuth ----------

class OAuthUrlResponse(TrackerBase):
    url: str


class OAuthCallbackRequest(TrackerBase):
    code: str = Field(min_length=1)
    redirect_uri: str | None = None
