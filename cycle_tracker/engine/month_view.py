"""Per-day calendar view combining logged data with predictions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Sequence

from cycle_tracker.engine.config_loader import PredictionConfig, get_prediction_config
from cycle_tracker.engine.date_math import date_range, month_bounds
from cycle_tracker.engine.entries import LoggedEntry
from cycle_tracker.engine.history import HistoricalReconstructor
from cycle_tracker.engine.predictor import CyclePredictor


@dataclass(frozen=True)
class CalendarDay:
    """Everything the calendar needs to render one date."""

    date: date
    cycle_day: int | None
    is_period: bool
    is_predicted_period: bool
    is_pms: bool
    is_ovulation: bool
    kind: str  # 'logged' | 'predicted'


def build_month_view(
    month_date: date,
    logged_entries: Sequence[LoggedEntry],
    average_cycle_length: int | None,
    last_cycle_start: date | None,
    config: PredictionConfig | None = None,
) -> list[CalendarDay]:
    """Build one CalendarDay per date in ``month_date``'s month.

    Logged values win over predicted ones.  PMS and ovulation markers are
    the union of forward projections and the historical reconstruction.
    """
    cfg = config or get_prediction_config()
    month_start, month_end = month_bounds(month_date)

    predictor = CyclePredictor(average_cycle_length, last_cycle_start, cfg)
    reconstructed = HistoricalReconstructor(average_cycle_length, cfg).reconstruct_month(
        month_date, logged_entries
    )

    predicted_period: set[date] = set()
    pms: set[date] = set(reconstructed.pms_dates)
    ovulation: set[date] = set(reconstructed.ovulation_dates)
    for window in predictor.project_cycles(month_start, cfg.prediction.forecast_cycles):
        predicted_period |= window.period_dates
        pms |= window.pms_dates
        if window.ovulation_date is not None:
            ovulation.add(window.ovulation_date)

    by_date = {e.date: e for e in logged_entries}
    days = []
    for day in date_range(month_start, month_end):
        logged = by_date.get(day)
        is_period = bool(logged and logged.is_period)
        days.append(
            CalendarDay(
                date=day,
                cycle_day=logged.cycle_day if logged else predictor.predicted_cycle_day(day),
                is_period=is_period,
                is_predicted_period=day in predicted_period and not is_period,
                is_pms=day in pms,
                is_ovulation=day in ovulation,
                kind=LoggedEntry.kind if logged else "predicted",
            )
        )
    return days
