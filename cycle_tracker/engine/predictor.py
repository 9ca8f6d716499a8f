"""Forward projection of period, PMS and ovulation dates.

Given the average cycle length and the most recent cycle start, the
predictor steps forward in whole cycles to produce prediction windows and
can label any date with its predicted cycle day.

Does NOT cache anything: every call recomputes from the two inputs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from uuid import UUID

from cycle_tracker.engine.config_loader import PredictionConfig, get_prediction_config
from cycle_tracker.engine.date_math import add_days, date_range, month_bounds
from cycle_tracker.engine.entries import PredictedEntry

logger = logging.getLogger("cycle_tracker.engine.predictor")


@dataclass(frozen=True)
class PmsWindow:
    """Inclusive PMS date span."""

    start: date
    end: date


@dataclass
class PredictionWindow:
    """One projected cycle.

    Attributes:
        cycle_start_date: Predicted first day of the period.
        period_dates:     The period days starting at ``cycle_start_date``.
        pms_dates:        Days 8 to 6 before the cycle start.
        ovulation_date:   14 days before the cycle start.
    """

    cycle_start_date: date
    period_dates: set[date] = field(default_factory=set)
    pms_dates: set[date] = field(default_factory=set)
    ovulation_date: date | None = None

    @property
    def pms_window(self) -> PmsWindow:
        return PmsWindow(start=min(self.pms_dates), end=max(self.pms_dates))


def pms_dates_for(cycle_start: date, config: PredictionConfig) -> set[date]:
    """PMS days for a cycle starting on ``cycle_start``."""
    pr = config.prediction
    return {
        add_days(cycle_start, -offset)
        for offset in range(pr.pms_end_offset_days, pr.pms_start_offset_days + 1)
    }


def ovulation_date_for(cycle_start: date, config: PredictionConfig) -> date:
    return add_days(cycle_start, -config.prediction.ovulation_offset_days)


def build_window(cycle_start: date, config: PredictionConfig) -> PredictionWindow:
    """Build the prediction window for a single cycle start."""
    return PredictionWindow(
        cycle_start_date=cycle_start,
        period_dates={add_days(cycle_start, i) for i in range(config.prediction.period_days)},
        pms_dates=pms_dates_for(cycle_start, config),
        ovulation_date=ovulation_date_for(cycle_start, config),
    )


class CyclePredictor:
    """Project future cycles from an average length and a known start.

    Usage::

        predictor = CyclePredictor(average_cycle_length=28, last_cycle_start=date(2026, 2, 1))
        windows = predictor.project_cycles(date(2026, 3, 1), count=3)
        predictor.predicted_cycle_day(date(2026, 3, 10))

    Either input may be ``None`` (not enough history).  A non-positive
    average is treated the same way.  In both cases every operation returns
    an empty result instead of raising.
    """

    def __init__(
        self,
        average_cycle_length: int | None,
        last_cycle_start: date | None,
        config: PredictionConfig | None = None,
    ) -> None:
        self.average_cycle_length = average_cycle_length
        self.last_cycle_start = last_cycle_start
        self._config = config or get_prediction_config()

    @property
    def is_determined(self) -> bool:
        return (
            self.average_cycle_length is not None
            and self.average_cycle_length > 0
            and self.last_cycle_start is not None
        )

    def first_start_on_or_after(self, from_date: date) -> date | None:
        """Step from the last start in whole cycles until reaching ``from_date``."""
        if not self.is_determined:
            return None
        step = timedelta(days=self.average_cycle_length)
        current = self.last_cycle_start
        while current < from_date:
            current += step
        return current

    def project_cycles(self, from_date: date, count: int) -> list[PredictionWindow]:
        """Project ``count`` consecutive cycles, the first starting on or after ``from_date``."""
        current = self.first_start_on_or_after(from_date)
        if current is None:
            return []

        windows = []
        for _ in range(count):
            windows.append(build_window(current, self._config))
            current = add_days(current, self.average_cycle_length)
        return windows

    def predicted_cycle_day(self, target_date: date) -> int | None:
        """Label ``target_date`` with its predicted cycle day.

        Counts forward one day at a time from the last start, wrapping back
        to 1 whenever the count passes the average length.  Dates on or
        before the last start are day 1.
        """
        if not self.is_determined:
            return None

        cycle_day = 1
        current = self.last_cycle_start
        while current < target_date:
            current += timedelta(days=1)
            cycle_day += 1
            if cycle_day > self.average_cycle_length:
                cycle_day = 1
        return cycle_day

    # ------------------------------------------------------------------
    # Single-cycle convenience projections
    # ------------------------------------------------------------------

    def next_window(self, from_date: date | None = None) -> PredictionWindow | None:
        """First projected window on or after ``from_date``.

        When ``from_date`` is omitted the projection starts the day after
        the last known start, i.e. ``last_cycle_start + average``.
        """
        if not self.is_determined:
            return None
        if from_date is None:
            from_date = add_days(self.last_cycle_start, 1)
        windows = self.project_cycles(from_date, 1)
        return windows[0] if windows else None

    def next_period_start(self, from_date: date | None = None) -> date | None:
        window = self.next_window(from_date)
        return window.cycle_start_date if window else None

    def pms_window(self, from_date: date | None = None) -> PmsWindow | None:
        window = self.next_window(from_date)
        return window.pms_window if window else None

    def next_ovulation_date(self, from_date: date | None = None) -> date | None:
        window = self.next_window(from_date)
        return window.ovulation_date if window else None

    # ------------------------------------------------------------------
    # Synthetic month entries
    # ------------------------------------------------------------------

    def predicted_entries(self, month_date: date, user_id: UUID) -> list[PredictedEntry]:
        """Synthesise one entry per day of the month containing ``month_date``.

        Period days come from the two cycles projected from the month's
        first day.
        """
        if not self.is_determined:
            logger.debug("No prediction data available for %s", month_date)
            return []

        month_start, month_end = month_bounds(month_date)
        period_dates: set[date] = set()
        for window in self.project_cycles(month_start, 2):
            period_dates |= window.period_dates

        entries = [
            PredictedEntry(
                user_id=user_id,
                date=day,
                cycle_day=self.predicted_cycle_day(day),
                is_period=day in period_dates,
            )
            for day in date_range(month_start, month_end)
        ]
        logger.debug(
            "Generated %d predicted entries for %s with %d period days",
            len(entries),
            month_start.strftime("%B %Y"),
            sum(1 for e in entries if e.is_period),
        )
        return entries
