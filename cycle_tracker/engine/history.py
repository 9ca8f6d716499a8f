"""Reconstruct PMS and ovulation markers for a historical month.

Logged cycle starts near a month boundary can put their PMS or ovulation
days in a neighbouring month that has no start of its own.  The
reconstructor derives those markers from every start in the data slice,
then projects a couple of synthetic starts past the latest one so the
following weeks are covered too.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Sequence

from cycle_tracker.engine.config_loader import PredictionConfig, get_prediction_config
from cycle_tracker.engine.date_math import add_days, add_months, month_bounds
from cycle_tracker.engine.entries import CycleEntry
from cycle_tracker.engine.predictor import ovulation_date_for, pms_dates_for

logger = logging.getLogger("cycle_tracker.engine.history")


@dataclass
class MonthMarkers:
    """PMS and ovulation dates that fall inside one calendar month."""

    pms_dates: set[date] = field(default_factory=set)
    ovulation_dates: set[date] = field(default_factory=set)


class HistoricalReconstructor:
    """Derive the PMS/ovulation markers that applied to a past month."""

    def __init__(
        self,
        average_cycle_length: int | None,
        config: PredictionConfig | None = None,
    ) -> None:
        self.average_cycle_length = average_cycle_length
        self._config = config or get_prediction_config()

    def _add_markers(
        self,
        markers: MonthMarkers,
        cycle_start: date,
        month_start: date,
        month_end: date,
    ) -> None:
        for day in pms_dates_for(cycle_start, self._config):
            if month_start <= day <= month_end:
                markers.pms_dates.add(day)
        ovulation = ovulation_date_for(cycle_start, self._config)
        if month_start <= ovulation <= month_end:
            markers.ovulation_dates.add(ovulation)

    def reconstruct_month(
        self,
        month_date: date,
        logged_entries: Sequence[CycleEntry] | Iterable[CycleEntry],
    ) -> MonthMarkers:
        """Return the in-month PMS and ovulation dates for ``month_date``'s month.

        Args:
            month_date:     Any date inside the target month.
            logged_entries: Entries covering the month (and optionally its
                            neighbours), in any order.

        Returns:
            MonthMarkers; empty when the average length is unknown or no
            entry in the slice is a cycle start.
        """
        markers = MonthMarkers()
        average = self.average_cycle_length
        starts = sorted(e.date for e in logged_entries if e.cycle_day == 1)

        if average is None or average <= 0 or not starts:
            return markers

        month_start, month_end = month_bounds(month_date)

        for start in starts:
            self._add_markers(markers, start, month_start, month_end)

        horizon = add_months(month_end, self._config.history.horizon_months)
        projected = starts[-1]
        for _ in range(self._config.history.forward_projections):
            projected = add_days(projected, average)
            if projected > horizon:
                break
            self._add_markers(markers, projected, month_start, month_end)

        logger.debug(
            "Reconstructed %s: %d PMS day(s), %d ovulation day(s) from %d start(s)",
            month_start.strftime("%B %Y"),
            len(markers.pms_dates),
            len(markers.ovulation_dates),
            len(starts),
        )
        return markers
