"""Cycle prediction engine.

Pure, synchronous computations over in-memory values.  Nothing here does
I/O or keeps state between calls.

Modules:
    config_loader — load/validate prediction_config.yaml
    date_math     — civil-date formatting and day arithmetic
    entries       — logged and predicted day value types
    statistics    — weighted average cycle length from cycle starts
    predictor     — forward projection of period / PMS / ovulation windows
    history       — PMS / ovulation markers for historical months
    month_view    — per-day calendar view combining logs and predictions
"""

from cycle_tracker.engine.entries import CycleEntry, CycleStart, LoggedEntry, PredictedEntry
from cycle_tracker.engine.history import HistoricalReconstructor, MonthMarkers
from cycle_tracker.engine.month_view import CalendarDay, build_month_view
from cycle_tracker.engine.predictor import CyclePredictor, PmsWindow, PredictionWindow
from cycle_tracker.engine.statistics import average_cycle_length

__all__ = [
    "CalendarDay",
    "CycleEntry",
    "CyclePredictor",
    "CycleStart",
    "HistoricalReconstructor",
    "LoggedEntry",
    "MonthMarkers",
    "PmsWindow",
    "PredictedEntry",
    "PredictionWindow",
    "average_cycle_length",
    "build_month_view",
]
