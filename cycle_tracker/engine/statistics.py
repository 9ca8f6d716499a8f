"""Average cycle length from historical cycle starts.

The average is recency-weighted over the gaps between consecutive starts.
Gaps are produced in input order (newest pair first) and weighted 1, 2, 3…
in that same order, so the oldest retained gap carries the largest weight.
That ordering is kept as-is; do not re-sort the gaps before weighting.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Iterable, Sequence

from cycle_tracker.engine.config_loader import PredictionConfig, get_prediction_config
from cycle_tracker.engine.date_math import days_between
from cycle_tracker.engine.entries import CycleStart

logger = logging.getLogger("cycle_tracker.engine.statistics")


def _as_date(start: CycleStart | date) -> date:
    return start.date if isinstance(start, CycleStart) else start


def cycle_gaps(starts: Sequence[CycleStart | date]) -> list[int]:
    """Return the absolute day gap for every adjacent pair of starts."""
    dates = [_as_date(s) for s in starts]
    return [days_between(a, b) for a, b in zip(dates, dates[1:])]


def weighted_average(values: Iterable[int]) -> float | None:
    """Weighted mean where the k-th value (1-indexed) has weight k."""
    total = 0
    weights = 0
    for weight, value in enumerate(values, start=1):
        total += value * weight
        weights += weight
    if weights == 0:
        return None
    return total / weights


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return math.floor(value + 0.5)


def average_cycle_length(
    cycle_starts: Sequence[CycleStart | date],
    config: PredictionConfig | None = None,
) -> int | None:
    """Estimate the average cycle length in days.

    Args:
        cycle_starts: Cycle-start dates, newest first.
        config:       Engine config (defaults to the bundled YAML).

    Returns:
        The rounded weighted average, or ``None`` when there are fewer than
        two starts or every gap was discarded as an anomaly.
    """
    cfg = (config or get_prediction_config()).cycle_length

    if len(cycle_starts) < cfg.min_starts:
        return None

    gaps = cycle_gaps(cycle_starts)
    kept = [g for g in gaps if g <= cfg.max_gap_days]
    if len(kept) < len(gaps):
        logger.debug(
            "Discarded %d gap(s) above %d days: %s",
            len(gaps) - len(kept),
            cfg.max_gap_days,
            [g for g in gaps if g > cfg.max_gap_days],
        )

    average = weighted_average(kept)
    if average is None:
        return None
    return round_half_up(average)
