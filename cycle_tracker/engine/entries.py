"""Cycle entry value types used by the engine.

A day in the calendar is either a ``LoggedEntry`` (a persisted row) or a
``PredictedEntry`` (synthesised for display, never written back).  The two
are separate types so a predicted day can never be mistaken for a real row.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID


@dataclass(frozen=True)
class LoggedEntry:
    """One persisted day for one user.

    Attributes:
        id:         Database row id.
        user_id:    Owner.
        date:       Civil date of the entry.
        cycle_day:  1 = first day of the period.
        is_period:  True if bleeding was logged on this date.
    """

    id: int
    user_id: UUID
    date: date
    cycle_day: int
    is_period: bool

    kind = "logged"

    @property
    def is_cycle_start(self) -> bool:
        return self.cycle_day == 1


@dataclass(frozen=True)
class PredictedEntry:
    """A synthesised day produced by the predictor."""

    user_id: UUID
    date: date
    cycle_day: int
    is_period: bool

    kind = "predicted"

    @property
    def is_cycle_start(self) -> bool:
        return self.cycle_day == 1


CycleEntry = LoggedEntry | PredictedEntry


@dataclass(frozen=True)
class CycleStart:
    """A date logged with cycle day 1."""

    date: date
