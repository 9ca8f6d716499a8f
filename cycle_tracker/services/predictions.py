"""Load the inputs the prediction engine needs for one user."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from cycle_tracker.engine.config_loader import PredictionConfig, get_prediction_config
from cycle_tracker.engine.entries import CycleStart
from cycle_tracker.engine.predictor import CyclePredictor
from cycle_tracker.engine.statistics import average_cycle_length
from cycle_tracker.services import cycle_data
from cycle_tracker.services.supabase import Database

logger = logging.getLogger("cycle_tracker.services.predictions")


@dataclass
class PredictionInputs:
    """Cycle history reduced to what the predictor consumes.

    Attributes:
        cycle_starts:         Most recent starts, newest first.
        average_cycle_length: Weighted average, or None when undetermined.
    """

    cycle_starts: list[CycleStart] = field(default_factory=list)
    average_cycle_length: int | None = None

    @property
    def last_cycle_start(self) -> date | None:
        return self.cycle_starts[0].date if self.cycle_starts else None

    def predictor(self, config: PredictionConfig | None = None) -> CyclePredictor:
        return CyclePredictor(self.average_cycle_length, self.last_cycle_start, config)


async def load_prediction_inputs(
    db: Database,
    user_id: UUID,
    config: PredictionConfig | None = None,
) -> PredictionInputs:
    cfg = config or get_prediction_config()
    starts = await cycle_data.get_last_cycle_starts(db, user_id, config=cfg)
    average = average_cycle_length(starts, cfg)
    if average is None:
        logger.info("Not enough cycle history to predict for user %s (%d start(s))", user_id, len(starts))
    return PredictionInputs(cycle_starts=starts, average_cycle_length=average)
