"""Tests for the weighted average cycle length."""

from __future__ import annotations

from datetime import date

from cycle_tracker.engine.config_loader import PredictionConfig
from cycle_tracker.engine.statistics import (
    average_cycle_length,
    cycle_gaps,
    round_half_up,
    weighted_average,
)
from cycle_tracker.tests.conftest import starts


class TestAverageCycleLength:
    def test_no_starts_is_undetermined(self, prediction_config: PredictionConfig) -> None:
        assert average_cycle_length([], prediction_config) is None

    def test_single_start_is_undetermined(self, prediction_config: PredictionConfig) -> None:
        assert average_cycle_length(starts("2023-01-01"), prediction_config) is None

    def test_weighted_average_rounds_to_nearest(self, prediction_config: PredictionConfig) -> None:
        # Gaps 27 and 28: (27*1 + 28*2) / 3 = 27.67
        result = average_cycle_length(
            starts("2023-01-01", "2023-01-28", "2023-02-25"), prediction_config
        )
        assert result == 28

    def test_long_gap_is_discarded(self, prediction_config: PredictionConfig) -> None:
        # Gaps 31 and 59; 59 is above the 40-day limit
        result = average_cycle_length(
            starts("2023-01-01", "2023-02-01", "2023-04-01"), prediction_config
        )
        assert result == 31

    def test_all_gaps_discarded_is_undetermined(self, prediction_config: PredictionConfig) -> None:
        result = average_cycle_length(
            starts("2023-06-01", "2023-04-01", "2023-01-01"), prediction_config
        )
        assert result is None

    def test_gap_at_limit_is_kept(self, prediction_config: PredictionConfig) -> None:
        assert average_cycle_length(starts("2023-02-10", "2023-01-01"), prediction_config) == 40

    def test_later_gaps_carry_more_weight(self, prediction_config: PredictionConfig) -> None:
        # Newest-first input: newest gap 20 (weight 1), older gap 30 (weight 2)
        result = average_cycle_length(
            starts("2023-03-22", "2023-03-02", "2023-01-31"), prediction_config
        )
        assert result == 27  # (20 + 60) / 3 = 26.67

    def test_half_rounds_up(self, prediction_config: PredictionConfig) -> None:
        # Gaps 31, 28, 28: (31 + 56 + 84) / 6 = 28.5
        result = average_cycle_length(
            starts("2024-04-28", "2024-03-28", "2024-02-29", "2024-02-01"), prediction_config
        )
        assert result == 29

    def test_accepts_plain_dates(self, prediction_config: PredictionConfig) -> None:
        result = average_cycle_length(
            [date(2023, 2, 25), date(2023, 1, 28), date(2023, 1, 1)], prediction_config
        )
        # Newest-first gaps 28 and 27: (28*1 + 27*2) / 3 = 27.33
        assert result == 27

    def test_repeated_calls_agree(self, prediction_config: PredictionConfig) -> None:
        history = starts("2023-03-22", "2023-02-25", "2023-01-28", "2023-01-01")
        assert average_cycle_length(history, prediction_config) == average_cycle_length(
            history, prediction_config
        )


class TestHelpers:
    def test_cycle_gaps(self) -> None:
        assert cycle_gaps(starts("2023-02-25", "2023-01-28", "2023-01-01")) == [28, 27]

    def test_weighted_average_empty(self) -> None:
        assert weighted_average([]) is None

    def test_round_half_up(self) -> None:
        assert round_half_up(28.5) == 29
        assert round_half_up(27.5) == 28
        assert round_half_up(27.49) == 27
