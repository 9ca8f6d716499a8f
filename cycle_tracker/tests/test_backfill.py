"""Tests for the daily backfill planner, runner and CLI."""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cycle_tracker.engine.config_loader import PredictionConfig
from cycle_tracker.sync import cli
from cycle_tracker.sync.backfill import BackfillResult, BackfillRunner, PlannedEntry, plan_backfill
from cycle_tracker.tests.conftest import TEST_USER_ID, make_entry


class TestPlanBackfill:
    def test_fills_each_missing_day(self, prediction_config: PredictionConfig) -> None:
        last = make_entry(date(2026, 1, 1), cycle_day=1, is_period=True)
        planned = plan_backfill(last, date(2026, 1, 4), prediction_config)
        assert planned == [
            PlannedEntry(date(2026, 1, 2), 2, True),
            PlannedEntry(date(2026, 1, 3), 3, True),
            PlannedEntry(date(2026, 1, 4), 4, True),
        ]

    def test_period_ends_after_day_five(self, prediction_config: PredictionConfig) -> None:
        last = make_entry(date(2026, 1, 4), cycle_day=4, is_period=True)
        planned = plan_backfill(last, date(2026, 1, 6), prediction_config)
        assert [(p.cycle_day, p.is_period) for p in planned] == [(5, True), (6, False)]

    def test_wraps_after_day_35(self, prediction_config: PredictionConfig) -> None:
        last = make_entry(date(2026, 1, 1), cycle_day=34)
        planned = plan_backfill(last, date(2026, 1, 4), prediction_config)
        assert [(p.cycle_day, p.is_period) for p in planned] == [(35, False), (1, False), (2, True)]

    def test_nothing_to_fill(self, prediction_config: PredictionConfig) -> None:
        last = make_entry(date(2026, 1, 10), cycle_day=10)
        assert plan_backfill(last, date(2026, 1, 10), prediction_config) == []
        assert plan_backfill(last, date(2026, 1, 5), prediction_config) == []


class TestBackfillRunner:
    @pytest.mark.asyncio
    async def test_inserts_planned_rows_in_order(
        self, mock_db: MagicMock, prediction_config: PredictionConfig
    ) -> None:
        last = make_entry(date(2026, 2, 20), cycle_day=12)

        async def fake_insert(db, user_id, entry_date, cycle_day, is_period, max_cycle_day=None):
            return make_entry(entry_date, cycle_day, is_period)

        with patch(
            "cycle_tracker.services.cycle_data.get_last_entry", AsyncMock(return_value=last)
        ), patch(
            "cycle_tracker.services.cycle_data.insert_entry", AsyncMock(side_effect=fake_insert)
        ) as insert:
            runner = BackfillRunner(mock_db, config=prediction_config)
            result = await runner.run(TEST_USER_ID, through=date(2026, 2, 22))

        assert result.status == "filled"
        assert [e.cycle_day for e in result.inserted] == [13, 14]
        assert [c.args[2] for c in insert.call_args_list] == [date(2026, 2, 21), date(2026, 2, 22)]

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(
        self, mock_db: MagicMock, prediction_config: PredictionConfig
    ) -> None:
        last = make_entry(date(2026, 2, 20), cycle_day=12)
        with patch(
            "cycle_tracker.services.cycle_data.get_last_entry", AsyncMock(return_value=last)
        ), patch("cycle_tracker.services.cycle_data.insert_entry", AsyncMock()) as insert:
            result = await BackfillRunner(mock_db, config=prediction_config).run(
                TEST_USER_ID, through=date(2026, 2, 23), dry_run=True
            )

        assert result.status == "dry_run"
        assert len(result.planned) == 3
        insert.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_entries(self, mock_db: MagicMock, prediction_config: PredictionConfig) -> None:
        result = await BackfillRunner(mock_db, config=prediction_config).run(
            TEST_USER_ID, through=date(2026, 2, 23)
        )
        assert result.status == "no_entries"
        assert result.planned == []

    @pytest.mark.asyncio
    async def test_first_failure_aborts(
        self, mock_db: MagicMock, prediction_config: PredictionConfig
    ) -> None:
        last = make_entry(date(2026, 2, 20), cycle_day=12)
        with patch(
            "cycle_tracker.services.cycle_data.get_last_entry", AsyncMock(return_value=last)
        ), patch(
            "cycle_tracker.services.cycle_data.insert_entry",
            AsyncMock(side_effect=RuntimeError("connection lost")),
        ) as insert:
            with pytest.raises(RuntimeError):
                await BackfillRunner(mock_db, config=prediction_config).run(
                    TEST_USER_ID, through=date(2026, 2, 23)
                )
        assert insert.call_count == 1


class TestCli:
    def test_parser(self) -> None:
        args = cli.build_parser().parse_args(
            ["--user-id", str(TEST_USER_ID), "--through", "2026-02-22", "--dry-run"]
        )
        assert args.user_id == TEST_USER_ID
        assert args.through == date(2026, 2, 22)
        assert args.dry_run is True

    def test_parser_defaults(self) -> None:
        args = cli.build_parser().parse_args([])
        assert args.user_id is None
        assert args.through is None
        assert args.dry_run is False

    def test_missing_configuration_exits_1(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path
    ) -> None:
        monkeypatch.chdir(tmp_path)
        for key in ("SUPABASE_URL", "SUPABASE_DB_URL", "SUPABASE_JWT_SECRET"):
            monkeypatch.delenv(key, raising=False)
        assert cli.main(["--user-id", str(TEST_USER_ID)]) == 1

    def test_missing_user_exits_1(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")
        monkeypatch.setenv("SUPABASE_DB_URL", "postgresql://localhost/cycles")
        monkeypatch.setenv("SUPABASE_JWT_SECRET", "secret")
        monkeypatch.delenv("BACKFILL_USER_ID", raising=False)
        assert cli.main([]) == 1

    def test_successful_run_exits_0(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")
        monkeypatch.setenv("SUPABASE_DB_URL", "postgresql://localhost/cycles")
        monkeypatch.setenv("SUPABASE_JWT_SECRET", "secret")
        monkeypatch.setenv("BACKFILL_USER_ID", str(TEST_USER_ID))

        run = AsyncMock(return_value=BackfillResult(user_id=TEST_USER_ID, through=date(2026, 2, 22)))
        with patch.object(cli, "run_backfill", run):
            assert cli.main([]) == 0
        settings, user_id, through, dry_run = run.call_args.args
        assert user_id == TEST_USER_ID
        assert through is None
        assert dry_run is False
