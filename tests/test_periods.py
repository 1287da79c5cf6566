"""Tests for weekly and monthly period summaries."""

from datetime import date, datetime

import pytest

from fx_journal.metrics.periods import (
    PERIOD_MONTH,
    PERIOD_WEEK,
    period_key,
    period_to_dict,
    summarize_periods,
)
from fx_journal.metrics.summary import compute_trade_statistics


class TestPeriodKey:
    def test_week_starts_monday(self):
        assert period_key(date(2024, 1, 7), PERIOD_WEEK) == "2024-01-01"
        assert period_key(date(2024, 1, 8), PERIOD_WEEK) == "2024-01-08"

    def test_week_across_year_boundary(self):
        assert period_key(date(2025, 1, 1), PERIOD_WEEK) == "2024-12-30"

    def test_month(self):
        assert period_key(datetime(2024, 3, 31, 23, 59), PERIOD_MONTH) == "2024-03"

    def test_unknown_period(self):
        with pytest.raises(ValueError):
            period_key(date(2024, 1, 1), "quarter")


class TestSummarizePeriods:
    def test_same_week_shares_a_bucket(self, make_trade):
        trades = [
            make_trade(2, date=date(2024, 1, 1)),
            make_trade(-1, date=date(2024, 1, 3)),
            make_trade(1, date=date(2024, 1, 9)),
        ]

        rows = summarize_periods(trades, PERIOD_WEEK)

        assert [row.label for row in rows] == ["2024-01-08", "2024-01-01"]
        first_week = rows[1]
        assert first_week.total_trades == 2
        assert first_week.wins == 1
        assert first_week.losses == 1
        assert first_week.win_rate == 50
        assert first_week.total_pnl == 100.0
        assert first_week.avg_r == 0.5
        assert first_week.best_trade == 200.0
        assert first_week.worst_trade == -100.0

    def test_buckets_add_up_to_the_whole(self, make_trade):
        trades = [
            make_trade(r, date=date(2024, month, day))
            for r, month, day in [(1, 1, 2), (-1, 1, 30), (3, 2, 14), (0, 2, 15), (-2, 3, 1)]
        ]

        rows = summarize_periods(trades, PERIOD_MONTH)
        stats = compute_trade_statistics(trades)

        assert [row.label for row in rows] == ["2024-03", "2024-02", "2024-01"]
        assert sum(row.total_trades for row in rows) == stats.total_trades
        assert sum(row.total_pnl for row in rows) == stats.total_pnl

    def test_undated_and_open_trades_are_left_out(self, make_trade, open_trade):
        rows = summarize_periods([make_trade(1, date=None), open_trade], PERIOD_WEEK)
        assert rows == []

    def test_unknown_period(self, make_trade):
        with pytest.raises(ValueError):
            summarize_periods([make_trade(1)], "year")

    def test_dict(self, make_trade):
        row = summarize_periods([make_trade(1)], PERIOD_WEEK)[0]
        assert period_to_dict(row)["label"] == "2024-01-01"
