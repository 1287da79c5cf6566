from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable

from fx_journal.metrics.outcome import closed_trades, trade_result
from fx_journal.metrics.summary import TradeResult, reduce_results
from fx_journal.models import Trade

Period = str

PERIOD_WEEK: Period = "week"
PERIOD_MONTH: Period = "month"
PERIODS = (PERIOD_WEEK, PERIOD_MONTH)


@dataclass(frozen=True)
class PeriodSummary:
    label: str
    total_trades: int
    wins: int
    losses: int
    win_rate: int
    total_pnl: float
    avg_r: float
    best_trade: float
    worst_trade: float


def period_key(day: date | datetime, period: Period) -> str:
    if isinstance(day, datetime):
        day = day.date()
    if period == PERIOD_WEEK:
        return (day - timedelta(days=day.weekday())).isoformat()
    if period == PERIOD_MONTH:
        return f"{day.year:04d}-{day.month:02d}"
    raise ValueError(f"Unknown period: {period}")


def summarize_periods(trades: Iterable[Trade], period: Period = PERIOD_WEEK) -> list[PeriodSummary]:
    """Closed trades grouped by ISO week (Monday start) or calendar month, newest first.

    Trades without a date cannot be placed in a period and are left out.
    """
    if period not in PERIODS:
        raise ValueError(f"Unknown period: {period}")

    buckets: dict[str, list[TradeResult]] = {}
    for trade in closed_trades(trades):
        if trade.date is None:
            continue
        r_value, pnl = trade_result(trade)
        key = period_key(trade.date, period)
        buckets.setdefault(key, []).append(TradeResult(r_multiple=r_value, dollar_pnl=pnl))

    rows: list[PeriodSummary] = []
    for key, results in sorted(buckets.items(), key=lambda item: item[0], reverse=True):
        summary = reduce_results(results)
        rows.append(
            PeriodSummary(
                label=key,
                total_trades=summary.total_trades,
                wins=summary.wins,
                losses=summary.losses,
                win_rate=summary.win_rate,
                total_pnl=summary.total_pnl,
                avg_r=summary.avg_r_multiple,
                best_trade=summary.best_trade,
                worst_trade=summary.worst_trade,
            )
        )
    return rows


def period_to_dict(row: PeriodSummary) -> dict[str, float | int | str]:
    return {
        "label": row.label,
        "total_trades": row.total_trades,
        "wins": row.wins,
        "losses": row.losses,
        "win_rate": row.win_rate,
        "total_pnl": row.total_pnl,
        "avg_r": row.avg_r,
        "best_trade": row.best_trade,
        "worst_trade": row.worst_trade,
    }
