from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from fx_journal.metrics.numeric import round_half_up
from fx_journal.metrics.outcome import closed_trades, trade_result
from fx_journal.models import Trade

HOLDING_TIME_PLACEHOLDER = "—"


@dataclass(frozen=True)
class TradeResult:
    r_multiple: float
    dollar_pnl: float


@dataclass(frozen=True)
class ResultSummary:
    total_trades: int
    wins: int
    losses: int
    breakevens: int
    win_rate: int
    avg_r_multiple: float
    total_pnl: float
    best_trade: float
    worst_trade: float
    total_wins: float
    total_losses: float
    profit_factor: float


@dataclass(frozen=True)
class TradeStatistics:
    total_trades: int
    wins: int
    losses: int
    breakevens: int
    win_rate: int
    total_pnl: float
    avg_r_multiple: float
    best_trade: float
    worst_trade: float
    profit_factor: float
    avg_win: float
    avg_loss: float
    avg_holding_time: str
    expectancy: float
    max_drawdown: float
    consecutive_wins: int
    consecutive_losses: int


def trade_results(trades: Iterable[Trade]) -> list[TradeResult]:
    results = []
    for trade in closed_trades(trades):
        r_value, pnl = trade_result(trade)
        results.append(TradeResult(r_multiple=r_value, dollar_pnl=pnl))
    return results


def reduce_results(results: Sequence[TradeResult]) -> ResultSummary:
    """Win/loss counts, rates and P&L extremes shared by every breakdown of trades."""
    total = len(results)
    if not total:
        return ResultSummary(
            total_trades=0,
            wins=0,
            losses=0,
            breakevens=0,
            win_rate=0,
            avg_r_multiple=0.0,
            total_pnl=0.0,
            best_trade=0.0,
            worst_trade=0.0,
            total_wins=0.0,
            total_losses=0.0,
            profit_factor=0.0,
        )

    wins = [result.dollar_pnl for result in results if result.dollar_pnl > 0]
    losses = [result.dollar_pnl for result in results if result.dollar_pnl < 0]
    total_wins = sum(wins)
    total_losses = abs(sum(losses))

    if total_losses == 0:
        profit_factor = round_half_up(total_wins, 2)
    else:
        profit_factor = round_half_up(total_wins / total_losses, 2)

    pnls = [result.dollar_pnl for result in results]
    return ResultSummary(
        total_trades=total,
        wins=len(wins),
        losses=len(losses),
        breakevens=total - len(wins) - len(losses),
        win_rate=int(round_half_up(len(wins) / total * 100)),
        avg_r_multiple=round_half_up(sum(result.r_multiple for result in results) / total, 2),
        total_pnl=round_half_up(sum(pnls), 2),
        best_trade=round_half_up(max(pnls), 2),
        worst_trade=round_half_up(min(pnls), 2),
        total_wins=total_wins,
        total_losses=total_losses,
        profit_factor=profit_factor,
    )


def compute_trade_statistics(trades: Iterable[Trade]) -> TradeStatistics:
    """Statistics over the closed trades, in the order given.

    Order matters for streaks and drawdown, so callers pass trades oldest first.
    """
    results = trade_results(trades)
    summary = reduce_results(results)

    avg_win = summary.total_wins / summary.wins if summary.wins else 0.0
    avg_loss = summary.total_losses / summary.losses if summary.losses else 0.0
    win_fraction = summary.win_rate / 100
    expectancy = win_fraction * avg_win - (1 - win_fraction) * avg_loss

    max_wins, max_losses = _max_streaks(results)

    return TradeStatistics(
        total_trades=summary.total_trades,
        wins=summary.wins,
        losses=summary.losses,
        breakevens=summary.breakevens,
        win_rate=summary.win_rate,
        total_pnl=summary.total_pnl,
        avg_r_multiple=summary.avg_r_multiple,
        best_trade=summary.best_trade,
        worst_trade=summary.worst_trade,
        profit_factor=summary.profit_factor,
        avg_win=round_half_up(avg_win, 2),
        avg_loss=round_half_up(avg_loss, 2),
        avg_holding_time=HOLDING_TIME_PLACEHOLDER,
        expectancy=round_half_up(expectancy, 2) if results else 0.0,
        max_drawdown=_max_drawdown(results),
        consecutive_wins=max_wins,
        consecutive_losses=max_losses,
    )


def _max_streaks(results: Sequence[TradeResult]) -> tuple[int, int]:
    max_wins = 0
    max_losses = 0
    current_wins = 0
    current_losses = 0

    for result in results:
        if result.dollar_pnl > 0:
            current_wins += 1
            current_losses = 0
        elif result.dollar_pnl < 0:
            current_losses += 1
            current_wins = 0
        else:
            current_wins = 0
            current_losses = 0
        max_wins = max(max_wins, current_wins)
        max_losses = max(max_losses, current_losses)

    return max_wins, max_losses


def _max_drawdown(results: Sequence[TradeResult]) -> float:
    peak = 0.0
    max_dd = 0.0
    equity = 0.0

    for result in results:
        equity += result.dollar_pnl
        if equity > peak:
            peak = equity
        drawdown = peak - equity
        if drawdown > max_dd:
            max_dd = drawdown

    return round_half_up(max_dd, 2)


def statistics_to_dict(stats: TradeStatistics) -> dict[str, float | int | str]:
    return {
        "total_trades": stats.total_trades,
        "wins": stats.wins,
        "losses": stats.losses,
        "breakevens": stats.breakevens,
        "win_rate": stats.win_rate,
        "total_pnl": stats.total_pnl,
        "avg_r_multiple": stats.avg_r_multiple,
        "best_trade": stats.best_trade,
        "worst_trade": stats.worst_trade,
        "profit_factor": stats.profit_factor,
        "avg_win": stats.avg_win,
        "avg_loss": stats.avg_loss,
        "avg_holding_time": stats.avg_holding_time,
        "expectancy": stats.expectancy,
        "max_drawdown": stats.max_drawdown,
        "consecutive_wins": stats.consecutive_wins,
        "consecutive_losses": stats.consecutive_losses,
    }
