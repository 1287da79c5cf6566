from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

from fx_journal.metrics.numeric import round_half_up
from fx_journal.metrics.outcome import closed_trades, trade_result
from fx_journal.models import Trade

KeyFn = Callable[[Trade], "str | None"]
TagsFn = Callable[[Trade], "list[str]"]

UNKNOWN_STRATEGY = "Unknown"
NO_STRATEGY = "—"

R_BANDS = ("<-2R", "-2R to -1R", "-1R to 0", "0 to 1R", "1R to 2R", "2R to 3R", "3R+")


@dataclass(frozen=True)
class GroupWinRate:
    name: str
    win_rate: int
    total: int


@dataclass(frozen=True)
class EquityPoint:
    trade: int
    equity: float


@dataclass(frozen=True)
class RBand:
    name: str
    count: int


@dataclass(frozen=True)
class StrategyPerformance:
    name: str
    total_pnl: float


@dataclass(frozen=True)
class TradeFilter:
    pair: str | None = None
    session: str | None = None
    strategy: str | None = None
    market_condition: str | None = None
    key_level: str | None = None
    liquidity_sweep_type: str | None = None
    trade_location: str | None = None

    def matches(self, trade: Trade) -> bool:
        if self.pair is not None and trade.pair != self.pair:
            return False
        if self.session is not None and trade.session != self.session:
            return False
        if self.strategy is not None and trade.strategy != self.strategy:
            return False
        if self.market_condition is not None and trade.market_condition != self.market_condition:
            return False
        if self.key_level is not None and self.key_level not in (trade.key_levels or []):
            return False
        if self.liquidity_sweep_type is not None and trade.liquidity_sweep_type != self.liquidity_sweep_type:
            return False
        if self.trade_location is not None and trade.trade_location != self.trade_location:
            return False
        return True


def filter_trades(trades: Iterable[Trade], trade_filter: TradeFilter | None) -> list[Trade]:
    if trade_filter is None:
        return list(trades)
    return [trade for trade in trades if trade_filter.matches(trade)]


def by_session(trade: Trade) -> str | None:
    return trade.session or None


def by_strategy(trade: Trade) -> str | None:
    return trade.strategy or None


def by_trade_location(trade: Trade) -> str | None:
    return trade.trade_location or None


def by_key_levels(trade: Trade) -> str | None:
    if not trade.key_levels:
        return None
    return "+".join(trade.key_levels)


def by_liquidity_sweep(trade: Trade) -> str | None:
    return trade.liquidity_sweep_type or None


def by_entry_type(trade: Trade) -> str | None:
    return trade.entry_type or None


def by_market_condition(trade: Trade) -> str | None:
    return trade.market_condition or None


def by_pair(trade: Trade) -> str | None:
    return trade.pair or None


BREAKDOWNS: dict[str, KeyFn] = {
    "session": by_session,
    "location": by_trade_location,
    "key_levels": by_key_levels,
    "strategy": by_strategy,
    "sweep": by_liquidity_sweep,
    "entry_type": by_entry_type,
    "market_condition": by_market_condition,
    "pair": by_pair,
}


def explode_key_levels(trade: Trade) -> list[str]:
    return list(trade.key_levels or [])


def by_confluences(trade: Trade) -> list[str]:
    return list(trade.confluences or [])


TAG_BREAKDOWNS: dict[str, TagsFn] = {
    "key_level": explode_key_levels,
    "confluence": by_confluences,
}

BREAKDOWN_NAMES = (*BREAKDOWNS, *TAG_BREAKDOWNS)


def win_rate_by(trades: Iterable[Trade], key_fn: KeyFn) -> list[GroupWinRate]:
    """Win rate per category, best first.

    A win here is a positive R-multiple, which only differs from a positive
    dollar P&L when the trade was logged without a risk amount.
    """
    return _rank_groups(
        (key_fn(trade), trade) for trade in closed_trades(trades)
    )


def win_rate_by_tag(trades: Iterable[Trade], tags_fn: TagsFn) -> list[GroupWinRate]:
    """Like win_rate_by, but a trade counts once for every tag it carries."""
    return _rank_groups(
        (tag, trade) for trade in closed_trades(trades) for tag in (tags_fn(trade) or [])
    )


def rank_breakdown(trades: Iterable[Trade], name: str) -> list[GroupWinRate]:
    if name in BREAKDOWNS:
        return win_rate_by(trades, BREAKDOWNS[name])
    if name in TAG_BREAKDOWNS:
        return win_rate_by_tag(trades, TAG_BREAKDOWNS[name])
    raise KeyError(name)


def _rank_groups(pairs: Iterable[tuple[str | None, Trade]]) -> list[GroupWinRate]:
    groups: dict[str, list[int]] = {}
    for key, trade in pairs:
        if not key:
            continue
        counts = groups.setdefault(key, [0, 0])
        counts[1] += 1
        r_value, _ = trade_result(trade)
        if r_value > 0:
            counts[0] += 1
    rows = [
        GroupWinRate(name=name, win_rate=int(round_half_up(wins / total * 100)), total=total)
        for name, (wins, total) in groups.items()
    ]
    rows.sort(key=lambda row: row.win_rate, reverse=True)
    return rows


def equity_curve(trades: Iterable[Trade]) -> list[EquityPoint]:
    points = []
    cumulative = 0.0
    for index, trade in enumerate(closed_trades(trades), start=1):
        _, pnl = trade_result(trade)
        cumulative += pnl
        points.append(EquityPoint(trade=index, equity=round_half_up(cumulative, 2)))
    return points


def r_band(r_value: float) -> str:
    if r_value < -2:
        return "<-2R"
    if r_value < -1:
        return "-2R to -1R"
    if r_value < 0:
        return "-1R to 0"
    if r_value < 1:
        return "0 to 1R"
    if r_value < 2:
        return "1R to 2R"
    if r_value < 3:
        return "2R to 3R"
    return "3R+"


def r_distribution(trades: Iterable[Trade]) -> list[RBand]:
    counts: dict[str, int] = {}
    for trade in closed_trades(trades):
        r_value, _ = trade_result(trade)
        band = r_band(r_value)
        counts[band] = counts.get(band, 0) + 1
    return [RBand(name=name, count=counts[name]) for name in R_BANDS if counts.get(name)]


def strategy_performance(trades: Iterable[Trade]) -> list[StrategyPerformance]:
    totals: dict[str, float] = {}
    for trade in closed_trades(trades):
        _, pnl = trade_result(trade)
        name = trade.strategy or UNKNOWN_STRATEGY
        totals[name] = totals.get(name, 0.0) + pnl
    return [StrategyPerformance(name=name, total_pnl=round_half_up(total, 2)) for name, total in totals.items()]


def best_and_worst_strategy(trades: Iterable[Trade]) -> tuple[str, str]:
    rows = strategy_performance(trades)
    if not rows:
        return NO_STRATEGY, NO_STRATEGY
    best = max(rows, key=lambda row: row.total_pnl)
    worst = min(rows, key=lambda row: row.total_pnl)
    return best.name, worst.name
