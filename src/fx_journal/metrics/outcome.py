from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable

from fx_journal.metrics.instruments import pips_to_dollar_value, price_distance_to_pips
from fx_journal.metrics.numeric import finite, finite_or_none, round_half_up
from fx_journal.models import (
    DIRECTION_BUY,
    LOCATION_DISCOUNT,
    LOCATION_EQ,
    LOCATION_PREMIUM,
    Direction,
    Trade,
    TradeLocation,
)

Outcome = str

OUTCOME_WIN: Outcome = "win"
OUTCOME_LOSS: Outcome = "loss"
OUTCOME_BREAKEVEN: Outcome = "breakeven"

EQ_ZONE_FRACTION = 0.05


@dataclass(frozen=True)
class TradeOutcome:
    trade_id: str
    trade_code: str
    pair: str
    direction: Direction
    outcome: Outcome
    pips: float
    r_multiple: float
    dollar_pnl: float
    percent_pnl: float
    display_pnl: float
    planned_rr: float
    equilibrium: float | None
    trade_location: TradeLocation | None


def pips(pair: str | None, entry: float, exit: float, direction: Direction) -> float:
    if direction == DIRECTION_BUY:
        return price_distance_to_pips(pair, exit, entry)
    return price_distance_to_pips(pair, entry, exit)


def r_multiple(entry: float, exit: float, stop_loss: float, direction: Direction) -> float:
    entry = finite_or_none(entry)
    exit = finite_or_none(exit)
    stop_loss = finite_or_none(stop_loss)
    if entry is None or exit is None or stop_loss is None:
        return 0.0
    risk = abs(entry - stop_loss)
    if risk == 0:
        return 0.0
    reward = exit - entry if direction == DIRECTION_BUY else entry - exit
    return round_half_up(reward / risk, 2)


def dollar_pnl(risk_amount: float, r_value: float) -> float:
    return round_half_up(finite(risk_amount) * finite(r_value), 2)


def percent_pnl(pnl: float, account_size: float) -> float:
    account_size = finite(account_size)
    if account_size == 0:
        return 0.0
    return round_half_up(finite(pnl) / account_size * 100, 2)


def equilibrium(high: float, low: float) -> float:
    return round_half_up((finite(high) + finite(low)) / 2, 5)


def trade_location(
    price: float,
    high: float,
    low: float,
    *,
    zone_fraction: float = EQ_ZONE_FRACTION,
) -> TradeLocation:
    price = finite(price)
    eq = equilibrium(high, low)
    zone = abs(finite(high) - finite(low)) * zone_fraction
    if abs(price - eq) <= zone:
        return LOCATION_EQ
    return LOCATION_PREMIUM if price > eq else LOCATION_DISCOUNT


def apply_structure(trade: Trade) -> Trade:
    """Fill equilibrium and Premium/Discount/EQ from the trade's dealing range."""
    high = finite_or_none(trade.dealing_range_high)
    low = finite_or_none(trade.dealing_range_low)
    if high is None or low is None:
        return replace(trade, equilibrium=None, trade_location=None)
    return replace(
        trade,
        equilibrium=equilibrium(high, low),
        trade_location=trade_location(trade.entry_price, high, low),
    )


def planned_risk_reward(entry: float, stop_loss: float, take_profit: float) -> float:
    entry = finite(entry)
    stop_loss = finite(stop_loss)
    take_profit = finite(take_profit)
    if not (entry and stop_loss and take_profit):
        return 0.0
    stop_distance = abs(entry - stop_loss)
    if stop_distance == 0:
        return 0.0
    return round_half_up(abs(take_profit - entry) / stop_distance, 2)


def display_pnl(trade: Trade) -> float | None:
    """Pip-value P&L shown on the trade detail view; balances never use it."""
    if not trade.is_closed:
        return None
    pip_count = pips(trade.pair, trade.entry_price, trade.exit_price, trade.direction)
    value = pips_to_dollar_value(trade.pair, abs(pip_count), trade.lot_size)
    return value if pip_count >= 0 else -value


def classify_outcome(pnl: float) -> Outcome:
    if pnl > 0:
        return OUTCOME_WIN
    if pnl < 0:
        return OUTCOME_LOSS
    return OUTCOME_BREAKEVEN


def closed_trades(trades: Iterable[Trade]) -> list[Trade]:
    return [trade for trade in trades if trade.is_closed]


def trade_result(trade: Trade) -> tuple[float, float]:
    """(r_multiple, dollar_pnl) on the canonical risk-amount path."""
    r_value = r_multiple(trade.entry_price, trade.exit_price, trade.stop_loss, trade.direction)
    return r_value, dollar_pnl(trade.risk_amount, r_value)


def compute_trade_outcome(trade: Trade) -> TradeOutcome | None:
    if not trade.is_closed:
        return None
    r_value, pnl = trade_result(trade)
    eq = None
    location = trade.trade_location
    high = finite_or_none(trade.dealing_range_high)
    low = finite_or_none(trade.dealing_range_low)
    if high is not None and low is not None:
        eq = equilibrium(high, low)
        location = trade_location(trade.entry_price, high, low)
    return TradeOutcome(
        trade_id=trade.id,
        trade_code=trade.trade_code,
        pair=trade.pair,
        direction=trade.direction,
        outcome=classify_outcome(pnl),
        pips=pips(trade.pair, trade.entry_price, trade.exit_price, trade.direction),
        r_multiple=r_value,
        dollar_pnl=pnl,
        percent_pnl=percent_pnl(pnl, trade.account_size),
        display_pnl=display_pnl(trade) or 0.0,
        planned_rr=planned_risk_reward(trade.entry_price, trade.stop_loss, trade.take_profit),
        equilibrium=eq,
        trade_location=location,
    )
