from __future__ import annotations

import random
import string
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

Direction = str
TradeStatus = str
TradeLocation = str
TransactionType = str

DIRECTION_BUY: Direction = "Buy"
DIRECTION_SELL: Direction = "Sell"

STATUS_OPEN: TradeStatus = "Open"
STATUS_CLOSED: TradeStatus = "Closed"

LOCATION_PREMIUM: TradeLocation = "Premium"
LOCATION_DISCOUNT: TradeLocation = "Discount"
LOCATION_EQ: TradeLocation = "EQ"

TRANSACTION_DEPOSIT: TransactionType = "deposit"
TRANSACTION_WITHDRAWAL: TransactionType = "withdrawal"

SESSIONS = ("London", "New York", "Asia", "Sydney")

PAIRS = (
    "EURUSD", "GBPUSD", "USDJPY", "USDCHF", "AUDUSD", "NZDUSD", "USDCAD",
    "EURGBP", "EURJPY", "GBPJPY", "XAUUSD", "XAGUSD", "US30", "NAS100", "SPX500",
)

STRATEGIES = (
    "Breakout", "Liquidity Sweep", "Trend Continuation", "Reversal",
    "Range Play", "News Trade", "Scalp", "Swing", "Order Block Entry",
)

TIMEFRAMES = ("M1", "M5", "M15", "M30", "H1", "H4", "D1", "W1", "MN")

MARKET_CONDITIONS = ("Trending", "Ranging", "High Volatility", "Low Volatility")

CONFLUENCES = (
    "Support/Resistance", "FVG", "Order Block", "News Catalyst",
    "EMA Alignment", "RSI Divergence", "Volume Profile", "Fibonacci",
    "Trendline Break", "Liquidity Zone", "VWAP", "Market Structure Shift",
)

LIQUIDITY_SWEEP_TYPES = ("PDH", "PDL", "Asian High", "Asian Low", "Internal", "External")

KEY_LEVELS = ("OB", "FVG", "RB", "BB")

ENTRY_TYPES = (
    "FVG Mitigation", "OB Tap", "Breaker", "Confirmation BOS", "Aggressive", "Conservative",
)

TRADE_LOCATIONS = (LOCATION_PREMIUM, LOCATION_DISCOUNT, LOCATION_EQ)


class Confirmation(Enum):
    """Three-valued answer for a setup checklist item."""

    YES = "yes"
    NO = "no"
    UNKNOWN = "unknown"

    @classmethod
    def from_value(cls, value: Any) -> "Confirmation":
        if isinstance(value, Confirmation):
            return value
        if value is None:
            return cls.UNKNOWN
        if isinstance(value, bool):
            return cls.YES if value else cls.NO
        text = str(value).strip().lower()
        if text in {"true", "yes", "y", "1"}:
            return cls.YES
        if text in {"false", "no", "n", "0"}:
            return cls.NO
        return cls.UNKNOWN

    def as_bool(self) -> bool | None:
        if self is Confirmation.UNKNOWN:
            return None
        return self is Confirmation.YES


@dataclass
class Trade:
    id: str
    trade_code: str
    account_id: str
    pair: str
    direction: Direction
    entry_price: float
    stop_loss: float
    take_profit: float
    exit_price: float | None = None
    lot_size: float = 0.0
    risk_amount: float = 0.0
    risk_percent: float = 0.0
    account_size: float = 0.0
    session: str | None = None
    strategy: str | None = None
    market_condition: str | None = None
    confluences: list[str] = field(default_factory=list)
    htf_timeframe: str | None = None
    entry_timeframe: str | None = None
    dealing_range_high: float | None = None
    dealing_range_low: float | None = None
    equilibrium: float | None = None
    trade_location: TradeLocation | None = None
    liquidity_sweep_type: str | None = None
    key_levels: list[str] = field(default_factory=list)
    entry_type: str | None = None
    entry_quality: int | None = None
    htf_bias_respected: Confirmation = Confirmation.UNKNOWN
    ltf_bos_confirmed: Confirmation = Confirmation.UNKNOWN
    mss_present: Confirmation = Confirmation.UNKNOWN
    status: TradeStatus = STATUS_OPEN
    date: date | None = None
    notes: str = ""
    screenshot_before: str | None = None
    screenshot_after: str | None = None
    created_at: datetime | None = None

    @property
    def is_closed(self) -> bool:
        return self.status == STATUS_CLOSED and self.exit_price not in (None, 0)


@dataclass
class TradingAccount:
    id: str
    name: str
    type: str = "Personal"
    broker: str | None = None
    initial_balance: float = 0.0
    currency: str = "USD"
    is_active: bool = True
    created_at: datetime | None = None
    current_balance: float | None = None


@dataclass
class AccountTransaction:
    id: str
    account_id: str
    type: TransactionType
    amount: float
    note: str | None = None
    created_at: datetime | None = None

    @property
    def signed_amount(self) -> float:
        if self.type == TRANSACTION_WITHDRAWAL:
            return -self.amount
        return self.amount


_CODE_ALPHABET = string.digits + string.ascii_uppercase


def new_trade_code(now: datetime | None = None, rng: random.Random | None = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).strftime("%y%m%d")
    chooser = rng or random
    suffix = "".join(chooser.choice(_CODE_ALPHABET) for _ in range(4))
    return f"T{stamp}-{suffix}"
