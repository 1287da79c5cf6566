from __future__ import annotations

from fx_journal.metrics.numeric import finite, finite_or_none, round_half_up

JPY_MULTIPLIER = 100
GOLD_MULTIPLIER = 10
STANDARD_MULTIPLIER = 10_000

INDEX_SYMBOLS = frozenset({"US30", "NAS100", "SPX500"})

STANDARD_PIP_VALUE_PER_LOT = 10.0
INDEX_PIP_VALUE_PER_LOT = 1.0


def pip_multiplier(pair: str | None) -> int:
    symbol = (pair or "").upper()
    if "JPY" in symbol:
        return JPY_MULTIPLIER
    if "XAU" in symbol:
        return GOLD_MULTIPLIER
    return STANDARD_MULTIPLIER


def is_index(pair: str | None) -> bool:
    return (pair or "").strip().upper() in INDEX_SYMBOLS


def price_distance_to_pips(pair: str | None, price_a: float, price_b: float) -> float:
    price_a = finite_or_none(price_a)
    price_b = finite_or_none(price_b)
    if price_a is None or price_b is None:
        return 0.0
    diff = price_a - price_b
    return round_half_up(diff * pip_multiplier(pair), 1)


def pips_to_dollar_value(pair: str | None, pips: float, lot_size: float) -> float:
    per_lot = INDEX_PIP_VALUE_PER_LOT if is_index(pair) else STANDARD_PIP_VALUE_PER_LOT
    return round_half_up(finite(pips) * per_lot * finite(lot_size), 2)
