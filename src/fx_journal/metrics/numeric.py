from __future__ import annotations

import math
from typing import Any


def round_half_up(value: float, digits: int = 0) -> float:
    """Round the way the journal has always displayed numbers: .5 goes up."""
    value = finite(value)
    scale = 10 ** digits
    scaled = value * scale + 0.5
    if math.isinf(scaled):
        return value
    rounded = math.floor(scaled) / scale
    if rounded == 0:
        return 0.0
    return rounded


def finite(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def finite_or_none(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number
