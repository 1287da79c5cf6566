"""Shared fixtures for the journal tests."""

from datetime import date, datetime, timezone
from itertools import count

import pytest

from fx_journal.models import (
    DIRECTION_BUY,
    STATUS_CLOSED,
    STATUS_OPEN,
    AccountTransaction,
    Trade,
    TradingAccount,
)


@pytest.fixture
def make_trade():
    """Factory for closed gold trades with whole-number prices.

    Entry 2000 with the stop at 1990 means every 10 points of exit move is 1R,
    so R-multiples and dollar P&L come out exact.
    """
    sequence = count(1)

    def _make(r=None, **overrides):
        number = next(sequence)
        values = {
            "id": f"t{number}",
            "trade_code": f"T240101-{number:04d}",
            "account_id": "acc-1",
            "pair": "XAUUSD",
            "direction": DIRECTION_BUY,
            "entry_price": 2000.0,
            "stop_loss": 1990.0,
            "take_profit": 2030.0,
            "exit_price": 2000.0 + 10.0 * (r if r is not None else 1),
            "lot_size": 0.1,
            "risk_amount": 100.0,
            "account_size": 10_000.0,
            "status": STATUS_CLOSED,
            "date": date(2024, 1, 1),
            "created_at": datetime(2024, 1, 1, 9, number % 60, tzinfo=timezone.utc),
        }
        values.update(overrides)
        return Trade(**values)

    return _make


@pytest.fixture
def open_trade(make_trade):
    return make_trade(exit_price=None, status=STATUS_OPEN)


@pytest.fixture
def account():
    return TradingAccount(
        id="acc-1",
        name="Main",
        initial_balance=10_000.0,
        created_at=datetime(2023, 12, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def ledger():
    return [
        AccountTransaction(id="d1", account_id="acc-1", type="deposit", amount=500.0),
        AccountTransaction(id="w1", account_id="acc-1", type="withdrawal", amount=200.0),
    ]
