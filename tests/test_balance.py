"""Tests for account balance reconciliation."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from fx_journal.metrics.balance import (
    InsufficientBalanceError,
    balance_to_dict,
    check_withdrawal,
    reconcile_account_balance,
    reconcile_balances,
)
from fx_journal.models import AccountTransaction, TradingAccount

amounts = st.integers(min_value=1, max_value=100_000)


class TestReconcile:
    def test_balance_from_ledger_and_trades(self, account, ledger, make_trade):
        trades = [make_trade(1.5)]

        balance = reconcile_account_balance(account, trades, ledger)

        assert balance.deposits == 500.0
        assert balance.withdrawals == 200.0
        assert balance.trading_pnl == 150.0
        assert balance.current_balance == 10_450.0
        assert balance.growth_pct == 4.5

    def test_cached_balance_is_ignored(self, account, ledger):
        account.current_balance = 99_999.0
        balance = reconcile_account_balance(account, [], ledger)
        assert balance.current_balance == 10_300.0

    def test_open_and_foreign_trades_do_not_count(self, account, make_trade, open_trade):
        trades = [open_trade, make_trade(2, account_id="acc-2")]
        balance = reconcile_account_balance(account, trades, [])
        assert balance.current_balance == 10_000.0
        assert balance.trading_pnl == 0.0

    def test_zero_initial_balance_has_no_growth(self):
        account = TradingAccount(id="acc-0", name="Fresh", initial_balance=0.0)
        deposit = AccountTransaction(id="d", account_id="acc-0", type="deposit", amount=1000.0)
        balance = reconcile_account_balance(account, [], [deposit])
        assert balance.current_balance == 1000.0
        assert balance.growth_pct == 0.0

    def test_many_accounts(self, account, ledger, make_trade):
        other = TradingAccount(id="acc-2", name="Prop", initial_balance=50_000.0)
        trades = [make_trade(1), make_trade(-1, account_id="acc-2")]

        balances = reconcile_balances([account, other], trades, ledger)

        assert [item.current_balance for item in balances] == [10_400.0, 49_900.0]
        assert balance_to_dict(balances[1])["account_id"] == "acc-2"

    @given(st.lists(st.tuples(st.sampled_from(["deposit", "withdrawal"]), amounts), max_size=20))
    @settings(max_examples=100)
    def test_balance_is_initial_plus_signed_ledger(self, entries):
        account = TradingAccount(id="acc-h", name="H", initial_balance=1_000.0)
        ledger = [
            AccountTransaction(id=f"x{index}", account_id="acc-h", type=kind, amount=float(amount))
            for index, (kind, amount) in enumerate(entries)
        ]

        balance = reconcile_account_balance(account, [], ledger)

        assert balance.current_balance == 1_000.0 + sum(txn.signed_amount for txn in ledger)


class TestWithdrawalGuard:
    def test_within_balance(self):
        check_withdrawal(500.0, 500.0)

    def test_exceeds_balance(self):
        with pytest.raises(InsufficientBalanceError):
            check_withdrawal(100.0, 100.01)

    @pytest.mark.parametrize("amount", [0, -5, float("nan")])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(ValueError):
            check_withdrawal(100.0, amount)
