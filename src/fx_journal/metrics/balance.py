from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from fx_journal.metrics.numeric import finite, round_half_up
from fx_journal.metrics.outcome import closed_trades, trade_result
from fx_journal.models import (
    TRANSACTION_DEPOSIT,
    TRANSACTION_WITHDRAWAL,
    AccountTransaction,
    Trade,
    TradingAccount,
)


class InsufficientBalanceError(ValueError):
    pass


@dataclass(frozen=True)
class AccountBalance:
    account_id: str
    initial_balance: float
    deposits: float
    withdrawals: float
    trading_pnl: float
    current_balance: float
    growth_pct: float


def reconcile_account_balance(
    account: TradingAccount,
    trades: Iterable[Trade],
    transactions: Iterable[AccountTransaction],
) -> AccountBalance:
    """Current balance re-derived from the ledger; any stored balance is only a cache."""
    deposits = 0.0
    withdrawals = 0.0
    for txn in transactions:
        if txn.account_id != account.id:
            continue
        if txn.type == TRANSACTION_DEPOSIT:
            deposits += finite(txn.amount)
        elif txn.type == TRANSACTION_WITHDRAWAL:
            withdrawals += finite(txn.amount)

    trading_pnl = 0.0
    for trade in closed_trades(trades):
        if trade.account_id != account.id:
            continue
        _, pnl = trade_result(trade)
        trading_pnl += pnl

    initial = finite(account.initial_balance)
    current = round_half_up(initial + deposits - withdrawals + trading_pnl, 2)
    growth = 0.0
    if initial:
        growth = round_half_up((current - initial) / initial * 100, 2)

    return AccountBalance(
        account_id=account.id,
        initial_balance=initial,
        deposits=round_half_up(deposits, 2),
        withdrawals=round_half_up(withdrawals, 2),
        trading_pnl=round_half_up(trading_pnl, 2),
        current_balance=current,
        growth_pct=growth,
    )


def reconcile_balances(
    accounts: Iterable[TradingAccount],
    trades: Iterable[Trade],
    transactions: Iterable[AccountTransaction],
) -> list[AccountBalance]:
    trade_list = list(trades)
    txn_list = list(transactions)
    return [reconcile_account_balance(account, trade_list, txn_list) for account in accounts]


def check_withdrawal(balance: float, amount: float) -> None:
    if amount is None or not finite(amount) > 0:
        raise ValueError("Transaction amount must be positive")
    if amount > balance:
        raise InsufficientBalanceError(
            f"Withdrawal of {amount:.2f} exceeds available balance {balance:.2f}"
        )


def balance_to_dict(balance: AccountBalance) -> dict[str, float | str]:
    return {
        "account_id": balance.account_id,
        "initial_balance": balance.initial_balance,
        "deposits": balance.deposits,
        "withdrawals": balance.withdrawals,
        "trading_pnl": balance.trading_pnl,
        "current_balance": balance.current_balance,
        "growth_pct": balance.growth_pct,
    }
