from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Protocol

from fx_journal.models import AccountTransaction, Trade, TradingAccount

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class JournalRepository(Protocol):
    def list_accounts(self) -> list[TradingAccount]: ...

    def list_trades(self, account_id: str | None = None) -> list[Trade]: ...

    def list_closed_trades(self, account_id: str | None = None) -> list[Trade]: ...

    def list_transactions(self, account_id: str | None = None) -> list[AccountTransaction]: ...


class InMemoryRepository:
    """Holds already-loaded records; trades are served oldest first."""

    def __init__(
        self,
        accounts: Iterable[TradingAccount] = (),
        trades: Iterable[Trade] = (),
        transactions: Iterable[AccountTransaction] = (),
    ) -> None:
        self._accounts = list(accounts)
        self._trades = chronological(trades)
        self._transactions = list(transactions)

    def list_accounts(self) -> list[TradingAccount]:
        return list(self._accounts)

    def list_trades(self, account_id: str | None = None) -> list[Trade]:
        return [trade for trade in self._trades if account_id is None or trade.account_id == account_id]

    def list_closed_trades(self, account_id: str | None = None) -> list[Trade]:
        return [trade for trade in self.list_trades(account_id) if trade.is_closed]

    def list_transactions(self, account_id: str | None = None) -> list[AccountTransaction]:
        return [txn for txn in self._transactions if account_id is None or txn.account_id == account_id]


def chronological(trades: Iterable[Trade]) -> list[Trade]:
    return sorted(trades, key=_trade_sort_key)


def _trade_sort_key(trade: Trade) -> tuple[str, datetime]:
    day = trade.date.isoformat() if trade.date is not None else ""
    return day, _aware(trade.created_at)


def _aware(value: datetime | None) -> datetime:
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def resolve_active_account(
    accounts: Iterable[TradingAccount], requested: str | None = None
) -> TradingAccount | None:
    account_list = list(accounts)
    if requested:
        for account in account_list:
            if account.id == requested or account.name == requested:
                return account
        raise ValueError(f"Unknown account '{requested}'.")
    if not account_list:
        return None
    return min(account_list, key=lambda account: _aware(account.created_at))
