from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, TypeVar

from fx_journal.ingest.fields import lower_keys, parse_timestamp, pick, read_records, to_number, to_text
from fx_journal.models import (
    TRANSACTION_DEPOSIT,
    TRANSACTION_WITHDRAWAL,
    AccountTransaction,
    TradingAccount,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class AccountsResult:
    accounts: list[TradingAccount]
    skipped: int = 0


@dataclass(frozen=True)
class TransactionsResult:
    transactions: list[AccountTransaction]
    skipped: int = 0


def load_accounts(path: str | Path) -> AccountsResult:
    records = read_records(Path(path), "accounts", "trading_accounts")
    accounts, skipped = _normalize_all(records, lambda raw, _row: normalize_account(raw), "account")
    return AccountsResult(accounts=accounts, skipped=skipped)


def load_transactions(path: str | Path, *, account_id: str | None = None) -> TransactionsResult:
    records = read_records(Path(path), "transactions", "account_transactions")
    transactions, skipped = _normalize_all(
        records, lambda raw, row: normalize_transaction(raw, account_id=account_id, row_number=row), "transaction"
    )
    return TransactionsResult(transactions=transactions, skipped=skipped)


def _normalize_all(
    records: Iterable[Mapping[str, Any]],
    normalize: Callable[[Mapping[str, Any], int], T],
    label: str,
) -> tuple[list[T], int]:
    items: list[T] = []
    skipped = 0
    for row_number, raw in enumerate(records, start=1):
        try:
            items.append(normalize(raw, row_number))
        except ValueError as exc:
            skipped += 1
            logger.warning("Skipping %s row %d: %s", label, row_number, exc)
    return items, skipped


def normalize_account(raw: Mapping[str, Any]) -> TradingAccount:
    row = lower_keys(raw)
    account_id = to_text(pick(row, "id", "account_id", "accountid"))
    name = to_text(pick(row, "name"))
    if not account_id and not name:
        raise ValueError("Missing account id and name")
    active_raw = pick(row, "is_active", "isactive", "active")
    return TradingAccount(
        id=account_id or name,
        name=name or account_id,
        type=to_text(pick(row, "type")) or "Personal",
        broker=to_text(pick(row, "broker")),
        initial_balance=to_number(pick(row, "initial_balance", "initialbalance")),
        currency=to_text(pick(row, "currency")) or "USD",
        is_active=True if active_raw is None else str(active_raw).strip().lower() not in {"0", "false", "no"},
        created_at=parse_timestamp(pick(row, "created_at", "createdat")),
        current_balance=to_number(pick(row, "current_balance", "currentbalance"), default=None),
    )


def normalize_transaction(
    raw: Mapping[str, Any], *, account_id: str | None = None, row_number: int | None = None
) -> AccountTransaction:
    """One deposit or withdrawal row.

    Rows without an id get one derived from their content and position, so
    repeated identical rows in a file stay separate transactions.
    """
    row = lower_keys(raw)
    resolved_account = to_text(pick(row, "account_id", "accountid")) or account_id
    if not resolved_account:
        raise ValueError("Missing account")
    txn_type = (to_text(pick(row, "type")) or "").lower()
    if txn_type not in {TRANSACTION_DEPOSIT, TRANSACTION_WITHDRAWAL}:
        raise ValueError(f"Unknown transaction type: {txn_type or 'missing'}")
    amount = to_number(pick(row, "amount"), default=None)
    if amount is None or amount <= 0:
        raise ValueError("Transaction amount must be positive")
    created_at = parse_timestamp(pick(row, "created_at", "createdat"))
    txn_id = to_text(pick(row, "id"))
    if txn_id is None:
        stamp = created_at.isoformat() if created_at else ""
        txn_id = f"{resolved_account}:{txn_type}:{amount:.2f}:{stamp}:{row_number or 0}"
    return AccountTransaction(
        id=txn_id,
        account_id=resolved_account,
        type=txn_type,
        amount=amount,
        note=to_text(pick(row, "note")),
        created_at=created_at,
    )
