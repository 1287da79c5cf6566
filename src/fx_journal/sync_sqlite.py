from __future__ import annotations

import argparse
import json
import sqlite3
import sys
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path

from fx_journal.config.app_config import load_app_config
from fx_journal.ingest.journal_files import load_trades
from fx_journal.ingest.ledger_files import load_accounts, load_transactions
from fx_journal.metrics.balance import check_withdrawal, reconcile_account_balance
from fx_journal.models import TRANSACTION_WITHDRAWAL, AccountTransaction, Trade, TradingAccount
from fx_journal.storage.sqlite_reader import load_accounts as read_accounts
from fx_journal.storage.sqlite_reader import load_trades as read_trades
from fx_journal.storage.sqlite_reader import load_transactions as read_transactions
from fx_journal.storage.sqlite_store import (
    connect,
    init_db,
    update_current_balances,
    upsert_accounts,
    upsert_trades,
    upsert_transactions,
)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Persist journal export files into SQLite.")
    parser.add_argument("--config", type=Path, default=None, help="Path to app.toml.")
    parser.add_argument("--db", type=Path, default=None, help="SQLite DB path (default from config).")
    parser.add_argument("--account", type=str, default=None, help="Account id for rows that carry none.")
    parser.add_argument("--accounts", type=Path, default=None, help="Accounts file (json/csv/tsv).")
    parser.add_argument("--transactions", type=Path, default=None, help="Deposits/withdrawals file.")
    parser.add_argument("--trades", type=Path, default=None, help="Trades file (json/csv/tsv or MT5 export).")
    parser.add_argument(
        "--report-out",
        type=Path,
        default=None,
        help="Write sync validation counts to this file.",
    )
    args = parser.parse_args(argv)

    config = load_app_config(args.config)
    db_path = args.db or config.app.db_path
    default_account = args.account or config.journal.default_account

    conn = connect(db_path)
    with closing(conn):
        init_db(conn)
        total = 0
        summaries: list[str] = []
        report: dict[str, dict[str, int]] = {}

        if args.accounts is not None:
            result = load_accounts(args.accounts)
            total += upsert_accounts(conn, result.accounts)
            summaries.append(_summary_line("accounts", len(result.accounts), result.skipped, 0))
            report["accounts"] = _report_entry(len(result.accounts), result.skipped, 0)

        known_accounts = {account.id: account for account in read_accounts(conn)}

        if args.trades is not None:
            result = load_trades(args.trades, account_id=default_account)
            for warning in result.warnings:
                print(warning, file=sys.stderr)
            valid_trades, skipped_invalid = _validate_trades(result.trades, known_accounts)
            total += upsert_trades(conn, valid_trades)
            summaries.append(_summary_line("trades", len(valid_trades), result.skipped, skipped_invalid))
            report["trades"] = _report_entry(len(valid_trades), result.skipped, skipped_invalid)

        if args.transactions is not None:
            result = load_transactions(args.transactions, account_id=default_account)
            valid_txns, skipped_invalid = _validate_transactions(conn, result.transactions, known_accounts)
            total += upsert_transactions(conn, valid_txns)
            summaries.append(_summary_line("transactions", len(valid_txns), result.skipped, skipped_invalid))
            report["transactions"] = _report_entry(len(valid_txns), result.skipped, skipped_invalid)

        balances = {}
        for account in known_accounts.values():
            balance = reconcile_account_balance(
                account,
                read_trades(conn, account_id=account.id, closed_only=True),
                read_transactions(conn, account_id=account.id),
            )
            balances[account.id] = balance.current_balance
        if balances:
            update_current_balances(conn, balances)

    print(f"upserted_rows {total}")
    for line in summaries:
        print(line)
    if args.report_out is not None:
        args.report_out.parent.mkdir(parents=True, exist_ok=True)
        args.report_out.write_text(_report_json(db_path, total, report), encoding="utf-8")
    return 0


def _validate_trades(items: list[Trade], accounts: dict[str, TradingAccount]) -> tuple[list[Trade], int]:
    valid = []
    skipped = 0
    for trade in items:
        if trade.account_id not in accounts:
            print(f"Trade {trade.trade_code}: unknown account '{trade.account_id}', skipped.", file=sys.stderr)
            skipped += 1
            continue
        if trade.entry_price <= 0:
            skipped += 1
            continue
        valid.append(trade)
    return valid, skipped


def _validate_transactions(
    conn: sqlite3.Connection,
    items: list[AccountTransaction],
    accounts: dict[str, TradingAccount],
) -> tuple[list[AccountTransaction], int]:
    """Withdrawals are checked against the balance reached by the transactions before them."""
    valid: list[AccountTransaction] = []
    skipped = 0
    incoming = {item.id for item in items}
    existing: dict[str, list[AccountTransaction]] = {}
    for txn in sorted(items, key=_created_key):
        account = accounts.get(txn.account_id)
        if account is None:
            print(f"Transaction {txn.id}: unknown account '{txn.account_id}', skipped.", file=sys.stderr)
            skipped += 1
            continue
        if txn.type == TRANSACTION_WITHDRAWAL:
            if txn.account_id not in existing:
                existing[txn.account_id] = [
                    row for row in read_transactions(conn, account_id=txn.account_id) if row.id not in incoming
                ]
            ledger = existing[txn.account_id] + [row for row in valid if row.account_id == txn.account_id]
            balance = reconcile_account_balance(
                account,
                read_trades(conn, account_id=txn.account_id, closed_only=True),
                ledger,
            )
            try:
                check_withdrawal(balance.current_balance, txn.amount)
            except ValueError as exc:
                print(f"Transaction {txn.id}: {exc}, skipped.", file=sys.stderr)
                skipped += 1
                continue
        valid.append(txn)
    return valid, skipped


def _created_key(txn: AccountTransaction) -> str:
    return txn.created_at.isoformat() if txn.created_at else ""


def _summary_line(name: str, accepted: int, skipped_parse: int, skipped_invalid: int) -> str:
    return f"{name} accepted={accepted} skipped_parse={skipped_parse} skipped_invalid={skipped_invalid}"


def _report_entry(accepted: int, skipped_parse: int, skipped_invalid: int) -> dict[str, int]:
    return {
        "accepted": accepted,
        "skipped_parse": skipped_parse,
        "skipped_invalid": skipped_invalid,
    }


def _report_json(db_path: Path, total: int, report: dict[str, dict[str, int]]) -> str:
    payload = {
        "finished_at": datetime.now(timezone.utc).isoformat(),
        "db_path": str(db_path),
        "upserted_rows": total,
        "report": report,
    }
    return json.dumps(payload, indent=2, sort_keys=True) + "\n"


if __name__ == "__main__":
    raise SystemExit(main())
