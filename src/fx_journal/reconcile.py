from __future__ import annotations

import argparse
import json
import sys
from contextlib import closing

from fx_journal.config.app_config import load_app_config
from fx_journal.journal_source import add_source_arguments, open_repository
from fx_journal.metrics.balance import AccountBalance, balance_to_dict, reconcile_balances
from fx_journal.models import TradingAccount
from fx_journal.storage.repository import resolve_active_account
from fx_journal.storage.sqlite_store import connect, update_current_balances


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Re-derive account balances from initial balance, transactions and closed trades."
    )
    add_source_arguments(parser)
    parser.add_argument("--json", action="store_true", help="Print JSON output.")
    parser.add_argument(
        "--write",
        action="store_true",
        help="Store the reconciled balances in the SQLite current_balance cache.",
    )
    args = parser.parse_args(argv)

    config = load_app_config(args.config)
    try:
        repository = open_repository(args, config)
        accounts = repository.list_accounts()
        if args.account:
            accounts = [resolve_active_account(accounts, args.account)]
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    if not accounts:
        print("No accounts found.")
        return 0

    balances = reconcile_balances(accounts, repository.list_trades(), repository.list_transactions())

    if args.json:
        print(json.dumps([balance_to_dict(balance) for balance in balances], indent=2, sort_keys=True))
    else:
        print("account initial deposits withdrawals trading_pnl current growth_pct cached delta")
        cached = {account.id: account for account in accounts}
        for balance in balances:
            print(_format_balance(balance, cached[balance.account_id]))

    if args.write:
        if args.trades is not None:
            print("--write only applies to the SQLite store; nothing written.", file=sys.stderr)
            return 1
        db_path = args.db or config.app.db_path
        with closing(connect(db_path)) as conn:
            update_current_balances(conn, {balance.account_id: balance.current_balance for balance in balances})

    return 0


def _format_balance(balance: AccountBalance, account: TradingAccount) -> str:
    stored = account.current_balance
    cached = "na" if stored is None else f"{stored:.2f}"
    delta = "na" if stored is None else f"{balance.current_balance - stored:.2f}"
    return (
        f"{account.name} {balance.initial_balance:.2f} {balance.deposits:.2f} {balance.withdrawals:.2f} "
        f"{balance.trading_pnl:.2f} {balance.current_balance:.2f} {balance.growth_pct:.2f} {cached} {delta}"
    )


if __name__ == "__main__":
    raise SystemExit(main())
