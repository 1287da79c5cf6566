from __future__ import annotations

import argparse
import sys
from pathlib import Path

from fx_journal.config.app_config import AppConfig, load_app_config
from fx_journal.ingest.journal_files import load_trades
from fx_journal.ingest.ledger_files import load_accounts, load_transactions
from fx_journal.metrics.breakdown import TradeFilter
from fx_journal.models import TradingAccount
from fx_journal.storage.repository import InMemoryRepository, JournalRepository, resolve_active_account
from fx_journal.storage.sqlite_reader import SqliteRepository


def add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=Path, default=None, help="Path to app.toml.")
    parser.add_argument("--db", type=Path, default=None, help="SQLite DB path (default from config).")
    parser.add_argument("--trades", type=Path, default=None, help="Trades export (json/csv/tsv) instead of the DB.")
    parser.add_argument("--accounts", type=Path, default=None, help="Accounts file used with --trades.")
    parser.add_argument("--transactions", type=Path, default=None, help="Transactions file used with --trades.")
    parser.add_argument("--account", type=str, default=None, help="Account id or name.")


def add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--pair", type=str, default=None)
    parser.add_argument("--session", type=str, default=None)
    parser.add_argument("--strategy", type=str, default=None)
    parser.add_argument("--market-condition", type=str, default=None)
    parser.add_argument("--key-level", type=str, default=None)
    parser.add_argument("--sweep", type=str, default=None, help="Liquidity sweep type.")
    parser.add_argument("--location", type=str, default=None, help="Premium, Discount or EQ.")


def trade_filter_from_args(args: argparse.Namespace) -> TradeFilter:
    return TradeFilter(
        pair=args.pair,
        session=args.session,
        strategy=args.strategy,
        market_condition=args.market_condition,
        key_level=args.key_level,
        liquidity_sweep_type=args.sweep,
        trade_location=args.location,
    )


def open_repository(args: argparse.Namespace, config: AppConfig | None = None) -> JournalRepository:
    config = config or load_app_config(args.config)
    if args.trades is None:
        db_path = args.db or config.app.db_path
        if not db_path.exists():
            raise ValueError(f"Database not found: {db_path}. Run fx-journal-sync first or pass --trades.")
        return SqliteRepository(db_path)

    account_id = args.account or config.journal.default_account or "default"
    result = load_trades(args.trades, account_id=account_id)
    for warning in result.warnings:
        print(warning, file=sys.stderr)

    accounts: list[TradingAccount] = []
    if args.accounts is not None:
        accounts_result = load_accounts(args.accounts)
        accounts = accounts_result.accounts
        if accounts_result.skipped:
            print(f"Skipped {accounts_result.skipped} account rows during normalization.", file=sys.stderr)
    transactions = []
    if args.transactions is not None:
        txn_result = load_transactions(args.transactions, account_id=account_id)
        transactions = txn_result.transactions
        if txn_result.skipped:
            print(f"Skipped {txn_result.skipped} transaction rows during normalization.", file=sys.stderr)

    return InMemoryRepository(accounts=accounts, trades=result.trades, transactions=transactions)


def selected_account_id(
    repository: JournalRepository, requested: str | None, config: AppConfig | None = None
) -> str | None:
    """Account to scope trades to; None means every account in the source."""
    wanted = requested or (config.journal.default_account if config else None)
    accounts = repository.list_accounts()
    if not accounts:
        return wanted
    account = resolve_active_account(accounts, wanted)
    return account.id if account else None
