from __future__ import annotations

import hashlib
import json
import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Iterable

from fx_journal.models import AccountTransaction, Confirmation, Trade, TradingAccount

logger = logging.getLogger(__name__)

TABLES = ("trading_accounts", "account_transactions", "trades")


def connect(db_path: Path) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS trading_accounts (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            type TEXT NOT NULL,
            broker TEXT,
            initial_balance REAL NOT NULL,
            current_balance REAL,
            currency TEXT NOT NULL,
            is_active INTEGER NOT NULL,
            created_at TEXT NOT NULL
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS account_transactions (
            id TEXT PRIMARY KEY,
            account_id TEXT NOT NULL REFERENCES trading_accounts(id) ON DELETE CASCADE,
            type TEXT NOT NULL,
            amount REAL NOT NULL,
            note TEXT,
            created_at TEXT NOT NULL
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS trades (
            id TEXT PRIMARY KEY,
            trade_code TEXT NOT NULL,
            account_id TEXT NOT NULL REFERENCES trading_accounts(id) ON DELETE CASCADE,
            date TEXT,
            session TEXT,
            pair TEXT NOT NULL,
            direction TEXT NOT NULL,
            lot_size REAL NOT NULL,
            entry_price REAL NOT NULL,
            stop_loss REAL NOT NULL,
            take_profit REAL NOT NULL,
            exit_price REAL,
            risk_amount REAL NOT NULL,
            risk_percent REAL NOT NULL,
            account_size REAL NOT NULL,
            strategy TEXT,
            htf_timeframe TEXT,
            entry_timeframe TEXT,
            market_condition TEXT,
            confluences TEXT NOT NULL,
            notes TEXT NOT NULL,
            status TEXT NOT NULL,
            dealing_range_high REAL,
            dealing_range_low REAL,
            equilibrium REAL,
            trade_location TEXT,
            liquidity_sweep_type TEXT,
            key_levels TEXT NOT NULL,
            entry_type TEXT,
            entry_quality INTEGER,
            htf_bias_respected INTEGER,
            ltf_bos_confirmed INTEGER,
            mss_present INTEGER,
            screenshot_before TEXT,
            screenshot_after TEXT,
            created_at TEXT NOT NULL
        )
        """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS trades_account_date ON trades (account_id, date)")
    conn.commit()


def upsert_accounts(conn: sqlite3.Connection, accounts: Iterable[TradingAccount]) -> int:
    rows = []
    for account in accounts:
        rows.append(
            {
                "id": account.id,
                "name": account.name,
                "type": account.type,
                "broker": account.broker,
                "initial_balance": account.initial_balance,
                "current_balance": account.current_balance,
                "currency": account.currency,
                "is_active": 1 if account.is_active else 0,
                "created_at": _timestamp(account.created_at),
            }
        )
    conn.executemany(
        """
        INSERT INTO trading_accounts (
            id, name, type, broker, initial_balance, current_balance, currency, is_active, created_at
        )
        VALUES (
            :id, :name, :type, :broker, :initial_balance, :current_balance, :currency, :is_active, :created_at
        )
        ON CONFLICT(id) DO UPDATE SET
            name=excluded.name,
            type=excluded.type,
            broker=excluded.broker,
            initial_balance=excluded.initial_balance,
            current_balance=COALESCE(excluded.current_balance, trading_accounts.current_balance),
            currency=excluded.currency,
            is_active=excluded.is_active
        """,
        rows,
    )
    conn.commit()
    return len(rows)


def upsert_transactions(conn: sqlite3.Connection, transactions: Iterable[AccountTransaction]) -> int:
    rows = []
    for txn in transactions:
        rows.append(
            {
                "id": txn.id or _hash_id("txn", txn.account_id, txn.type, txn.amount, txn.created_at),
                "account_id": txn.account_id,
                "type": txn.type,
                "amount": txn.amount,
                "note": txn.note,
                "created_at": _timestamp(txn.created_at),
            }
        )
    conn.executemany(
        """
        INSERT INTO account_transactions (id, account_id, type, amount, note, created_at)
        VALUES (:id, :account_id, :type, :amount, :note, :created_at)
        ON CONFLICT(id) DO UPDATE SET
            account_id=excluded.account_id,
            type=excluded.type,
            amount=excluded.amount,
            note=excluded.note
        """,
        rows,
    )
    conn.commit()
    return len(rows)


def upsert_trades(conn: sqlite3.Connection, trades: Iterable[Trade]) -> int:
    rows = []
    for trade in trades:
        rows.append(
            {
                "id": trade.id,
                "trade_code": trade.trade_code,
                "account_id": trade.account_id,
                "date": trade.date.isoformat() if trade.date else None,
                "session": trade.session,
                "pair": trade.pair,
                "direction": trade.direction,
                "lot_size": trade.lot_size,
                "entry_price": trade.entry_price,
                "stop_loss": trade.stop_loss,
                "take_profit": trade.take_profit,
                "exit_price": trade.exit_price,
                "risk_amount": trade.risk_amount,
                "risk_percent": trade.risk_percent,
                "account_size": trade.account_size,
                "strategy": trade.strategy,
                "htf_timeframe": trade.htf_timeframe,
                "entry_timeframe": trade.entry_timeframe,
                "market_condition": trade.market_condition,
                "confluences": json.dumps(list(trade.confluences)),
                "notes": trade.notes or "",
                "status": trade.status,
                "dealing_range_high": trade.dealing_range_high,
                "dealing_range_low": trade.dealing_range_low,
                "equilibrium": trade.equilibrium,
                "trade_location": trade.trade_location,
                "liquidity_sweep_type": trade.liquidity_sweep_type,
                "key_levels": json.dumps(list(trade.key_levels)),
                "entry_type": trade.entry_type,
                "entry_quality": trade.entry_quality,
                "htf_bias_respected": _flag(trade.htf_bias_respected),
                "ltf_bos_confirmed": _flag(trade.ltf_bos_confirmed),
                "mss_present": _flag(trade.mss_present),
                "screenshot_before": trade.screenshot_before,
                "screenshot_after": trade.screenshot_after,
                "created_at": _timestamp(trade.created_at),
            }
        )
    if not rows:
        return 0
    columns = list(rows[0])
    updates = ",\n            ".join(
        f"{column}=excluded.{column}" for column in columns if column not in {"id", "created_at"}
    )
    conn.executemany(
        f"""
        INSERT INTO trades ({", ".join(columns)})
        VALUES ({", ".join(":" + column for column in columns)})
        ON CONFLICT(id) DO UPDATE SET
            {updates}
        """,
        rows,
    )
    conn.commit()
    return len(rows)


def update_current_balances(conn: sqlite3.Connection, balances: dict[str, float]) -> int:
    """Refresh the cached balance column; the ledger stays the source of truth."""
    conn.executemany(
        "UPDATE trading_accounts SET current_balance = ? WHERE id = ?",
        [(value, account_id) for account_id, value in balances.items()],
    )
    conn.commit()
    logger.info("Refreshed cached balance for %d account(s).", len(balances))
    return len(balances)


def _flag(value: Confirmation) -> int | None:
    flag = Confirmation.from_value(value).as_bool()
    if flag is None:
        return None
    return 1 if flag else 0


def _timestamp(value: datetime | date | None) -> str:
    if value is None:
        return datetime.now().astimezone().isoformat()
    return value.isoformat()


def _hash_id(prefix: str, *parts: object) -> str:
    normalized = []
    for part in parts:
        if isinstance(part, datetime):
            normalized.append(part.isoformat())
        else:
            normalized.append("" if part is None else str(part))
    digest = hashlib.sha1("|".join(normalized).encode("utf-8")).hexdigest()
    return f"{prefix}:{digest}"
