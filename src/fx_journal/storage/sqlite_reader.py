from __future__ import annotations

import json
import sqlite3
from contextlib import closing
from datetime import date, datetime
from pathlib import Path
from typing import Any

from fx_journal.models import AccountTransaction, Confirmation, Trade, TradingAccount


def connect(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    return conn


def load_accounts(conn: sqlite3.Connection) -> list[TradingAccount]:
    rows = conn.execute("SELECT * FROM trading_accounts ORDER BY created_at").fetchall()
    return [
        TradingAccount(
            id=row["id"],
            name=row["name"],
            type=row["type"],
            broker=row["broker"],
            initial_balance=row["initial_balance"],
            currency=row["currency"],
            is_active=bool(row["is_active"]),
            created_at=_parse_iso(row["created_at"]),
            current_balance=row["current_balance"],
        )
        for row in rows
    ]


def load_transactions(conn: sqlite3.Connection, *, account_id: str | None) -> list[AccountTransaction]:
    rows = _fetch(conn, "account_transactions", account_id, order_by="created_at")
    return [
        AccountTransaction(
            id=row["id"],
            account_id=row["account_id"],
            type=row["type"],
            amount=row["amount"],
            note=row["note"],
            created_at=_parse_iso(row["created_at"]),
        )
        for row in rows
    ]


def load_trades(
    conn: sqlite3.Connection, *, account_id: str | None, closed_only: bool = False
) -> list[Trade]:
    rows = _fetch(conn, "trades", account_id, order_by="date, created_at")
    trades: list[Trade] = []
    for row in rows:
        trade = Trade(
            id=row["id"],
            trade_code=row["trade_code"],
            account_id=row["account_id"],
            pair=row["pair"],
            direction=row["direction"],
            entry_price=row["entry_price"],
            stop_loss=row["stop_loss"],
            take_profit=row["take_profit"],
            exit_price=row["exit_price"],
            lot_size=row["lot_size"],
            risk_amount=row["risk_amount"],
            risk_percent=row["risk_percent"],
            account_size=row["account_size"],
            session=row["session"],
            strategy=row["strategy"],
            market_condition=row["market_condition"],
            confluences=_json_list(row["confluences"]),
            htf_timeframe=row["htf_timeframe"],
            entry_timeframe=row["entry_timeframe"],
            dealing_range_high=row["dealing_range_high"],
            dealing_range_low=row["dealing_range_low"],
            equilibrium=row["equilibrium"],
            trade_location=row["trade_location"],
            liquidity_sweep_type=row["liquidity_sweep_type"],
            key_levels=_json_list(row["key_levels"]),
            entry_type=row["entry_type"],
            entry_quality=row["entry_quality"],
            htf_bias_respected=Confirmation.from_value(_maybe_bool(row["htf_bias_respected"])),
            ltf_bos_confirmed=Confirmation.from_value(_maybe_bool(row["ltf_bos_confirmed"])),
            mss_present=Confirmation.from_value(_maybe_bool(row["mss_present"])),
            status=row["status"],
            date=date.fromisoformat(row["date"]) if row["date"] else None,
            notes=row["notes"] or "",
            screenshot_before=row["screenshot_before"],
            screenshot_after=row["screenshot_after"],
            created_at=_parse_iso(row["created_at"]),
        )
        if closed_only and not trade.is_closed:
            continue
        trades.append(trade)
    return trades


class SqliteRepository:
    """Journal repository reading straight from the SQLite store on every call."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def list_accounts(self) -> list[TradingAccount]:
        with closing(connect(self.db_path)) as conn:
            return load_accounts(conn)

    def list_trades(self, account_id: str | None = None) -> list[Trade]:
        with closing(connect(self.db_path)) as conn:
            return load_trades(conn, account_id=account_id)

    def list_closed_trades(self, account_id: str | None = None) -> list[Trade]:
        with closing(connect(self.db_path)) as conn:
            return load_trades(conn, account_id=account_id, closed_only=True)

    def list_transactions(self, account_id: str | None = None) -> list[AccountTransaction]:
        with closing(connect(self.db_path)) as conn:
            return load_transactions(conn, account_id=account_id)


def _fetch(
    conn: sqlite3.Connection,
    table: str,
    account_id: str | None,
    *,
    order_by: str,
) -> list[sqlite3.Row]:
    params: list[Any] = []
    where = ""
    if account_id is not None:
        where = " WHERE account_id = ?"
        params.append(account_id)
    query = f"SELECT * FROM {table}{where} ORDER BY {order_by}"
    return conn.execute(query, params).fetchall()


def _json_list(value: Any) -> list[str]:
    if not value:
        return []
    try:
        decoded = json.loads(value)
    except json.JSONDecodeError:
        return [part for part in str(value).split(";") if part]
    if not isinstance(decoded, list):
        return []
    return [str(item) for item in decoded]


def _maybe_bool(value: Any) -> bool | None:
    if value is None:
        return None
    return bool(value)


def _parse_iso(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)
