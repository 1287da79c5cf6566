from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Mapping

from fx_journal.ingest.fields import (
    extract_records,
    first_row_number,
    lower_keys,
    parse_timestamp,
    pick,
    read_records,
    to_list,
    to_number,
    to_text,
)
from fx_journal.metrics.outcome import apply_structure
from fx_journal.models import (
    DIRECTION_BUY,
    DIRECTION_SELL,
    STATUS_CLOSED,
    STATUS_OPEN,
    TRADE_LOCATIONS,
    Confirmation,
    Trade,
    new_trade_code,
)

logger = logging.getLogger(__name__)

DEFAULT_LOT_SIZE = 0.01

EXPORT_COLUMNS = (
    "trade_id", "date", "session", "pair", "direction", "lot_size",
    "entry_price", "stop_loss", "take_profit", "exit_price",
    "risk_amount", "risk_percent", "account_size", "strategy",
    "htf_timeframe", "entry_timeframe", "market_condition",
    "confluences", "notes", "status",
    "dealing_range_high", "dealing_range_low", "equilibrium",
    "trade_location", "liquidity_sweep_type", "key_levels",
    "entry_type", "entry_quality", "htf_bias_respected",
    "ltf_bos_confirmed", "mss_present",
)

_DATE_PATTERN = re.compile(r"(\d{4})[./\-](\d{2})[./\-](\d{2})")
_TIME_PATTERN = re.compile(r"(\d{2}):(\d{2})")
_BUY_WORDS = {"buy", "buy limit", "buy stop", "long"}


@dataclass(frozen=True)
class IngestResult:
    trades: list[Trade]
    skipped: int = 0
    warnings: list[str] = field(default_factory=list)


def load_trades(path: str | Path, *, account_id: str | None = None) -> IngestResult:
    """Journal trades from a native export or an MT5 history export (json/csv/tsv)."""
    path = Path(path)
    records = read_records(path, "trades")
    return _normalize_records(records, account_id=account_id, first_row=first_row_number(path))


def load_trades_payload(payload: Any, *, account_id: str | None = None) -> IngestResult:
    records = extract_records(payload, "trades")
    return _normalize_records(records, account_id=account_id)


def _normalize_records(
    records: Iterable[Mapping[str, Any]], *, account_id: str | None, first_row: int = 1
) -> IngestResult:
    trades: list[Trade] = []
    warnings: list[str] = []
    skipped = 0
    for row_number, raw in enumerate(records, start=first_row):
        try:
            trades.append(normalize_trade(raw, account_id=account_id))
        except ValueError as exc:
            skipped += 1
            warnings.append(f"Row {row_number}: {exc}, skipped")
    if skipped:
        logger.warning("Skipped %d of %d trade rows during import.", skipped, skipped + len(trades))
    return IngestResult(trades=trades, skipped=skipped, warnings=warnings)


def normalize_trade(raw: Mapping[str, Any], *, account_id: str | None = None) -> Trade:
    row = lower_keys(raw)

    pair_raw = to_text(pick(row, "pair", "symbol", "instrument"))
    if not pair_raw:
        raise ValueError("No pair/symbol found")
    pair = re.sub(r"[^A-Za-z0-9]", "", pair_raw).upper()

    resolved_account = to_text(pick(row, "account_id", "accountid")) or account_id
    if not resolved_account:
        raise ValueError("No account found")

    date_raw = to_text(pick(row, "date", "open time", "time", "close time", "trade_date"))
    trade_date = extract_date(date_raw) if date_raw else date.today()
    session = to_text(pick(row, "session")) or guess_session(date_raw or "")

    direction_raw = to_text(pick(row, "direction", "type", "side"))
    direction = normalize_direction(direction_raw) if direction_raw else DIRECTION_BUY

    exit_price = to_number(pick(row, "exit_price", "exitprice", "close price"), default=None) or None
    status_raw = to_text(pick(row, "status"))
    if exit_price is not None:
        status = STATUS_CLOSED
    elif status_raw and status_raw.lower() == STATUS_CLOSED.lower():
        status = STATUS_CLOSED
    else:
        status = STATUS_OPEN

    trade_code = to_text(pick(row, "trade_id", "trade_code", "tradeid", "tradecode", "ticket", "order"))
    trade_code = trade_code or new_trade_code()
    location = to_text(pick(row, "trade_location", "tradelocation"))

    trade = Trade(
        id=to_text(pick(row, "id")) or trade_code,
        trade_code=trade_code,
        account_id=resolved_account,
        pair=pair,
        direction=direction,
        entry_price=to_number(pick(row, "entry_price", "entryprice", "price", "open price")),
        stop_loss=to_number(pick(row, "stop_loss", "stoploss", "s / l", "sl", "stop loss")),
        take_profit=to_number(pick(row, "take_profit", "takeprofit", "t / p", "tp", "take profit")),
        exit_price=exit_price,
        lot_size=to_number(pick(row, "lot_size", "lotsize", "volume")) or DEFAULT_LOT_SIZE,
        risk_amount=to_number(pick(row, "risk_amount", "riskamount")),
        risk_percent=to_number(pick(row, "risk_percent", "riskpercent")),
        account_size=to_number(pick(row, "account_size", "accountsize")),
        session=session,
        strategy=to_text(pick(row, "strategy")),
        market_condition=to_text(pick(row, "market_condition", "marketcondition")),
        confluences=to_list(pick(row, "confluences")),
        htf_timeframe=to_text(pick(row, "htf_timeframe", "htftimeframe")),
        entry_timeframe=to_text(pick(row, "entry_timeframe", "entrytimeframe")),
        dealing_range_high=to_number(pick(row, "dealing_range_high", "dealingrangehigh"), default=None),
        dealing_range_low=to_number(pick(row, "dealing_range_low", "dealingrangelow"), default=None),
        trade_location=location if location in TRADE_LOCATIONS else None,
        liquidity_sweep_type=to_text(pick(row, "liquidity_sweep_type", "liquiditysweeptype")),
        key_levels=to_list(pick(row, "key_levels", "keylevels")),
        entry_type=to_text(pick(row, "entry_type", "entrytype")),
        entry_quality=_entry_quality(pick(row, "entry_quality", "entryquality")),
        htf_bias_respected=Confirmation.from_value(pick(row, "htf_bias_respected", "htfbiasrespected")),
        ltf_bos_confirmed=Confirmation.from_value(pick(row, "ltf_bos_confirmed", "ltfbosconfirmed")),
        mss_present=Confirmation.from_value(pick(row, "mss_present", "msspresent")),
        status=status,
        date=trade_date,
        notes=to_text(pick(row, "notes", "comment", "profit")) or "",
        screenshot_before=to_text(pick(row, "screenshot_before", "screenshotbefore")),
        screenshot_after=to_text(pick(row, "screenshot_after", "screenshotafter")),
        created_at=parse_timestamp(pick(row, "created_at", "createdat")),
    )
    if trade.dealing_range_high is not None and trade.dealing_range_low is not None:
        return apply_structure(trade)
    return trade


def normalize_direction(value: str) -> str:
    if value.strip().lower() in _BUY_WORDS:
        return DIRECTION_BUY
    return DIRECTION_SELL


def extract_date(value: str) -> date:
    match = _DATE_PATTERN.search(value)
    if match:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    return date.today()


def guess_session(value: str) -> str:
    match = _TIME_PATTERN.search(value)
    if not match:
        return "London"
    hour = int(match.group(1))
    if hour < 7:
        return "Asia"
    if hour < 12:
        return "London"
    if hour < 21:
        return "New York"
    return "Sydney"


def _entry_quality(value: Any) -> int | None:
    number = to_number(value, default=None)
    if number is None:
        return None
    quality = int(number)
    if 1 <= quality <= 5:
        return quality
    return None


def trades_to_csv(trades: Iterable[Trade]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for trade in trades:
        writer.writerow([_export_value(value) for value in _export_row(trade)])
    return buffer.getvalue()


def _export_row(trade: Trade) -> list[Any]:
    return [
        trade.trade_code, trade.date, trade.session, trade.pair, trade.direction, trade.lot_size,
        trade.entry_price, trade.stop_loss, trade.take_profit, trade.exit_price,
        trade.risk_amount, trade.risk_percent, trade.account_size, trade.strategy,
        trade.htf_timeframe, trade.entry_timeframe, trade.market_condition,
        trade.confluences, trade.notes, trade.status,
        trade.dealing_range_high, trade.dealing_range_low, trade.equilibrium,
        trade.trade_location, trade.liquidity_sweep_type, trade.key_levels,
        trade.entry_type, trade.entry_quality, trade.htf_bias_respected,
        trade.ltf_bos_confirmed, trade.mss_present,
    ]


def _export_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Confirmation):
        flag = value.as_bool()
        return "" if flag is None else str(flag).lower()
    if isinstance(value, (list, tuple)):
        return ";".join(value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)
