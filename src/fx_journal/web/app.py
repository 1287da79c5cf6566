from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query

from fx_journal.config.app_config import AppConfig, load_app_config
from fx_journal.metrics.balance import balance_to_dict, reconcile_balances
from fx_journal.metrics.breakdown import (
    BREAKDOWN_NAMES,
    TradeFilter,
    best_and_worst_strategy,
    equity_curve,
    filter_trades,
    r_distribution,
    rank_breakdown,
)
from fx_journal.metrics.outcome import compute_trade_outcome
from fx_journal.metrics.periods import PERIODS, period_to_dict, summarize_periods
from fx_journal.metrics.summary import compute_trade_statistics, statistics_to_dict
from fx_journal.models import Trade
from fx_journal.storage.repository import InMemoryRepository, JournalRepository, resolve_active_account
from fx_journal.storage.sqlite_reader import SqliteRepository

logger = logging.getLogger(__name__)

app = FastAPI(title="FX Journal")


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    return load_app_config()


def get_repository(config: AppConfig = Depends(get_config)) -> JournalRepository:
    db_path = config.app.db_path
    if not db_path.exists():
        logger.warning("Journal database %s not found; serving an empty journal.", db_path)
        return InMemoryRepository()
    return SqliteRepository(db_path)


def trade_filter(
    pair: str | None = None,
    session: str | None = None,
    strategy: str | None = None,
    market_condition: str | None = None,
    key_level: str | None = None,
    sweep: str | None = None,
    location: str | None = None,
) -> TradeFilter:
    return TradeFilter(
        pair=pair,
        session=session,
        strategy=strategy,
        market_condition=market_condition,
        key_level=key_level,
        liquidity_sweep_type=sweep,
        trade_location=location,
    )


def _account_id(repository: JournalRepository, requested: str | None, config: AppConfig) -> str | None:
    try:
        account = resolve_active_account(repository.list_accounts(), requested or config.journal.default_account)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return account.id if account else None


def _closed_trades(
    repository: JournalRepository,
    account: str | None,
    filters: TradeFilter,
    config: AppConfig,
) -> list[Trade]:
    account_id = _account_id(repository, account, config)
    return filter_trades(repository.list_closed_trades(account_id), filters)


@app.get("/api/accounts")
def accounts_api(repository: JournalRepository = Depends(get_repository)) -> list[dict[str, Any]]:
    accounts = repository.list_accounts()
    balances = reconcile_balances(accounts, repository.list_trades(), repository.list_transactions())
    payload = []
    for account, balance in zip(accounts, balances):
        row = balance_to_dict(balance)
        row.update(
            {
                "name": account.name,
                "type": account.type,
                "broker": account.broker,
                "currency": account.currency,
                "is_active": account.is_active,
            }
        )
        payload.append(row)
    return payload


@app.get("/api/summary")
def summary_api(
    account: str | None = None,
    filters: TradeFilter = Depends(trade_filter),
    repository: JournalRepository = Depends(get_repository),
    config: AppConfig = Depends(get_config),
) -> dict[str, Any]:
    trades = _closed_trades(repository, account, filters, config)
    best, worst = best_and_worst_strategy(trades)
    payload: dict[str, Any] = statistics_to_dict(compute_trade_statistics(trades))
    payload["best_strategy"] = best
    payload["worst_strategy"] = worst
    return payload


@app.get("/api/periods")
def periods_api(
    account: str | None = None,
    period: str | None = Query(default=None),
    filters: TradeFilter = Depends(trade_filter),
    repository: JournalRepository = Depends(get_repository),
    config: AppConfig = Depends(get_config),
) -> list[dict[str, Any]]:
    period = period or config.journal.period
    if period not in PERIODS:
        raise HTTPException(status_code=400, detail=f"Unknown period '{period}'. Use one of: {', '.join(PERIODS)}.")
    trades = _closed_trades(repository, account, filters, config)
    return [period_to_dict(row) for row in summarize_periods(trades, period)]


@app.get("/api/breakdowns/{name}")
def breakdown_api(
    name: str,
    account: str | None = None,
    filters: TradeFilter = Depends(trade_filter),
    repository: JournalRepository = Depends(get_repository),
    config: AppConfig = Depends(get_config),
) -> list[dict[str, Any]]:
    if name not in BREAKDOWN_NAMES:
        raise HTTPException(status_code=400, detail=f"Unknown breakdown '{name}'.")
    trades = _closed_trades(repository, account, filters, config)
    return [{"name": row.name, "win_rate": row.win_rate, "total": row.total} for row in rank_breakdown(trades, name)]


@app.get("/api/equity-curve")
def equity_curve_api(
    account: str | None = None,
    filters: TradeFilter = Depends(trade_filter),
    repository: JournalRepository = Depends(get_repository),
    config: AppConfig = Depends(get_config),
) -> list[dict[str, Any]]:
    trades = _closed_trades(repository, account, filters, config)
    return [{"trade": point.trade, "equity": point.equity} for point in equity_curve(trades)]


@app.get("/api/r-distribution")
def r_distribution_api(
    account: str | None = None,
    filters: TradeFilter = Depends(trade_filter),
    repository: JournalRepository = Depends(get_repository),
    config: AppConfig = Depends(get_config),
) -> list[dict[str, Any]]:
    trades = _closed_trades(repository, account, filters, config)
    return [{"name": band.name, "count": band.count} for band in r_distribution(trades)]


@app.get("/api/trades")
def trades_api(
    account: str | None = None,
    filters: TradeFilter = Depends(trade_filter),
    repository: JournalRepository = Depends(get_repository),
    config: AppConfig = Depends(get_config),
) -> list[dict[str, Any]]:
    account_id = _account_id(repository, account, config)
    trades = filter_trades(repository.list_trades(account_id), filters)
    return [_trade_payload(trade) for trade in reversed(trades)]


def _trade_payload(trade: Trade) -> dict[str, Any]:
    outcome = compute_trade_outcome(trade)
    return {
        "id": trade.id,
        "trade_code": trade.trade_code,
        "account_id": trade.account_id,
        "date": trade.date.isoformat() if trade.date else None,
        "pair": trade.pair,
        "direction": trade.direction,
        "status": trade.status,
        "session": trade.session,
        "strategy": trade.strategy,
        "entry_price": trade.entry_price,
        "stop_loss": trade.stop_loss,
        "take_profit": trade.take_profit,
        "exit_price": trade.exit_price,
        "lot_size": trade.lot_size,
        "risk_amount": trade.risk_amount,
        "key_levels": list(trade.key_levels),
        "confluences": list(trade.confluences),
        "htf_bias_respected": trade.htf_bias_respected.as_bool(),
        "ltf_bos_confirmed": trade.ltf_bos_confirmed.as_bool(),
        "mss_present": trade.mss_present.as_bool(),
        "outcome": None
        if outcome is None
        else {
            "result": outcome.outcome,
            "pips": outcome.pips,
            "r_multiple": outcome.r_multiple,
            "dollar_pnl": outcome.dollar_pnl,
            "percent_pnl": outcome.percent_pnl,
            "display_pnl": outcome.display_pnl,
            "planned_rr": outcome.planned_rr,
            "equilibrium": outcome.equilibrium,
            "trade_location": outcome.trade_location,
        },
    }


def main() -> None:
    import uvicorn

    app_config = load_app_config()
    uvicorn.run(
        "fx_journal.web.app:app",
        host=app_config.app.host,
        port=app_config.app.port,
        reload=app_config.app.reload,
    )


if __name__ == "__main__":
    main()
