from __future__ import annotations

import argparse
import sys
from pathlib import Path

from fx_journal.config.app_config import load_app_config
from fx_journal.journal_source import (
    add_filter_arguments,
    add_source_arguments,
    open_repository,
    selected_account_id,
    trade_filter_from_args,
)
from fx_journal.metrics.breakdown import filter_trades
from fx_journal.metrics.outcome import compute_trade_outcome


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="List closed journal trades with their computed outcomes.")
    add_source_arguments(parser)
    add_filter_arguments(parser)
    parser.add_argument(
        "--open",
        action="store_true",
        help="Also list open trades (their outcome columns print as na).",
    )
    parser.add_argument("--out", type=Path, default=None, help="Write the listing to a file instead of stdout.")
    args = parser.parse_args(argv)

    config = load_app_config(args.config)
    try:
        repository = open_repository(args, config)
        account_id = selected_account_id(repository, args.account, config)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    trades = filter_trades(repository.list_trades(account_id), trade_filter_from_args(args))
    if not args.open:
        trades = [trade for trade in trades if trade.is_closed]

    if not trades:
        print("No trades found.")
        return 0

    output = ["code date pair direction entry exit pips r pnl pnl_pct outcome location"]
    for trade in trades:
        outcome = compute_trade_outcome(trade)
        day = trade.date.isoformat() if trade.date else "na"
        entry_px = f"{trade.entry_price:.6g}"
        exit_px = _format_metric(trade.exit_price)
        if outcome is None:
            output.append(
                f"{trade.trade_code} {day} {trade.pair} {trade.direction} {entry_px} {exit_px} na na na na open "
                f"{trade.trade_location or 'na'}"
            )
            continue
        output.append(
            f"{trade.trade_code} {day} {trade.pair} {trade.direction} {entry_px} {exit_px} "
            f"{outcome.pips:.1f} {outcome.r_multiple:.2f} {outcome.dollar_pnl:.2f} {outcome.percent_pnl:.2f} "
            f"{outcome.outcome} {outcome.trade_location or 'na'}"
        )

    if args.out is None:
        for line in output:
            print(line)
    else:
        args.out.parent.mkdir(parents=True, exist_ok=True)
        args.out.write_text("\n".join(output) + "\n", encoding="utf-8")

    return 0


def _format_metric(value: float | None) -> str:
    return "na" if value is None else f"{value:.6g}"


if __name__ == "__main__":
    raise SystemExit(main())
