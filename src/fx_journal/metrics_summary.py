from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from fx_journal.config.app_config import load_app_config
from fx_journal.journal_source import (
    add_filter_arguments,
    add_source_arguments,
    open_repository,
    selected_account_id,
    trade_filter_from_args,
)
from fx_journal.metrics.breakdown import (
    BREAKDOWN_NAMES,
    best_and_worst_strategy,
    equity_curve,
    filter_trades,
    r_distribution,
    rank_breakdown,
)
from fx_journal.metrics.periods import PERIODS, period_to_dict, summarize_periods
from fx_journal.metrics.summary import TradeStatistics, compute_trade_statistics, statistics_to_dict
from fx_journal.models import Trade


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Compute aggregate journal statistics.")
    add_source_arguments(parser)
    add_filter_arguments(parser)
    parser.add_argument("--period", choices=PERIODS, default=None, help="Bucket size for the period table.")
    parser.add_argument(
        "--breakdown",
        action="append",
        choices=sorted(BREAKDOWN_NAMES),
        default=None,
        help="Win-rate breakdown to include (repeatable; default from config).",
    )
    parser.add_argument("--json", action="store_true", help="Print JSON output.")
    parser.add_argument("--out", type=Path, default=None, help="Write output to a file instead of stdout.")
    args = parser.parse_args(argv)

    config = load_app_config(args.config)
    try:
        repository = open_repository(args, config)
        account_id = selected_account_id(repository, args.account, config)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    trades = filter_trades(repository.list_closed_trades(account_id), trade_filter_from_args(args))
    period = args.period or config.journal.period
    breakdowns = args.breakdown or config.analytics.breakdowns

    stats = compute_trade_statistics(trades)

    if args.json or (args.out is not None and args.out.suffix.lower() == ".json"):
        payload = build_payload(trades, period, breakdowns, histogram=config.analytics.histogram)
        text = json.dumps(payload, indent=2, sort_keys=True)
    else:
        text = _format_statistics(stats, trades, period, breakdowns)

    if args.out is None:
        print(text)
    else:
        args.out.parent.mkdir(parents=True, exist_ok=True)
        args.out.write_text(text + "\n", encoding="utf-8")

    return 0


def build_payload(
    trades: list[Trade],
    period: str,
    breakdowns: list[str],
    *,
    histogram: bool = True,
) -> dict[str, Any]:
    stats = compute_trade_statistics(trades)
    best, worst = best_and_worst_strategy(trades)
    payload: dict[str, Any] = statistics_to_dict(stats)
    payload["best_strategy"] = best
    payload["worst_strategy"] = worst
    payload["periods"] = [period_to_dict(row) for row in summarize_periods(trades, period)]
    payload["breakdowns"] = {
        name: [
            {"name": row.name, "win_rate": row.win_rate, "total": row.total}
            for row in rank_breakdown(trades, name)
        ]
        for name in breakdowns
    }
    payload["equity_curve"] = [{"trade": point.trade, "equity": point.equity} for point in equity_curve(trades)]
    if histogram:
        payload["r_distribution"] = [{"name": band.name, "count": band.count} for band in r_distribution(trades)]
    return payload


def _format_statistics(stats: TradeStatistics, trades: list[Trade], period: str, breakdowns: list[str]) -> str:
    best, worst = best_and_worst_strategy(trades)
    lines = [
        f"total_trades {stats.total_trades}",
        f"wins {stats.wins}",
        f"losses {stats.losses}",
        f"breakevens {stats.breakevens}",
        f"win_rate {stats.win_rate}",
        f"total_pnl {_format_float(stats.total_pnl)}",
        f"avg_r_multiple {_format_float(stats.avg_r_multiple)}",
        f"best_trade {_format_float(stats.best_trade)}",
        f"worst_trade {_format_float(stats.worst_trade)}",
        f"profit_factor {_format_float(stats.profit_factor)}",
        f"avg_win {_format_float(stats.avg_win)}",
        f"avg_loss {_format_float(stats.avg_loss)}",
        f"expectancy {_format_float(stats.expectancy)}",
        f"max_drawdown {_format_float(stats.max_drawdown)}",
        f"consecutive_wins {stats.consecutive_wins}",
        f"consecutive_losses {stats.consecutive_losses}",
        f"best_strategy {best}",
        f"worst_strategy {worst}",
    ]

    rows = summarize_periods(trades, period)
    if rows:
        lines.append("")
        lines.append(f"{period} trades wins losses win_rate pnl avg_r")
        for row in rows:
            lines.append(
                f"{row.label} {row.total_trades} {row.wins} {row.losses} {row.win_rate} "
                f"{_format_float(row.total_pnl)} {_format_float(row.avg_r)}"
            )

    for name in breakdowns:
        groups = rank_breakdown(trades, name)
        if not groups:
            continue
        lines.append("")
        lines.append(f"{name} win_rate trades")
        for group in groups:
            lines.append(f"{group.name} {group.win_rate} {group.total}")

    return "\n".join(lines)


def _format_float(value: float | None) -> str:
    return "na" if value is None else f"{value:.6g}"


if __name__ == "__main__":
    raise SystemExit(main())
