from __future__ import annotations

import argparse
import json
import sys
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path

from fx_journal.config.app_config import load_app_config
from fx_journal.ingest.journal_files import trades_to_csv
from fx_journal.metrics.balance import balance_to_dict, reconcile_balances
from fx_journal.storage.repository import chronological, resolve_active_account
from fx_journal.storage.sqlite_reader import connect, load_accounts, load_trades, load_transactions


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Export journal trades from SQLite to CSV for backup.")
    parser.add_argument("--config", type=Path, default=None, help="Path to app.toml.")
    parser.add_argument("--db", type=Path, default=None, help="SQLite DB path (default from config).")
    parser.add_argument("--account", type=str, default=None, help="Account id or name (default: all accounts).")
    parser.add_argument("--out-dir", type=Path, default=Path("data/exports"), help="Output directory.")
    args = parser.parse_args(argv)

    config = load_app_config(args.config)
    db_path = args.db or config.app.db_path
    if not db_path.exists():
        print(f"Database not found: {db_path}.", file=sys.stderr)
        return 2

    with closing(connect(db_path)) as conn:
        accounts = load_accounts(conn)
        if args.account:
            try:
                accounts = [resolve_active_account(accounts, args.account)]
            except ValueError as exc:
                print(str(exc), file=sys.stderr)
                return 2
        account_ids = {account.id for account in accounts}
        trades = [trade for trade in load_trades(conn, account_id=None) if trade.account_id in account_ids]
        transactions = load_transactions(conn, account_id=None)

    args.out_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc)
    out_path = args.out_dir / f"trades_{stamp.date().isoformat()}.csv"
    out_path.write_text(trades_to_csv(chronological(trades)), encoding="utf-8")

    manifest = {
        "exported_at": stamp.isoformat(),
        "db_path": str(db_path),
        "trades": len(trades),
        "file": out_path.name,
        "balances": [balance_to_dict(item) for item in reconcile_balances(accounts, trades, transactions)],
    }
    (args.out_dir / "manifest.json").write_text(
        json.dumps(manifest, indent=2, sort_keys=True) + "\n", encoding="utf-8"
    )
    print(f"exported_trades {len(trades)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
