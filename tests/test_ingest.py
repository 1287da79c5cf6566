"""Tests for journal, MT5 and ledger file imports."""

import json
from datetime import date

import pytest

from fx_journal.ingest.journal_files import (
    EXPORT_COLUMNS,
    guess_session,
    load_trades,
    load_trades_payload,
    normalize_direction,
    trades_to_csv,
)
from fx_journal.ingest.ledger_files import load_accounts, load_transactions
from fx_journal.models import DIRECTION_BUY, DIRECTION_SELL, STATUS_CLOSED, STATUS_OPEN, Confirmation

MT5_EXPORT = (
    "Time,Type,Symbol,Volume,Price,S / L,T / P,Close Price,Profit\n"
    "2024.01.15 14:30:00,buy,EUR/USD,0.5,1.085,1.083,1.09,1.09,250\n"
    "2024.01.16 03:10:00,sell limit,,0.2,1.1,1.105,1.09,,\n"
    "2024.01.17 08:45:00,sell,usdjpy,1,150.0,150.5,149.0,,\n"
)


class TestMt5Import:
    def test_rows_are_normalized(self, tmp_path):
        path = tmp_path / "history.csv"
        path.write_text(MT5_EXPORT, encoding="utf-8")

        result = load_trades(path, account_id="acc-1")

        assert result.skipped == 1
        assert result.warnings == ["Row 3: No pair/symbol found, skipped"]
        first, second = result.trades
        assert first.pair == "EURUSD"
        assert first.direction == DIRECTION_BUY
        assert first.date == date(2024, 1, 15)
        assert first.session == "New York"
        assert first.lot_size == 0.5
        assert first.entry_price == 1.085
        assert first.exit_price == 1.09
        assert first.status == STATUS_CLOSED
        assert first.notes == "250"
        assert first.account_id == "acc-1"
        assert second.pair == "USDJPY"
        assert second.direction == DIRECTION_SELL
        assert second.session == "London"
        assert second.status == STATUS_OPEN
        assert second.exit_price is None

    def test_missing_account_skips_row(self, tmp_path):
        path = tmp_path / "history.csv"
        path.write_text(MT5_EXPORT, encoding="utf-8")

        result = load_trades(path)

        assert result.trades == []
        assert result.skipped == 3

    def test_unsupported_file_type(self, tmp_path):
        path = tmp_path / "history.xlsx"
        path.write_bytes(b"")
        with pytest.raises(ValueError):
            load_trades(path, account_id="acc-1")


class TestFieldRules:
    @pytest.mark.parametrize(
        "raw,expected",
        [("buy", DIRECTION_BUY), ("Buy Stop", DIRECTION_BUY), ("long", DIRECTION_BUY), ("sell", DIRECTION_SELL), ("short", DIRECTION_SELL)],
    )
    def test_direction(self, raw, expected):
        assert normalize_direction(raw) == expected

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("2024.01.15 03:00", "Asia"),
            ("2024.01.15 07:00", "London"),
            ("2024.01.15 11:59", "London"),
            ("2024.01.15 12:00", "New York"),
            ("2024.01.15 20:59", "New York"),
            ("2024.01.15 22:00", "Sydney"),
            ("2024.01.15", "London"),
        ],
    )
    def test_session_from_time(self, raw, expected):
        assert guess_session(raw) == expected


class TestNativeImport:
    def test_json_payload(self):
        payload = {
            "trades": [
                {
                    "trade_id": "T240110-ZZ01",
                    "account_id": "acc-9",
                    "date": "2024-01-10",
                    "session": "Asia",
                    "pair": "GBPUSD",
                    "direction": "Sell",
                    "entry_price": 1.27,
                    "stop_loss": 1.275,
                    "take_profit": 1.26,
                    "exit_price": 1.26,
                    "risk_amount": "200",
                    "confluences": ["FVG", "OB"],
                    "key_levels": "OB;FVG",
                    "dealing_range_high": 1.28,
                    "dealing_range_low": 1.2,
                    "entry_quality": 7,
                    "htf_bias_respected": "true",
                    "mss_present": "no",
                }
            ]
        }

        result = load_trades_payload(payload)

        (trade,) = result.trades
        assert trade.trade_code == "T240110-ZZ01"
        assert trade.account_id == "acc-9"
        assert trade.confluences == ["FVG", "OB"]
        assert trade.key_levels == ["OB", "FVG"]
        assert trade.equilibrium == 1.24
        assert trade.trade_location == "Premium"
        assert trade.entry_quality is None
        assert trade.htf_bias_respected is Confirmation.YES
        assert trade.ltf_bos_confirmed is Confirmation.UNKNOWN
        assert trade.mss_present is Confirmation.NO
        assert trade.risk_amount == 200.0

    def test_json_rows_are_numbered_from_one(self, tmp_path):
        path = tmp_path / "trades.json"
        path.write_text(
            json.dumps({"trades": [{"pair": "EURUSD", "account_id": "acc-1"}, {"account_id": "acc-1"}]}),
            encoding="utf-8",
        )

        result = load_trades(path)

        assert result.warnings == ["Row 2: No pair/symbol found, skipped"]

    def test_export_can_be_reimported(self, tmp_path, make_trade):
        trade = make_trade(2, session="London", key_levels=["OB", "FVG"], htf_bias_respected=Confirmation.NO)
        text = trades_to_csv([trade])
        assert text.splitlines()[0].split(",") == list(EXPORT_COLUMNS)

        path = tmp_path / "export.csv"
        path.write_text(text, encoding="utf-8")
        (loaded,) = load_trades(path, account_id="acc-1").trades

        assert loaded.trade_code == trade.trade_code
        assert loaded.exit_price == trade.exit_price
        assert loaded.key_levels == ["OB", "FVG"]
        assert loaded.htf_bias_respected is Confirmation.NO
        assert loaded.mss_present is Confirmation.UNKNOWN


class TestLedgerImport:
    def test_accounts(self, tmp_path):
        path = tmp_path / "accounts.json"
        path.write_text(
            json.dumps(
                {
                    "accounts": [
                        {"id": "acc-1", "name": "Main", "initial_balance": 10000, "created_at": "2024-01-01T00:00:00Z"},
                        {"name": "Prop", "type": "Prop Firm", "initial_balance": "50,000", "is_active": "false"},
                        {"broker": "nameless"},
                    ]
                }
            ),
            encoding="utf-8",
        )

        result = load_accounts(path)

        assert result.skipped == 1
        main, prop = result.accounts
        assert main.initial_balance == 10_000.0
        assert main.created_at.year == 2024
        assert prop.id == "Prop"
        assert prop.initial_balance == 50_000.0
        assert prop.is_active is False

    def test_transactions(self, tmp_path):
        path = tmp_path / "transactions.csv"
        path.write_text(
            "type,amount,note,created_at\n"
            "deposit,500,top up,2024-01-02T10:00:00Z\n"
            "withdrawal,200,,2024-01-05T10:00:00Z\n"
            "bonus,50,,2024-01-06T10:00:00Z\n"
            "deposit,-10,,2024-01-07T10:00:00Z\n",
            encoding="utf-8",
        )

        result = load_transactions(path, account_id="acc-1")

        assert result.skipped == 2
        assert [(txn.type, txn.amount) for txn in result.transactions] == [("deposit", 500.0), ("withdrawal", 200.0)]
        assert all(txn.account_id == "acc-1" for txn in result.transactions)
        assert result.transactions[0].note == "top up"

    def test_repeated_rows_without_ids_stay_separate(self, tmp_path):
        path = tmp_path / "transactions.csv"
        path.write_text("account_id,type,amount\nacc-1,deposit,100\nacc-1,deposit,100\n", encoding="utf-8")

        result = load_transactions(path)

        first, second = result.transactions
        assert first.id != second.id
        assert load_transactions(path).transactions[1].id == second.id
