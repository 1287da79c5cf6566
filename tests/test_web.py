"""Tests for the read-only journal API."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

import fx_journal.web.app as web_app
from fx_journal.config.app_config import load_app_config
from fx_journal.storage.repository import InMemoryRepository
from fx_journal.web.app import app, get_config, get_repository


@pytest.fixture
def client(tmp_path, account, ledger, make_trade):
    trades = [
        make_trade(2, session="London", strategy="ICT 2022", date=date(2024, 1, 1)),
        make_trade(-1, session="New York", strategy="Silver Bullet", date=date(2024, 1, 3)),
        make_trade(1.5, session="London", strategy="ICT 2022", date=date(2024, 1, 9), pair="EURUSD"),
        make_trade(exit_price=None, status="Open", date=date(2024, 1, 10)),
    ]
    repository = InMemoryRepository(accounts=[account], trades=trades, transactions=ledger)
    config = load_app_config(tmp_path / "missing.toml", env={})
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_config] = lambda: config
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestJournalApi:
    def test_accounts(self, client):
        response = client.get("/api/accounts")

        assert response.status_code == 200
        (row,) = response.json()
        assert row["name"] == "Main"
        assert row["current_balance"] == 10_550.0

    def test_summary(self, client):
        payload = client.get("/api/summary").json()

        assert payload["total_trades"] == 3
        assert payload["win_rate"] == 67
        assert payload["total_pnl"] == 250.0
        assert payload["best_strategy"] == "ICT 2022"
        assert payload["worst_strategy"] == "Silver Bullet"

    def test_summary_with_filter(self, client):
        payload = client.get("/api/summary", params={"session": "London"}).json()
        assert payload["total_trades"] == 2
        assert payload["losses"] == 0

    def test_periods(self, client):
        rows = client.get("/api/periods", params={"period": "week"}).json()
        assert [row["label"] for row in rows] == ["2024-01-08", "2024-01-01"]
        assert rows[1]["total_pnl"] == 100.0

    def test_breakdown(self, client):
        rows = client.get("/api/breakdowns/session").json()
        assert rows == [
            {"name": "London", "win_rate": 100, "total": 2},
            {"name": "New York", "win_rate": 0, "total": 1},
        ]

    def test_equity_curve_and_distribution(self, client):
        curve = client.get("/api/equity-curve").json()
        bands = client.get("/api/r-distribution").json()

        assert [point["equity"] for point in curve] == [200.0, 100.0, 250.0]
        assert bands == [
            {"name": "-1R to 0", "count": 1},
            {"name": "1R to 2R", "count": 1},
            {"name": "2R to 3R", "count": 1},
        ]

    def test_trades_newest_first(self, client):
        rows = client.get("/api/trades").json()

        assert len(rows) == 4
        assert rows[0]["status"] == "Open"
        assert rows[0]["outcome"] is None
        assert rows[1]["outcome"]["r_multiple"] == 1.5

    def test_unknown_account(self, client):
        assert client.get("/api/summary", params={"account": "nobody"}).status_code == 404

    def test_tag_breakdown_name(self, client):
        response = client.get("/api/breakdowns/key_level")
        assert response.status_code == 200
        assert response.json() == []

    def test_unknown_breakdown(self, client):
        assert client.get("/api/breakdowns/moon-phase").status_code == 400

    def test_unknown_period(self, client):
        assert client.get("/api/periods", params={"period": "year"}).status_code == 400


class TestServerEntryPoint:
    def test_main_serves_with_configured_address(self, tmp_path, monkeypatch):
        path = tmp_path / "app.toml"
        path.write_text('[app]\nhost = "0.0.0.0"\nport = 9100\nreload = true\n', encoding="utf-8")
        calls = []
        monkeypatch.setattr(web_app, "load_app_config", lambda: load_app_config(path, env={}))
        monkeypatch.setattr("uvicorn.run", lambda target, **kwargs: calls.append((target, kwargs)))

        web_app.main()

        assert calls == [("fx_journal.web.app:app", {"host": "0.0.0.0", "port": 9100, "reload": True})]
