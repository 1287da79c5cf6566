"""Tests for app.toml loading."""

from pathlib import Path

from fx_journal.config.app_config import CONFIG_ENV_VAR, load_app_config
from fx_journal.metrics.breakdown import BREAKDOWNS


class TestAppConfig:
    def test_defaults_when_file_missing(self, tmp_path):
        config = load_app_config(tmp_path / "missing.toml", env={})

        assert config.app.db_path == Path("data/fx_journal.sqlite")
        assert config.app.port == 8000
        assert config.journal.period == "week"
        assert config.journal.default_account is None
        assert config.analytics.breakdowns == list(BREAKDOWNS)
        assert config.analytics.histogram is True

    def test_values_from_file(self, tmp_path):
        path = tmp_path / "app.toml"
        path.write_text(
            '[app]\ndb_path = "journal.db"\nport = "9000"\n\n'
            '[journal]\ndefault_account = "Main"\nperiod = "Month"\n\n'
            '[analytics]\nbreakdowns = ["session", "bogus", "pair"]\nhistogram = false\n',
            encoding="utf-8",
        )

        config = load_app_config(path, env={})

        assert config.app.db_path == Path("journal.db")
        assert config.app.port == 9000
        assert config.journal.default_account == "Main"
        assert config.journal.period == "month"
        assert config.analytics.breakdowns == ["session", "pair"]
        assert config.analytics.histogram is False

    def test_env_var_points_at_file(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text('[journal]\nperiod = "decade"\n[app]\nport = "abc"\n', encoding="utf-8")

        config = load_app_config(env={CONFIG_ENV_VAR: str(path)})

        assert config.journal.period == "week"
        assert config.app.port == 8000
