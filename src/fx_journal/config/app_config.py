from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

try:
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - Python <3.11
    import tomli as tomllib

from fx_journal.metrics.breakdown import BREAKDOWN_NAMES, BREAKDOWNS
from fx_journal.metrics.periods import PERIOD_WEEK, PERIODS

CONFIG_ENV_VAR = "FX_JOURNAL_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/app.toml")


@dataclass(frozen=True)
class AppSettings:
    db_path: Path
    host: str
    port: int
    reload: bool


@dataclass(frozen=True)
class JournalSettings:
    default_account: str | None
    period: str


@dataclass(frozen=True)
class AnalyticsSettings:
    breakdowns: list[str]
    histogram: bool


@dataclass(frozen=True)
class AppConfig:
    app: AppSettings
    journal: JournalSettings
    analytics: AnalyticsSettings


def load_app_config(path: Path | None = None, env: Mapping[str, str] | None = None) -> AppConfig:
    env = os.environ if env is None else env
    config_path = path or Path(env.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    raw: Mapping[str, Any] = {}
    if config_path.exists():
        raw = tomllib.loads(config_path.read_text(encoding="utf-8"))

    app_raw = _section(raw, "app")
    journal_raw = _section(raw, "journal")
    analytics_raw = _section(raw, "analytics")

    app = AppSettings(
        db_path=Path(app_raw.get("db_path", "data/fx_journal.sqlite")),
        host=str(app_raw.get("host", "127.0.0.1")),
        port=_int(app_raw.get("port"), 8000),
        reload=bool(app_raw.get("reload", True)),
    )

    period = str(journal_raw.get("period", PERIOD_WEEK)).strip().lower()
    journal = JournalSettings(
        default_account=_str_or_none(journal_raw.get("default_account")),
        period=period if period in PERIODS else PERIOD_WEEK,
    )

    analytics = AnalyticsSettings(
        breakdowns=_breakdown_list(analytics_raw.get("breakdowns")) or list(BREAKDOWNS),
        histogram=bool(analytics_raw.get("histogram", True)),
    )

    return AppConfig(app=app, journal=journal, analytics=analytics)


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if isinstance(value, Mapping):
        return value
    return {}


def _int(value: Any, default: int) -> int:
    if value in (None, ""):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _str_or_none(value: Any) -> str | None:
    if value in (None, ""):
        return None
    return str(value).strip() or None


def _breakdown_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if str(item) in BREAKDOWN_NAMES]
