from __future__ import annotations

from datetime import date
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir

APP_NAME = "restbreak"


def get_config_path() -> Path:
    return Path(user_config_dir(APP_NAME)) / "config.toml"


def get_data_dir() -> Path:
    return Path(user_data_dir(APP_NAME))


def get_event_logs_dir() -> Path:
    return get_data_dir() / "event-logs"


def get_stats_dir() -> Path:
    return get_data_dir() / "daily-stats"


def get_pid_path() -> Path:
    return get_data_dir() / "restbreak.pid"


def event_log_path(day: date) -> Path:
    return get_event_logs_dir() / f"{day.isoformat()}.jsonl"


def daily_stats_path(day: date) -> Path:
    return get_stats_dir() / f"{day.isoformat()}.json"
