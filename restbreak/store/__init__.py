from .config import AppConfig, ensure_default_config_file, load_config, parse_config
from .event_log import EventLogger
from .paths import (
    daily_stats_path,
    event_log_path,
    get_config_path,
    get_data_dir,
    get_event_logs_dir,
    get_pid_path,
    get_stats_dir,
)
from .stats import StatsRegistry, load_stats, write_stats_atomic

__all__ = [
    "AppConfig",
    "ensure_default_config_file",
    "load_config",
    "parse_config",
    "EventLogger",
    "daily_stats_path",
    "event_log_path",
    "get_config_path",
    "get_data_dir",
    "get_event_logs_dir",
    "get_pid_path",
    "get_stats_dir",
    "StatsRegistry",
    "load_stats",
    "write_stats_atomic",
]
