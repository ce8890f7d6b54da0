from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from restbreak.engine.types import Config, ConfigError, validate_config
from restbreak.store.paths import get_config_path


@dataclass
class AppConfig:
    timers: Config = field(default_factory=Config)
    notify: bool = True


def default_config_toml(config: AppConfig | None = None) -> str:
    cfg = config or AppConfig()
    t = cfg.timers
    # Keep it minimal and editable.
    return (
        "# restbreak configuration\n"
        "# Location: ~/.config/restbreak/config.toml (or XDG_CONFIG_HOME)\n"
        "# All durations are in seconds.\n"
        "\n"
        "[tiny]\n"
        f"interval = {t.tiny_interval}\n"
        f"duration = {t.tiny_duration}\n"
        "# Idle this long and the tiny break counts as taken\n"
        f"idle_skip = {t.tiny_idle_skip}\n"
        "\n"
        "[big]\n"
        f"interval = {t.big_interval}\n"
        f"duration = {t.big_duration}\n"
        f"idle_skip = {t.big_idle_skip}\n"
        "\n"
        "[general]\n"
        f"postpone_interval = {t.postpone_interval}\n"
        "# Grace period after a suggestion before the break is enforced\n"
        f"patience_interval = {t.patience_interval}\n"
        f"use_popup = {str(t.use_popup).lower()}\n"
        f"use_idle_timers = {str(t.use_idle_timers).lower()}\n"
        "\n"
        "[notify]\n"
        f"enabled = {str(cfg.notify).lower()}\n"
    )


def ensure_default_config_file(path: Path | None = None) -> Path:
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    if not config_path.exists():
        config_path.write_text(default_config_toml(), encoding="utf-8")
    return config_path


def _read_int(section: dict, key: str, current: int) -> int:
    value = section.get(key)
    # bool is an int subclass; `interval = true` is a typo, not 1 second.
    if isinstance(value, int) and not isinstance(value, bool):
        return int(value)
    return current


def _read_bool(section: dict, key: str, current: bool) -> bool:
    value = section.get(key)
    return value if isinstance(value, bool) else current


def _section(raw: dict, name: str) -> dict:
    value = raw.get(name)
    return value if isinstance(value, dict) else {}


def parse_config(raw: dict) -> AppConfig:
    """Build an AppConfig from parsed TOML; unknown or mistyped keys keep defaults."""

    cfg = AppConfig()
    t = cfg.timers

    tiny = _section(raw, "tiny")
    t.tiny_interval = _read_int(tiny, "interval", t.tiny_interval)
    t.tiny_duration = _read_int(tiny, "duration", t.tiny_duration)
    t.tiny_idle_skip = _read_int(tiny, "idle_skip", t.tiny_idle_skip)

    big = _section(raw, "big")
    t.big_interval = _read_int(big, "interval", t.big_interval)
    t.big_duration = _read_int(big, "duration", t.big_duration)
    t.big_idle_skip = _read_int(big, "idle_skip", t.big_idle_skip)

    general = _section(raw, "general")
    t.postpone_interval = _read_int(general, "postpone_interval", t.postpone_interval)
    t.patience_interval = _read_int(general, "patience_interval", t.patience_interval)
    t.use_popup = _read_bool(general, "use_popup", t.use_popup)
    t.use_idle_timers = _read_bool(general, "use_idle_timers", t.use_idle_timers)

    cfg.notify = _read_bool(_section(raw, "notify"), "enabled", cfg.notify)
    return cfg


def load_config(
    path: Path | None = None, *, create_if_missing: bool = True
) -> tuple[AppConfig, dict]:
    """Load config.toml, returning (AppConfig, meta).

    Meta contains useful diagnostics for status output. Invalid timings (zero or
    negative) are reported under ``meta["error"]`` and defaults are returned, so
    the scheduler never sees them.
    """

    config_path = path or get_config_path()
    meta: dict = {"path": str(config_path), "loaded": False, "created": False}

    if create_if_missing:
        before = config_path.exists()
        ensure_default_config_file(config_path)
        meta["created"] = not before

    if not config_path.exists():
        return AppConfig(), meta

    try:
        raw = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        meta["error"] = f"config_read_error: {e}"
        return AppConfig(), meta

    cfg = parse_config(raw)
    try:
        validate_config(cfg.timers)
    except ConfigError as e:
        meta["error"] = f"config_invalid: {e}"
        return AppConfig(), meta

    meta["loaded"] = True
    return cfg, meta
