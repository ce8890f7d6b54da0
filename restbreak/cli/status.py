from __future__ import annotations

import shutil
import subprocess
import sys
from datetime import date

from restbreak.cli.control import running_pid
from restbreak.cli.presenter import format_seconds
from restbreak.engine.types import StatName
from restbreak.store import (
    daily_stats_path,
    event_log_path,
    get_config_path,
    load_config,
    load_stats,
)


def _systemd_status() -> dict:
    if sys.platform != "linux":
        return {"available": False}

    systemctl = shutil.which("systemctl")
    if not systemctl:
        return {"available": False}

    enabled = subprocess.run(
        [systemctl, "--user", "is-enabled", "restbreak.service"],
        capture_output=True,
        text=True,
    ).stdout.strip()
    active = subprocess.run(
        [systemctl, "--user", "is-active", "restbreak.service"],
        capture_output=True,
        text=True,
    ).stdout.strip()

    return {
        "available": True,
        "enabled": enabled,
        "active": active,
    }


def main() -> int:
    today = date.today()

    config, config_meta = load_config(create_if_missing=False)
    sysd = _systemd_status()
    pid = running_pid()
    stats = load_stats(day=today)

    print("restbreak status")

    if sysd.get("available"):
        print(f"service enabled: {sysd.get('enabled')}")
        print(f"service active: {sysd.get('active')}")
    else:
        print("service enabled: unknown (no systemctl)")
        print("service active: unknown (no systemctl)")

    print(f"running: pid {pid}" if pid is not None else "running: no")
    print(f"config: {get_config_path()}")
    if config_meta.get("error"):
        print(f"config error: {config_meta.get('error')}")

    print(f"today stats: {daily_stats_path(today)}")
    print(f"today events: {event_log_path(today)}")

    t = config.timers
    print(
        "settings: "
        f"tiny={format_seconds(t.tiny_duration)}/{format_seconds(t.tiny_interval)} "
        f"big={format_seconds(t.big_duration)}/{format_seconds(t.big_interval)} "
        f"postpone={format_seconds(t.postpone_interval)} "
        f"patience={format_seconds(t.patience_interval)} "
        f"popup={t.use_popup} idle_timers={t.use_idle_timers}"
    )

    if stats is None:
        print("today totals: unavailable (no stats yet)")
        return 0

    active = stats.get(StatName.ACTIVITY_TICKS) or 0
    total = stats.get(StatName.TOTAL_TICKS) or 0
    print(f"today totals: active={format_seconds(active)} tracked={format_seconds(total)}")
    print(
        "tiny breaks: "
        f"taken={stats.get(StatName.TINY_BREAKS)} "
        f"skipped={stats.get(StatName.TINY_BREAKS_SKIPPED)} "
        f"postponed={stats.get(StatName.TINY_BREAKS_POSTPONED)} "
        f"idle={stats.get(StatName.IDLE_CAUSED_SKIP_TINY)}"
    )
    print(
        "big breaks: "
        f"taken={stats.get(StatName.BIG_BREAKS)} "
        f"skipped={stats.get(StatName.BIG_BREAKS_SKIPPED)} "
        f"postponed={stats.get(StatName.BIG_BREAKS_POSTPONED)} "
        f"idle={stats.get(StatName.IDLE_CAUSED_SKIP_BIG)}"
    )
    print(f"max idleness: {format_seconds(stats.get(StatName.MAX_IDLENESS) or 0)}")

    for label, name in (("tiny", StatName.LAST_TINY_BREAK_TIME), ("big", StatName.LAST_BIG_BREAK_TIME)):
        when = stats.get(name)
        print(f"last {label} break: {when.isoformat() if when is not None else 'never'}")

    return 0
