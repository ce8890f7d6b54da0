from __future__ import annotations

import json
import os
from datetime import date, datetime
from pathlib import Path

from restbreak.engine.types import StatName
from restbreak.store.paths import daily_stats_path

SCHEMA_VERSION = 1

_TIME_STATS = {StatName.LAST_TINY_BREAK_TIME, StatName.LAST_BIG_BREAK_TIME}


class StatsRegistry:
    """In-memory usage statistics, checkpointed to one JSON file per day."""

    def __init__(self, values: dict[StatName, int | datetime] | None = None):
        self._values: dict[StatName, int | datetime | None] = {}
        self.reset()
        if values:
            self._values.update(values)

    def get(self, name: StatName) -> int | datetime | None:
        return self._values.get(name)

    def increment(self, name: StatName) -> None:
        current = self._values.get(name)
        self._values[name] = (current if isinstance(current, int) else 0) + 1

    def set(self, name: StatName, value: int | datetime, only_if_greater: bool = False) -> None:
        current = self._values.get(name)
        if only_if_greater and current is not None and not value > current:  # type: ignore[operator]
            return
        self._values[name] = value

    def reset(self) -> None:
        for name in StatName:
            self._values[name] = None if name in _TIME_STATS else 0

    def snapshot(self) -> dict[str, int | str | None]:
        out: dict[str, int | str | None] = {}
        for name, value in self._values.items():
            out[name.value] = value.isoformat() if isinstance(value, datetime) else value
        return out

    @classmethod
    def from_snapshot(cls, raw: dict) -> StatsRegistry:
        values: dict[StatName, int | datetime] = {}
        for name in StatName:
            item = raw.get(name.value)
            if name in _TIME_STATS:
                if isinstance(item, str):
                    try:
                        values[name] = datetime.fromisoformat(item)
                    except ValueError:
                        continue
            elif isinstance(item, int) and not isinstance(item, bool):
                values[name] = item
        return cls(values)


def load_stats(*, day: date) -> StatsRegistry | None:
    path = daily_stats_path(day)
    if not path.exists():
        return None

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return None

    stats = raw.get("stats") if isinstance(raw, dict) else None
    if not isinstance(stats, dict):
        return None
    return StatsRegistry.from_snapshot(stats)


def write_stats_atomic(*, day: date, stats: StatsRegistry) -> Path:
    path = daily_stats_path(day)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = {
        "schema_version": SCHEMA_VERSION,
        "app": {"name": "restbreak", "version": "0.1.0"},
        "date": day.isoformat(),
        "written_at": datetime.now().astimezone().isoformat(),
        "stats": stats.snapshot(),
    }

    tmp_path = path.with_suffix(path.suffix + ".tmp")
    text = json.dumps(payload, ensure_ascii=False, indent=2)

    with tmp_path.open("w", encoding="utf-8") as f:
        f.write(text)
        f.write("\n")
        f.flush()
        os.fsync(f.fileno())

    os.replace(tmp_path, path)
    return path
