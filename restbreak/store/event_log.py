from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from restbreak.engine.types import (
    BigBreakSkipped,
    BreakStarted,
    Event,
    State,
    TinyBreakSkipped,
)
from restbreak.store.paths import event_log_path

# Per-second progress events are too chatty for a durable log.
_LOGGED_EVENTS: dict[type, str] = {
    BreakStarted: "break_started",
    TinyBreakSkipped: "tiny_break_skipped",
    BigBreakSkipped: "big_break_skipped",
}


@dataclass
class EventLogger:
    base_dir: Path | None = None

    def _path_for(self, when: datetime) -> Path:
        if self.base_dir is not None:
            return self.base_dir / f"{when.date().isoformat()}.jsonl"
        return event_log_path(when.date())

    def append(self, *, when: datetime, event: dict) -> None:
        """Append a single JSON object as one line."""

        path = self._path_for(when)
        path.parent.mkdir(parents=True, exist_ok=True)

        payload = {"ts": when.isoformat(), **event}
        line = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))

        with path.open("a", encoding="utf-8") as f:
            f.write(line)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())

    def log_event(self, *, when: datetime, event: Event) -> bool:
        name = _LOGGED_EVENTS.get(type(event))
        if name is None:
            return False
        self.append(when=when, event={"event": name})
        return True

    def log_transition(
        self,
        *,
        when: datetime,
        prev_state: State | None,
        next_state: State,
        idle_seconds: int | None = None,
    ) -> None:
        self.append(
            when=when,
            event={
                "event": "transition" if prev_state is not None else "start",
                "prev_state": prev_state.value if prev_state is not None else None,
                "next_state": next_state.value,
                "idle_seconds": idle_seconds,
            },
        )

    def log_command(self, *, when: datetime, command: str, state: State) -> None:
        self.append(when=when, event={"event": "command", "command": command, "state": state.value})
