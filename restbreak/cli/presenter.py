from __future__ import annotations

from collections.abc import Callable

from restbreak.engine.types import (
    BigBreakSkipped,
    BreakStarted,
    Event,
    Minimize,
    Suggest,
    TinyBreakSkipped,
    TooltipCounters,
)


def format_seconds(seconds: int) -> str:
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    if minutes:
        return f"{minutes}m{secs:02d}s"
    return f"{secs}s"


class ConsolePresenter:
    """Prints break prompts for the foreground `run` loop.

    Countdown and progress events arrive every second; only changes of phase
    are printed.
    """

    def __init__(self, write: Callable[[str], None] = print):
        self._write = write
        self._suggesting = False
        self._on_break = False
        self.tiny_seconds_left: int | None = None
        self.big_seconds_left: int | None = None

    def __call__(self, event: Event) -> None:
        if isinstance(event, Suggest):
            if event.seconds_remaining < 0:
                self._suggesting = False
            elif not self._suggesting:
                self._suggesting = True
                self._on_break = True
                kind = "Break" if not event.next_is_big else "Break (big break coming up next)"
                self._write(f"{kind}: please rest for {format_seconds(event.seconds_remaining)}")
        elif isinstance(event, BreakStarted):
            self._on_break = True
            self._write("Break enforced: step away from the keyboard")
        elif isinstance(event, Minimize):
            if self._on_break:
                self._write("Break over, back to work")
            self._on_break = False
        elif isinstance(event, TinyBreakSkipped):
            self._write("Tiny break skipped")
        elif isinstance(event, BigBreakSkipped):
            self._write("Big break skipped")
        elif isinstance(event, TooltipCounters):
            self.tiny_seconds_left = event.tiny_seconds_left
            self.big_seconds_left = event.big_seconds_left

    def tooltip(self) -> str:
        if self.tiny_seconds_left is None or self.big_seconds_left is None:
            return "next breaks: unknown"
        return (
            f"next tiny break in {format_seconds(self.tiny_seconds_left)}, "
            f"big break in {format_seconds(self.big_seconds_left)}"
        )
