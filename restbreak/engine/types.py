from dataclasses import dataclass
from enum import Enum
from typing import Final


class State(Enum):
    MONITORING = "monitoring"
    SUGGESTING = "suggesting"
    RESTING = "resting"
    SUSPENDED = "suspended"


class StatName(Enum):
    TOTAL_TICKS = "total_ticks"
    ACTIVITY_TICKS = "activity_ticks"
    TINY_BREAKS = "tiny_breaks"
    BIG_BREAKS = "big_breaks"
    TINY_BREAKS_SKIPPED = "tiny_breaks_skipped"
    BIG_BREAKS_SKIPPED = "big_breaks_skipped"
    TINY_BREAKS_POSTPONED = "tiny_breaks_postponed"
    BIG_BREAKS_POSTPONED = "big_breaks_postponed"
    IDLE_CAUSED_SKIP_TINY = "idle_caused_skip_tiny"
    IDLE_CAUSED_SKIP_BIG = "idle_caused_skip_big"
    CURRENT_IDLE_SECONDS = "current_idle_seconds"
    MAX_IDLENESS = "max_idleness"
    LAST_TINY_BREAK_TIME = "last_tiny_break_time"
    LAST_BIG_BREAK_TIME = "last_big_break_time"


# Stands in for "never" wherever a counter must not reset on idleness.
NEVER: Final[int] = 2**31 - 1

DEFAULT_TINY_INTERVAL: Final[int] = 15 * 60
DEFAULT_TINY_DURATION: Final[int] = 20
DEFAULT_TINY_IDLE_SKIP: Final[int] = 60
DEFAULT_BIG_INTERVAL: Final[int] = 60 * 60
DEFAULT_BIG_DURATION: Final[int] = 60
DEFAULT_BIG_IDLE_SKIP: Final[int] = 5 * 60
DEFAULT_POSTPONE_INTERVAL: Final[int] = 3 * 60
DEFAULT_PATIENCE_INTERVAL: Final[int] = 30
TICK_SECONDS: Final[float] = 1.0
HIBERNATION_GAP_SECONDS: Final[int] = 60


class ConfigError(ValueError):
    pass


@dataclass
class Config:
    """Break timings, all in seconds."""

    tiny_interval: int = DEFAULT_TINY_INTERVAL
    tiny_duration: int = DEFAULT_TINY_DURATION
    tiny_idle_skip: int = DEFAULT_TINY_IDLE_SKIP
    big_interval: int = DEFAULT_BIG_INTERVAL
    big_duration: int = DEFAULT_BIG_DURATION
    big_idle_skip: int = DEFAULT_BIG_IDLE_SKIP
    postpone_interval: int = DEFAULT_POSTPONE_INTERVAL
    patience_interval: int = DEFAULT_PATIENCE_INTERVAL
    use_popup: bool = True
    use_idle_timers: bool = True

    def timings(self) -> tuple[int, ...]:
        return (
            self.tiny_interval,
            self.tiny_duration,
            self.tiny_idle_skip,
            self.big_interval,
            self.big_duration,
            self.big_idle_skip,
            self.postpone_interval,
            self.patience_interval,
        )


def validate_config(config: Config) -> None:
    names = (
        "tiny_interval",
        "tiny_duration",
        "tiny_idle_skip",
        "big_interval",
        "big_duration",
        "big_idle_skip",
        "postpone_interval",
        "patience_interval",
    )
    for name in names:
        value = getattr(config, name)
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise ConfigError(f"{name} must be a positive integer (got {value!r})")


# Events emitted by the scheduler, in the order they happen.


@dataclass(frozen=True)
class IdleProgress:
    percent: float


@dataclass(frozen=True)
class Suggest:
    # -1 cancels any visible suggestion.
    seconds_remaining: int
    next_is_big: bool = False


@dataclass(frozen=True)
class BreakStarted:
    pass


@dataclass(frozen=True)
class WidgetCountdown:
    seconds: int


@dataclass(frozen=True)
class TooltipCounters:
    tiny_seconds_left: int
    big_seconds_left: int


@dataclass(frozen=True)
class Minimize:
    pass


@dataclass(frozen=True)
class TinyBreakSkipped:
    pass


@dataclass(frozen=True)
class BigBreakSkipped:
    pass


Event = (
    IdleProgress
    | Suggest
    | BreakStarted
    | WidgetCountdown
    | TooltipCounters
    | Minimize
    | TinyBreakSkipped
    | BigBreakSkipped
)

SUGGEST_CANCELLED: Final[Suggest] = Suggest(seconds_remaining=-1, next_is_big=False)
