import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from .counter import ThresholdCounter
from .ports import (
    EventSink,
    IdleTimeSource,
    NotificationSink,
    NullNotifier,
    NullStats,
    StatsSink,
)
from .types import (
    HIBERNATION_GAP_SECONDS,
    NEVER,
    SUGGEST_CANCELLED,
    BigBreakSkipped,
    BreakStarted,
    Config,
    Event,
    IdleProgress,
    Minimize,
    State,
    StatName,
    Suggest,
    TinyBreakSkipped,
    TooltipCounters,
    WidgetCountdown,
)

logger = logging.getLogger(__name__)


@dataclass
class Monitoring:
    pass


@dataclass
class Suggesting:
    # Counts down how long the user may keep working after a suggestion.
    patience: ThresholdCounter
    # Counts idle seconds towards the suggested break.
    pause: ThresholdCounter


@dataclass
class Resting:
    pause: ThresholdCounter


@dataclass
class Suspended:
    pass


Phase = Monitoring | Suggesting | Resting | Suspended


def _wall_now() -> datetime:
    return datetime.now().astimezone()


def _inverse_tick(idle_seconds: int) -> int:
    # Pause counters count idle seconds, so activity is what resets them.
    return 1 if idle_seconds == 0 else 0


class BreakScheduler:
    """Turns once-per-second idle samples into break suggestions and breaks.

    The scheduler is not thread-safe: ``tick`` and every command must be called
    from the same thread (the driver loop).
    """

    def __init__(
        self,
        idle_source: IdleTimeSource,
        config: Config | None = None,
        *,
        stats: StatsSink | None = None,
        notifier: NotificationSink | None = None,
        on_event: EventSink | None = None,
        clock: Callable[[], datetime] = _wall_now,
    ):
        self._idle_source = idle_source
        self._config = config or Config()
        self._stats: StatsSink = stats or NullStats()
        self._notifier: NotificationSink = notifier or NullNotifier()
        self._on_event = on_event
        self._clock = clock

        self._phase: Phase = Monitoring()
        self._last_tick: datetime | None = None
        self._tiny, self._big = self._create_counters(self._config)

    @property
    def config(self) -> Config:
        return self._config

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def state(self) -> State:
        if isinstance(self._phase, Suggesting):
            return State.SUGGESTING
        if isinstance(self._phase, Resting):
            return State.RESTING
        if isinstance(self._phase, Suspended):
            return State.SUSPENDED
        return State.MONITORING

    @property
    def tiny_counter(self) -> ThresholdCounter:
        return self._tiny

    @property
    def big_counter(self) -> ThresholdCounter:
        return self._big

    # ------------------------------------------------------------------ ticks

    def sample_idle_seconds(self) -> int:
        return max(0, int(self._idle_source.get_idle_milliseconds()) // 1000)

    def poll(self) -> int:
        """Sample the idle source and feed it to ``tick``. Returns idle seconds."""

        idle_seconds = self.sample_idle_seconds()
        self.tick(idle_seconds)
        return idle_seconds

    def tick(self, idle_seconds: int) -> None:
        self._check_hibernation(idle_seconds)

        # Nothing advances while suspended, not even the tooltip.
        if isinstance(self._phase, Suspended):
            return

        self._record_tick_stats(idle_seconds)

        phase = self._phase
        if isinstance(phase, Monitoring):
            self._tick_monitoring(idle_seconds)
        elif isinstance(phase, Suggesting):
            self._tick_suggesting(phase, idle_seconds)
        elif isinstance(phase, Resting):
            self._tick_resting(phase, idle_seconds)

        self._emit_tooltip()

    def _check_hibernation(self, idle_seconds: int) -> None:
        now = self._clock()
        last = self._last_tick
        self._last_tick = now
        if last is None:
            return

        gap = (now - last).total_seconds()
        if gap <= HIBERNATION_GAP_SECONDS:
            return

        logger.debug(
            "no tick for %.0fs (last=%s now=%s idle=%ss), assuming hibernation",
            gap,
            last.isoformat(),
            now.isoformat(),
            idle_seconds,
        )
        if not isinstance(self._phase, Suspended):
            self.reset_after_break()

    def _record_tick_stats(self, idle_seconds: int) -> None:
        self._stats.increment(StatName.TOTAL_TICKS)
        self._stats.set(StatName.CURRENT_IDLE_SECONDS, idle_seconds)
        if idle_seconds == 0:
            self._stats.increment(StatName.ACTIVITY_TICKS)
        else:
            self._stats.set(StatName.MAX_IDLENESS, idle_seconds, only_if_greater=True)

    def _tick_monitoring(self, idle_seconds: int) -> None:
        big_was_reset = self._big.is_reset()
        tiny_was_reset = self._tiny.is_reset()

        fired = [
            value
            for value in (self._big.tick(idle_seconds), self._tiny.tick(idle_seconds))
            if value is not None
        ]
        if fired:
            self.suggest_break(max(fired))
        else:
            # No break due, but a counter that just went back to zero means the
            # user was idle long enough to have taken that break already.
            if not big_was_reset and self._big.is_reset():
                self._stats.increment(StatName.BIG_BREAKS)
                self._stats.increment(StatName.IDLE_CAUSED_SKIP_BIG)
            if not tiny_was_reset and self._tiny.is_reset():
                self._stats.increment(StatName.TINY_BREAKS)
                self._stats.increment(StatName.IDLE_CAUSED_SKIP_TINY)

        self._emit(IdleProgress(self.idle_progress()))

    def _tick_suggesting(self, phase: Suggesting, idle_seconds: int) -> None:
        # Patience sees the raw sample: a long enough idle stretch restores it.
        if phase.patience.tick(idle_seconds) is not None:
            logger.debug("suggestion ignored for the whole patience window, forcing break")
            self._emit(SUGGEST_CANCELLED)
            self.do_break_now(phase.pause.ticks_remaining(), False)
            return

        if phase.pause.tick(_inverse_tick(idle_seconds)) is not None:
            self.reset_after_break()
            return

        remaining = phase.pause.ticks_remaining()
        self._emit(Suggest(remaining, False))
        self._emit(WidgetCountdown(remaining))

    def _tick_resting(self, phase: Resting, idle_seconds: int) -> None:
        if phase.pause.tick(_inverse_tick(idle_seconds)) is not None:
            self.reset_after_break()
        else:
            self._emit(WidgetCountdown(phase.pause.ticks_remaining()))

    # ------------------------------------------------------------ transitions

    def idle_progress(self) -> float:
        """How far the tiny-break interval has been used up, 0-100."""

        interval = self._config.tiny_interval
        if interval <= 0:
            return 0.0
        value = 100.0 - (self._tiny.ticks_remaining() / float(interval)) * 100.0
        return min(100.0, max(0.0, value))

    def suggest_break(self, duration: int) -> None:
        now = self._clock()
        if self._big.is_reset():
            logger.debug("big break triggered (%ss)", duration)
            self._stats.increment(StatName.BIG_BREAKS)
            self._stats.set(StatName.LAST_BIG_BREAK_TIME, now)
        else:
            logger.debug("tiny break triggered (%ss)", duration)
            self._stats.increment(StatName.TINY_BREAKS)
            self._stats.set(StatName.LAST_TINY_BREAK_TIME, now)

        # Only a label for the UI: is the big break due within one tiny cycle?
        next_is_big = self._big.ticks_remaining() <= self._tiny.delay_ticks
        if not self._config.use_popup:
            self.do_break_now(duration, next_is_big)
            return

        patience = self._config.patience_interval
        # Half the patience window of idleness resets patience, so a pause longer
        # than patience is not turned into a forced break halfway through.
        self._phase = Suggesting(
            patience=ThresholdCounter(patience, duration, patience // 2),
            pause=ThresholdCounter(duration, duration, 1),
        )
        self._emit(Suggest(duration, next_is_big))

    def do_break_now(self, duration: int, next_is_big: bool) -> None:
        self._phase = Resting(pause=ThresholdCounter(duration, duration, NEVER))
        self._notifier.notify_break(True, next_is_big)
        self._emit(WidgetCountdown(duration))
        self._emit(BreakStarted())

    def reset_after_break(self) -> None:
        self._phase = Monitoring()
        self._emit_tooltip()
        self._emit(IdleProgress(0.0))
        self._emit(SUGGEST_CANCELLED)
        self._emit(Minimize())

    # --------------------------------------------------------------- commands

    def start(self) -> None:
        if not isinstance(self._phase, Suspended):
            return
        self._phase = Monitoring()
        self._emit(IdleProgress(0.0))

    def stop(self) -> None:
        self._phase = Suspended()
        self._emit(IdleProgress(0.0))
        self._emit(TooltipCounters(0, 0))

    def set_suspended(self, suspend: bool) -> None:
        if suspend:
            self.stop()
        else:
            self.start()

    def restart(self) -> None:
        self._tiny.reset()
        self._big.reset()
        self.reset_after_break()

    def handle_resume(self) -> None:
        """Drop any in-progress suggestion or break after a system resume."""

        self._last_tick = None
        if not isinstance(self._phase, Suspended):
            self.reset_after_break()

    def skip_break(self) -> None:
        if self._big.is_reset():
            self._stats.increment(StatName.BIG_BREAKS_SKIPPED)
            self._emit(BigBreakSkipped())
        if self._tiny.is_reset():
            self._stats.increment(StatName.TINY_BREAKS_SKIPPED)
            self._emit(TinyBreakSkipped())
        self.reset_after_break()
        self.start()

    def postpone_break(self) -> None:
        postpone = self._config.postpone_interval
        self._tiny.postpone(postpone)
        self._big.postpone(postpone)
        if not isinstance(self._phase, Suspended):
            self._phase = Monitoring()

        if self._big.is_reset():
            self._stats.increment(StatName.BIG_BREAKS_POSTPONED)
        if self._tiny.is_reset():
            self._stats.increment(StatName.TINY_BREAKS_POSTPONED)

        self._emit_tooltip()
        self._emit(SUGGEST_CANCELLED)
        self._emit(Minimize())

    def reconfigure(self, config: Config, force_restart: bool = False) -> bool:
        """Apply new settings. Returns True when the counters were rebuilt."""

        old = self._config
        self._config = config

        changed = (
            force_restart
            or old.use_idle_timers != config.use_idle_timers
            or old.timings() != config.timings()
        )
        if not changed:
            return False

        logger.debug("timing parameters changed, counters were reset")
        self._tiny, self._big = self._create_counters(config)
        if not isinstance(self._phase, Suspended):
            self._phase = Monitoring()
        return True

    # ---------------------------------------------------------------- helpers

    @staticmethod
    def _create_counters(config: Config) -> tuple[ThresholdCounter, ThresholdCounter]:
        tiny_threshold = config.tiny_idle_skip if config.use_idle_timers else NEVER
        big_threshold = config.big_idle_skip if config.use_idle_timers else NEVER
        tiny = ThresholdCounter(config.tiny_interval, config.tiny_duration, tiny_threshold)
        big = ThresholdCounter(config.big_interval, config.big_duration, big_threshold)
        return tiny, big

    def _emit_tooltip(self) -> None:
        self._emit(TooltipCounters(self._tiny.ticks_remaining(), self._big.ticks_remaining()))

    def _emit(self, event: Event) -> None:
        if self._on_event is not None:
            self._on_event(event)
