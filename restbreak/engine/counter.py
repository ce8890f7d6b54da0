import logging

logger = logging.getLogger(__name__)


class ThresholdCounter:
    """Counts ticks of activity until a break is due.

    Args:
        delay_ticks: Ticks of sustained activity needed to fire.
        trigger_value: Returned by ``tick`` when the counter fires (usually the
            break length in seconds).
        idle_reset_threshold: Idle seconds at or above which the counter resets
            silently, because the user already rested long enough.
    """

    def __init__(self, delay_ticks: int, trigger_value: int, idle_reset_threshold: int):
        self._delay_ticks = int(delay_ticks)
        self._trigger_value = int(trigger_value)
        self._idle_reset_threshold = int(idle_reset_threshold)
        self._ticks = 0

    def __repr__(self) -> str:
        return (
            f"ThresholdCounter(delay_ticks={self._delay_ticks}, "
            f"trigger_value={self._trigger_value}, "
            f"idle_reset_threshold={self._idle_reset_threshold}, ticks={self._ticks})"
        )

    @property
    def delay_ticks(self) -> int:
        return self._delay_ticks

    @property
    def trigger_value(self) -> int:
        return self._trigger_value

    @property
    def idle_reset_threshold(self) -> int:
        return self._idle_reset_threshold

    @property
    def ticks(self) -> int:
        return self._ticks

    def tick(self, idle_seconds: int) -> int | None:
        self._ticks += 1

        # Active for long enough, time for a break.
        if self._ticks >= self._delay_ticks:
            logger.debug("counter fired: %r", self)
            self.reset()
            return self._trigger_value

        # Idle for long enough that the break already happened.
        if idle_seconds >= self._idle_reset_threshold:
            self.reset()
            return None

        return None

    def is_reset(self) -> bool:
        return self._ticks == 0

    def reset(self) -> None:
        self._ticks = 0

    def postpone(self, ticks: int) -> None:
        self._ticks = max(0, self._ticks - int(ticks))

    def ticks_remaining(self) -> int:
        return self._delay_ticks - self._ticks
