from datetime import datetime, timedelta, timezone

import pytest

from restbreak.engine.scheduler import BreakScheduler
from restbreak.engine.types import Config
from restbreak.store.stats import StatsRegistry


class FakeIdleSource:
    def __init__(self, idle_ms: int = 0):
        self.idle_ms = idle_ms

    def set_idle_seconds(self, seconds: int) -> None:
        self.idle_ms = seconds * 1000

    def get_idle_milliseconds(self) -> int:
        return self.idle_ms


class FakeClock:
    """Wall clock that advances one second per call, like a 1 Hz driver."""

    def __init__(self, step: float = 1.0):
        self.now = datetime(2024, 3, 4, 9, 0, 0, tzinfo=timezone.utc)
        self.step = timedelta(seconds=step)

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current

    def jump(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeNotifier:
    def __init__(self):
        self.calls: list[tuple[bool, bool]] = []

    def notify_break(self, enforced: bool, is_big: bool) -> None:
        self.calls.append((enforced, is_big))


class Recorder:
    def __init__(self):
        self.events: list = []

    def __call__(self, event) -> None:
        self.events.append(event)

    def of(self, kind) -> list:
        return [e for e in self.events if isinstance(e, kind)]

    def clear(self) -> None:
        self.events.clear()


def make_config(**overrides) -> Config:
    values = dict(
        tiny_interval=15 * 60,
        tiny_duration=20,
        tiny_idle_skip=60,
        big_interval=60 * 60,
        big_duration=60,
        big_idle_skip=5 * 60,
        postpone_interval=3 * 60,
        patience_interval=30,
        use_popup=True,
        use_idle_timers=True,
    )
    values.update(overrides)
    return Config(**values)


class Harness:
    def __init__(self, config: Config):
        self.idle = FakeIdleSource()
        self.clock = FakeClock()
        self.stats = StatsRegistry()
        self.notifier = FakeNotifier()
        self.recorder = Recorder()
        self.config = config
        self.scheduler = BreakScheduler(
            self.idle,
            config,
            stats=self.stats,
            notifier=self.notifier,
            on_event=self.recorder,
            clock=self.clock,
        )

    def run(self, ticks: int, idle_seconds: int = 0) -> None:
        self.idle.set_idle_seconds(idle_seconds)
        for _ in range(ticks):
            self.scheduler.poll()


@pytest.fixture
def config() -> Config:
    return make_config()


@pytest.fixture
def harness(config) -> Harness:
    return Harness(config)
