import logging
import signal
import time
from collections import deque
from collections.abc import Callable
from datetime import date, datetime

from restbreak.cli.control import SIGNAL_COMMANDS, apply_command, remove_pid_file, write_pid_file
from restbreak.cli.presenter import ConsolePresenter
from restbreak.engine.scheduler import BreakScheduler
from restbreak.engine.types import TICK_SECONDS, Event, State
from restbreak.providers.linux import LinuxIdleSource
from restbreak.providers.notify import DesktopNotifier
from restbreak.providers.sleep_linux import SleepWatcher
from restbreak.store import (
    AppConfig,
    EventLogger,
    StatsRegistry,
    daily_stats_path,
    event_log_path,
    load_config,
    load_stats,
    write_stats_atomic,
)

STATS_HEARTBEAT_SECONDS = 30


def _now() -> datetime:
    return datetime.now().astimezone()


def _reload_config() -> tuple[AppConfig, dict]:
    return load_config(create_if_missing=False)


def next_deadline(previous: float, now: float) -> float:
    """Monotonic time of the next tick.

    Ticks stay on a fixed one-second grid however long a tick took; when the
    loop fell behind (slow subprocess, system sleep) it re-anchors on ``now``
    instead of bursting through missed ticks.
    """

    deadline = previous + TICK_SECONDS
    if deadline <= now:
        return now
    return deadline


class BreakDriver:
    """Everything `restbreak run` does between two sleeps, minus the sleeping.

    Control commands (queued by signal handlers) and sleep events are applied
    before the tick, so the scheduler only ever sees one mutator.
    """

    def __init__(
        self,
        scheduler: BreakScheduler,
        *,
        stats: StatsRegistry,
        event_logger: EventLogger,
        sleep_watcher: SleepWatcher,
        current_day: date,
        reload_config: Callable[[], tuple[AppConfig, dict]] = _reload_config,
        write: Callable[[str], None] = print,
    ):
        self.scheduler = scheduler
        self.stats = stats
        self.event_logger = event_logger
        self.sleep_watcher = sleep_watcher
        self.current_day = current_day
        self.pending: deque[str] = deque()
        self.paused_by_user = False
        self.last_state: State | None = None
        self._reload_config = reload_config
        self._write = write

    def handle_command(self, command: str) -> None:
        if command == "reload":
            self._reload()
        else:
            if command == "pause":
                self.paused_by_user = True
            elif command == "resume":
                self.paused_by_user = False
            apply_command(self.scheduler, command)
        self.event_logger.log_command(when=_now(), command=command, state=self.scheduler.state)

    def _reload(self) -> None:
        new_config, meta = self._reload_config()
        if meta.get("error"):
            # Keep running on the previous settings.
            self._write(f"Config reload failed: {meta.get('error')}")
            return
        restarted = self.scheduler.reconfigure(new_config.timers)
        self._write(f"Config reloaded (counters reset: {restarted})")

    def handle_sleep_events(self) -> None:
        events = self.sleep_watcher.dispatch(self.scheduler, paused_by_user=self.paused_by_user)
        for event in events:
            self.event_logger.append(
                when=event.when,
                event={
                    "event": "sleep",
                    "phase": event.kind.value,
                    "state": self.scheduler.state.value,
                },
            )

    def roll_day(self, today: date) -> bool:
        """Checkpoint yesterday's stats and start a fresh day. Returns True on rollover."""

        if today == self.current_day:
            return False
        write_stats_atomic(day=self.current_day, stats=self.stats)
        self.stats.reset()
        self.current_day = today
        self._write(f"Event log: {event_log_path(today)}")
        self._write(f"Daily stats: {daily_stats_path(today)}")
        return True

    def step(self, today: date | None = None) -> int:
        """Run one loop iteration. Returns the idle sample fed to the scheduler."""

        while self.pending:
            self.handle_command(self.pending.popleft())
        self.handle_sleep_events()
        self.roll_day(today or date.today())

        idle_seconds = self.scheduler.poll()

        state = self.scheduler.state
        if state != self.last_state:
            self.event_logger.log_transition(
                when=_now(), prev_state=self.last_state, next_state=state, idle_seconds=idle_seconds
            )
            self.last_state = state
        return idle_seconds


def _install_signal_handlers(pending: deque[str]) -> None:
    # Handlers only queue the command; the loop applies it between ticks.
    def handler(signum, _frame) -> None:
        command = SIGNAL_COMMANDS.get(signum)
        if command is not None:
            pending.append(command)

    for signum in SIGNAL_COMMANDS:
        signal.signal(signum, handler)


def main(*, verbose: bool = False) -> int:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )

    config, config_meta = load_config()
    if config_meta.get("error"):
        print(f"Config error: {config_meta.get('error')}")
        if str(config_meta["error"]).startswith("config_invalid"):
            return 2

    current_day = date.today()
    stats = load_stats(day=current_day) or StatsRegistry()
    event_logger = EventLogger()
    presenter = ConsolePresenter()

    def on_event(event: Event) -> None:
        presenter(event)
        event_logger.log_event(when=_now(), event=event)

    scheduler = BreakScheduler(
        LinuxIdleSource(),
        config.timers,
        stats=stats,
        notifier=DesktopNotifier(enabled=config.notify),
        on_event=on_event,
    )

    sleep_watcher = SleepWatcher()
    sleep_available = sleep_watcher.start()

    driver = BreakDriver(
        scheduler,
        stats=stats,
        event_logger=event_logger,
        sleep_watcher=sleep_watcher,
        current_day=current_day,
    )
    _install_signal_handlers(driver.pending)
    pid_path = write_pid_file()

    print("Starting restbreak (Ctrl+C to stop)")
    print(f"Config: {config_meta.get('path')}")
    print(f"Event log: {event_log_path(current_day)}")
    print(f"Daily stats: {daily_stats_path(current_day)}")
    print(f"Pid file: {pid_path}")
    if not sleep_available:
        message = "Sleep watcher: disabled (dbus unavailable)"
        if sleep_watcher.last_error():
            message = f"Sleep watcher: disabled ({sleep_watcher.last_error()})"
        print(message)

    deadline = time.monotonic()
    last_heartbeat_mono = deadline
    try:
        while True:
            driver.step()

            now_mono = time.monotonic()
            if now_mono - last_heartbeat_mono >= STATS_HEARTBEAT_SECONDS:
                write_stats_atomic(day=driver.current_day, stats=stats)
                last_heartbeat_mono = now_mono

            deadline = next_deadline(deadline, time.monotonic())
            time.sleep(max(0.0, deadline - time.monotonic()))

    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        write_stats_atomic(day=driver.current_day, stats=stats)
        remove_pid_file(pid_path)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
