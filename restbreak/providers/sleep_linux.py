from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from queue import Empty, Queue
from threading import Event, Thread

from restbreak.engine.scheduler import BreakScheduler

LOGIND_BUS_NAME = "org.freedesktop.login1"
LOGIND_PATH = "/org/freedesktop/login1"
LOGIND_MANAGER = "org.freedesktop.login1.Manager"


class SleepEventKind(Enum):
    SUSPEND = "suspend"
    RESUME = "resume"


@dataclass(frozen=True)
class SleepEvent:
    kind: SleepEventKind
    when: datetime


def apply_sleep_event(
    scheduler: BreakScheduler, event: SleepEvent, *, paused_by_user: bool = False
) -> None:
    """Suspend the scheduler for system sleep; on wake drop any stale break.

    A pause the user asked for outlives the sleep: the scheduler then stays
    suspended after resume.
    """

    if event.kind == SleepEventKind.SUSPEND:
        scheduler.stop()
        return

    if not paused_by_user:
        scheduler.start()
    scheduler.handle_resume()


class SleepWatcher:
    """Turns logind PrepareForSleep signals into scheduler suspend/resume.

    Signals arrive on a background thread and are only queued there; the driver
    loop calls ``dispatch`` once per tick so the scheduler is only ever touched
    from the loop.
    """

    def __init__(self, *, ready_timeout: float = 2.0):
        self._pending: Queue[SleepEvent] = Queue()
        self._ready_timeout = ready_timeout
        self._thread: Thread | None = None
        self._ready = Event()
        self._available = False
        self._last_error: str | None = None

    def start(self) -> bool:
        """Start listening. Returns False when the system bus is unreachable."""

        if self._thread is not None:
            return self._available

        self._thread = Thread(target=self._run, name="restbreak-sleep", daemon=True)
        self._thread.start()
        self._ready.wait(timeout=self._ready_timeout)
        return self._available

    def is_available(self) -> bool:
        return self._available

    def last_error(self) -> str | None:
        return self._last_error

    def on_prepare_for_sleep(self, sleeping: bool) -> None:
        kind = SleepEventKind.SUSPEND if sleeping else SleepEventKind.RESUME
        self._pending.put(SleepEvent(kind=kind, when=datetime.now().astimezone()))

    def dispatch(
        self, scheduler: BreakScheduler, *, paused_by_user: bool = False
    ) -> list[SleepEvent]:
        """Apply queued sleep events to the scheduler in arrival order."""

        events: list[SleepEvent] = []
        while True:
            try:
                event = self._pending.get_nowait()
            except Empty:
                break
            apply_sleep_event(scheduler, event, paused_by_user=paused_by_user)
            events.append(event)
        return events

    def _mark_unavailable(self, error: str) -> None:
        self._last_error = error
        self._available = False
        self._ready.set()

    def _run(self) -> None:
        try:
            asyncio.run(self._listen())
        except Exception as exc:
            self._mark_unavailable(str(exc))

    async def _listen(self) -> None:
        try:
            from dbus_next.aio import MessageBus
            from dbus_next.constants import BusType
        except ImportError as exc:
            self._mark_unavailable(f"dbus import failed: {exc}")
            return

        bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
        introspection = await bus.introspect(LOGIND_BUS_NAME, LOGIND_PATH)
        manager = bus.get_proxy_object(LOGIND_BUS_NAME, LOGIND_PATH, introspection).get_interface(
            LOGIND_MANAGER
        )
        manager.on_prepare_for_sleep(self.on_prepare_for_sleep)  # type: ignore[attr-defined]

        self._available = True
        self._ready.set()
        # Runs until the daemon thread dies with the process.
        await asyncio.get_running_loop().create_future()
